from __future__ import annotations

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .logging_config import setup_logging
from .persistence import PersistenceAdapter
from .repositories import InMemoryKeyValueStore, KeyValueStore, StorageError, get_key_value_store
from .routers import focus, health, state, tasks, teams, urgency
from .settings import Settings, get_settings
from .store import AppStore, Clock

log = structlog.get_logger()

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "state", "description": "The application aggregate: user, theme and onboarding."},
    {"name": "tasks", "description": "Task intents: add, update, delete, plus per-task urgency."},
    {"name": "urgency", "description": "Deadline urgency tiers and dashboard counters."},
    {"name": "focus", "description": "Start and end the single focus session."},
    {"name": "teams", "description": "Create, join and select teams for this session."},
]


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            # ctx may carry the ValueError raised by a validator
            "detail": jsonable_encoder(exc.errors(), custom_encoder={Exception: str}),
        },
    )


def _open_key_value_store(settings: Settings) -> KeyValueStore:
    try:
        return get_key_value_store(settings)
    except StorageError as exc:
        log.warning("key_value_store_unavailable", backend=settings.persistence_backend, error=str(exc))
        return InMemoryKeyValueStore()


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    kv: Optional[KeyValueStore] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Build the API around a fresh AppStore.

    The store is rehydrated from the key-value surface (the configured backend
    unless `kv` is given) and saved back to it on every change. `clock` replaces
    the wall clock for tests.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="TaskDefender Backend",
        description="Personal task tracker state store with deadline urgency tiers.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]

    store = AppStore(clock=clock)
    adapter = PersistenceAdapter(kv if kv is not None else _open_key_value_store(settings))
    adapter.bind(store)

    app.state.settings = settings
    app.state.backend = settings.persistence_backend
    app.state.store = store
    app.state.persistence = adapter

    app.include_router(health.router)
    app.include_router(state.router)
    app.include_router(tasks.router)
    app.include_router(urgency.router)
    app.include_router(focus.router)
    app.include_router(teams.router)

    log.info("app_created", backend=app.state.backend, task_count=len(store.state.tasks))
    return app


app = create_app()
