"""
FastAPI dependencies.

The AppStore is built once by create_app() and kept on app.state; handlers
reach it through these dependencies rather than through a module global.
"""
from fastapi import Request

from .store import AppStore


def get_store(request: Request) -> AppStore:
    """Return the AppStore attached to the running application."""
    return request.app.state.store
