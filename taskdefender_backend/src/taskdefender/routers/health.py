from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


# PUBLIC_INTERFACE
@router.get("/", summary="Health Check")
def health_check(request: Request):
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health and the persistence backend in use.
    """
    return {"message": "Healthy", "backend": request.app.state.backend}
