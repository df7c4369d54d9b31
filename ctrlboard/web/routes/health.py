"""Health check API routes."""

from fastapi import APIRouter, status

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", status_code=status.HTTP_200_OK)
def health_check():
    """Liveness check; the core keeps no state that could be unhealthy."""
    return {"status": "ok"}
