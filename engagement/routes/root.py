"""Root and health endpoints."""

from fastapi import APIRouter

from ..state import get_state

router = APIRouter()


@router.get("/")
def root():
    return {"name": "Engagement Service API", "docs": "/docs"}


@router.get("/health")
def health():
    """Liveness plus the configured backends."""
    state = get_state()
    return {
        "status": "ok",
        "store": type(state.store).__name__,
        "auth_mode": state.config.auth_mode,
        "open_views": len(state.views),
    }
