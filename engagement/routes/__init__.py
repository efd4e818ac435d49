"""Register all route modules on the FastAPI app."""

from fastapi import FastAPI

from .authors import router as authors_router
from .comments import router as comments_router
from .root import router as root_router
from .views import router as views_router


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the app."""
    app.include_router(root_router)
    app.include_router(views_router, prefix="/api/views", tags=["views"])
    app.include_router(comments_router, prefix="/api/views", tags=["comments"])
    app.include_router(authors_router, prefix="/api/authors", tags=["authors"])
