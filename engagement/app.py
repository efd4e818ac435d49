"""
Engagement Service: FastAPI app factory.

Use: uvicorn engagement.app:app
Or:  from engagement import app
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_config
from .errors import AuthRequired, ValidationError
from .routes import register_routes
from .state import get_state

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    """Build FastAPI app with CORS, error mapping, routes, and startup."""
    config = get_config()
    configure_logging(config.log_level)

    app = FastAPI(
        title="Engagement Service API",
        description="Reactions, likes, bookmarks and comments on content items",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AuthRequired)
    async def _auth_required(request: Request, exc: AuthRequired):
        return JSONResponse(status_code=401, content={"detail": str(exc), "login_url": exc.login_url})

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": str(exc), "field": exc.field})

    register_routes(app)

    @app.on_event("startup")
    async def _startup_logging():
        state = get_state()
        ok, errors = state.config.validate()
        for error in errors:
            logger.warning("[startup] config: %s", error)
        logger.info(
            "[startup] Engagement Service API starting (store=%s, auth=%s, valid_config=%s)",
            state.config.store_backend,
            state.config.auth_mode,
            ok,
        )

    return app


app = create_app()
