"""
HTTP API for Finance Projects

Run with:
    uvicorn app.main:app

DESIGN PRINCIPLES:
1. Handlers stay thin: parse the request, call one controller operation
2. Errors are rendered in one place (app/errors.py)
3. Components are built once at startup and shared through app.state
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.errors import register_error_handlers
from app.routes import currencies_router, projects_router
from src.audit import configure_logging
from src.bootstrap import AppComponents, create_app_components
from src.config import get_settings


def create_app(components: Optional[AppComponents] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        components: Pre-built components (tests pass an in-memory stack).
                    Built from settings when omitted.
    """
    settings = get_settings().app
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.components.close()

    app = FastAPI(
        title="Finance Projects",
        debug=settings.debug_mode,
        lifespan=lifespan,
    )
    app.state.components = components or create_app_components()

    register_error_handlers(app)
    app.include_router(projects_router)
    app.include_router(currencies_router)

    @app.get("/health")
    async def health(request: Request):
        mongo_client = request.app.state.components.mongo_client
        if mongo_client is not None and not await mongo_client.ping():
            return JSONResponse(
                status_code=503,
                content={"status": "unavailable", "environment": settings.app_environment},
            )
        return {"status": "ok", "environment": settings.app_environment}

    return app


app = create_app()
