"""HTTP routes."""

from app.routes.currencies import router as currencies_router
from app.routes.projects import router as projects_router

__all__ = ["currencies_router", "projects_router"]
