"""
Application Wiring

Builds storage backends, controllers and the audit logger from settings.
The web layer calls `create_app_components` once at startup; tests call it
with `backend="memory"` to get a fully in-memory stack.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from src.audit import AuditLogger
from src.config import get_settings
from src.controllers import CategoryController, CurrencyController, ProjectController
from src.services.storage import (
    AuditStorageInterface,
    CategoryStorageInterface,
    CurrencyStorageInterface,
    InMemoryAuditStorage,
    InMemoryCategoryStorage,
    InMemoryCurrencyStorage,
    InMemoryProjectStorage,
    InMemoryUserStorage,
    MongoAuditStorage,
    MongoCategoryStorage,
    MongoClient,
    MongoCurrencyStorage,
    MongoProjectStorage,
    MongoUserStorage,
    ProjectPopulator,
    ProjectStorageInterface,
    UserStorageInterface,
)


logger = structlog.get_logger(__name__)


@dataclass
class AppComponents:
    """Everything a request handler needs."""

    project_controller: ProjectController
    currency_controller: CurrencyController
    category_controller: CategoryController
    projects: ProjectStorageInterface
    users: UserStorageInterface
    currencies: CurrencyStorageInterface
    categories: CategoryStorageInterface
    audit_logger: AuditLogger
    audit_storage: Optional[AuditStorageInterface] = None
    mongo_client: Optional[MongoClient] = None

    async def close(self) -> None:
        if self.mongo_client is not None:
            await self.mongo_client.close()


def create_app_components(backend: Optional[str] = None) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        backend: "mongo" or "memory". Defaults to STORAGE_BACKEND.

    Returns:
        The wired components
    """
    settings = get_settings().app
    backend = backend or settings.storage_backend

    mongo_client = None
    if backend == "mongo":
        mongo_client = MongoClient()
        projects = MongoProjectStorage(mongo_client)
        users = MongoUserStorage(mongo_client)
        currencies = MongoCurrencyStorage(mongo_client)
        categories = MongoCategoryStorage(mongo_client)
        audit_storage = MongoAuditStorage(mongo_client) if settings.audit_enabled else None
    elif backend == "memory":
        projects = InMemoryProjectStorage()
        users = InMemoryUserStorage()
        currencies = InMemoryCurrencyStorage()
        categories = InMemoryCategoryStorage()
        audit_storage = InMemoryAuditStorage() if settings.audit_enabled else None
    else:
        raise ValueError(f"Unknown storage backend: {backend}")

    audit_logger = AuditLogger(audit_storage)
    currency_controller = CurrencyController(currencies, projects, audit_logger)
    category_controller = CategoryController(categories, projects, audit_logger)
    project_controller = ProjectController(
        project_storage=projects,
        user_storage=users,
        populator=ProjectPopulator(users, currencies),
        currency_controller=currency_controller,
        category_controller=category_controller,
        audit_logger=audit_logger,
    )

    logger.info("components_created", backend=backend)
    return AppComponents(
        project_controller=project_controller,
        currency_controller=currency_controller,
        category_controller=category_controller,
        projects=projects,
        users=users,
        currencies=currencies,
        categories=categories,
        audit_logger=audit_logger,
        audit_storage=audit_storage,
        mongo_client=mongo_client,
    )
