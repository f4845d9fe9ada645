"""Services package."""

from src.services.storage import (
    AuditStorageInterface,
    CategoryStorageInterface,
    ConnectionError,
    CurrencyStorageInterface,
    DuplicateError,
    NotFoundError,
    ProjectPopulator,
    ProjectStorageInterface,
    StorageError,
    UserStorageInterface,
)

__all__ = [
    "AuditStorageInterface",
    "CategoryStorageInterface",
    "ConnectionError",
    "CurrencyStorageInterface",
    "DuplicateError",
    "NotFoundError",
    "ProjectPopulator",
    "ProjectStorageInterface",
    "StorageError",
    "UserStorageInterface",
]
