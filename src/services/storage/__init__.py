"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
MongoDB is the production backend; the in-memory backend serves tests and
local development.
"""

from src.services.storage.interface import (
    AuditStorageInterface,
    CategoryStorageInterface,
    ConnectionError,
    CurrencyStorageInterface,
    DuplicateError,
    NotFoundError,
    ProjectStorageInterface,
    StorageError,
    UserStorageInterface,
)
from src.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryCategoryStorage,
    InMemoryCurrencyStorage,
    InMemoryProjectStorage,
    InMemoryUserStorage,
)
from src.services.storage.mongo import (
    MongoAuditStorage,
    MongoCategoryStorage,
    MongoClient,
    MongoCurrencyStorage,
    MongoProjectStorage,
    MongoUserStorage,
)
from src.services.storage.populate import ProjectPopulator

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "CategoryStorageInterface",
    "CurrencyStorageInterface",
    "ProjectStorageInterface",
    "UserStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryCategoryStorage",
    "InMemoryCurrencyStorage",
    "InMemoryProjectStorage",
    "InMemoryUserStorage",
    # MongoDB implementation
    "MongoAuditStorage",
    "MongoCategoryStorage",
    "MongoClient",
    "MongoCurrencyStorage",
    "MongoProjectStorage",
    "MongoUserStorage",
    # Reference expansion
    "ProjectPopulator",
]
