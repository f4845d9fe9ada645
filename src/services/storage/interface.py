"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Run against MongoDB in production
2. Use in-memory storage for testing and local development
3. Keep controller logic decoupled from the driver

The interface is intentionally simple - we're not building an ODM.
Just the find/update/insert operations the controllers need. Expanding
references into full documents is a separate step (see populate.py).
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from src.models.audit import AuditEvent
from src.models.project import Category, Currency, Project, User


class ProjectStorageInterface(ABC):
    """
    Abstract interface for project documents.

    Lookups accept optional `member_id` / `owner_id` filters so that
    access checks are part of the query itself.
    """

    @abstractmethod
    async def insert_project(self, project: Project) -> Project:
        """
        Insert a new project.

        Returns:
            The stored project

        Raises:
            DuplicateError: If a project with the same id exists
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def find_project(
        self,
        project_id: str,
        member_id: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> Optional[Project]:
        """
        Find one project by id.

        Args:
            project_id: The project's identifier
            member_id: Only match if this user is in `users`
            owner_id: Only match if this user is in `owners`

        Returns:
            The project if a matching one exists, None otherwise
        """
        pass

    @abstractmethod
    async def find_projects(self, member_id: str) -> list[Project]:
        """
        List every project the user is a member of.

        No ordering is guaranteed.
        """
        pass

    @abstractmethod
    async def update_project(
        self,
        project_id: str,
        changes: dict[str, Any],
        member_id: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> Optional[Project]:
        """
        Set fields on one matching project.

        Args:
            project_id: The project's identifier
            changes: Field name to new value
            member_id: Only match if this user is in `users`
            owner_id: Only match if this user is in `owners`

        Returns:
            The project after the update, None if nothing matched
        """
        pass

    @abstractmethod
    async def add_category_ref(self, project_id: str, category_id: str) -> bool:
        """Add a category id to the project's categories (set semantics)."""
        pass

    @abstractmethod
    async def remove_category_refs(
        self,
        project_id: str,
        category_ids: list[str],
    ) -> bool:
        """Remove category ids from the project's categories."""
        pass


class UserStorageInterface(ABC):
    """Abstract interface for user documents."""

    @abstractmethod
    async def insert_user(self, user: User) -> User:
        pass

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_users(self, user_ids: list[str]) -> list[User]:
        """Fetch all existing users among `user_ids`. Missing ids are skipped."""
        pass

    @abstractmethod
    async def add_project_to_user(self, user_id: str, project_id: str) -> bool:
        """
        Add a project id to the user's projects (set semantics).

        Returns:
            True if the user exists, False if no user matched
        """
        pass


class CurrencyStorageInterface(ABC):
    """Abstract interface for currency reference data."""

    @abstractmethod
    async def insert_currency(self, currency: Currency) -> Currency:
        pass

    @abstractmethod
    async def get_currency(self, currency_id: str) -> Optional[Currency]:
        pass

    @abstractmethod
    async def get_currencies(self, currency_ids: list[str]) -> list[Currency]:
        """Fetch all existing currencies among `currency_ids`."""
        pass

    @abstractmethod
    async def list_currencies(self) -> list[Currency]:
        pass


class CategoryStorageInterface(ABC):
    """Abstract interface for category documents."""

    @abstractmethod
    async def insert_category(self, category: Category) -> Category:
        pass

    @abstractmethod
    async def get_category(self, category_id: str) -> Optional[Category]:
        pass

    @abstractmethod
    async def list_categories(self, project_id: str) -> list[Category]:
        pass

    @abstractmethod
    async def update_category(
        self,
        category_id: str,
        changes: dict[str, Any],
    ) -> Optional[Category]:
        """
        Set fields on a category.

        Returns:
            The category after the update, None if it doesn't exist
        """
        pass

    @abstractmethod
    async def delete_categories(self, category_ids: list[str]) -> int:
        """
        Delete categories by id.

        Returns:
            Number of deleted documents
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(StorageError):
    """Entity not found in storage (or not visible to the caller)."""
    status_code = 404


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    status_code = 409


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    status_code = 503
