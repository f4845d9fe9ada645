"""
In-Memory Storage Implementation

Keeps documents in dicts keyed by id. Used by the test suite and for
running the API locally without a MongoDB server
(STORAGE_BACKEND=memory).

Documents are copied on the way in and on the way out so callers can
never mutate stored state by accident.
"""

from typing import Any, Optional

from src.models.audit import AuditEvent
from src.models.project import Category, Currency, Project, User
from src.services.storage.interface import (
    AuditStorageInterface,
    CategoryStorageInterface,
    CurrencyStorageInterface,
    DuplicateError,
    ProjectStorageInterface,
    UserStorageInterface,
)


def _matches(
    project: Project,
    member_id: Optional[str],
    owner_id: Optional[str],
) -> bool:
    if member_id is not None and not project.is_member(member_id):
        return False
    if owner_id is not None and not project.is_owner(owner_id):
        return False
    return True


class InMemoryProjectStorage(ProjectStorageInterface):
    """Project documents held in a dict."""

    def __init__(self):
        self._projects: dict[str, Project] = {}

    async def insert_project(self, project: Project) -> Project:
        if project.id in self._projects:
            raise DuplicateError(f"Project already exists: {project.id}")
        self._projects[project.id] = project.model_copy(deep=True)
        return project.model_copy(deep=True)

    async def find_project(
        self,
        project_id: str,
        member_id: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> Optional[Project]:
        project = self._projects.get(project_id)
        if project is None or not _matches(project, member_id, owner_id):
            return None
        return project.model_copy(deep=True)

    async def find_projects(self, member_id: str) -> list[Project]:
        return [
            project.model_copy(deep=True)
            for project in self._projects.values()
            if project.is_member(member_id)
        ]

    async def update_project(
        self,
        project_id: str,
        changes: dict[str, Any],
        member_id: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> Optional[Project]:
        project = self._projects.get(project_id)
        if project is None or not _matches(project, member_id, owner_id):
            return None
        # Re-validate so a write can't break model invariants
        updated = Project.model_validate({**project.model_dump(), **changes})
        self._projects[project_id] = updated
        return updated.model_copy(deep=True)

    async def add_category_ref(self, project_id: str, category_id: str) -> bool:
        project = self._projects.get(project_id)
        if project is None:
            return False
        if category_id not in project.categories:
            project.categories.append(category_id)
        return True

    async def remove_category_refs(
        self,
        project_id: str,
        category_ids: list[str],
    ) -> bool:
        project = self._projects.get(project_id)
        if project is None:
            return False
        project.categories = [c for c in project.categories if c not in category_ids]
        return True


class InMemoryUserStorage(UserStorageInterface):
    """User documents held in a dict."""

    def __init__(self):
        self._users: dict[str, User] = {}

    async def insert_user(self, user: User) -> User:
        if user.id in self._users:
            raise DuplicateError(f"User already exists: {user.id}")
        self._users[user.id] = user.model_copy(deep=True)
        return user.model_copy(deep=True)

    async def get_user(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def get_users(self, user_ids: list[str]) -> list[User]:
        return [
            self._users[user_id].model_copy(deep=True)
            for user_id in user_ids
            if user_id in self._users
        ]

    async def add_project_to_user(self, user_id: str, project_id: str) -> bool:
        user = self._users.get(user_id)
        if user is None:
            return False
        if project_id not in user.projects:
            user.projects.append(project_id)
        return True


class InMemoryCurrencyStorage(CurrencyStorageInterface):
    """Currency reference data held in a dict."""

    def __init__(self):
        self._currencies: dict[str, Currency] = {}

    async def insert_currency(self, currency: Currency) -> Currency:
        if currency.id in self._currencies:
            raise DuplicateError(f"Currency already exists: {currency.id}")
        self._currencies[currency.id] = currency.model_copy()
        return currency

    async def get_currency(self, currency_id: str) -> Optional[Currency]:
        currency = self._currencies.get(currency_id)
        return currency.model_copy() if currency else None

    async def get_currencies(self, currency_ids: list[str]) -> list[Currency]:
        return [
            self._currencies[currency_id].model_copy()
            for currency_id in currency_ids
            if currency_id in self._currencies
        ]

    async def list_currencies(self) -> list[Currency]:
        return [currency.model_copy() for currency in self._currencies.values()]


class InMemoryCategoryStorage(CategoryStorageInterface):
    """Category documents held in a dict."""

    def __init__(self):
        self._categories: dict[str, Category] = {}

    async def insert_category(self, category: Category) -> Category:
        if category.id in self._categories:
            raise DuplicateError(f"Category already exists: {category.id}")
        self._categories[category.id] = category.model_copy()
        return category.model_copy()

    async def get_category(self, category_id: str) -> Optional[Category]:
        category = self._categories.get(category_id)
        return category.model_copy() if category else None

    async def list_categories(self, project_id: str) -> list[Category]:
        return [
            category.model_copy()
            for category in self._categories.values()
            if category.project == project_id
        ]

    async def update_category(
        self,
        category_id: str,
        changes: dict[str, Any],
    ) -> Optional[Category]:
        category = self._categories.get(category_id)
        if category is None:
            return None
        updated = Category.model_validate({**category.model_dump(), **changes})
        self._categories[category_id] = updated
        return updated.model_copy()

    async def delete_categories(self, category_ids: list[str]) -> int:
        deleted = 0
        for category_id in category_ids:
            if self._categories.pop(category_id, None) is not None:
                deleted += 1
        return deleted


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
