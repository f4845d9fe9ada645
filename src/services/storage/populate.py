"""
Reference Expansion ("populate")

Projects store users and currencies by id. Before a project is returned to
a client those ids are resolved into documents. This is always an explicit
second step after the raw fetch, driven by a list of field names, so a
caller can see exactly which references get expanded.

Semantics follow the document store's populate:
- list references whose document no longer exists are dropped
- a single reference whose document no longer exists becomes None
- list order is preserved
"""

from typing import Iterable

from src.models.project import (
    PROJECT_POPULATE_FIELDS,
    ExpandedProject,
    Project,
    UserSummary,
)
from src.services.storage.interface import (
    CurrencyStorageInterface,
    UserStorageInterface,
)


USER_REFERENCE_FIELDS = frozenset({"owners", "users", "created_by", "modified_by"})
CURRENCY_REFERENCE_FIELDS = frozenset({"currencies", "main_currency"})


def _collect_ids(data: dict, fields: list[str]) -> list[str]:
    ids: list[str] = []
    for field in fields:
        value = data[field]
        if isinstance(value, list):
            ids.extend(value)
        elif value:
            ids.append(value)
    return list(dict.fromkeys(ids))


def _replace_refs(data: dict, fields: list[str], documents: dict) -> None:
    for field in fields:
        value = data[field]
        if isinstance(value, list):
            data[field] = [documents[ref] for ref in value if ref in documents]
        else:
            data[field] = documents.get(value) if value else None


class ProjectPopulator:
    """Resolves a project's user and currency references."""

    def __init__(
        self,
        users: UserStorageInterface,
        currencies: CurrencyStorageInterface,
    ):
        self._users = users
        self._currencies = currencies

    async def populate(
        self,
        project: Project,
        fields: Iterable[str] = PROJECT_POPULATE_FIELDS,
    ) -> ExpandedProject:
        """
        Expand the given reference fields of a project.

        Args:
            project: The raw project document
            fields: Names of the reference fields to expand

        Raises:
            ValueError: If a field is not a known reference field
        """
        fields = list(fields)
        unknown = set(fields) - USER_REFERENCE_FIELDS - CURRENCY_REFERENCE_FIELDS
        if unknown:
            raise ValueError(f"Cannot populate unknown fields: {sorted(unknown)}")

        data = project.model_dump()

        user_fields = [f for f in fields if f in USER_REFERENCE_FIELDS]
        if user_fields:
            users = await self._users.get_users(_collect_ids(data, user_fields))
            summaries = {user.id: UserSummary.from_user(user) for user in users}
            _replace_refs(data, user_fields, summaries)

        currency_fields = [f for f in fields if f in CURRENCY_REFERENCE_FIELDS]
        if currency_fields:
            currencies = await self._currencies.get_currencies(
                _collect_ids(data, currency_fields)
            )
            _replace_refs(data, currency_fields, {c.id: c for c in currencies})

        return ExpandedProject(**data)

    async def populate_many(
        self,
        projects: list[Project],
        fields: Iterable[str] = PROJECT_POPULATE_FIELDS,
    ) -> list[ExpandedProject]:
        fields = list(fields)
        return [await self.populate(project, fields) for project in projects]
