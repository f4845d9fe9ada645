"""
Currency Controller

Owns everything about which currencies a project keeps accounts in:
- the ordered list of project currencies
- the project's main currency, which is always one of them
"""

from typing import Optional
from uuid import UUID

import structlog

from src.audit import AuditLogger
from src.controllers.access import require_member_project
from src.models.project import Currency
from src.services.storage import (
    CurrencyStorageInterface,
    NotFoundError,
    ProjectStorageInterface,
)
from src.validation import ValidationError, ensure_object_id, is_valid_and_exist


logger = structlog.get_logger(__name__)


class CurrencyController:
    """Currency lookups and project currency updates."""

    def __init__(
        self,
        currency_storage: CurrencyStorageInterface,
        project_storage: ProjectStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._currencies = currency_storage
        self._projects = project_storage
        self._audit_logger = audit_logger

    async def get_by_id(self, currency_id: str) -> Currency:
        """
        Get currency by id.

        Raises:
            NotFoundError: If no currency has this id
        """
        currency = await self._currencies.get_currency(currency_id)
        if currency is None:
            logger.error("currency_not_found", currency_id=currency_id)
            raise NotFoundError(f"Currency with given id wasn't found: {currency_id}")
        return currency

    async def get_all(self) -> list[Currency]:
        """All known currencies, sorted by code."""
        currencies = await self._currencies.list_currencies()
        return sorted(currencies, key=lambda c: c.code)

    async def update_project_currencies(
        self,
        project_id: str,
        user_id: str,
        currency_ids: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> list[str]:
        """
        Replace the currencies of a project.

        Every id is checked before anything is written. Repeated ids are
        kept once, at their first position.

        Returns:
            The stored list of currency ids

        Raises:
            ValidationError: Malformed id, or the main currency would be dropped
            NotFoundError: Unknown currency or project not visible to the user
        """
        ensure_object_id(project_id)
        currency_ids = list(dict.fromkeys(currency_ids))
        for currency_id in currency_ids:
            await is_valid_and_exist(currency_id, self)

        project = await require_member_project(self._projects, project_id, user_id)
        if project.main_currency and project.main_currency not in currency_ids:
            raise ValidationError("Main currency can't be removed from project currencies")

        updated = await self._projects.update_project(
            project_id,
            {"currencies": currency_ids, "modified_by": user_id},
            member_id=user_id,
        )
        if updated is None:
            logger.error("project_currencies_not_updated", project_id=project_id)
            raise NotFoundError(f"Project with given id wasn't found: {project_id}")

        logger.info(
            "project_currencies_updated",
            project_id=project_id,
            currencies=updated.currencies,
        )
        if self._audit_logger:
            await self._audit_logger.log_currencies_updated(
                project_id=project_id,
                user_id=user_id,
                currency_ids=updated.currencies,
                correlation_id=correlation_id,
            )
        return updated.currencies

    async def update_project_main_currency(
        self,
        project_id: str,
        user_id: str,
        currency_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Currency:
        """
        Set the main currency of a project.

        The currency has to be one of the project's currencies already.

        Returns:
            The new main currency
        """
        ensure_object_id(project_id)
        currency = await is_valid_and_exist(currency_id, self)

        project = await require_member_project(self._projects, project_id, user_id)
        if currency.id not in project.currencies:
            raise ValidationError(
                f"Currency {currency.code} is not one of the project currencies"
            )

        updated = await self._projects.update_project(
            project_id,
            {"main_currency": currency.id, "modified_by": user_id},
            member_id=user_id,
        )
        if updated is None:
            raise NotFoundError(f"Project with given id wasn't found: {project_id}")

        logger.info(
            "project_main_currency_updated",
            project_id=project_id,
            currency_id=currency.id,
        )
        if self._audit_logger:
            await self._audit_logger.log_main_currency_updated(
                project_id=project_id,
                user_id=user_id,
                currency_id=currency.id,
                correlation_id=correlation_id,
            )
        return currency
