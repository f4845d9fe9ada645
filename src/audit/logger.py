"""
Audit Logger

DESIGN DECISION: Every project mutation is logged.
This provides:
1. Traceability of changes to shared projects
2. Visibility into writes that completed only partially
3. Debugging capability

The audit logger:
- Is async so it can persist next to the domain data
- Gracefully handles failures (doesn't crash the request if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Callable, Optional
from uuid import UUID, uuid4

import structlog
from pydantic import ValidationError

from src.models.audit import AuditEvent, AuditEventBuilder
from src.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at `level`."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit collection (for persistence), when storage is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def _record(self, builder: Callable[..., AuditEvent], **fields) -> bool:
        """
        Build an event with `builder` and log it.

        The change being audited is already written at this point, so an
        event that fails model validation is logged and dropped.
        """
        try:
            event = builder(**fields)
        except ValidationError as e:
            self._logger.error(
                "audit_event_invalid",
                builder=builder.__name__,
                error=str(e),
            )
            return False
        return await self.log(event)

    async def log_project_created(
        self,
        project_id: str,
        user_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._record(
            AuditEventBuilder.project_created,
            project_id=project_id,
            user_id=user_id,
            name=name,
            correlation_id=correlation_id,
        )

    async def log_project_create_failed(
        self,
        user_id: str,
        name: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._record(
            AuditEventBuilder.project_create_failed,
            user_id=user_id,
            name=name,
            error_message=error_message,
            correlation_id=correlation_id,
        )

    async def log_project_user_link_failed(
        self,
        project_id: str,
        user_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a project that was stored but never linked to its creator."""
        await self._record(
            AuditEventBuilder.project_user_link_failed,
            project_id=project_id,
            user_id=user_id,
            error_message=error_message,
            correlation_id=correlation_id,
        )

    async def log_project_renamed(
        self,
        project_id: str,
        user_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._record(
            AuditEventBuilder.project_renamed,
            project_id=project_id,
            user_id=user_id,
            name=name,
            correlation_id=correlation_id,
        )

    async def log_currencies_updated(
        self,
        project_id: str,
        user_id: str,
        currency_ids: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._record(
            AuditEventBuilder.project_currencies_updated,
            project_id=project_id,
            user_id=user_id,
            currency_ids=currency_ids,
            correlation_id=correlation_id,
        )

    async def log_main_currency_updated(
        self,
        project_id: str,
        user_id: str,
        currency_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._record(
            AuditEventBuilder.project_main_currency_updated,
            project_id=project_id,
            user_id=user_id,
            currency_id=currency_id,
            correlation_id=correlation_id,
        )

    async def log_category_added(
        self,
        category_id: str,
        project_id: str,
        user_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._record(
            AuditEventBuilder.category_added,
            category_id=category_id,
            project_id=project_id,
            user_id=user_id,
            name=name,
            correlation_id=correlation_id,
        )

    async def log_category_updated(
        self,
        category_id: str,
        project_id: str,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._record(
            AuditEventBuilder.category_updated,
            category_id=category_id,
            project_id=project_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )

    async def log_category_deleted(
        self,
        category_id: str,
        project_id: str,
        user_id: str,
        removed_ids: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._record(
            AuditEventBuilder.category_deleted,
            category_id=category_id,
            project_id=project_id,
            user_id=user_id,
            removed_ids=removed_ids,
            correlation_id=correlation_id,
        )

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self._record(
            AuditEventBuilder.system_error,
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a request and pass it through
    all subsequent controller calls.
    """
    return uuid4()
