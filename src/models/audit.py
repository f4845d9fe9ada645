"""
Audit Models for Finance Projects

Every change to a project is recorded as an audit event.
This provides:
1. Traceability of who changed which project and when
2. Visibility into partially completed writes (e.g. an orphaned project)
3. Debugging information when a datastore call fails

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Project lifecycle
    PROJECT_CREATED = "project_created"
    PROJECT_CREATE_FAILED = "project_create_failed"
    PROJECT_USER_LINK_FAILED = "project_user_link_failed"
    PROJECT_RENAMED = "project_renamed"

    # Currencies
    PROJECT_CURRENCIES_UPDATED = "project_currencies_updated"
    PROJECT_MAIN_CURRENCY_UPDATED = "project_main_currency_updated"

    # Categories
    CATEGORY_ADDED = "category_added"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every project mutation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'project', 'category')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Document id of the entity this event relates to"
    )
    user_id: Optional[str] = Field(
        default=None,
        description="User who triggered the change"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate events raised while serving one request"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_document(self) -> dict:
        """Convert to a document for the audit collection."""
        document = self.to_log_dict()
        document["_id"] = document.pop("event_id")
        document["timestamp"] = self.timestamp
        return document


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.project_created(project_id, user_id, name)
        event = AuditEventBuilder.project_renamed(project_id, user_id, name)
    """

    @staticmethod
    def project_created(
        project_id: str,
        user_id: str,
        name: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROJECT_CREATED,
            entity_type="project",
            entity_id=project_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Project created",
            details={"name": name},
        )

    @staticmethod
    def project_create_failed(
        user_id: str,
        name: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROJECT_CREATE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="project",
            user_id=user_id,
            correlation_id=correlation_id,
            description="New project hasn't been created",
            details={"name": name},
            error_message=error_message,
        )

    @staticmethod
    def project_user_link_failed(
        project_id: str,
        user_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        # The project document exists at this point but the user does not
        # reference it.
        return AuditEvent(
            event_type=AuditEventType.PROJECT_USER_LINK_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="project",
            entity_id=project_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Project {project_id} wasn't added to user {user_id}",
            details={"orphaned": True},
            error_message=error_message,
        )

    @staticmethod
    def project_renamed(
        project_id: str,
        user_id: str,
        name: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROJECT_RENAMED,
            entity_type="project",
            entity_id=project_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Project renamed",
            details={"name": name},
        )

    @staticmethod
    def project_currencies_updated(
        project_id: str,
        user_id: str,
        currency_ids: list[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROJECT_CURRENCIES_UPDATED,
            entity_type="project",
            entity_id=project_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Project currencies updated ({len(currency_ids)} currencies)",
            details={"currencies": currency_ids},
        )

    @staticmethod
    def project_main_currency_updated(
        project_id: str,
        user_id: str,
        currency_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROJECT_MAIN_CURRENCY_UPDATED,
            entity_type="project",
            entity_id=project_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Project main currency updated",
            details={"main_currency": currency_id},
        )

    @staticmethod
    def category_added(
        category_id: str,
        project_id: str,
        user_id: str,
        name: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_ADDED,
            entity_type="category",
            entity_id=category_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Category added",
            details={"project": project_id, "name": name},
        )

    @staticmethod
    def category_updated(
        category_id: str,
        project_id: str,
        user_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_UPDATED,
            entity_type="category",
            entity_id=category_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Category updated",
            details={"project": project_id},
        )

    @staticmethod
    def category_deleted(
        category_id: str,
        project_id: str,
        user_id: str,
        removed_ids: list[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            entity_type="category",
            entity_id=category_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Category deleted with {len(removed_ids) - 1} subcategories",
            details={"project": project_id, "removed": removed_ids},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
