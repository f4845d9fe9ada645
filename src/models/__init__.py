"""
Data Models Package

This package contains all Pydantic models used by the Finance Projects service.
All data flowing through the system must conform to these schemas.
"""

from src.models.project import (
    PROJECT_POPULATE_FIELDS,
    Category,
    CategoryInput,
    CategoryType,
    Currency,
    ExpandedProject,
    Project,
    ProjectCreate,
    ProjectCurrenciesUpdate,
    ProjectMainCurrencyUpdate,
    ProjectRename,
    User,
    UserSummary,
    new_object_id,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Project models
    "PROJECT_POPULATE_FIELDS",
    "Category",
    "CategoryInput",
    "CategoryType",
    "Currency",
    "ExpandedProject",
    "Project",
    "ProjectCreate",
    "ProjectCurrenciesUpdate",
    "ProjectMainCurrencyUpdate",
    "ProjectRename",
    "User",
    "UserSummary",
    "new_object_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
