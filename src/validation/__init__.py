"""Request validation package."""

from src.validation.validator import (
    ValidationError,
    ensure_object_id,
    is_valid_and_exist,
    is_valid_object_id,
    validate_project_name,
)

__all__ = [
    "ValidationError",
    "ensure_object_id",
    "is_valid_and_exist",
    "is_valid_object_id",
    "validate_project_name",
]
