"""
Request Validation Helpers

Checks that run before any datastore call is issued:
- identifiers must be syntactically valid ObjectIds
- referenced documents must exist (checked through the owning controller)
- required text fields must be present

IMPORTANT: An invalid identifier short-circuits. The lookup it guards is
never started, so a rejected id can't race a lookup result.
"""

from typing import Any, Optional, Protocol

from bson import ObjectId

from src.config import get_settings


class ValidationError(Exception):
    """
    Client-side input error.

    Malformed identifiers use 403 (matching how the API has always
    rejected them); missing or malformed fields use 400.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ControllerWithLookup(Protocol):
    async def get_by_id(self, entity_id: str) -> Any:
        ...


def is_valid_object_id(value: Any) -> bool:
    """Check whether `value` is a 24-character hex ObjectId string."""
    return isinstance(value, str) and ObjectId.is_valid(value)


def ensure_object_id(value: Any) -> str:
    """
    Return `value` if it is a valid identifier.

    Raises:
        ValidationError: 403 when the identifier is malformed
    """
    if not is_valid_object_id(value):
        raise ValidationError(f"Document id is invalid: {value}", status_code=403)
    return value


async def is_valid_and_exist(entity_id: str, controller: ControllerWithLookup) -> Any:
    """
    Check whether given id is valid and exists in the database.

    Args:
        entity_id: Identifier to check
        controller: Any controller exposing `get_by_id(entity_id)`

    Returns:
        The document found by the controller

    Raises:
        ValidationError: If the id is malformed (no lookup is made)
        NotFoundError: Whatever the controller raises when it finds nothing
    """
    ensure_object_id(entity_id)
    return await controller.get_by_id(entity_id)


def validate_project_name(name: Optional[str]) -> str:
    """
    Normalize a project name.

    Raises:
        ValidationError: If the name is missing, blank or too long
    """
    if name is None or not name.strip():
        raise ValidationError("Project name is required")

    name = name.strip()
    max_length = get_settings().app.max_project_name_length
    if len(name) > max_length:
        raise ValidationError(
            f"Project name must be at most {max_length} characters"
        )
    return name
