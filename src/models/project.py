"""
Core Data Models for Finance Projects

These models define the schemas for all documents flowing through the system:
projects, the users who share them, the currencies they track and the
categories they organize transactions with.

DESIGN DECISION: Documents are addressed by MongoDB ObjectId strings and
serialized with camelCase field names (and `_id`) so that the JSON we return
matches what is stored in the document database.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from bson import ObjectId
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


# Reference fields expanded whenever a project is returned to a client
PROJECT_POPULATE_FIELDS = (
    "owners",
    "users",
    "currencies",
    "main_currency",
    "created_by",
    "modified_by",
)


def new_object_id() -> str:
    """Generate a fresh document identifier."""
    return str(ObjectId())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================

class CategoryType(str, Enum):
    """Direction of money a category groups."""
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# BASE
# =============================================================================

class ApiModel(BaseModel):
    """Base for everything exchanged as camelCase JSON."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class DocumentModel(ApiModel):
    """A model stored as a document with its own `_id`."""

    id: str = Field(
        default_factory=new_object_id,
        alias="_id",
        description="Document identifier (ObjectId hex string)"
    )


# =============================================================================
# REFERENCED DOCUMENTS
# =============================================================================

class Currency(DocumentModel):
    """
    A currency a project can keep accounts in.

    Currencies are reference data: this service reads them, never writes.
    """

    code: str = Field(
        ...,
        min_length=3,
        max_length=3,
        description="ISO 4217 code"
    )
    name: str = Field(..., min_length=1, max_length=100)
    symbol: Optional[str] = Field(default=None, max_length=8)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        code = v.upper()
        if not code.isalpha():
            raise ValueError("Currency code must be alphabetic")
        return code


class User(DocumentModel):
    """An account holder and the set of projects they belong to."""

    username: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=254)
    projects: list[str] = Field(
        default_factory=list,
        description="Ids of projects this user has been added to"
    )


class UserSummary(DocumentModel):
    """Public view of a user used when expanding project references."""

    username: str
    email: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(id=user.id, username=user.username, email=user.email)


class Category(DocumentModel):
    """
    A transaction category belonging to exactly one project.

    Categories may be nested through `parent`; a child always has the
    same category type as its parent.
    """

    project: str = Field(..., description="Owning project id")
    name: str = Field(..., min_length=1, max_length=100)
    category_type: CategoryType
    parent: Optional[str] = None
    created: datetime = Field(default_factory=utcnow)


# =============================================================================
# PROJECT
# =============================================================================

class Project(DocumentModel):
    """
    A shared financial workspace as stored in the database.

    INVARIANT: a project always has at least one owner and every owner
    is also listed in `users`.
    """

    name: str = Field(..., min_length=1, max_length=500)
    owners: list[str] = Field(..., min_length=1)
    users: list[str] = Field(..., min_length=1)
    main_currency: Optional[str] = None
    currencies: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    created: datetime = Field(default_factory=utcnow)
    created_by: Optional[str] = None
    modified_by: Optional[str] = None

    @model_validator(mode="after")
    def validate_owners_are_users(self) -> "Project":
        """Every owner must have at least member access."""
        missing = [owner for owner in self.owners if owner not in self.users]
        if missing:
            raise ValueError(f"Owners must also be project users: {missing}")
        return self

    def is_member(self, user_id: str) -> bool:
        return user_id in self.users

    def is_owner(self, user_id: str) -> bool:
        return user_id in self.owners


class ExpandedProject(DocumentModel):
    """
    A project with its references resolved for a response.

    Fields left out of the populate list keep their raw ids.
    """

    name: str
    owners: list[Union[UserSummary, str]] = Field(default_factory=list)
    users: list[Union[UserSummary, str]] = Field(default_factory=list)
    main_currency: Optional[Union[Currency, str]] = None
    currencies: list[Union[Currency, str]] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    created: datetime
    created_by: Optional[Union[UserSummary, str]] = None
    modified_by: Optional[Union[UserSummary, str]] = None


# =============================================================================
# REQUEST PAYLOADS
# =============================================================================

class ProjectCreate(ApiModel):
    """Body of a project creation request."""

    name: str


class ProjectRename(ApiModel):
    name: str


class ProjectCurrenciesUpdate(ApiModel):
    currencies: list[str]


class ProjectMainCurrencyUpdate(ApiModel):
    main_currency: str


class CategoryInput(ApiModel):
    """Fields a client may set on a category."""

    name: str = Field(..., min_length=1, max_length=100)
    category_type: CategoryType
    parent: Optional[str] = None
