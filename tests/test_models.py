"""
Tests for Finance Projects

Test strategy:
1. Unit tests for individual components (models, validators, populate)
2. Controller tests against the in-memory storage backend
3. Route tests through FastAPI's TestClient
4. No running MongoDB required
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from src.models.project import (
    Category,
    CategoryInput,
    CategoryType,
    Currency,
    ExpandedProject,
    Project,
    ProjectMainCurrencyUpdate,
    User,
    new_object_id,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestProjectModels:
    """Tests for project-related Pydantic models."""

    def test_new_object_id_is_hex(self):
        value = new_object_id()
        assert len(value) == 24
        int(value, 16)

    def test_project_defaults(self):
        owner = new_object_id()
        project = Project(name="Household", owners=[owner], users=[owner])
        assert project.currencies == []
        assert project.categories == []
        assert project.main_currency is None
        assert project.created.tzinfo is not None

    def test_project_requires_owner(self):
        """Test that a project without owners is rejected."""
        with pytest.raises(ValidationError):
            Project(name="Household", owners=[], users=[new_object_id()])

    def test_owner_must_be_user(self):
        owner, member = new_object_id(), new_object_id()
        with pytest.raises(ValidationError) as exc_info:
            Project(name="Household", owners=[owner], users=[member])
        assert "Owners must also be project users" in str(exc_info.value)

    def test_membership_helpers(self):
        owner, member = new_object_id(), new_object_id()
        project = Project(name="Household", owners=[owner], users=[owner, member])
        assert project.is_owner(owner)
        assert not project.is_owner(member)
        assert project.is_member(member)
        assert not project.is_member(new_object_id())

    def test_serializes_with_camel_case_aliases(self):
        owner = new_object_id()
        project = Project(name="Household", owners=[owner], users=[owner], created_by=owner)
        data = project.model_dump(by_alias=True)
        assert data["_id"] == project.id
        assert data["createdBy"] == owner
        assert "mainCurrency" in data

    def test_accepts_aliases_and_field_names(self):
        currency_id = new_object_id()
        assert ProjectMainCurrencyUpdate(mainCurrency=currency_id).main_currency == currency_id
        assert ProjectMainCurrencyUpdate(main_currency=currency_id).main_currency == currency_id

    def test_expanded_project_keeps_raw_ids(self):
        owner = new_object_id()
        expanded = ExpandedProject(
            name="Household",
            owners=[owner],
            users=[owner],
            created=datetime.now(timezone.utc),
        )
        assert expanded.owners == [owner]


class TestReferenceModels:

    def test_currency_code_upper_cased(self):
        assert Currency(code="eur", name="Euro").code == "EUR"

    @pytest.mark.parametrize("code", ["EU", "EURO", "E1R"])
    def test_currency_code_rejected(self, code):
        with pytest.raises(ValidationError):
            Currency(code=code, name="Bad")

    def test_user_strips_whitespace(self):
        """Test that whitespace is stripped from username."""
        assert User(username="  alice  ").username == "alice"

    def test_category_input_requires_name(self):
        with pytest.raises(ValidationError):
            CategoryInput(name="", category_type=CategoryType.EXPENSE)

    def test_category_type_from_json_value(self):
        category = Category.model_validate({
            "project": new_object_id(),
            "name": "Salary",
            "categoryType": "income",
        })
        assert category.category_type == CategoryType.INCOME


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.PROJECT_CREATED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.PROJECT_CREATED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.PROJECT_RENAMED,
            entity_type="project",
            entity_id=new_object_id(),
            correlation_id=correlation_id,
            description="Test event",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "project_renamed"
        assert log_dict["correlation_id"] == str(correlation_id)
        assert isinstance(log_dict["timestamp"], str)

    def test_audit_event_to_document(self):
        event = AuditEvent(
            event_type=AuditEventType.PROJECT_CREATED,
            description="Test event",
        )
        document = event.to_document()
        assert document["_id"] == str(event.event_id)
        assert "event_id" not in document
        assert document["timestamp"] == event.timestamp

    def test_builder_project_created(self):
        """Test AuditEventBuilder for project creation."""
        project_id, user_id = new_object_id(), new_object_id()
        event = AuditEventBuilder.project_created(project_id, user_id, "Household")
        assert event.event_type == AuditEventType.PROJECT_CREATED
        assert event.entity_type == "project"
        assert event.entity_id == project_id
        assert event.details == {"name": "Household"}

    def test_builder_user_link_failed_is_error(self):
        event = AuditEventBuilder.project_user_link_failed(
            new_object_id(), new_object_id(), "User with given id wasn't found"
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.details == {"orphaned": True}
        assert event.error_message == "User with given id wasn't found"

    def test_builder_category_deleted_counts_subcategories(self):
        root, child = new_object_id(), new_object_id()
        event = AuditEventBuilder.category_deleted(
            root, new_object_id(), new_object_id(), [root, child]
        )
        assert "1 subcategories" in event.description
        assert event.details["removed"] == [root, child]
