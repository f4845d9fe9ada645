"""
Tests for the project controller.

Covers the create -> link -> populate chain, the membership and ownership
gates, and the currency/category delegation.
"""

import asyncio

import pytest

from src.models.audit import AuditEventType
from src.models.project import CategoryInput, CategoryType, new_object_id
from src.services.storage import ConnectionError, NotFoundError, StorageError
from src.validation import ValidationError


def _ids(references) -> list[str]:
    return [ref.id for ref in references]


class TestCreate:
    """Tests for ProjectController.create."""

    def test_household_scenario(self, projects, alice, bob):
        """Create, read back, hide from others, rename."""
        project = asyncio.run(projects.create("Household", alice.id))
        assert project.name == "Household"
        assert _ids(project.owners) == [alice.id]
        assert _ids(project.users) == [alice.id]

        found = asyncio.run(projects.get_by_id(project.id, alice.id))
        assert found.id == project.id
        assert found.name == "Household"

        with pytest.raises(NotFoundError):
            asyncio.run(projects.get_by_id(project.id, bob.id))

        assert asyncio.run(projects.rename(project.id, alice.id, "Home")) == "Home"
        assert asyncio.run(projects.get_by_id(project.id, alice.id)).name == "Home"

    def test_created_project_is_expanded(self, projects, alice):
        project = asyncio.run(projects.create("Trip", alice.id))
        assert project.owners[0].username == "alice"
        assert project.created_by.username == "alice"
        assert project.modified_by.username == "alice"
        assert project.currencies == []
        assert project.main_currency is None

    def test_owners_are_always_users(self, projects, alice, bob):
        """Every created project has an owner who is also a member."""
        created = [
            asyncio.run(projects.create(name, user.id))
            for name, user in [("A", alice), ("B", bob), ("C", alice)]
        ]
        for project in created:
            owners = _ids(project.owners)
            assert owners
            assert set(owners) <= set(_ids(project.users))

    def test_user_projects_contain_each_id_once(self, components, projects, alice):
        first = asyncio.run(projects.create("First", alice.id))
        second = asyncio.run(projects.create("Second", alice.id))
        # Linking again must not duplicate
        asyncio.run(components.users.add_project_to_user(alice.id, first.id))

        user = asyncio.run(components.users.get_user(alice.id))
        assert sorted(user.projects) == sorted([first.id, second.id])
        assert len(user.projects) == 2

    def test_name_is_stripped(self, projects, alice):
        project = asyncio.run(projects.create("  Savings  ", alice.id))
        assert project.name == "Savings"

    def test_blank_name_rejected(self, components, projects, alice):
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(projects.create("   ", alice.id))
        assert exc_info.value.status_code == 400
        assert asyncio.run(components.projects.find_projects(alice.id)) == []

    def test_invalid_user_id_rejected(self, projects):
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(projects.create("Household", "not-an-id"))
        assert exc_info.value.status_code == 403

    def test_insert_failure_is_raised_unmodified(self, components, projects, alice, monkeypatch):
        error = StorageError("Failed to save project: write concern")

        async def failing_insert(project):
            raise error

        monkeypatch.setattr(components.projects, "insert_project", failing_insert)

        with pytest.raises(StorageError) as exc_info:
            asyncio.run(projects.create("Household", alice.id))
        assert exc_info.value is error

        user = asyncio.run(components.users.get_user(alice.id))
        assert user.projects == []

        events = asyncio.run(components.audit_storage.get_recent_events())
        assert events[0].event_type == AuditEventType.PROJECT_CREATE_FAILED

    def test_missing_user_leaves_orphan_project(self, components, projects):
        """The project write is not rolled back when linking fails."""
        ghost_id = new_object_id()

        with pytest.raises(NotFoundError):
            asyncio.run(projects.create("Orphan", ghost_id))

        orphans = asyncio.run(components.projects.find_projects(ghost_id))
        assert len(orphans) == 1
        assert orphans[0].name == "Orphan"

        events = asyncio.run(
            components.audit_storage.get_events_by_entity("project", orphans[0].id)
        )
        assert [e.event_type for e in events] == [AuditEventType.PROJECT_USER_LINK_FAILED]

    def test_link_failure_is_raised_unmodified(self, components, projects, alice, monkeypatch):
        async def failing_link(user_id, project_id):
            raise ConnectionError("Failed to add project to user: timeout")

        monkeypatch.setattr(components.users, "add_project_to_user", failing_link)

        with pytest.raises(ConnectionError):
            asyncio.run(projects.create("Household", alice.id))

        stored = asyncio.run(components.projects.find_projects(alice.id))
        assert len(stored) == 1

    def test_success_is_audited(self, components, projects, alice):
        project = asyncio.run(projects.create("Household", alice.id))
        events = asyncio.run(
            components.audit_storage.get_events_by_entity("project", project.id)
        )
        assert [e.event_type for e in events] == [AuditEventType.PROJECT_CREATED]
        assert events[0].user_id == alice.id


class TestRead:
    """Tests for get_by_id and get_all."""

    def test_member_can_read(self, projects, shared_project, bob):
        found = asyncio.run(projects.get_by_id(shared_project.id, bob.id))
        assert found.name == "Household"
        assert [u.username for u in found.users] == ["alice", "bob"]

    def test_non_member_gets_not_found(self, projects, shared_project):
        stranger = new_object_id()
        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(projects.get_by_id(shared_project.id, stranger))
        assert exc_info.value.status_code == 404

    def test_missing_and_hidden_look_the_same(self, projects, alice, bob):
        hidden = asyncio.run(projects.create("Hidden", alice.id))

        with pytest.raises(NotFoundError) as hidden_error:
            asyncio.run(projects.get_by_id(hidden.id, bob.id))
        missing_id = new_object_id()
        with pytest.raises(NotFoundError) as missing_error:
            asyncio.run(projects.get_by_id(missing_id, bob.id))

        assert hidden_error.value.message.replace(hidden.id, "") == \
            missing_error.value.message.replace(missing_id, "")

    def test_invalid_project_id(self, projects, alice):
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(projects.get_by_id("1234", alice.id))
        assert exc_info.value.status_code == 403

    def test_get_all_returns_member_projects(self, projects, shared_project, alice, bob):
        asyncio.run(projects.create("Alice only", alice.id))

        alice_projects = asyncio.run(projects.get_all(alice.id))
        bob_projects = asyncio.run(projects.get_all(bob.id))

        assert sorted(p.name for p in alice_projects) == ["Alice only", "Household"]
        assert [p.name for p in bob_projects] == ["Household"]

    def test_get_all_for_user_without_projects(self, projects, alice):
        assert asyncio.run(projects.get_all(alice.id)) == []


class TestRename:
    """Only owners may rename."""

    def test_owner_renames(self, components, projects, shared_project, alice, bob):
        assert asyncio.run(projects.rename(shared_project.id, alice.id, "Home")) == "Home"
        stored = asyncio.run(components.projects.find_project(shared_project.id))
        assert stored.modified_by == alice.id

    def test_member_cannot_rename(self, components, projects, shared_project, bob):
        with pytest.raises(NotFoundError):
            asyncio.run(projects.rename(shared_project.id, bob.id, "Mine now"))

        stored = asyncio.run(components.projects.find_project(shared_project.id))
        assert stored.name == "Household"

    def test_rename_to_blank_rejected(self, projects, shared_project, alice):
        with pytest.raises(ValidationError):
            asyncio.run(projects.rename(shared_project.id, alice.id, ""))

    def test_rename_is_audited(self, components, projects, shared_project, alice):
        asyncio.run(projects.rename(shared_project.id, alice.id, "Home"))
        events = asyncio.run(
            components.audit_storage.get_events_by_entity("project", shared_project.id)
        )
        assert events[-1].event_type == AuditEventType.PROJECT_RENAMED
        assert events[-1].details == {"name": "Home"}


class TestCurrencies:
    """Currency updates go through the currency controller."""

    def test_update_currencies_returns_expanded_list(
        self, projects, shared_project, alice, currencies
    ):
        usd, eur = currencies["USD"], currencies["EUR"]
        result = asyncio.run(
            projects.update_currencies(shared_project.id, alice.id, [usd.id, eur.id, usd.id])
        )
        assert [c.code for c in result] == ["USD", "EUR"]

    def test_member_may_update_currencies(self, projects, shared_project, bob, currencies):
        result = asyncio.run(
            projects.update_currencies(shared_project.id, bob.id, [currencies["CZK"].id])
        )
        assert [c.code for c in result] == ["CZK"]

    def test_unknown_currency_writes_nothing(
        self, components, projects, shared_project, alice, currencies
    ):
        with pytest.raises(NotFoundError):
            asyncio.run(projects.update_currencies(
                shared_project.id,
                alice.id,
                [currencies["EUR"].id, new_object_id()],
            ))
        stored = asyncio.run(components.projects.find_project(shared_project.id))
        assert stored.currencies == []

    def test_main_currency_delegation(self, projects, shared_project, alice, currencies):
        eur = currencies["EUR"]
        asyncio.run(projects.update_currencies(shared_project.id, alice.id, [eur.id]))

        main = asyncio.run(projects.update_main_currency(shared_project.id, alice.id, eur.id))
        assert main.code == "EUR"

        project = asyncio.run(projects.get_by_id(shared_project.id, alice.id))
        assert project.main_currency.code == "EUR"


class TestCategoryDelegation:

    def test_add_and_list(self, projects, shared_project, alice):
        category = asyncio.run(projects.add_category(
            shared_project.id,
            alice.id,
            CategoryInput(name="Food", category_type=CategoryType.EXPENSE),
        ))
        listed = asyncio.run(projects.get_categories(shared_project.id, alice.id))
        assert [c.id for c in listed] == [category.id]

        project = asyncio.run(projects.get_by_id(shared_project.id, alice.id))
        assert project.categories == [category.id]

    def test_update_and_delete(self, projects, shared_project, alice):
        category = asyncio.run(projects.add_category(
            shared_project.id,
            alice.id,
            CategoryInput(name="Food", category_type=CategoryType.EXPENSE),
        ))
        updated = asyncio.run(projects.update_category(
            shared_project.id,
            alice.id,
            category.id,
            CategoryInput(name="Groceries", category_type=CategoryType.EXPENSE),
        ))
        assert updated.name == "Groceries"

        removed = asyncio.run(projects.delete_category(shared_project.id, alice.id, category.id))
        assert removed == [category.id]
        assert asyncio.run(projects.get_categories(shared_project.id, alice.id)) == []


class TestLongNames:
    """Names up to the largest configurable limit are saved and audited."""

    @pytest.fixture(autouse=True)
    def widest_name_limit(self, monkeypatch):
        monkeypatch.setenv("MAX_PROJECT_NAME_LENGTH", "500")

    def test_create_with_long_name(self, components, projects, alice):
        name = "x" * 490
        project = asyncio.run(projects.create(name, alice.id))
        assert project.name == name

        events = asyncio.run(
            components.audit_storage.get_events_by_entity("project", project.id)
        )
        assert [e.event_type for e in events] == [AuditEventType.PROJECT_CREATED]
        assert events[0].details == {"name": name}

    def test_rename_to_long_name(self, components, projects, shared_project, alice):
        name = "y" * 490
        assert asyncio.run(projects.rename(shared_project.id, alice.id, name)) == name

        events = asyncio.run(
            components.audit_storage.get_events_by_entity("project", shared_project.id)
        )
        assert events[-1].event_type == AuditEventType.PROJECT_RENAMED
        assert events[-1].details == {"name": name}
