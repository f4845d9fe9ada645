"""
Tests for the currency controller.
"""

import asyncio

import pytest

from src.models.audit import AuditEventType
from src.models.project import new_object_id
from src.services.storage import NotFoundError
from src.validation import ValidationError


@pytest.fixture
def currency_controller(components):
    return components.currency_controller


class TestLookups:

    def test_get_by_id(self, currency_controller, currencies):
        eur = currencies["EUR"]
        assert asyncio.run(currency_controller.get_by_id(eur.id)).code == "EUR"

    def test_get_by_id_missing(self, currency_controller):
        with pytest.raises(NotFoundError):
            asyncio.run(currency_controller.get_by_id(new_object_id()))

    def test_get_all_sorted_by_code(self, currency_controller, currencies):
        codes = [c.code for c in asyncio.run(currency_controller.get_all())]
        assert codes == ["CZK", "EUR", "USD"]


class TestUpdateProjectCurrencies:
    """Tests for replacing a project's currency list."""

    def test_stores_ids_in_request_order(
        self, components, currency_controller, shared_project, alice, currencies
    ):
        ids = [currencies["USD"].id, currencies["CZK"].id]
        stored = asyncio.run(
            currency_controller.update_project_currencies(shared_project.id, alice.id, ids)
        )
        assert stored == ids

        project = asyncio.run(components.projects.find_project(shared_project.id))
        assert project.currencies == ids
        assert project.modified_by == alice.id

    def test_repeated_ids_kept_once(self, currency_controller, shared_project, alice, currencies):
        eur, usd = currencies["EUR"].id, currencies["USD"].id
        stored = asyncio.run(currency_controller.update_project_currencies(
            shared_project.id, alice.id, [eur, usd, eur]
        ))
        assert stored == [eur, usd]

    def test_empty_list_clears_currencies(
        self, currency_controller, shared_project, alice, currencies
    ):
        asyncio.run(currency_controller.update_project_currencies(
            shared_project.id, alice.id, [currencies["EUR"].id]
        ))
        stored = asyncio.run(
            currency_controller.update_project_currencies(shared_project.id, alice.id, [])
        )
        assert stored == []

    def test_malformed_currency_id(self, currency_controller, shared_project, alice, currencies):
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(currency_controller.update_project_currencies(
                shared_project.id, alice.id, [currencies["EUR"].id, "EUR"]
            ))
        assert exc_info.value.status_code == 403

    def test_malformed_project_id(self, currency_controller, alice, currencies):
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(currency_controller.update_project_currencies(
                "project", alice.id, [currencies["EUR"].id]
            ))
        assert exc_info.value.status_code == 403

    def test_non_member_rejected(self, components, currency_controller, alice, bob, currencies):
        project = asyncio.run(components.project_controller.create("Private", alice.id))
        with pytest.raises(NotFoundError):
            asyncio.run(currency_controller.update_project_currencies(
                project.id, bob.id, [currencies["EUR"].id]
            ))

    def test_cannot_drop_main_currency(
        self, components, currency_controller, shared_project, alice, currencies
    ):
        eur, usd = currencies["EUR"].id, currencies["USD"].id
        asyncio.run(currency_controller.update_project_currencies(
            shared_project.id, alice.id, [eur, usd]
        ))
        asyncio.run(currency_controller.update_project_main_currency(
            shared_project.id, alice.id, eur
        ))

        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(currency_controller.update_project_currencies(
                shared_project.id, alice.id, [usd]
            ))
        assert exc_info.value.status_code == 400

        project = asyncio.run(components.projects.find_project(shared_project.id))
        assert project.currencies == [eur, usd]

    def test_update_is_audited(
        self, components, currency_controller, shared_project, bob, currencies
    ):
        asyncio.run(currency_controller.update_project_currencies(
            shared_project.id, bob.id, [currencies["CZK"].id]
        ))
        events = asyncio.run(
            components.audit_storage.get_events_by_entity("project", shared_project.id)
        )
        assert events[-1].event_type == AuditEventType.PROJECT_CURRENCIES_UPDATED
        assert events[-1].user_id == bob.id
        assert events[-1].details == {"currencies": [currencies["CZK"].id]}


class TestUpdateMainCurrency:

    def test_sets_main_currency(
        self, components, currency_controller, shared_project, alice, currencies
    ):
        usd = currencies["USD"]
        asyncio.run(currency_controller.update_project_currencies(
            shared_project.id, alice.id, [usd.id]
        ))

        result = asyncio.run(currency_controller.update_project_main_currency(
            shared_project.id, alice.id, usd.id
        ))
        assert result.id == usd.id

        project = asyncio.run(components.projects.find_project(shared_project.id))
        assert project.main_currency == usd.id

    def test_currency_must_belong_to_project(
        self, currency_controller, shared_project, alice, currencies
    ):
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(currency_controller.update_project_main_currency(
                shared_project.id, alice.id, currencies["EUR"].id
            ))
        assert exc_info.value.status_code == 400
        assert "EUR" in exc_info.value.message

    def test_unknown_currency(self, currency_controller, shared_project, alice):
        with pytest.raises(NotFoundError):
            asyncio.run(currency_controller.update_project_main_currency(
                shared_project.id, alice.id, new_object_id()
            ))

    def test_malformed_currency_id(self, currency_controller, shared_project, alice):
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(currency_controller.update_project_main_currency(
                shared_project.id, alice.id, "usd"
            ))
        assert exc_info.value.status_code == 403
