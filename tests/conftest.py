"""
Shared fixtures.

Every test gets its own in-memory stack; no MongoDB server is needed.
Coroutines are driven with asyncio.run.
"""

import asyncio

import pytest

from src.bootstrap import create_app_components
from src.models.project import Currency, User


@pytest.fixture
def components():
    return create_app_components(backend="memory")


@pytest.fixture
def projects(components):
    return components.project_controller


@pytest.fixture
def alice(components) -> User:
    return asyncio.run(components.users.insert_user(User(username="alice")))


@pytest.fixture
def bob(components) -> User:
    return asyncio.run(components.users.insert_user(User(username="bob")))


@pytest.fixture
def currencies(components) -> dict[str, Currency]:
    """EUR, USD and CZK keyed by code."""
    stored = {}
    for code, name, symbol in [
        ("EUR", "Euro", "€"),
        ("USD", "US Dollar", "$"),
        ("CZK", "Czech Koruna", "Kč"),
    ]:
        currency = Currency(code=code, name=name, symbol=symbol)
        stored[code] = asyncio.run(components.currencies.insert_currency(currency))
    return stored


@pytest.fixture
def shared_project(components, projects, alice, bob):
    """A project owned by alice with bob added as a plain member."""
    project = asyncio.run(projects.create("Household", alice.id))
    asyncio.run(components.projects.update_project(
        project.id,
        {"users": [alice.id, bob.id]},
    ))
    return project
