"""Shared fixtures: in-memory stores and predictable product ids."""

import itertools

import pytest

from database import Database
from models import CashierSystem


@pytest.fixture
def db():
    store = Database(":memory:")
    yield store
    store.close()


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"p{next(counter)}"


@pytest.fixture
def system(db, id_factory):
    """Cashier over a fresh store; seeded products get ids p1..p6."""
    return CashierSystem(db, id_factory=id_factory)
