# tests/conftest.py

from __future__ import annotations

import pytest

from mstodo_fetcher.todo.models import AccountConfiguration, OrderBy

from .fakes import FakeClock, FakeGraph, RecordingSink


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def graph() -> FakeGraph:
    """Fresh fake Graph backend per test (counters start at zero)."""
    return FakeGraph()


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def account() -> AccountConfiguration:
    """
    Minimal account configuration.

    We build the dataclass directly rather than going through from_dict,
    to keep client/coordinator tests independent of payload parsing.
    """
    return AccountConfiguration(
        id="acc-1",
        tenant_id="tenant-1",
        client_id="client-1",
        client_secret="secret-1",
        user="alice@example.com",
        list_name="Tasks",
        item_limit=50,
        order_by=OrderBy.IMPORTANCE,
        refresh_seconds=60,
    )
