# src/mstodo_fetcher/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the coordinator.

The coordinator depends on a Protocol instead of a concrete consumer.
This keeps the host side (console, socket relay, UI bridge) swappable and makes testing easier.
"""

from typing import TYPE_CHECKING, Awaitable, Protocol

if TYPE_CHECKING:
    from ..todo.models import FetchEvent


class FetchEventSink(Protocol):
    """
    Downstream channel for poll outcomes.

    Every event carries the account id, so one sink serves all accounts.
    The sink decides how to relay it (notification name, serialization, transport).
    """

    def publish(self, event: FetchEvent) -> Awaitable[None]: ...
