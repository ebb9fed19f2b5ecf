# src/mstodo_fetcher/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- builds the shared HTTP client,
- wires the client registry, sink and coordinator together.
"""

from __future__ import annotations

import logging

import httpx

from ..config import Settings, get_settings
from ..connectors.console_sink import ConsoleEventSink
from ..core.ports import FetchEventSink
from ..todo.coordinator import ClientRegistry, FetchCoordinator

logger = logging.getLogger(__name__)


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    timeout_s = max(1.0, float(settings.http_timeout_seconds))
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_s, connect=min(timeout_s, 10.0)),
        headers={"Accept": "application/json"},
    )


def create_coordinator(
    *,
    http: httpx.AsyncClient,
    settings: Settings | None = None,
    sink: FetchEventSink | None = None,
) -> FetchCoordinator:
    """
    Create a FetchCoordinator from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings(); if sink is None, events go to stdout.
    """
    if settings is None:
        settings = get_settings()

    registry = ClientRegistry(
        http,
        graph_base_url=settings.graph_base_url,
        authority_base_url=settings.authority_base_url,
    )
    return FetchCoordinator(sink=sink or ConsoleEventSink(), http=http, registry=registry)
