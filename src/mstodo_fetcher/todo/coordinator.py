# src/mstodo_fetcher/todo/coordinator.py

from __future__ import annotations

"""
Fetch coordinator.

Multiplexes independent per-account polling loops:
- one AccountClient per account id (memoized in a ClientRegistry),
- one repeating asyncio task per account id (de-duplicated on start),
- every fetch outcome (tasks or error) published to a single sink, keyed by account id.

Overlapping ticks are skipped: if the previous fetch for an account is still
running when its timer fires, that tick does nothing.

To stop polling, call stop_all() (or cancel() on a PollHandle).
In-flight fetches are not aborted; they finish and publish. Await
wait_in_flight() before closing the shared HTTP client.
"""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, cast

import httpx

from ..core.ports import FetchEventSink
from .client import AUTHORITY_BASE_URL, GRAPH_BASE_URL, AccountClient, Clock, utcnow
from .errors import TodoClientError
from .models import AccountConfiguration, FetchEvent

logger = logging.getLogger(__name__)

MIN_INTERVAL_SECONDS = 0.01


class Command(StrEnum):
    FETCH_DATA = "FETCH_DATA"
    COMPLETE_TASK = "COMPLETE_TASK"


class ClientRegistry:
    """AccountClient per account id, created on first use and kept for the registry lifetime."""

    def __init__(
            self,
            http: httpx.AsyncClient,
            *,
            clock: Clock = utcnow,
            graph_base_url: str = GRAPH_BASE_URL,
            authority_base_url: str = AUTHORITY_BASE_URL,
    ) -> None:
        self._http = http
        self._clock = clock
        self._graph_base_url = graph_base_url
        self._authority_base_url = authority_base_url
        self._clients: dict[str, AccountClient] = {}

    def get_or_create(self, account_id: str, config: AccountConfiguration) -> AccountClient:
        client = self._clients.get(account_id)
        if client is None:
            client = AccountClient(
                config,
                self._http,
                clock=self._clock,
                graph_base_url=self._graph_base_url,
                authority_base_url=self._authority_base_url,
                account_id=account_id,
            )
            self._clients[account_id] = client
        return client

    def get(self, account_id: str) -> AccountClient | None:
        return self._clients.get(account_id)

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._clients

    def __len__(self) -> int:
        return len(self._clients)


@dataclass(slots=True)
class PollHandle:
    """Handle to one account's repeating poll task. Retain it to cancel that account alone."""

    account_id: str
    interval_seconds: float
    timer: asyncio.Task[None] | None = None
    in_flight: asyncio.Task[None] | None = None
    ticks: int = 0
    skipped: int = 0

    @property
    def active(self) -> bool:
        return self.timer is not None and not self.timer.done()

    @property
    def fetch_running(self) -> bool:
        return self.in_flight is not None and not self.in_flight.done()

    def cancel(self) -> None:
        if self.timer is not None:
            self.timer.cancel()


@dataclass
class FetchCoordinator:
    """
    Polls many accounts and publishes every outcome to one sink.

    Pass either the shared httpx.AsyncClient (a default ClientRegistry is built
    on it) or a ready ClientRegistry.
    """

    sink: FetchEventSink
    http: httpx.AsyncClient | None = None
    registry: ClientRegistry | None = None
    _handles: dict[str, PollHandle] = field(default_factory=dict, init=False, repr=False)
    _fetches: set[asyncio.Task[None]] = field(default_factory=set, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.registry is None:
            if self.http is None:
                raise ValueError("FetchCoordinator needs an http client or a client registry")
            self.registry = ClientRegistry(self.http)

    @property
    def active_accounts(self) -> list[str]:
        return [account_id for account_id, handle in self._handles.items() if handle.active]

    def handle_for(self, account_id: str) -> PollHandle | None:
        return self._handles.get(account_id)

    def start_polling(self, account_id: str, config: AccountConfiguration) -> PollHandle:
        """
        Start polling one account: fetch now, then every config.refresh_seconds.

        Idempotent per account id: if polling is already active, the existing
        handle is returned and no extra fetch is made.
        Must be called from a running event loop.
        """
        existing = self._handles.get(account_id)
        if existing is not None and existing.active:
            logger.debug("[%s] polling already active (every %.1fs)", account_id, existing.interval_seconds)
            return existing

        client = cast(ClientRegistry, self.registry).get_or_create(account_id, config)
        handle = PollHandle(
            account_id=account_id,
            interval_seconds=max(MIN_INTERVAL_SECONDS, float(config.refresh_seconds)),
        )
        handle.timer = asyncio.create_task(self._poll(handle, client), name=f"mstodo-poll-{account_id}")
        self._handles[account_id] = handle
        logger.debug("[%s] polling started (every %.1fs)", account_id, handle.interval_seconds)
        return handle

    async def stop_all(self) -> None:
        """Cancel every poll timer. Running fetches are left to complete."""
        handles = list(self._handles.values())
        self._handles.clear()
        for handle in handles:
            handle.cancel()
        timers = [h.timer for h in handles if h.timer is not None]
        if timers:
            await asyncio.gather(*timers, return_exceptions=True)
        logger.info("Stopped %d poll timer(s)", len(timers))

    async def wait_in_flight(self, timeout: float | None = None) -> None:
        """Wait for fetches that were already running to finish and publish."""
        pending = [task for task in self._fetches if not task.done()]
        if not pending:
            return
        logger.debug("Waiting for %d in-flight fetch(es)", len(pending))
        _, not_done = await asyncio.wait(pending, timeout=timeout)
        if not_done:
            logger.warning("%d fetch(es) still running after %.1fs", len(not_done), timeout)

    def complete_task(self, list_id: str, task_id: str, account_id: str) -> bool:
        """Task completion is not implemented; always returns False without touching the network."""
        logger.error("[%s] completeTask is not implemented yet (list=%s task=%s)", account_id, list_id, task_id)
        return False

    def dispatch(self, notification: str, payload: Mapping[str, Any]) -> PollHandle | bool | None:
        """
        Route an inbound host command.

        FETCH_DATA    -> start_polling(payload["id"], <configuration from payload>)
        COMPLETE_TASK -> complete_task(payload["listId"], payload["taskId"], payload["config"]["id"])
        Anything else is logged and ignored.
        """
        logger.debug("server --> %s %s", notification, payload.get("id"))

        if notification == Command.FETCH_DATA:
            config = AccountConfiguration.from_dict(payload)
            return self.start_polling(config.id, config)

        if notification == Command.COMPLETE_TASK:
            raw_config = payload.get("config")
            account_id = raw_config.get("id") if isinstance(raw_config, Mapping) else None
            return self.complete_task(
                str(payload.get("listId", "")),
                str(payload.get("taskId", "")),
                str(account_id or ""),
            )

        logger.warning("[%s] did not process event: %s", payload.get("id"), notification)
        return None

    async def _poll(self, handle: PollHandle, client: AccountClient) -> None:
        while True:
            handle.ticks += 1
            if handle.fetch_running:
                handle.skipped += 1
                logger.debug("[%s] previous fetch still running, skipping tick", handle.account_id)
            else:
                fetch = asyncio.create_task(
                    self._fetch_and_publish(handle.account_id, client),
                    name=f"mstodo-fetch-{handle.account_id}",
                )
                self._fetches.add(fetch)
                fetch.add_done_callback(self._fetches.discard)
                handle.in_flight = fetch
            await asyncio.sleep(handle.interval_seconds)

    async def _fetch_and_publish(self, account_id: str, client: AccountClient) -> None:
        try:
            tasks = await client.fetch_tasks()
        except TodoClientError as exc:
            logger.error("[%s] - %s", account_id, exc)
            event = FetchEvent.failed(account_id, exc)
        except Exception as exc:
            logger.exception("[%s] fetch failed", account_id)
            event = FetchEvent.failed(account_id, exc)
        else:
            event = FetchEvent.fetched(account_id, tasks)

        try:
            await self.sink.publish(event)
        except Exception:
            logger.exception("[%s] sink failed to publish %s", account_id, event.notification)
