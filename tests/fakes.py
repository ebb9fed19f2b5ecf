# tests/fakes.py

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from mstodo_fetcher.core.ports import FetchEventSink
from mstodo_fetcher.todo.models import FetchEvent, FetchEventKind


class FakeClock:
    """Controllable UTC clock passed to AccountClient as `clock`."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeGraph:
    """
    In-memory stand-in for the token endpoint and the Graph To Do API.

    Served through httpx.MockTransport, so AccountClient runs its real HTTP code.
    Counters and recorded requests are what the tests assert on.
    """

    def __init__(self) -> None:
        self.token_calls = 0
        self.list_calls = 0
        self.task_calls = 0
        self.requests: list[httpx.Request] = []

        self.token_status = 200
        self.list_status = 200
        self.task_status = 200
        self.expires_in = 3600
        self.task_delay = 0.0
        self.fail_transport = False

        self.lists: list[dict[str, Any]] = [{"id": "list-1", "displayName": "Tasks"}]
        self.tasks: list[dict[str, Any]] | None = [
            {
                "id": "t1",
                "title": "Buy milk",
                "status": "notStarted",
                "dueDateTime": {"dateTime": "2024-01-05T00:00:00.0000000", "timeZone": "UTC"},
            },
            {"id": "t2", "title": "Call mum", "status": "notStarted"},
        ]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def requests_to(self, suffix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(suffix)]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_transport:
            raise httpx.ConnectError("connection refused", request=request)

        path = request.url.path
        if path.endswith("/oauth2/v2.0/token"):
            self.token_calls += 1
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_client"})
            return httpx.Response(
                200,
                json={
                    "token_type": "Bearer",
                    "access_token": f"token-{self.token_calls}",
                    "expires_in": self.expires_in,
                },
            )

        if path.endswith("/todo/lists"):
            self.list_calls += 1
            if self.list_status != 200:
                return httpx.Response(self.list_status, json={"error": {"code": "Forbidden"}})
            return httpx.Response(200, json={"value": self.lists})

        if path.endswith("/tasks"):
            self.task_calls += 1
            if self.task_delay:
                await asyncio.sleep(self.task_delay)
            if self.task_status != 200:
                return httpx.Response(self.task_status, text="service unavailable")
            if self.tasks is None:
                return httpx.Response(200, json={})
            return httpx.Response(200, json={"value": self.tasks})

        return httpx.Response(404, text="unknown route")


@dataclass(slots=True)
class RecordingSink(FetchEventSink):
    """Fake FetchEventSink used by coordinator tests."""

    events: list[FetchEvent] = field(default_factory=list)
    fail: bool = False

    async def publish(self, event: FetchEvent) -> None:
        self.events.append(event)
        if self.fail:
            raise RuntimeError("sink is down")

    def of_kind(self, kind: FetchEventKind, account_id: str | None = None) -> list[FetchEvent]:
        return [
            e for e in self.events
            if e.kind == kind and (account_id is None or e.account_id == account_id)
        ]


async def wait_until(predicate, *, timeout: float = 2.0, step: float = 0.005) -> None:
    """Poll `predicate` on the event loop until it holds or the timeout elapses."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(step)
