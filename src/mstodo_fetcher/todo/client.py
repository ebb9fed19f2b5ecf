# src/mstodo_fetcher/todo/client.py

from __future__ import annotations

"""
Per-account Microsoft To Do client.

Owns three process-lifetime caches:
- the bearer credential (re-acquired only after it expires),
- the list id (resolved once from the configured display name),
- the tasks query target (built once from configuration + list id).

Scheduling and multi-account concerns live in coordinator.py.
"""

import logging
import re
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from .errors import AuthError, FetchError, ListLookupError, ListNotFoundError
from .models import AccountConfiguration, CredentialRecord, TaskRecord
from .query import QueryDescriptor, build_lists_url, build_task_query, list_filter_clause

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
GRAPH_SCOPE_BASE_URL = "https://graph.microsoft.com"
AUTHORITY_BASE_URL = "https://login.microsoftonline.com"

Clock = Callable[[], datetime]

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def utcnow() -> datetime:
    return datetime.now(UTC)


def parse_due_date(due: Mapping[str, Any] | None) -> datetime | None:
    """
    Parse Graph's dueDateTime.dateTime ("2024-05-01T00:00:00.0000000").

    Graph sends 7 fractional digits; datetime keeps 6. Missing or
    unparseable values give None.
    """
    if not isinstance(due, Mapping):
        return None
    raw = due.get("dateTime")
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return datetime.fromisoformat(_FRACTION_RE.sub(r"\1", raw.strip()))
    except ValueError:
        logger.debug("Unparseable dueDateTime %r", raw)
        return None


class AccountClient:
    """Fetches open tasks of one list for one account configuration."""

    def __init__(
            self,
            config: AccountConfiguration,
            http: httpx.AsyncClient,
            *,
            clock: Clock = utcnow,
            graph_base_url: str = GRAPH_BASE_URL,
            authority_base_url: str = AUTHORITY_BASE_URL,
            account_id: str | None = None,
    ) -> None:
        self.config = config
        self._account_id = account_id or config.id
        self._http = http
        self._clock = clock
        self._graph_base_url = graph_base_url.rstrip("/")
        self._authority_base_url = authority_base_url.rstrip("/")

        self._credential: CredentialRecord | None = None
        self._list_id: str | None = None
        self._query: QueryDescriptor | None = None

        logger.info("[%s] new AccountClient created", self._account_id)

    @property
    def account_id(self) -> str:
        return self._account_id

    @property
    def list_id(self) -> str | None:
        return self._list_id

    @property
    def query(self) -> QueryDescriptor | None:
        return self._query

    async def fetch_tasks(self) -> tuple[TaskRecord, ...]:
        authorization = await self.acquire_credential()
        list_id = await self.resolve_list_id(authorization)
        query = self.build_query(list_id)

        try:
            response = await self._http.get(query.url, headers={"Authorization": authorization})
        except httpx.HTTPError as exc:
            raise FetchError(status_code=None, body=str(exc), account_id=self.account_id) from exc

        if not response.is_success:
            raise FetchError(
                status_code=response.status_code,
                body=response.text,
                account_id=self.account_id,
            )

        items = _json_object(response).get("value") or []
        tasks = tuple(self._to_record(item, list_id) for item in items if isinstance(item, Mapping))
        logger.debug("[%s] fetched %d task(s)", self.account_id, len(tasks))
        return tasks

    async def acquire_credential(self) -> str:
        """Return "<token_type> <access_token>", requesting a new token only when expired."""
        now = self._clock()
        cached = self._credential
        if cached is not None and cached.is_valid(now):
            return cached.authorization

        # Expired credentials are never reused.
        self._credential = None
        logger.debug("[%s] requesting new access token", self.account_id)

        url = f"{self._authority_base_url}/{self.config.tenant_id}/oauth2/v2.0/token"
        form = {
            "grant_type": "client_credentials",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "scope": f"{GRAPH_SCOPE_BASE_URL}/{self.config.scope}",
        }
        try:
            response = await self._http.post(url, data=form)
        except httpx.HTTPError as exc:
            raise AuthError(status_code=None, body=str(exc), account_id=self.account_id) from exc

        if not response.is_success:
            raise AuthError(status_code=response.status_code, body=response.text, account_id=self.account_id)

        payload = _json_object(response)
        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise AuthError(
                status_code=response.status_code,
                body=response.text,
                account_id=self.account_id,
                message="access token response is missing access_token",
            )

        try:
            expires_in = float(payload.get("expires_in", 0))
        except (TypeError, ValueError):
            expires_in = 0.0

        self._credential = CredentialRecord(
            access_token=access_token,
            token_type=str(payload.get("token_type") or "Bearer"),
            expires_at=now + timedelta(seconds=max(0.0, expires_in)),
        )
        return self._credential.authorization

    async def resolve_list_id(self, authorization: str) -> str:
        if self._list_id is not None:
            return self._list_id

        url = build_lists_url(self._graph_base_url, self.config.user, self.config.list_name)
        list_filter = list_filter_clause(self.config.list_name)
        logger.debug("[%s] getting list using filter %r", self.account_id, list_filter)

        try:
            response = await self._http.get(url, headers={"Authorization": authorization})
        except httpx.HTTPError as exc:
            raise ListLookupError(status_code=None, body=str(exc), account_id=self.account_id) from exc

        if not response.is_success:
            raise ListLookupError(
                status_code=response.status_code,
                body=response.text,
                account_id=self.account_id,
            )

        lists = _json_object(response).get("value") or []
        first = lists[0] if lists else None
        if not isinstance(first, Mapping) or not first.get("id"):
            raise ListNotFoundError(list_filter=list_filter, account_id=self.account_id)

        self._list_id = str(first["id"])
        logger.info("[%s] resolved list %r -> %s", self.account_id, self.config.list_name, self._list_id)
        return self._list_id

    def build_query(self, list_id: str) -> QueryDescriptor:
        if self._query is None:
            self._query = build_task_query(self._graph_base_url, self.config, list_id, self._clock())
            logger.debug("[%s] tasks query %s", self.account_id, self._query.url)
        return self._query

    @staticmethod
    def _to_record(item: Mapping[str, Any], list_id: str) -> TaskRecord:
        due = item.get("dueDateTime")
        return TaskRecord(
            id=str(item.get("id", "")),
            title=str(item.get("title") or ""),
            due_date_time=due,
            recurrence=item.get("recurrence"),
            list_id=list_id,
            parsed_date=parse_due_date(due),
        )


def _json_object(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}
