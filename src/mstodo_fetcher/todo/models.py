# src/mstodo_fetcher/todo/models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any

from .errors import ConfigError

DEFAULT_SCOPE = ".default"
DEFAULT_ITEM_LIMIT = 200
DEFAULT_REFRESH_SECONDS = 60
DEFAULT_LOOK_AHEAD = timedelta(weeks=2)

_DURATION_UNITS = ("weeks", "days", "hours", "minutes", "seconds")


class OrderBy(StrEnum):
    """
    Ordering modes accepted in the account configuration.

    Notes:
    - "subject" is kept for compatibility; Graph v1.0 cannot sort by title,
      so it is served as creation-time ordering.
    - Any unknown value maps to NONE (no $orderby clause).
    """

    SUBJECT = "subject"
    CREATED_DATE = "createdDate"
    IMPORTANCE = "importance"
    DUE_DATE = "dueDate"
    NONE = "none"

    @classmethod
    def from_raw(cls, raw: str | None) -> OrderBy:
        if not raw:
            return cls.NONE
        try:
            return cls(str(raw).strip())
        except ValueError:
            return cls.NONE


@dataclass(slots=True, frozen=True)
class PlannedTasksConfig:
    enable: bool = False
    duration: timedelta | None = None

    @property
    def look_ahead(self) -> timedelta:
        return self.duration if self.duration is not None else DEFAULT_LOOK_AHEAD


@dataclass(slots=True, frozen=True)
class AccountConfiguration:
    """
    Per-account settings. Treated as immutable for the lifetime of the
    AccountClient built from it: list id and query target are derived once.
    """

    id: str
    tenant_id: str
    client_id: str
    client_secret: str = field(repr=False)
    user: str
    scope: str = DEFAULT_SCOPE
    list_name: str | None = None
    item_limit: int = DEFAULT_ITEM_LIMIT
    order_by: OrderBy = OrderBy.CREATED_DATE
    planned_tasks: PlannedTasksConfig = field(default_factory=PlannedTasksConfig)
    refresh_seconds: float = DEFAULT_REFRESH_SECONDS

    @classmethod
    def from_dict(
            cls,
            payload: Mapping[str, Any],
            *,
            default_refresh_seconds: float = DEFAULT_REFRESH_SECONDS,
    ) -> AccountConfiguration:
        """
        Build a configuration from the host payload shape (camelCase keys).

        OAuth keys may sit at the top level or under "oauthConfig".
        """
        if not isinstance(payload, Mapping):
            raise ConfigError("account configuration must be an object")

        oauth = payload.get("oauthConfig")
        oauth = oauth if isinstance(oauth, Mapping) else {}

        def optional(key: str) -> str | None:
            value = payload.get(key, oauth.get(key))
            if value is None or str(value).strip() == "":
                return None
            return str(value).strip()

        def required(key: str) -> str:
            value = optional(key)
            if value is None:
                raise ConfigError(f"account configuration is missing '{key}'")
            return value

        account_id = required("id")

        list_name = payload.get("listName")
        if list_name is not None and not isinstance(list_name, str):
            raise ConfigError(f"[{account_id}] 'listName' must be a string")

        return cls(
            id=account_id,
            tenant_id=required("tenantId"),
            client_id=required("clientId"),
            client_secret=required("clientSecret"),
            user=required("user"),
            scope=optional("scope") or DEFAULT_SCOPE,
            list_name=list_name or None,
            item_limit=_positive_int(payload.get("itemLimit"), DEFAULT_ITEM_LIMIT, "itemLimit", account_id),
            order_by=OrderBy.from_raw(payload.get("orderBy") or OrderBy.CREATED_DATE.value),
            planned_tasks=_planned_tasks(payload.get("plannedTasks"), account_id),
            refresh_seconds=_positive_float(
                payload.get("refreshSeconds"), default_refresh_seconds, "refreshSeconds", account_id
            ),
        )


def _positive_int(raw: Any, default: int, key: str, account_id: str) -> int:
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"[{account_id}] '{key}' must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"[{account_id}] '{key}' must be positive, got {value}")
    return value


def _positive_float(raw: Any, default: float, key: str, account_id: str) -> float:
    if raw is None:
        return float(default)
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"[{account_id}] '{key}' must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"[{account_id}] '{key}' must be positive, got {value}")
    return value


def parse_duration(raw: Any) -> timedelta | None:
    """
    Accept {"weeks": 2}, {"days": 3, "hours": 4}, ... or a plain number of seconds.
    Empty / missing -> None (caller applies the two-week default).
    """
    if raw is None or raw == {}:
        return None
    if isinstance(raw, bool):
        raise ConfigError(f"invalid duration: {raw!r}")
    if isinstance(raw, (int, float)):
        return timedelta(seconds=raw)
    if not isinstance(raw, Mapping):
        raise ConfigError(f"invalid duration: {raw!r}")

    unknown = sorted(set(raw) - set(_DURATION_UNITS))
    if unknown:
        raise ConfigError(f"unsupported duration unit(s): {', '.join(unknown)}")
    try:
        return timedelta(**{unit: float(raw[unit]) for unit in _DURATION_UNITS if unit in raw})
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid duration: {raw!r}") from exc


def _planned_tasks(raw: Any, account_id: str) -> PlannedTasksConfig:
    if raw is None:
        return PlannedTasksConfig()
    if not isinstance(raw, Mapping):
        raise ConfigError(f"[{account_id}] 'plannedTasks' must be an object")
    try:
        duration = parse_duration(raw.get("duration"))
    except ConfigError as exc:
        raise ConfigError(f"[{account_id}] plannedTasks: {exc}") from exc
    return PlannedTasksConfig(enable=bool(raw.get("enable", False)), duration=duration)


@dataclass(slots=True)
class CredentialRecord:
    access_token: str = field(repr=False)
    token_type: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at

    @property
    def authorization(self) -> str:
        return f"{self.token_type} {self.access_token}"


@dataclass(slots=True, frozen=True)
class TaskRecord:
    id: str
    title: str
    due_date_time: Mapping[str, Any] | None
    recurrence: Mapping[str, Any] | None
    list_id: str
    parsed_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "dueDateTime": self.due_date_time,
            "recurrence": self.recurrence,
            "listId": self.list_id,
            "parsedDate": self.parsed_date.isoformat() if self.parsed_date else None,
        }


class FetchEventKind(StrEnum):
    DATA_FETCHED = "DATA_FETCHED"
    FETCH_ERROR = "FETCH_INFO_ERROR"


@dataclass(slots=True, frozen=True)
class FetchEvent:
    """
    One outcome of a poll tick, keyed by account id.

    notification is the channel name the host relays on
    (DATA_FETCHED_<id> / FETCH_INFO_ERROR_<id>).
    """

    kind: FetchEventKind
    account_id: str
    tasks: tuple[TaskRecord, ...] = ()
    error: str | None = None

    @property
    def notification(self) -> str:
        return f"{self.kind.value}_{self.account_id}"

    @classmethod
    def fetched(cls, account_id: str, tasks: tuple[TaskRecord, ...]) -> FetchEvent:
        return cls(kind=FetchEventKind.DATA_FETCHED, account_id=account_id, tasks=tuple(tasks))

    @classmethod
    def failed(cls, account_id: str, error: BaseException | str) -> FetchEvent:
        return cls(kind=FetchEventKind.FETCH_ERROR, account_id=account_id, error=str(error))
