# src/mstodo_fetcher/todo/query.py

"""
Graph To Do query grammar.

Builds the pieces of the tasks query from an AccountConfiguration:
- $orderby clause from the ordering mode,
- $filter clause (open tasks, optionally limited to a planned-tasks window),
- percent-encoding compatible with JavaScript's encodeURIComponent,
  with single quotes always escaped as %27.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from urllib.parse import quote

from .models import AccountConfiguration, OrderBy

LIST_PAGE_SIZE = 200

# encodeURIComponent leaves these unescaped in addition to quote()'s own safe set.
# The single quote is deliberately missing so it becomes %27.
_COMPONENT_SAFE = "!*()"
_PATH_SAFE = "@="

_ORDER_CLAUSES: dict[OrderBy, str] = {
    # Graph v1.0 cannot order by title; subject falls back to creation time.
    OrderBy.SUBJECT: "createdDateTime",
    OrderBy.CREATED_DATE: "createdDateTime",
    OrderBy.IMPORTANCE: "importance desc",
    OrderBy.DUE_DATE: "duedatetime/datetime",
}

WALL_CLOCK_FORMAT = "%Y-%m-%d %H:%M:%S"


def encode_filter(clause: str) -> str:
    return quote(clause, safe=_COMPONENT_SAFE)


def odata_literal(value: str) -> str:
    """Quote a value as an OData string literal (inner quotes doubled)."""
    return "'" + value.replace("'", "''") + "'"


def order_clause(order_by: OrderBy) -> str | None:
    return _ORDER_CLAUSES.get(order_by)


def list_filter_clause(list_name: str | None) -> str:
    """Encoded displayName filter, or "" when no list name is configured."""
    if not list_name:
        return ""
    return encode_filter(f"displayName eq {odata_literal(list_name)}")


def to_wall_clock(instant: datetime) -> str:
    """
    Format an instant as a local wall-clock string without offset.

    Graph compares dueDateTime/dateTime as a naive local timestamp.
    Naive inputs are taken as already local.
    """
    if instant.tzinfo is not None:
        instant = instant.astimezone().replace(tzinfo=None)
    return instant.strftime(WALL_CLOCK_FORMAT)


def task_filter_clause(config: AccountConfiguration, now: datetime) -> str:
    """Raw (unencoded) $filter clause for the tasks query."""
    clause = "status ne 'completed'"
    planned = config.planned_tasks
    if planned.enable:
        horizon = to_wall_clock(now + planned.look_ahead)
        clause += f" and duedatetime/datetime lt '{horizon}' and duedatetime/datetime ne null"
    return clause


@dataclass(slots=True, frozen=True)
class QueryDescriptor:
    base_url: str
    top: int
    filter: str
    order_by: str | None = None

    @property
    def url(self) -> str:
        target = f"{self.base_url}?$top={self.top}&$filter={self.filter}"
        if self.order_by:
            target += f"&$orderby={quote(self.order_by)}"
        return target


def _segment(value: str) -> str:
    return quote(value, safe=_PATH_SAFE)


def build_lists_url(graph_base_url: str, user: str, list_name: str | None) -> str:
    url = f"{graph_base_url}/users/{_segment(user)}/todo/lists?$top={LIST_PAGE_SIZE}"
    clause = list_filter_clause(list_name)
    if clause:
        url += f"&$filter={clause}"
    return url


def build_task_query(
        graph_base_url: str,
        config: AccountConfiguration,
        list_id: str,
        now: datetime,
) -> QueryDescriptor:
    return QueryDescriptor(
        base_url=f"{graph_base_url}/users/{_segment(config.user)}/todo/lists/{_segment(list_id)}/tasks",
        top=config.item_limit,
        filter=encode_filter(task_filter_clause(config, now)),
        order_by=order_clause(config.order_by),
    )
