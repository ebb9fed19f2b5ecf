# src/mstodo_fetcher/todo/errors.py

from __future__ import annotations


class ConfigError(ValueError):
    """Raised when an account configuration payload is missing keys or has bad values."""


class TodoClientError(RuntimeError):
    """Base error for a rejected or failed Graph round-trip."""

    operation = "request"

    def __init__(
            self,
            *,
            status_code: int | None,
            body: str,
            account_id: str = "",
            message: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        self.account_id = account_id
        if message is None:
            status = "transport error" if status_code is None else f"status {status_code}"
            message = f"{self.operation} failed with {status}: {_shorten(body)}"
        super().__init__(message)


class AuthError(TodoClientError):
    """Client-credentials grant was rejected by the token endpoint."""

    operation = "access token request"


class ListLookupError(TodoClientError):
    """The lists query was rejected by Graph."""

    operation = "list lookup"


class ListNotFoundError(TodoClientError):
    """The lists query succeeded but matched no list."""

    operation = "list lookup"

    def __init__(self, *, list_filter: str, account_id: str = "") -> None:
        self.list_filter = list_filter
        super().__init__(
            status_code=200,
            body="",
            account_id=account_id,
            message=f"list not found (filter={list_filter!r})",
        )


class FetchError(TodoClientError):
    """The tasks query was rejected by Graph."""

    operation = "task fetch"


def _shorten(text: str, limit: int = 300) -> str:
    flat = " ".join((text or "").split())
    if not flat:
        return "<empty body>"
    return flat if len(flat) <= limit else flat[:limit] + "..."
