# src/mstodo_fetcher/connectors/console_sink.py

from __future__ import annotations

import json
import logging
import sys
from typing import Any, TextIO

from ..todo.models import FetchEvent, FetchEventKind

logger = logging.getLogger(__name__)


def event_to_json(event: FetchEvent) -> dict[str, Any]:
    out: dict[str, Any] = {
        "notification": event.notification,
        "accountId": event.account_id,
    }
    if event.kind == FetchEventKind.DATA_FETCHED:
        out["tasks"] = [t.to_dict() for t in event.tasks]
    else:
        out["error"] = event.error
    return out


class ConsoleEventSink:
    """
    FetchEventSink that writes one JSON object per event (JSON Lines).

    Default stream is stdout so a host process can read events from a pipe;
    logs go to stderr.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    async def publish(self, event: FetchEvent) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(json.dumps(event_to_json(event), ensure_ascii=False) + "\n")
        stream.flush()
        if event.kind == FetchEventKind.DATA_FETCHED:
            logger.info("[%s] published %d task(s)", event.account_id, len(event.tasks))
        else:
            logger.info("[%s] published fetch error", event.account_id)
