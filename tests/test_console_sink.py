# tests/test_console_sink.py

from __future__ import annotations

import io
import json
from datetime import datetime

import pytest

from mstodo_fetcher.connectors.console_sink import ConsoleEventSink
from mstodo_fetcher.todo.models import FetchEvent, TaskRecord


@pytest.mark.asyncio
async def test_console_sink_writes_json_lines() -> None:
    stream = io.StringIO()
    sink = ConsoleEventSink(stream)
    task = TaskRecord(
        id="t1",
        title="Buy milk",
        due_date_time={"dateTime": "2024-01-05T00:00:00.0000000", "timeZone": "UTC"},
        recurrence=None,
        list_id="list-1",
        parsed_date=datetime(2024, 1, 5),
    )

    await sink.publish(FetchEvent.fetched("acc-1", (task,)))
    await sink.publish(FetchEvent.failed("acc-1", RuntimeError("boom")))

    first, second = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert first == {
        "notification": "DATA_FETCHED_acc-1",
        "accountId": "acc-1",
        "tasks": [
            {
                "id": "t1",
                "title": "Buy milk",
                "dueDateTime": {"dateTime": "2024-01-05T00:00:00.0000000", "timeZone": "UTC"},
                "recurrence": None,
                "listId": "list-1",
                "parsedDate": "2024-01-05T00:00:00",
            }
        ],
    }
    assert second == {"notification": "FETCH_INFO_ERROR_acc-1", "accountId": "acc-1", "error": "boom"}
