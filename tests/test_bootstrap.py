# tests/test_bootstrap.py

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from mstodo_fetcher.cli.bootstrap import create_coordinator, create_http_client
from mstodo_fetcher.cli.main import run
from mstodo_fetcher.config import Settings

from .fakes import wait_until


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return replace(
        Settings.from_env(),
        data_dir=tmp_path,
        accounts_file=tmp_path / "accounts.json",
        graph_base_url="https://graph.test/v1.0",
        authority_base_url="https://login.test",
        http_timeout_seconds=12.0,
    )


@pytest.mark.asyncio
async def test_create_coordinator_uses_configured_endpoints(settings, graph, sink, account) -> None:
    async with graph.client() as http:
        coordinator = create_coordinator(http=http, settings=settings, sink=sink)
        coordinator.start_polling(account.id, account)
        await wait_until(lambda: len(sink.events) == 1)
        await coordinator.stop_all()

    hosts = [r.url.host for r in graph.requests]
    assert hosts == ["login.test", "graph.test", "graph.test"]


@pytest.mark.asyncio
async def test_http_client_timeout(settings) -> None:
    http = create_http_client(settings)
    try:
        assert http.timeout.read == 12.0
        assert http.timeout.connect == 10.0
    finally:
        await http.aclose()


@pytest.mark.asyncio
async def test_run_fails_fast_without_accounts(settings) -> None:
    assert await run(settings) == 2

    settings.accounts_file.write_text("[]", "utf-8")
    assert await run(settings) == 2
