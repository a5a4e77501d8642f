"""Execution tests for the monitoring commands with a mocked aggregator."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from click.testing import CliRunner

from rosmon.api.errors import (
    AuthError,
    CommandTimeoutError,
    ConnectError,
    SessionNotFoundError,
)
from rosmon.cli.main import cli, main
from rosmon.models.router import AggregatedStats, LeaseRecord, PPPoEClient


@pytest.fixture
def aggregator(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    agg = MagicMock()
    agg.fetch_leases = AsyncMock(
        return_value=[
            LeaseRecord(id="*1", name="laptop", status="online"),
            LeaseRecord(id="*2", name="phone", status="offline"),
        ]
    )
    agg.fetch_pppoe_clients = AsyncMock(
        return_value=[PPPoEClient(username="alice", profile="gold")]
    )
    agg.fetch_stats = AsyncMock(
        return_value=AggregatedStats(
            total_clients=2,
            active_clients=1,
            total_pppoe=1,
            active_pppoe=1,
            total_active=2,
            last_update=datetime(2024, 5, 1, tzinfo=UTC),
        )
    )
    agg.disconnect_session = AsyncMock(return_value=True)
    monkeypatch.setattr("rosmon.cli.monitor.get_aggregator", lambda app_ctx: agg)
    return agg


def _data(output: str) -> Any:
    parsed = json.loads(output)
    assert parsed["ok"] is True
    return parsed["data"]


class TestJsonCommands:
    def test_leases(self, aggregator: MagicMock) -> None:
        result = CliRunner().invoke(cli, ["--format", "json", "leases"])
        assert result.exit_code == 0, result.output
        assert [row["name"] for row in _data(result.output)] == ["laptop", "phone"]

    def test_leases_online_only(self, aggregator: MagicMock) -> None:
        result = CliRunner().invoke(cli, ["leases", "--online", "--format", "json"])
        assert result.exit_code == 0, result.output
        assert [row["name"] for row in _data(result.output)] == ["laptop"]

    def test_pppoe(self, aggregator: MagicMock) -> None:
        result = CliRunner().invoke(cli, ["--format", "json", "pppoe"])
        assert _data(result.output)[0]["profile"] == "gold"

    def test_stats(self, aggregator: MagicMock) -> None:
        result = CliRunner().invoke(cli, ["--format", "json", "stats"])
        data = _data(result.output)
        assert data["totalActive"] == 2
        assert data["totalPPPoE"] == 1

    def test_disconnect_skips_prompt_in_json(self, aggregator: MagicMock) -> None:
        result = CliRunner().invoke(cli, ["--format", "json", "disconnect", "alice"])
        assert result.exit_code == 0, result.output
        assert _data(result.output) == {"success": True, "username": "alice"}
        aggregator.disconnect_session.assert_awaited_once_with("alice")


class TestRichCommands:
    def test_stats_table(self, aggregator: MagicMock) -> None:
        result = CliRunner().invoke(cli, ["--format", "rich", "stats"])
        assert result.exit_code == 0, result.output
        assert "Network Summary" in result.output

    def test_disconnect_confirm_declined(self, aggregator: MagicMock) -> None:
        result = CliRunner().invoke(cli, ["--format", "rich", "disconnect", "alice"], input="n\n")
        assert result.exit_code == 1
        aggregator.disconnect_session.assert_not_awaited()

    def test_disconnect_yes(self, aggregator: MagicMock) -> None:
        result = CliRunner().invoke(cli, ["--format", "rich", "disconnect", "alice", "-y"])
        assert result.exit_code == 0, result.output
        aggregator.disconnect_session.assert_awaited_once_with("alice")


class TestMainErrors:
    def test_auth_error_envelope(
        self, aggregator: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        aggregator.fetch_stats.side_effect = AuthError("Login failed: invalid user name")
        with pytest.raises(SystemExit) as exc_info:
            main(["--format", "json", "stats"])
        assert exc_info.value.code == 1
        parsed = json.loads(capsys.readouterr().out)
        assert parsed["ok"] is False
        assert parsed["error"]["code"] == "auth_failed"
        assert "MIKROTIK_PASSWORD" in parsed["error"]["message"]

    def test_not_found_envelope(
        self, aggregator: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        aggregator.disconnect_session.side_effect = SessionNotFoundError("mallory")
        with pytest.raises(SystemExit):
            main(["--format", "json", "disconnect", "mallory"])
        parsed = json.loads(capsys.readouterr().out)
        assert parsed["error"]["code"] == "not_found"
        assert "mallory" in parsed["error"]["message"]


class TestServe:
    def test_serve_runs_uvicorn(
        self, router_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls: list[dict[str, Any]] = []

        def fake_run(app: Any, **kwargs: Any) -> None:
            calls.append(kwargs)

        monkeypatch.setattr("uvicorn.run", fake_run)
        result = CliRunner().invoke(
            cli, ["--format", "json", "serve", "--bind", "127.0.0.1", "--http-port", "3100"]
        )
        assert result.exit_code == 0, result.output
        assert calls[0]["host"] == "127.0.0.1"
        assert calls[0]["port"] == 3100

    def test_serve_port_from_env(
        self, router_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls: list[dict[str, Any]] = []
        monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append(kwargs))
        monkeypatch.setenv("PORT", "4000")
        result = CliRunner().invoke(cli, ["--format", "json", "serve"])
        assert result.exit_code == 0, result.output
        assert calls[0]["port"] == 4000


class TestRouterErrors:
    def test_empty_host_is_config_error(self, router_env: dict[str, str]) -> None:
        result = CliRunner().invoke(cli, ["--format", "json", "--host", "", "stats"])
        assert result.exit_code == 1
        parsed = json.loads(result.output)
        assert parsed["command"] == "stats"
        assert parsed["error"]["code"] == "config_error"

    def test_timeout_code(self, aggregator: MagicMock) -> None:
        aggregator.fetch_pppoe_clients.side_effect = CommandTimeoutError("No reply")
        result = CliRunner().invoke(cli, ["pppoe", "--format", "json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["error"]["code"] == "timeout"

    def test_rich_error_with_hint(self, aggregator: MagicMock) -> None:
        aggregator.fetch_leases.side_effect = ConnectError("Failed to connect to router")
        result = CliRunner().invoke(cli, ["--format", "rich", "leases"])
        assert result.exit_code == 1
        assert "Failed to connect to router" in result.output
        assert "/ip service api" in result.output
