from __future__ import annotations

from datetime import UTC, datetime
from io import StringIO

from rich.console import Console

from rosmon.models.router import (
    AggregatedStats,
    LeaseRecord,
    MemoryUsage,
    PPPoEClient,
    SystemResourceSnapshot,
)
from rosmon.output.rich_output import RichOutput


def _make_console() -> tuple[Console, StringIO]:
    """Return a ``(Console, buffer)`` pair for capturing Rich output."""
    buf = StringIO()
    console = Console(file=buf, force_terminal=False, width=160)
    return console, buf


class TestLeaseList:
    def test_renders_rows(self) -> None:
        console, buf = _make_console()
        RichOutput(console).lease_list(
            [
                LeaseRecord(ip="192.168.88.10", name="laptop", status="online"),
                LeaseRecord(ip="192.168.88.11"),
            ]
        )
        output = buf.getvalue()
        assert "DHCP Leases (2)" in output
        assert "laptop" in output
        assert "192.168.88.11" in output
        assert "offline" in output


class TestPPPoEList:
    def test_renders_profile(self) -> None:
        console, buf = _make_console()
        RichOutput(console).pppoe_list(
            [PPPoEClient(username="alice", profile="gold", rx="1.5 KB", caller_id="AA:BB")]
        )
        output = buf.getvalue()
        assert "alice" in output
        assert "gold" in output
        assert "1.5 KB" in output


class TestStats:
    def test_counts(self) -> None:
        console, buf = _make_console()
        RichOutput(console).stats(
            AggregatedStats(
                total_clients=12,
                active_clients=7,
                total_pppoe=30,
                active_pppoe=21,
                total_active=28,
                last_update=datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
            )
        )
        output = buf.getvalue()
        assert "30" in output
        assert "28" in output
        assert "2024-05-01 12:00:00" in output


class TestSystemResources:
    def test_board_and_memory(self) -> None:
        console, buf = _make_console()
        RichOutput(console).system_resources(
            SystemResourceSnapshot(
                cpu_load=91,
                cpu="91%",
                memory=MemoryUsage(total="256 MB", used="200 MB", free="56 MB"),
                uptime="1w 2d",
                version="7.14.2",
                board="hAP ax3",
            )
        )
        output = buf.getvalue()
        assert "hAP ax3" in output
        assert "91%" in output
        assert "200 MB of 256 MB" in output
        assert "1w 2d" in output


class TestMessages:
    def test_command_result(self) -> None:
        console, buf = _make_console()
        RichOutput(console).command_result(True, "User alice disconnected")
        assert "OK" in buf.getvalue()
        assert "User alice disconnected" in buf.getvalue()

    def test_error(self) -> None:
        console, buf = _make_console()
        RichOutput(console).error("Login failed")
        assert "Login failed" in buf.getvalue()
