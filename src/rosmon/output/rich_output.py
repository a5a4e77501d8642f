from __future__ import annotations

from typing import TYPE_CHECKING

from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from rich.console import Console

    from rosmon.models.router import (
        AggregatedStats,
        LeaseRecord,
        PPPoEClient,
        SystemResourceSnapshot,
    )


def _status_markup(status: str) -> str:
    style = "green" if status == "online" else "yellow"
    return f"[{style}]{status}[/{style}]"


class RichOutput:
    """Rich-based terminal output helpers for *rosmon*."""

    def __init__(self, console: Console) -> None:
        self._con = console

    # ------------------------------------------------------------------
    # DHCP leases
    # ------------------------------------------------------------------

    def lease_list(self, leases: list[LeaseRecord]) -> None:
        """Print a table of DHCP leases."""
        table = Table(title=f"DHCP Leases ({len(leases)})")
        table.add_column("Name", style="cyan")
        table.add_column("IP")
        table.add_column("MAC")
        table.add_column("Status")
        table.add_column("Expires in", justify="right")
        table.add_column("Server")
        table.add_column("Last seen", justify="right")

        for lease in leases:
            table.add_row(
                lease.name,
                lease.ip,
                lease.mac,
                _status_markup(lease.status),
                lease.uptime,
                lease.server,
                lease.last_seen,
            )

        self._con.print(table)

    # ------------------------------------------------------------------
    # PPPoE sessions
    # ------------------------------------------------------------------

    def pppoe_list(self, clients: list[PPPoEClient]) -> None:
        """Print a table of active PPPoE sessions with their profiles."""
        table = Table(title=f"PPPoE Sessions ({len(clients)})")
        table.add_column("User", style="cyan")
        table.add_column("IP")
        table.add_column("Profile")
        table.add_column("Uptime", justify="right")
        table.add_column("RX", justify="right")
        table.add_column("TX", justify="right")
        table.add_column("Caller ID")
        table.add_column("Service")

        for c in clients:
            table.add_row(
                c.username, c.ip, c.profile, c.uptime, c.rx, c.tx, c.caller_id, c.service
            )

        self._con.print(table)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def stats(self, stats: AggregatedStats) -> None:
        table = Table(title="Network Summary")
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")

        table.add_row("DHCP clients", str(stats.total_clients))
        table.add_row("DHCP online", str(stats.active_clients))
        table.add_row("PPPoE secrets", str(stats.total_pppoe))
        table.add_row("PPPoE online", str(stats.active_pppoe))
        table.add_row("Total online", f"[green]{stats.total_active}[/green]")
        table.add_row("Updated", stats.last_update.strftime("%Y-%m-%d %H:%M:%S UTC"))

        self._con.print(table)

    # ------------------------------------------------------------------
    # System resources
    # ------------------------------------------------------------------

    def system_resources(self, res: SystemResourceSnapshot) -> None:
        """Print board details and a CPU / memory table."""
        self._con.print(Panel(f"[bold]{res.board}[/bold]  RouterOS {res.version}", expand=False))

        table = Table(title="System Resources")
        table.add_column("Field", style="bold")
        table.add_column("Value")

        cpu_style = "red" if res.cpu_load >= 80 else "green"
        table.add_row("CPU load", f"[{cpu_style}]{res.cpu}[/{cpu_style}]")
        table.add_row("Memory used", f"{res.memory.used} of {res.memory.total}")
        table.add_row("Memory free", res.memory.free)
        table.add_row("Uptime", res.uptime)

        self._con.print(table)

    # ------------------------------------------------------------------
    # Command result helpers
    # ------------------------------------------------------------------

    def command_result(self, success: bool, message: str = "") -> None:
        """Print a coloured OK / FAILED indicator."""
        text = "[green]OK[/green]" if success else "[red]FAILED[/red]"
        if message:
            text += f"  {message}"
        self._con.print(text)

    def error(self, message: str) -> None:
        """Print a bold red error line."""
        self._con.print(f"[bold red]Error:[/bold red] {message}")

    def info(self, message: str) -> None:
        """Print an informational message (plain)."""
        self._con.print(message)
