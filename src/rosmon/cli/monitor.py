"""CLI commands for router monitoring (leases, pppoe, stats, resources, disconnect)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from rosmon._internal.async_utils import run_async
from rosmon.cli._client import get_aggregator
from rosmon.cli._options import global_options

if TYPE_CHECKING:
    from rosmon.cli.main import AppContext


@click.command("leases")
@click.option("--online", "online_only", is_flag=True, default=False, help="Only bound leases")
@global_options
def leases_cmd(app_ctx: AppContext, online_only: bool) -> None:
    """List DHCP leases."""
    formatter = app_ctx.formatter
    leases = run_async(get_aggregator(app_ctx).fetch_leases())
    if online_only:
        leases = [lease for lease in leases if lease.online]

    if formatter.format == "json":
        formatter.output(leases, command="leases")
    else:
        formatter.rich.lease_list(leases)


@click.command("pppoe")
@global_options
def pppoe_cmd(app_ctx: AppContext) -> None:
    """List active PPPoE sessions with their profiles."""
    formatter = app_ctx.formatter
    clients = run_async(get_aggregator(app_ctx).fetch_pppoe_clients())

    if formatter.format == "json":
        formatter.output(clients, command="pppoe")
    else:
        formatter.rich.pppoe_list(clients)


@click.command("stats")
@global_options
def stats_cmd(app_ctx: AppContext) -> None:
    """Show lease and session counts."""
    formatter = app_ctx.formatter
    stats = run_async(get_aggregator(app_ctx).fetch_stats())

    if formatter.format == "json":
        formatter.output(stats, command="stats")
    else:
        formatter.rich.stats(stats)


@click.command("resources")
@global_options
def resources_cmd(app_ctx: AppContext) -> None:
    """Show CPU, memory, uptime and firmware version."""
    formatter = app_ctx.formatter
    resources = run_async(get_aggregator(app_ctx).fetch_system_resources())

    if formatter.format == "json":
        formatter.output(resources, command="resources")
    else:
        formatter.rich.system_resources(resources)


@click.command("disconnect")
@click.argument("username")
@click.option("--yes", "-y", is_flag=True, default=False, help="Do not ask for confirmation")
@global_options
def disconnect_cmd(app_ctx: AppContext, username: str, yes: bool) -> None:
    """Terminate the active PPPoE session of USERNAME.

    If several sessions share the name, only the first one the router
    lists is disconnected.
    """
    formatter = app_ctx.formatter
    if not yes and formatter.format == "rich":
        click.confirm(f"Disconnect PPPoE user {username}?", abort=True)

    run_async(get_aggregator(app_ctx).disconnect_session(username))

    if formatter.format == "json":
        formatter.output({"success": True, "username": username}, command="disconnect")
    else:
        formatter.rich.command_result(True, f"User {username} disconnected")
