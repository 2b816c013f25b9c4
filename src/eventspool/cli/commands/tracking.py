"""Tracking commands: opt-out management, queue inspection, manual events."""

from __future__ import annotations

import json
from typing import Any, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from eventspool.exceptions import EventSpoolError, StoreError
from eventspool.store import StoreStatus

from ..helpers import console, get_state, humanize_timedelta


def _parse_field(raw: str) -> tuple[str, Any]:
    """Split ``key=value``; JSON values (numbers, booleans, null) are decoded."""
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise typer.BadParameter(f"expected key=value, got {raw!r}", param_hint="--field")
    try:
        return key, json.loads(value)
    except json.JSONDecodeError:
        return key, value


def status(ctx: typer.Context) -> None:
    """Show storage location, opt-out state and queue depth."""
    analytics = get_state(ctx).analytics()

    lines: list[str] = []
    lines.append(f"[bold]Root:[/bold]     {analytics.root or 'unknown'}")
    lines.append(f"[bold]Status:[/bold]   {analytics.status.value}")
    if analytics.user_id:
        lines.append(f"[bold]User ID:[/bold]  {analytics.user_id}")

    if analytics.root is not None:
        try:
            lines.append(f"[bold]Queued:[/bold]   {analytics.size():,} event(s)")
        except EventSpoolError as e:
            lines.append(f"[bold]Queued:[/bold]   [red]{e}[/red]")
        try:
            last_flush = analytics.last_flush()
            age = humanize_timedelta(analytics.last_flush_duration())
            lines.append(f"[bold]Last flush:[/bold] {age} ago ({last_flush:%Y-%m-%d %H:%M} UTC)")
        except StoreError:
            lines.append("[bold]Last flush:[/bold] never")

    console.print(Panel("\n".join(lines), title="Analytics", border_style="cyan", expand=False))


def enable(ctx: typer.Context) -> None:
    """Opt back in to analytics."""
    analytics = get_state(ctx).analytics()
    try:
        analytics.enable()
    except StoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    console.print("✅ Analytics enabled")


def disable(ctx: typer.Context) -> None:
    """Opt out of analytics. Queued events stay on disk but are not sent."""
    analytics = get_state(ctx).analytics()
    try:
        analytics.disable()
    except StoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    console.print("✅ Analytics disabled")


def events(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum events to show (0 = all)"),
) -> None:
    """List queued events, oldest first."""
    analytics = get_state(ctx).analytics()
    try:
        queued = analytics.events()
    except EventSpoolError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not queued:
        console.print("No queued events")
        return

    shown = queued if limit <= 0 else queued[:limit]
    table = Table(title=f"Queued Events ({len(queued)})", show_header=True, header_style="bold")
    table.add_column("Time", style="dim")
    table.add_column("Event", style="cyan")
    table.add_column("Body")
    for event in shown:
        table.add_row(event.timestamp, event.name, json.dumps(event.body, sort_keys=True))
    console.print(table)

    if len(shown) < len(queued):
        console.print(f"[dim]… {len(queued) - len(shown)} more[/dim]")


def track(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Event name (the configured prefix is added)"),
    fields: Optional[list[str]] = typer.Option(
        None,
        "--field",
        "-f",
        help="Body attribute as key=value (repeatable)",
    ),
) -> None:
    """Record one event."""
    body = dict(_parse_field(raw) for raw in fields or [])
    analytics = get_state(ctx).analytics()
    if analytics.status is not StoreStatus.ENABLED:
        console.print(f"[yellow]Analytics {analytics.status.value}; event not recorded[/yellow]")
        return
    analytics.track(name, body)
    analytics.close()
    console.print(f"Recorded {analytics.config.prefix}{name}")
