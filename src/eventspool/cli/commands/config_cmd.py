"""``eventspool config``: show or update the configuration file."""

from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table

from ..helpers import console, get_state, humanize_timedelta


def config(
    ctx: typer.Context,
    stream: Optional[str] = typer.Option(None, "--stream", help="Destination stream"),
    endpoint: Optional[str] = typer.Option(None, "--endpoint", help="Ingestion base URL"),
    prefix: Optional[str] = typer.Option(None, "--prefix", help="Event name prefix"),
    dir_name: Optional[str] = typer.Option(None, "--dir", help="Storage dir name (defaults to stream)"),
) -> None:
    """Display configuration; any option given is saved to the config file."""
    state = get_state(ctx)
    cfg = state.load_config()

    updates = {"stream": stream, "endpoint": endpoint, "prefix": prefix, "dir": dir_name}
    changed = {key: value for key, value in updates.items() if value is not None}
    if changed:
        for key, value in changed.items():
            setattr(cfg, key, value)
        path = cfg.save(state.config_path)
        console.print(f"✅ Saved {', '.join(sorted(changed))} to {path}")

    table = Table(title="Analytics Configuration", show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("stream", cfg.stream or "[dim]unset[/dim]")
    table.add_row("prefix", cfg.prefix or "[dim]none[/dim]")
    table.add_row("dir", cfg.dir_name or "[dim]unset[/dim]")
    table.add_row("endpoint", cfg.endpoint or "[dim]unset (flush disabled)[/dim]")
    table.add_row("count_threshold", str(cfg.count_threshold))
    table.add_row("age_threshold", humanize_timedelta(cfg.age_threshold))
    table.add_row("max_attempts", str(cfg.max_attempts))
    console.print(table)
