"""Shared CLI state and formatting helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from eventspool.analytics import Analytics
from eventspool.config import AnalyticsConfig
from eventspool.exceptions import ConfigurationError

console = Console()


@dataclass
class CliState:
    """Options from the top-level callback, resolved lazily per command."""

    config_path: Optional[Path] = None
    root: Optional[Path] = None
    _analytics: Optional[Analytics] = field(default=None, repr=False)

    def load_config(self) -> AnalyticsConfig:
        try:
            return AnalyticsConfig.load(self.config_path)
        except ConfigurationError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

    def analytics(self) -> Analytics:
        if self._analytics is None:
            self._analytics = Analytics.from_config(self.load_config(), root=self.root)
        return self._analytics


def get_state(ctx: typer.Context) -> CliState:
    if isinstance(ctx.obj, CliState):
        return ctx.obj
    ctx.obj = CliState()
    return ctx.obj


def humanize_timedelta(td: timedelta) -> str:
    """Convert a timedelta into a concise human-readable string.

    Examples: '2s', '3m 12s', '2h 5m', '1d 4h', '3d'
    """
    total_seconds = int(td.total_seconds())
    if total_seconds < 0:
        return "0s"

    days, remainder = divmod(total_seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, seconds = divmod(remainder, 60)

    if days > 0:
        return f"{days}d {hours}h" if hours > 0 else f"{days}d"
    if hours > 0:
        return f"{hours}h {minutes}m" if minutes > 0 else f"{hours}h"
    if minutes > 0:
        return f"{minutes}m {seconds}s" if seconds > 0 else f"{minutes}m"
    return f"{seconds}s"
