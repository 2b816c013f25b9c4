"""eventspool command line.

Usage:
    eventspool status
    eventspool disable
    eventspool track deploy --field env=prod
    eventspool flush --force
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from .commands import config_cmd, flush, tracking
from .helpers import CliState

app = typer.Typer(
    name="eventspool",
    help="Inspect and ship locally buffered analytics events",
    add_completion=False,
    no_args_is_help=True,
)


@app.callback()
def callback(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (default: $EVENTSPOOL_CONFIG or ~/.eventspool/config.toml)",
    ),
    root: Optional[Path] = typer.Option(
        None,
        "--root",
        help="Storage directory (default: platform config dir)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Load configuration shared by every command."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )
    ctx.obj = CliState(config_path=config, root=root)


app.command()(tracking.status)
app.command()(tracking.enable)
app.command()(tracking.disable)
app.command()(tracking.events)
app.command()(tracking.track)
app.command()(flush.flush)
app.command(name="config")(config_cmd.config)


def main() -> None:
    app()


__all__ = ["app", "main"]
