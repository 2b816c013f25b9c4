"""Flush command."""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

import typer

from eventspool.exceptions import EventSpoolError, PartialDeliveryError
from eventspool.store import StoreStatus

from ..helpers import console, get_state


def flush(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Flush regardless of thresholds"),
    above_size: Optional[int] = typer.Option(
        None, "--above-size", help="Flush when at least this many events are queued"
    ),
    above_hours: Optional[float] = typer.Option(
        None, "--above-hours", help="Flush when the last flush is at least this old"
    ),
) -> None:
    """Send queued events to the ingestion endpoint."""
    analytics = get_state(ctx).analytics()
    if analytics.status is not StoreStatus.ENABLED:
        console.print(f"[yellow]Analytics {analytics.status.value}; nothing flushed[/yellow]")
        return

    above_duration = timedelta(hours=above_hours) if above_hours is not None else None

    try:
        if force:
            result = analytics.flush()
        else:
            result = analytics.maybe_flush(above_size, above_duration)
    except PartialDeliveryError as e:
        console.print(f"[red]Flush failed:[/red] {e}")
        for record in e.last_results:
            if record.error_message:
                console.print(f"  {record.error_code}: {record.error_message}")
        console.print("Queued events were kept; run the flush again later.")
        raise typer.Exit(1)
    except EventSpoolError as e:
        console.print(f"[red]Flush failed:[/red] {e}")
        raise typer.Exit(1)
    finally:
        analytics.close()

    console.print(result.summary())
