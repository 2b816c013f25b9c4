"""CLI command modules for eventspool."""
