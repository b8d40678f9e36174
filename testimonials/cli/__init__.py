"""Testimonials CLI package."""

from __future__ import annotations

import logging

import typer

from testimonials.cli.commands.contact import contact, outbox
from testimonials.cli.commands.reviews import next_group, prev_group, show, submit, watch
from testimonials.cli.io import console
from testimonials.cli.runtime import Runtime, get_runtime, initialize_runtime, set_runtime
from testimonials.cli.state import PROJECT_ROOT, STATE_PATH, AppState
from testimonials.core.logging_setup import configure_logging, set_runtime_level

logger = logging.getLogger(__name__)

_STATE_CACHE: AppState | None = None


def get_state() -> AppState:
    """Return the CLI state, loading it from disk on first use."""

    global _STATE_CACHE
    if _STATE_CACHE is None:
        _STATE_CACHE = AppState.load()
    return _STATE_CACHE


app = typer.Typer(add_completion=False, help="Browse and submit testimonials.")

app.command()(show)
app.command("next")(next_group)
app.command("prev")(prev_group)
app.command()(submit)
app.command()(watch)
app.command()(contact)
app.command()(outbox)


def main() -> None:
    """CLI entry point."""

    app()


__all__ = [
    "AppState",
    "PROJECT_ROOT",
    "Runtime",
    "STATE_PATH",
    "app",
    "configure_logging",
    "console",
    "contact",
    "get_runtime",
    "get_state",
    "initialize_runtime",
    "logger",
    "main",
    "next_group",
    "outbox",
    "prev_group",
    "set_runtime",
    "set_runtime_level",
    "show",
    "submit",
    "watch",
]
