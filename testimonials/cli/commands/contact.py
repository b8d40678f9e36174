"""Contact form and outbox commands."""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional

import typer

from testimonials.cli.io import console
from testimonials.cli.renderers import render_field_errors, render_outbox
from testimonials.cli.utils import apply_log_override
from testimonials.core.errors import SubmissionFailure, ValidationFailure
from testimonials.db.store import StoreError
from testimonials.services.contact import ContactMessage

logger = logging.getLogger(__name__)


def _cli() -> Any:
    return sys.modules["testimonials.cli"]


def contact(
    name: str = typer.Option(..., "--name", "-n", help="Full name."),
    email: str = typer.Option(..., "--email", "-e", help="Reply address."),
    message: str = typer.Option(..., "--message", "-m", help="Your message."),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Override logging level for this invocation.",
    ),
) -> None:
    """Queue a message for the site owner."""

    apply_log_override(log_level)
    service = _cli().get_runtime().contact_service
    try:
        service.send(ContactMessage(name=name, email=email, message=message))
    except ValidationFailure as exc:
        render_field_errors(exc.messages, title="Please fix the errors in the form")
        raise typer.Exit(code=1) from exc
    except SubmissionFailure as exc:
        console.print(f"[red]Failed to send message. Please try again. ({exc})[/]")
        raise typer.Exit(code=1) from exc

    console.print("[green]Thank you for your message! I will get back to you soon.[/]")


def outbox(
    limit: int = typer.Option(20, "--limit", min=1, help="Maximum messages to list."),
    clear: bool = typer.Option(False, "--clear", help="Delete every queued message."),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Override logging level for this invocation.",
    ),
) -> None:
    """List queued contact messages, or clear the queue."""

    apply_log_override(log_level)
    repository = _cli().get_runtime().outbox
    if repository is None:
        console.print("[red]No contact outbox is configured.[/]")
        raise typer.Exit(code=1)

    try:
        if clear:
            removed = repository.delete_all()
            logger.info("outbox_cleared", extra={"count": removed})
            console.print(f"[green]Removed {removed} queued message(s).[/]")
            return
        entries = repository.pending(limit=limit)
    except StoreError as exc:
        console.print(f"[red]Contact outbox unavailable. ({exc})[/]")
        raise typer.Exit(code=1) from exc

    render_outbox(entries)
