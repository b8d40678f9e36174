"""Rich renderers for CLI outputs."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from rich.panel import Panel
from rich.table import Table

from testimonials.core.models import MAX_RATING, Review
from testimonials.services.board import ReviewBoard
from testimonials.cli.io import console


def format_stars(rating: int) -> str:
    return "★" * rating + "☆" * (MAX_RATING - rating)


def render_board(board: ReviewBoard) -> None:
    """Display the visible group and the board status."""

    status = board.status
    if status.loading:
        console.print(Panel("Loading testimonials...", title="Testimonials"))
        return
    if status.load_error:
        console.print(
            "[yellow]Store unavailable; showing bundled testimonials.[/]"
        )
    if status.stale:
        console.print("[yellow]Live updates stopped; the list may be out of date.[/]")

    reviews = board.visible_slice()
    if not reviews:
        console.print(Panel("No testimonials yet.", title="Testimonials"))
        return

    caption = None
    if not board.controls_hidden():
        caption = f"Group {board.display_group()} of {board.total_groups()}"
    render_reviews(reviews, caption=caption)


def render_reviews(reviews: list[Review], *, caption: str | None = None) -> None:
    table = Table(title="Testimonials", caption=caption, show_lines=True)
    table.add_column("Name", style="bold")
    table.add_column("Position")
    table.add_column("Rating", no_wrap=True)
    table.add_column("Review")
    for review in reviews:
        table.add_row(
            review.name, review.position, format_stars(review.rating), review.review
        )
    console.print(table)


def render_arrival(review: Review) -> None:
    console.print(
        Panel(
            f"{review.review}\n\n[bold]{review.name}[/], {review.position}  {format_stars(review.rating)}",
            title="New testimonial",
        )
    )


def render_field_errors(errors: Mapping[str, str], *, title: str) -> None:
    lines = [f"[red]{field_name}[/]: {message}" for field_name, message in errors.items()]
    console.print(Panel("\n".join(lines), title=title))


def render_outbox(entries: Sequence[Mapping[str, Any]]) -> None:
    if not entries:
        console.print(Panel("No queued messages.", title="Contact outbox"))
        return
    table = Table(title="Contact outbox")
    table.add_column("ID", justify="right")
    table.add_column("Queued", no_wrap=True)
    table.add_column("From")
    table.add_column("Message")
    for entry in entries:
        table.add_row(
            str(entry["id"]),
            entry["queued_at"],
            f"{entry['from_name']} <{entry['from_email']}>",
            entry["message"],
        )
    console.print(table)
