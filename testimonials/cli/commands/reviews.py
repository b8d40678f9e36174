"""Testimonial browsing and submission commands."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Optional

import typer

from testimonials.cli.io import console
from testimonials.cli.renderers import render_arrival, render_board, render_field_errors
from testimonials.cli.utils import apply_log_override, run_async
from testimonials.core.models import DraftReview
from testimonials.services.board import ReviewBoard

logger = logging.getLogger(__name__)

WATCH_TICK_SECONDS = 0.5

LOG_LEVEL_OPTION = typer.Option(
    None,
    "--log-level",
    "-l",
    help="Override logging level for this invocation (e.g., DEBUG, INFO).",
)


def _cli() -> Any:
    return sys.modules["testimonials.cli"]


async def _load_and_move(move: Optional[str], page: Optional[int]) -> tuple[bool, ReviewBoard]:
    cli = _cli()
    state = cli.get_state()
    async with cli.get_runtime().board_session() as board:
        result = await board.sync.load_initial()
        if page is not None:
            board.pagination.seek((page - 1) * board.pagination.window_size)
        else:
            board.pagination.seek(state.cursor)

        moved = True
        if move == "next":
            moved = board.on_next_click()
        elif move == "prev":
            moved = board.on_prev_click()

        state.cursor = board.pagination.cursor
        state.last_source = result.source
        state.last_count = result.count
        state.save()
        return moved, board


def show(
    page: Optional[int] = typer.Option(
        None, "--page", "-p", min=1, help="One-based group number to display."
    ),
    log_level: Optional[str] = LOG_LEVEL_OPTION,
) -> None:
    """Show the current group of testimonials."""

    apply_log_override(log_level)
    _, board = run_async(_load_and_move(None, page))
    render_board(board)


def next_group(log_level: Optional[str] = LOG_LEVEL_OPTION) -> None:
    """Advance to the next group of testimonials."""

    apply_log_override(log_level)
    moved, board = run_async(_load_and_move("next", None))
    if not moved:
        console.print("[dim]Already at the last group.[/]")
    render_board(board)


def prev_group(log_level: Optional[str] = LOG_LEVEL_OPTION) -> None:
    """Go back to the previous group of testimonials."""

    apply_log_override(log_level)
    moved, board = run_async(_load_and_move("prev", None))
    if not moved:
        console.print("[dim]Already at the first group.[/]")
    render_board(board)


def submit(
    name: str = typer.Option(..., "--name", "-n", help="Your name."),
    review: str = typer.Option(..., "--review", "-r", help="Share your experience."),
    position: str = typer.Option("", "--position", help="Your role or company (optional)."),
    rating: int = typer.Option(5, "--rating", min=1, max=5, help="Rating from 1 to 5."),
    log_level: Optional[str] = LOG_LEVEL_OPTION,
) -> None:
    """Submit a new testimonial."""

    apply_log_override(log_level)
    draft = DraftReview(name=name, position=position, review=review, rating=rating)

    async def _submit() -> ReviewBoard:
        async with _cli().get_runtime().board_session() as board:
            await board.on_submit(draft)
            return board

    board = run_async(_submit())
    status = board.status
    if status.validation_errors:
        render_field_errors(status.validation_errors, title="Please fix the errors in the form")
        raise typer.Exit(code=1)
    if status.submission_error:
        console.print(f"[red]Failed to submit testimonial. Please try again. ({status.submission_error})[/]")
        raise typer.Exit(code=1)
    console.print("[green]Thank you! Your testimonial will appear shortly.[/]")


def watch(
    duration: Optional[float] = typer.Option(
        None, "--duration", "-d", min=0, help="Stop after this many seconds."
    ),
    log_level: Optional[str] = LOG_LEVEL_OPTION,
) -> None:
    """Show testimonials and print new ones as they arrive."""

    apply_log_override(log_level)

    async def _watch() -> None:
        async with _cli().get_runtime().board_session(live=True) as board:
            render_board(board)
            seen = {review.id for review in board.sync.reviews}

            def _on_change() -> None:
                for review in board.sync.reviews:
                    if review.id not in seen:
                        seen.add(review.id)
                        render_arrival(review)

            board.sync.add_listener(_on_change)
            loop = asyncio.get_running_loop()
            deadline = loop.time() + duration if duration is not None else None
            while deadline is None or loop.time() < deadline:
                await asyncio.sleep(WATCH_TICK_SECONDS)
                if board.status.stale:
                    console.print(
                        f"[yellow]Live updates stopped: {board.subscription_error}[/]"
                    )
                    raise typer.Exit(code=1)

    try:
        run_async(_watch())
    except KeyboardInterrupt:
        console.print("[dim]Stopped watching.[/]")

