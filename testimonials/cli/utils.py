"""Utility helpers shared across CLI command modules."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Awaitable, Optional, TypeVar

import typer

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _cli() -> Any:
    return sys.modules["testimonials.cli"]


def apply_log_override(log_level: Optional[str]) -> None:
    """Override logging level for the current invocation."""

    if not log_level or not isinstance(log_level, str):
        return
    try:
        _cli().set_runtime_level(log_level)
        logger.info("Log level overridden to %s", log_level.upper())
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def run_async(awaitable: Awaitable[T]) -> T:
    """Run a coroutine to completion on a fresh event loop."""

    return asyncio.run(awaitable)  # type: ignore[arg-type]


__all__ = ["apply_log_override", "run_async"]
