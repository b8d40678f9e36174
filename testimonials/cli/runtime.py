"""Runtime wiring for the testimonials CLI."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

from testimonials.core.logging_setup import configure_logging
from testimonials.db.outbox_repository import OutboxRepository
from testimonials.db.rest_store import RestReviewStore
from testimonials.db.sqlite_client import SQLiteClient
from testimonials.db.sqlite_store import SQLiteReviewStore
from testimonials.db.store import RemoteReviewStore
from testimonials.services.board import ReviewBoard
from testimonials.services.config_service import ConfigService, PaginationConfig, StoreConfig
from testimonials.services.contact import ContactService
from testimonials.services.fallback import FallbackSource

logger = logging.getLogger(__name__)

StoreFactory = Callable[[], RemoteReviewStore]


@dataclass
class Runtime:
    """Dependencies shared by CLI commands."""

    store_factory: StoreFactory
    fallback: FallbackSource
    pagination: PaginationConfig
    contact_service: ContactService
    outbox: Optional[OutboxRepository] = None

    @asynccontextmanager
    async def board_session(self, *, live: bool = False) -> AsyncIterator[ReviewBoard]:
        """Yield a board bound to a fresh store, closing both on exit.

        Args:
            live (bool): Load and subscribe before yielding.
        """

        store = self.store_factory()
        board = ReviewBoard(
            store,
            self.fallback,
            window_size=self.pagination.window_size,
            swipe_threshold=self.pagination.swipe_threshold,
        )
        try:
            if live:
                await board.start()
            yield board
        finally:
            board.close()
            aclose = getattr(store, "aclose", None)
            if aclose is not None:
                await aclose()


_RUNTIME_CACHE: Optional[Runtime] = None


def build_store_factory(store_config: StoreConfig) -> StoreFactory:
    """Return a factory for the configured store backend.

    Raises:
        RuntimeError: If the rest backend's API key is not available.
    """

    if store_config.backend == "rest":
        api_key = store_config.api_key()

        def rest_factory() -> RemoteReviewStore:
            return RestReviewStore(
                store_config.url or "",
                api_key,
                table=store_config.table,
                poll_interval=store_config.poll_interval,
                retry_attempts=store_config.retry_attempts,
                timeout=store_config.timeout,
            )

        return rest_factory

    sqlite_client = SQLiteClient(store_config.sqlite_path)
    sqlite_client.initialize_schema()

    def sqlite_factory() -> RemoteReviewStore:
        return SQLiteReviewStore(sqlite_client, poll_interval=store_config.poll_interval)

    return sqlite_factory


def initialize_runtime(config_service: Optional[ConfigService] = None) -> Runtime:
    """Load configuration and build the CLI dependencies."""

    config_service = config_service or ConfigService()
    configure_logging(config_service.logging_config)
    store_config = config_service.store_config()
    logger.debug("Runtime initialization starting (backend=%s).", store_config.backend)

    contact_config = config_service.contact_config()
    outbox_client = SQLiteClient(contact_config.outbox_path)
    outbox_client.initialize_schema()
    outbox = OutboxRepository(outbox_client)

    return Runtime(
        store_factory=build_store_factory(store_config),
        fallback=FallbackSource(config_service.fallback_dataset_path),
        pagination=config_service.pagination_config(),
        contact_service=ContactService(
            outbox,
            recipient_name=contact_config.recipient_name,
            recipient_email=contact_config.recipient_email,
        ),
        outbox=outbox,
    )


def get_runtime() -> Runtime:
    """Return the lazily-initialized runtime."""

    global _RUNTIME_CACHE
    if _RUNTIME_CACHE is None:
        _RUNTIME_CACHE = initialize_runtime()
    return _RUNTIME_CACHE


def set_runtime(runtime: Optional[Runtime]) -> None:
    global _RUNTIME_CACHE
    _RUNTIME_CACHE = runtime
