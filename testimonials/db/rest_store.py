"""PostgREST review store over HTTP.

Updates:
    v0.1.0 - 2025-11-10 - Added httpx store with tenacity retries on transport errors.
    v0.2.0 - 2025-11-12 - Poll ``created_at`` for insertions instead of a socket channel.
    v0.3.0 - 2025-11-18 - Take the insertion watermark before the approved query; poll with ``gte``.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .store import ClosedCallback, InsertCallback, PollingChannel, Record, StoreError, Subscription

logger = logging.getLogger(__name__)

_NO_MARK = object()


class RestReviewStore:
    """Review store backed by a PostgREST endpoint such as Supabase."""

    DEFAULT_TIMEOUT_SECONDS = 10.0

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        table: str = "testimonials",
        poll_interval: float = 2.0,
        retry_attempts: int = 3,
        retry_wait: float = 0.5,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create the HTTP client for the store.

        Args:
            url (str): Project URL; ``/rest/v1`` is appended.
            api_key (str): Anonymous or service key sent as ``apikey`` and bearer token.
            table (str): Table holding the testimonial rows.
            poll_interval (float): Seconds between insertion polls.
            retry_attempts (int): Attempts per request on transport errors.
            retry_wait (float): Multiplier for the exponential retry back-off.
            timeout (float): Per-request timeout in seconds.
            transport (httpx.AsyncBaseTransport | None): Optional transport override.
        """

        if not url:
            raise ValueError("RestReviewStore requires a base URL.")
        if retry_attempts < 1:
            raise ValueError("retry_attempts must be at least 1")
        self._table = table
        self._poll_interval = poll_interval
        self._retry_attempts = retry_attempts
        self._retry_wait = retry_wait
        self._query_mark: Any = _NO_MARK
        self._client = httpx.AsyncClient(
            base_url=f"{url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def query_approved(self) -> list[Record]:
        """Return approved rows newest first.

        The newest ``created_at`` is read before the query and kept as the
        starting watermark for later subscriptions, so a row committed while
        the query runs is still delivered by the insertion channel.
        """

        mark = await self.latest_created_at()
        payload = await self._request(
            "GET",
            params={"select": "*", "approved": "eq.true", "order": "created_at.desc"},
        )
        rows = self._expect_rows(payload)
        self._query_mark = mark
        return rows

    async def insert(self, record: Mapping[str, Any]) -> Record:
        payload = await self._request(
            "POST",
            json=dict(record),
            headers={"Prefer": "return=representation"},
        )
        if isinstance(payload, dict):
            return payload
        rows = self._expect_rows(payload)
        if not rows:
            raise StoreError("Insert response did not echo the stored record.")
        return rows[0]

    async def fetch_since(self, created_after: Optional[str]) -> list[Record]:
        params = {"select": "*", "order": "created_at.asc"}
        if created_after:
            # Rows sharing the watermark timestamp are re-read; subscribers dedupe by id.
            params["created_at"] = f"gte.{created_after}"
        payload = await self._request("GET", params=params)
        return self._expect_rows(payload)

    async def latest_created_at(self) -> Optional[str]:
        payload = await self._request(
            "GET",
            params={"select": "created_at", "order": "created_at.desc", "limit": "1"},
        )
        rows = self._expect_rows(payload)
        return rows[0].get("created_at") if rows else None

    def subscribe_insertions(
        self,
        callback: InsertCallback,
        *,
        on_closed: Optional[ClosedCallback] = None,
    ) -> Subscription:
        channel = PollingChannel(
            self.fetch_since,
            lambda row: row.get("created_at"),
            callback,
            baseline=self._baseline,
            on_closed=on_closed,
            poll_interval=self._poll_interval,
            name=f"rest-{self._table}",
        )
        return channel.start()

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.close()

    async def _baseline(self) -> Optional[str]:
        if self._query_mark is not _NO_MARK:
            return self._query_mark
        return await self.latest_created_at()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, **kwargs: Any) -> Any:
        path = f"/{self._table}"
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._retry_attempts),
                wait=wait_exponential(multiplier=self._retry_wait, max=8),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    logger.debug(
                        "store_request method=%s path=%s attempt=%s",
                        method,
                        path,
                        attempt.retry_state.attempt_number,
                    )
                    response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            # Transport errors land here after the last retry; decoding and
            # redirect errors are not retried.
            raise StoreError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            raise StoreError(
                f"{method} {path} returned {response.status_code}: {response.text[:200]}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(f"{method} {path} returned a non-JSON body.") from exc

    @staticmethod
    def _expect_rows(payload: Any) -> list[Record]:
        if not isinstance(payload, list) or not all(
            isinstance(row, dict) for row in payload
        ):
            raise StoreError("Store response was not a list of records.")
        return payload
