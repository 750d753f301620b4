"""
Async HTTP fetcher for raw telegrams from a P1 gateway.

Issues one GET per call against the gateway endpoint and returns the body
as raw bytes (one telegram). Designed to be robust:

- Exponential backoff on consecutive failures (capped at MAX_BACKOFF_S).
- Every transport error, timeout, and non-2xx status becomes a FetchError,
  so the caller only has one exception type to handle per tick.
- No retries inside a call; the next tick fetches a fresh telegram anyway.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from meter.src.errors import FetchError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BASE_BACKOFF_S: float = 1.0
"""Initial backoff delay in seconds after the first failure."""

MAX_BACKOFF_S: float = 60.0
"""Maximum backoff delay in seconds (cap for exponential growth)."""

DEFAULT_TIMEOUT_S: float = 10.0
"""Timeout per HTTP request in seconds."""

_MAX_BACKOFF_EXPONENT = 16


# ---------------------------------------------------------------------------
# Stateless single-fetch function
# ---------------------------------------------------------------------------


async def fetch_telegram(client: httpx.AsyncClient, endpoint: str) -> bytes:
    """GET *endpoint* and return the response body.

    Args:
        client: An open ``httpx.AsyncClient``.
        endpoint: Gateway URL returning one telegram.

    Raises:
        FetchError: On transport errors, timeouts, or a non-2xx status.
    """
    try:
        response = await client.get(endpoint)
    except httpx.TimeoutException as exc:
        raise FetchError(f"timed out fetching {endpoint}") from exc
    except httpx.HTTPError as exc:
        raise FetchError(f"cannot fetch {endpoint}: {exc}") from exc

    if not 200 <= response.status_code < 300:
        raise FetchError(f"{endpoint} returned HTTP {response.status_code}")
    return response.content


# ---------------------------------------------------------------------------
# Stateful fetcher with exponential backoff
# ---------------------------------------------------------------------------


class TelegramFetcher:
    """Stateful telegram fetcher with exponential backoff.

    Maintains a failure counter so that consecutive failures cause an
    exponentially growing sleep before the next attempt. The backoff resets
    to zero after any successful fetch.

    Args:
        endpoint: HTTP(S) URL of the P1 gateway.
        timeout_s: Timeout per request in seconds.
    """

    def __init__(self, *, endpoint: str, timeout_s: float = DEFAULT_TIMEOUT_S) -> None:
        self._endpoint = endpoint
        self._timeout_s = timeout_s
        self._consecutive_failures: int = 0

    @property
    def consecutive_failures(self) -> int:
        """Number of failed fetches since the last success."""
        return self._consecutive_failures

    @property
    def current_backoff(self) -> float:
        """Delay applied before the next fetch, in seconds."""
        if self._consecutive_failures == 0:
            return 0.0
        # Bound the exponent; 2 ** n overflows a float after ~1024 failures.
        exponent = min(self._consecutive_failures - 1, _MAX_BACKOFF_EXPONENT)
        return min(BASE_BACKOFF_S * (2**exponent), MAX_BACKOFF_S)

    async def fetch(self) -> bytes:
        """Fetch one telegram, sleeping first if previous fetches failed.

        Returns:
            The raw telegram bytes.

        Raises:
            FetchError: If the gateway could not deliver a telegram.
        """
        delay = self.current_backoff
        if delay > 0:
            logger.warning(
                "Backoff: sleeping %.1fs before retry (consecutive failures: %d)",
                delay,
                self._consecutive_failures,
            )
            await asyncio.sleep(delay)

        try:
            async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                raw = await fetch_telegram(client, self._endpoint)
        except FetchError:
            self._consecutive_failures += 1
            raise

        self._consecutive_failures = 0
        return raw
