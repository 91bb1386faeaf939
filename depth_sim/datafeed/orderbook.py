"""
Latest-known order book store.

Holds one immutable OrderBook per (exchange, symbol). Updates replace the
snapshot by reference, so a reader that grabbed a snapshot always sees bids
and asks from the same generation.

Feed failures are isolated per message: a bad message never replaces the last
good snapshot. Connectivity and staleness are exposed as signals instead.
"""

from __future__ import annotations

import time

import structlog

from ..config import DEFAULT_STALE_AFTER_MS
from ..types import OrderBook
from .adapters import FeedParseError, get_adapter

logger = structlog.get_logger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class OrderBookStore:
    """
    Snapshot store keyed by (exchange, symbol).

    Thread-safety: writes are single reference swaps in a dict; designed for a
    single asyncio loop.
    """

    __slots__ = (
        'stale_after_ms', '_books', '_connected', '_last_update_ms',
        'parse_errors', '_update_count', '_update_start_time',
    )

    def __init__(self, stale_after_ms: int = DEFAULT_STALE_AFTER_MS) -> None:
        self.stale_after_ms = stale_after_ms

        self._books: dict[tuple[str, str], OrderBook] = {}
        self._connected: bool = False
        self._last_update_ms: int = 0

        self.parse_errors: int = 0

        # Performance tracking
        self._update_count: int = 0
        self._update_start_time: float = time.perf_counter()

    def update(self, exchange: str, book: OrderBook) -> None:
        """Replace the latest snapshot for (exchange, book.symbol)."""
        self._books[(exchange, book.symbol)] = book
        self._last_update_ms = now_ms()
        self._update_count += 1

    def get(self, exchange: str, symbol: str) -> OrderBook | None:
        """Latest snapshot, or None if nothing has arrived yet."""
        return self._books.get((exchange, symbol))

    def keys(self) -> list[tuple[str, str]]:
        return list(self._books)

    def apply_message(self, exchange: str, symbol: str, raw: bytes | str) -> bool:
        """
        Decode a raw venue message and store the resulting snapshot.

        Returns True if a new snapshot was stored. Messages without book data
        and malformed messages return False and leave the store untouched.
        """
        adapter = get_adapter(exchange)
        try:
            book = adapter.loads(raw, symbol)
        except FeedParseError as e:
            self.parse_errors += 1
            logger.warning(
                "feed_parse_failed",
                exchange=exchange,
                symbol=symbol,
                error=str(e),
                parse_errors=self.parse_errors,
            )
            return False

        if book is None:
            return False

        self.update(exchange, book)
        return True

    def set_connected(self, connected: bool) -> None:
        if connected != self._connected:
            logger.info("feed_connection_changed", connected=connected)
        self._connected = connected

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def last_update_ms(self) -> int:
        """Wall-clock time of the last stored snapshot (0 if none)."""
        return self._last_update_ms

    def is_stale(self, now: int | None = None) -> bool:
        """True if no snapshot arrived within `stale_after_ms`."""
        if self._last_update_ms == 0:
            return True
        current = now_ms() if now is None else now
        return current - self._last_update_ms > self.stale_after_ms

    def updates_per_sec(self) -> float:
        """Return update rate for performance monitoring."""
        elapsed = time.perf_counter() - self._update_start_time
        if elapsed < 0.001:
            return 0.0
        return self._update_count / elapsed

    def reset_perf_counters(self) -> None:
        """Reset performance counters."""
        self._update_count = 0
        self._update_start_time = time.perf_counter()
