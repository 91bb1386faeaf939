"""
Mock order book feed.

Pushes a freshly generated book into the store every `interval_ms`, standing
in for a live venue connection. Each tick is a full snapshot (no diffs).
"""

from __future__ import annotations

import asyncio
import random
import time

import structlog

from ..config import DEFAULT_FEED_INTERVAL_MS, DEFAULT_MOCK_LEVELS
from ..types import OrderBook, PriceLevel, make_orderbook
from .orderbook import OrderBookStore

logger = structlog.get_logger(__name__)


def generate_mock_orderbook(
    symbol: str,
    levels: int = DEFAULT_MOCK_LEVELS,
    rng: random.Random | None = None,
    timestamp_ms: int | None = None,
) -> OrderBook:
    """
    Random book around a base price in [50000, 60000).

    Level i sits (i + 1) random steps of 1..11 away from the base price on
    each side, so deeper levels are usually, not always, further away.
    """
    r = rng or random
    base_price = 50000 + r.random() * 10000

    bids: list[PriceLevel] = []
    asks: list[PriceLevel] = []

    for i in range(levels):
        bids.append(PriceLevel(
            price=base_price - (i + 1) * (r.random() * 10 + 1),
            size=r.random() * 10 + 0.1,
        ))
        asks.append(PriceLevel(
            price=base_price + (i + 1) * (r.random() * 10 + 1),
            size=r.random() * 10 + 0.1,
        ))

    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)

    return make_orderbook(bids, asks, symbol, timestamp_ms)


class MockFeed:
    """
    Async mock feed for one (exchange, symbol).

    Usage:
        feed = MockFeed(store, "okx", "BTC-USDT")
        task = asyncio.create_task(feed.run())
        ...
        feed.stop()
    """

    def __init__(
        self,
        store: OrderBookStore,
        exchange: str,
        symbol: str,
        interval_ms: int = DEFAULT_FEED_INTERVAL_MS,
        levels: int = DEFAULT_MOCK_LEVELS,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.exchange = exchange
        self.symbol = symbol
        self.interval_ms = interval_ms
        self.levels = levels
        self.rng = rng or random.Random()

        self._running = False
        self.ticks: int = 0

    def tick(self) -> OrderBook:
        """Generate and publish one snapshot."""
        book = generate_mock_orderbook(self.symbol, self.levels, self.rng)
        self.store.update(self.exchange, book)
        self.ticks += 1
        return book

    async def run(self) -> None:
        """Publish snapshots until stop() is called or the task is cancelled."""
        self._running = True
        self.store.set_connected(True)
        logger.info(
            "mock_feed_started",
            exchange=self.exchange,
            symbol=self.symbol,
            interval_ms=self.interval_ms,
        )

        try:
            while self._running:
                self.tick()
                await asyncio.sleep(self.interval_ms / 1000)
        finally:
            self._running = False
            self.store.set_connected(False)
            logger.info("mock_feed_stopped", exchange=self.exchange, ticks=self.ticks)

    def stop(self) -> None:
        """Signal the feed to stop."""
        self._running = False
