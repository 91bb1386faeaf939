"""Tests for the mock feed."""

import asyncio
import random

import pytest

from depth_sim.datafeed.mock_feed import MockFeed, generate_mock_orderbook
from depth_sim.datafeed.orderbook import OrderBookStore


def test_generated_book_shape() -> None:
    """Verify level count, ordering and price/size ranges."""
    book = generate_mock_orderbook("ETH-USDT", levels=15, rng=random.Random(3), timestamp_ms=5)

    assert book.symbol == "ETH-USDT"
    assert book.timestamp_ms == 5
    assert len(book.bids) == 15
    assert len(book.asks) == 15

    bid_prices = [l.price for l in book.bids]
    ask_prices = [l.price for l in book.asks]
    assert bid_prices == sorted(bid_prices, reverse=True)
    assert ask_prices == sorted(ask_prices)
    assert bid_prices[0] < ask_prices[0]

    assert all(0.1 <= l.size < 10.1 for l in book.bids + book.asks)
    assert 50000 - 15 * 11 < bid_prices[-1]
    assert ask_prices[-1] < 60000 + 15 * 11


def test_seeded_generation_is_reproducible() -> None:
    a = generate_mock_orderbook("BTC-USDT", rng=random.Random(11), timestamp_ms=1)
    b = generate_mock_orderbook("BTC-USDT", rng=random.Random(11), timestamp_ms=1)

    assert a == b


def test_tick_publishes_to_store() -> None:
    store = OrderBookStore()
    feed = MockFeed(store, "deribit", "BTC-USD", rng=random.Random(1))

    book = feed.tick()

    assert store.get("deribit", "BTC-USD") is book
    assert feed.ticks == 1


@pytest.mark.asyncio
async def test_run_replaces_snapshots_until_stopped() -> None:
    """Verify the feed keeps replacing the snapshot and flags connectivity."""
    store = OrderBookStore()
    feed = MockFeed(store, "okx", "BTC-USDT", interval_ms=20, rng=random.Random(2))

    task = asyncio.create_task(feed.run())
    await asyncio.sleep(0)
    first = store.get("okx", "BTC-USDT")
    assert first is not None
    assert store.is_connected is True

    await asyncio.sleep(0.1)
    assert store.get("okx", "BTC-USDT") is not first

    feed.stop()
    await asyncio.wait_for(task, timeout=1.0)

    assert feed.ticks >= 2
    assert store.is_connected is False
