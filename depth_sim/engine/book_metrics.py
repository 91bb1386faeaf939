"""
Read-only queries over an order book snapshot.

Everything here is a pure function of its inputs: no caching, no state.
Callers recompute on every snapshot ("latest wins").

Edge-case policy:
- Empty side: best price, spread and mid price read 0.0 ("unknown")
- Empty book: imbalance reads exactly 50.0 (neutral)
- Crossed book: spread is returned as-is, possibly negative
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from ..types import BookSummary, DepthPoint, OrderBook, PriceLevel

# Levels per side shown on the depth chart
DEFAULT_DEPTH_LEVELS = 20


def total_size(levels: Iterable[PriceLevel]) -> float:
    """Sum of resting size over the given levels."""
    return sum(level.size for level in levels)


def best_bid(book: OrderBook) -> float:
    """Best bid price. Returns 0.0 if no bids."""
    return book.bids[0].price if book.bids else 0.0


def best_ask(book: OrderBook) -> float:
    """Best ask price. Returns 0.0 if no asks."""
    return book.asks[0].price if book.asks else 0.0


def spread(book: OrderBook) -> float:
    """
    Best ask minus best bid. Returns 0.0 if either side is empty.

    Not clamped: a crossed book yields a negative spread, which is a display
    concern rather than an error.
    """
    if not book.bids or not book.asks:
        return 0.0
    return book.asks[0].price - book.bids[0].price


def mid_price(book: OrderBook) -> float:
    """Mid price. Returns 0.0 (unknown, never a traded price) if either side is empty."""
    if not book.bids or not book.asks:
        return 0.0
    return (book.bids[0].price + book.asks[0].price) / 2.0


def spread_bps(book: OrderBook) -> float:
    """Spread in basis points of mid. Returns 0.0 when mid is unknown."""
    mid = mid_price(book)
    if mid <= 0:
        return 0.0
    return spread(book) / mid * 10000


def imbalance(bids: Iterable[PriceLevel], asks: Iterable[PriceLevel]) -> float:
    """
    Bid-side share of visible volume, in percent.

    Returns exactly 50.0 when both sides carry no volume.
    """
    bid_volume = total_size(bids)
    ask_volume = total_size(asks)
    total = bid_volume + ask_volume
    if total == 0:
        return 50.0
    return bid_volume / total * 100


def depth_series(book: OrderBook, levels: int = DEFAULT_DEPTH_LEVELS) -> list[DepthPoint]:
    """
    Build the cumulative depth series for charting.

    Cumulative size is accumulated walking outward from the best price on each
    side. Only the top `levels` per side are used; deeper levels are dropped.

    Returns a single list sorted ascending by price: bids (reversed, so the
    deepest bid comes first) followed by asks.
    """
    if levels < 0:
        raise ValueError(f"levels must be >= 0, got {levels}")

    bids = book.bids[:levels]
    asks = book.asks[:levels]

    # Running totals from best price outward
    bid_cum = np.cumsum([level.size for level in bids], dtype=np.float64)
    ask_cum = np.cumsum([level.size for level in asks], dtype=np.float64)

    bid_points = [
        DepthPoint(level.price, float(depth), None)
        for level, depth in zip(bids, bid_cum)
    ]
    bid_points.reverse()

    ask_points = [
        DepthPoint(level.price, None, float(depth))
        for level, depth in zip(asks, ask_cum)
    ]

    # Stable sort: already ascending for a well-formed book, reorders a crossed one
    return sorted(bid_points + ask_points, key=lambda point: point.price)


def book_summary(book: OrderBook) -> BookSummary:
    """Bundle top-of-book metrics for the UI."""
    return BookSummary(
        symbol=book.symbol,
        best_bid=best_bid(book),
        best_ask=best_ask(book),
        mid_price=mid_price(book),
        spread=spread(book),
        spread_bps=spread_bps(book),
        imbalance_pct=imbalance(book.bids, book.asks),
        bid_volume=total_size(book.bids),
        ask_volume=total_size(book.asks),
        timestamp_ms=book.timestamp_ms,
    )
