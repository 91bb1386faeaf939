"""
Data types for depth_sim.

Performance notes:
- Using NamedTuple for immutable, memory-efficient structures
- Book sides are tuples so a snapshot can be shared across readers without copying
"""

from __future__ import annotations

from typing import Literal, NamedTuple

Side = Literal["buy", "sell"]
OrderType = Literal["market", "limit"]

SIDES: tuple[str, ...] = ("buy", "sell")
ORDER_TYPES: tuple[str, ...] = ("market", "limit")


class PriceLevel(NamedTuple):
    """Single price level from the order book."""
    price: float
    size: float


class OrderBook(NamedTuple):
    """
    Complete order book snapshot.

    Replaced wholesale on every feed update, never mutated in place.
    """
    bids: tuple[PriceLevel, ...]   # Sorted by price descending (best bid first)
    asks: tuple[PriceLevel, ...]   # Sorted by price ascending (best ask first)
    symbol: str
    timestamp_ms: int


class SimulatedOrder(NamedTuple):
    """Hypothetical order submitted by the user."""
    side: Side
    quantity: float
    order_type: OrderType = "market"
    limit_price: float | None = None
    delay_ms: int = 0


class SimulationResult(NamedTuple):
    """
    Outcome of walking a hypothetical order through one side of the book.

    The first four fields are what the UI shows; the rest describe the walk.
    """
    estimated_fill_pct: float          # 0..100
    slippage_pct: float                # >= 0
    market_impact_pct: float           # >= 0
    estimated_time_to_fill_ms: float   # >= 0
    filled_qty: float = 0.0
    avg_fill_price: float = 0.0
    levels_consumed: int = 0


class SimulationRecord(NamedTuple):
    """Archived simulation paired with the order that produced it."""
    id: str
    exchange: str
    symbol: str
    order: SimulatedOrder
    result: SimulationResult
    timestamp_ms: int


class DepthPoint(NamedTuple):
    """One row of the cumulative depth chart. Exactly one depth field is set."""
    price: float
    bid_depth: float | None
    ask_depth: float | None


class BookSummary(NamedTuple):
    """Derived top-of-book metrics for the status bar."""
    symbol: str
    best_bid: float
    best_ask: float
    mid_price: float
    spread: float
    spread_bps: float
    imbalance_pct: float
    bid_volume: float
    ask_volume: float
    timestamp_ms: int


def make_orderbook(
    bids: list[PriceLevel] | tuple[PriceLevel, ...],
    asks: list[PriceLevel] | tuple[PriceLevel, ...],
    symbol: str,
    timestamp_ms: int,
) -> OrderBook:
    """Build a snapshot with each side sorted best-price-first."""
    return OrderBook(
        bids=tuple(sorted(bids, key=lambda level: level.price, reverse=True)),
        asks=tuple(sorted(asks, key=lambda level: level.price)),
        symbol=symbol,
        timestamp_ms=timestamp_ms,
    )
