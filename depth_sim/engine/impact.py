"""
Order impact simulator.

Walks a hypothetical order through one side of the book and estimates fill
rate, slippage, market impact and time to fill.

Model:
1. Greedy liquidity walk: consume each level best-price-first until the order
   is filled or the side is exhausted (a market order sweeping the book)
2. The limit price is only the slippage reference; it never stops the walk
3. Time to fill is a heuristic: 1s per consumed level plus random jitter

The simulator is stateless. The only impure input is the jitter source, which
is injected so results can be made reproducible.
"""

from __future__ import annotations

import math
import random
from typing import Callable, Sequence

from ..types import (
    ORDER_TYPES,
    SIDES,
    OrderBook,
    PriceLevel,
    SimulatedOrder,
    SimulationResult,
)

# Zero-argument callable returning extra milliseconds to add to time-to-fill
JitterSource = Callable[[], float]

MS_PER_LEVEL = 1000.0
MAX_JITTER_MS = 5000.0

EMPTY_RESULT = SimulationResult(0.0, 0.0, 0.0, 0.0)


class OrderValidationError(ValueError):
    """Raised when an order or its levels cannot be simulated."""


def uniform_jitter(max_ms: float = MAX_JITTER_MS, rng: random.Random | None = None) -> JitterSource:
    """Jitter source drawing uniformly from [0, max_ms)."""
    source = rng or random.Random()

    def jitter() -> float:
        return source.random() * max_ms

    return jitter


def fixed_jitter(value: float = 0.0) -> JitterSource:
    """Jitter source that always returns `value`. Used to make results deterministic."""
    return lambda: value


_default_jitter = uniform_jitter()


def _is_valid_number(value: float) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_levels(levels: Sequence[PriceLevel]) -> None:
    """Reject levels with negative or non-finite price/size."""
    for i, level in enumerate(levels):
        if not _is_valid_number(level.price) or level.price < 0:
            raise OrderValidationError(f"level {i}: invalid price {level.price!r}")
        if not _is_valid_number(level.size) or level.size < 0:
            raise OrderValidationError(f"level {i}: invalid size {level.size!r}")


def validate_terms(side: str, quantity: float, limit_price: float | None) -> None:
    """Checks shared by whole orders and raw simulate calls."""
    if side not in SIDES:
        raise OrderValidationError(f"side must be one of {SIDES}, got {side!r}")
    if not _is_valid_number(quantity) or quantity <= 0:
        raise OrderValidationError(f"quantity must be > 0, got {quantity!r}")
    if limit_price is not None and (not _is_valid_number(limit_price) or limit_price <= 0):
        raise OrderValidationError(f"limit_price must be > 0, got {limit_price!r}")


def validate_order(order: SimulatedOrder) -> None:
    """Reject structurally invalid orders before the walk."""
    validate_terms(order.side, order.quantity, order.limit_price)
    if order.order_type not in ORDER_TYPES:
        raise OrderValidationError(
            f"order_type must be one of {ORDER_TYPES}, got {order.order_type!r}"
        )
    if isinstance(order.delay_ms, bool) or not isinstance(order.delay_ms, int) or order.delay_ms < 0:
        raise OrderValidationError(f"delay_ms must be an integer >= 0, got {order.delay_ms!r}")


def opposing_levels(book: OrderBook, side: str) -> tuple[PriceLevel, ...]:
    """Levels a `side` order consumes: buys lift asks, sells hit bids."""
    if side == "buy":
        return book.asks
    if side == "sell":
        return book.bids
    raise OrderValidationError(f"side must be one of {SIDES}, got {side!r}")


def simulate_order_impact(
    side: str,
    quantity: float,
    limit_price: float | None,
    levels: Sequence[PriceLevel],
    jitter: JitterSource | None = None,
) -> SimulationResult:
    """
    Estimate execution of `quantity` against `levels`.

    Args:
        side: "buy" or "sell"
        quantity: Order size, must be > 0
        limit_price: Slippage reference; best level price is used when None
        levels: Opposing side of the book, best price first
        jitter: Source of extra milliseconds for time-to-fill

    Returns:
        SimulationResult. All zeros when `levels` is empty.

    Raises:
        OrderValidationError: invalid side, quantity, limit price or levels
    """
    validate_terms(side, quantity, limit_price)
    validate_levels(levels)

    if not levels:
        return EMPTY_RESULT

    remaining = quantity
    total_cost = 0.0
    levels_consumed = 0

    for level in levels:
        if remaining <= 0:
            break
        fill_qty = min(remaining, level.size)
        total_cost += fill_qty * level.price
        remaining -= fill_qty
        levels_consumed += 1

    filled = quantity - remaining
    avg_price = total_cost / filled if filled > 0 else 0.0
    fill_pct = filled / quantity * 100

    reference = limit_price if limit_price is not None else levels[0].price
    slippage_pct = abs(avg_price - reference) / reference * 100 if reference > 0 else 0.0

    # Zero visible depth: impact is reported as 0 rather than inf/NaN
    depth = sum(level.size for level in levels)
    impact_pct = quantity / depth * 100 if depth > 0 else 0.0

    source = jitter or _default_jitter
    time_to_fill_ms = levels_consumed * MS_PER_LEVEL + source()

    return SimulationResult(
        estimated_fill_pct=fill_pct,
        slippage_pct=slippage_pct,
        market_impact_pct=impact_pct,
        estimated_time_to_fill_ms=time_to_fill_ms,
        filled_qty=filled,
        avg_fill_price=avg_price,
        levels_consumed=levels_consumed,
    )


def simulate_order(
    book: OrderBook,
    order: SimulatedOrder,
    jitter: JitterSource | None = None,
) -> SimulationResult:
    """Validate `order` and simulate it against the opposing side of `book`."""
    validate_order(order)
    levels = opposing_levels(book, order.side)
    return simulate_order_impact(order.side, order.quantity, order.limit_price, levels, jitter)
