"""
Simulation session: the explicit application state.

Ties together the selected venue, the snapshot store and the archive of past
simulations. Passed by reference to whatever needs it (CLI, TUI, tests).

Delayed orders are fire-and-forget timers on the running event loop. They
re-evaluate against whatever snapshot is current when they fire, not the one
that was current when they were scheduled. The pair is fixed at schedule time.
"""

from __future__ import annotations

import asyncio
import random
import string
import time
from collections import deque

import structlog

from ..config import DEFAULT_HISTORY_LIMIT
from ..datafeed.exchanges import get_exchange
from ..datafeed.orderbook import OrderBookStore
from ..types import OrderBook, SimulatedOrder, SimulationRecord, SimulationResult
from .impact import JitterSource, simulate_order, validate_order

logger = structlog.get_logger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


class NoOrderBookError(LookupError):
    """Raised when a simulation is requested before any snapshot has arrived."""


def new_simulation_id(timestamp_ms: int, rng: random.Random | None = None) -> str:
    """Id of the form sim-<epoch ms>-<9 base36 chars>."""
    r = rng or random
    suffix = "".join(r.choice(_ID_ALPHABET) for _ in range(9))
    return f"sim-{timestamp_ms}-{suffix}"


class SimulationSession:
    """
    Selected venue + simulation history.

    Thread-safety: NOT thread-safe. Designed for single-threaded async use.
    """

    def __init__(
        self,
        store: OrderBookStore,
        exchange: str = "okx",
        symbol: str = "BTC-USDT",
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        jitter: JitterSource | None = None,
    ) -> None:
        if history_limit <= 0:
            raise ValueError(f"history_limit must be > 0, got {history_limit}")

        get_exchange(exchange)
        self.store = store
        self.exchange = exchange
        self.symbol = symbol
        self.jitter = jitter

        # Newest first; deque drops the oldest on overflow
        self._history: deque[SimulationRecord] = deque(maxlen=history_limit)
        self._pending: set[asyncio.TimerHandle] = set()

    def select(self, exchange: str | None = None, symbol: str | None = None) -> None:
        """Switch the venue and/or symbol the session simulates against."""
        if exchange is not None:
            get_exchange(exchange)
            self.exchange = exchange
        if symbol is not None:
            self.symbol = symbol

    def current_book(self) -> OrderBook | None:
        return self.store.get(self.exchange, self.symbol)

    def preview(self, order: SimulatedOrder) -> SimulationResult | None:
        """Live estimate for the order form. Not archived; None without a book."""
        book = self.current_book()
        if book is None:
            return None
        return simulate_order(book, order, self.jitter)

    def submit(
        self,
        order: SimulatedOrder,
        exchange: str | None = None,
        symbol: str | None = None,
    ) -> SimulationRecord:
        """
        Simulate against the current snapshot and archive the result now.

        `exchange`/`symbol` default to the selected pair.
        """
        exchange = exchange or self.exchange
        symbol = symbol or self.symbol

        # Single read: bids and asks come from the same snapshot
        book = self.store.get(exchange, symbol)
        if book is None:
            raise NoOrderBookError(f"no order book for {exchange} {symbol}")

        result = simulate_order(book, order, self.jitter)
        timestamp_ms = int(time.time() * 1000)
        record = SimulationRecord(
            id=new_simulation_id(timestamp_ms),
            exchange=exchange,
            symbol=symbol,
            order=order,
            result=result,
            timestamp_ms=timestamp_ms,
        )
        self._history.appendleft(record)
        return record

    def schedule(self, order: SimulatedOrder) -> asyncio.TimerHandle:
        """
        Run `submit(order)` after `order.delay_ms` on the running loop.

        The order is validated now so bad input fails at the call site. It is
        pinned to the pair selected now; a later `select()` does not move it.
        Must be called from within a running event loop.
        """
        validate_order(order)
        loop = asyncio.get_running_loop()
        exchange, symbol = self.exchange, self.symbol

        handle: asyncio.TimerHandle | None = None

        def fire() -> None:
            self._pending.discard(handle)
            self._fire(order, exchange, symbol)

        handle = loop.call_later(order.delay_ms / 1000, fire)
        self._pending.add(handle)
        logger.info(
            "simulation_scheduled",
            exchange=exchange,
            symbol=symbol,
            side=order.side,
            quantity=order.quantity,
            delay_ms=order.delay_ms,
        )
        return handle

    def _fire(self, order: SimulatedOrder, exchange: str, symbol: str) -> None:
        try:
            record = self.submit(order, exchange, symbol)
        except NoOrderBookError as e:
            logger.warning("delayed_simulation_skipped", reason=str(e))
            return
        logger.info(
            "delayed_simulation_executed",
            sim_id=record.id,
            fill_pct=record.result.estimated_fill_pct,
            slippage_pct=record.result.slippage_pct,
        )

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def cancel_pending(self) -> int:
        """Cancel all delayed simulations that have not fired. Returns how many."""
        count = len(self._pending)
        for handle in self._pending:
            handle.cancel()
        self._pending.clear()
        return count

    @property
    def history(self) -> list[SimulationRecord]:
        """Archived simulations, newest first."""
        return list(self._history)

    def remove(self, sim_id: str) -> bool:
        """Drop one archived simulation. Returns False if the id is unknown."""
        for record in self._history:
            if record.id == sim_id:
                self._history.remove(record)
                return True
        return False

    def clear(self) -> None:
        self._history.clear()
