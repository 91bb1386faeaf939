#!/usr/bin/env python3
"""
depth_sim - Order book visualization and order impact simulation.

Usage:
    python -m depth_sim.main okx BTC-USDT --side buy --quantity 5
    python -m depth_sim.main bybit ETH-USDT --type limit --limit-price 51000 --delay-ms 5000
    python -m depth_sim.main deribit BTC-USD --tui

Without --tui the mock feed runs for --duration seconds, the order is simulated
(after its delay) and a one-shot summary is printed.

TUI controls:
    q - Quit
    s - Simulate the configured order
    c - Clear simulation history
    r - Reset update counters
"""

from __future__ import annotations

import argparse
import asyncio
import random
import sys
from typing import TYPE_CHECKING

from .config import DEFAULT_DEPTH_LEVELS, DEFAULT_TABLE_LEVELS, SimConfig
from .datafeed.exchanges import EXCHANGES, ORDER_DELAYS, POPULAR_SYMBOLS
from .types import SimulatedOrder

if TYPE_CHECKING:
    from .datafeed.mock_feed import MockFeed
    from .engine.session import SimulationSession


def build_session(
    exchange: str,
    symbol: str,
    config: SimConfig,
    seed: int | None = None,
) -> tuple[SimulationSession, MockFeed]:
    """Wire store, session and mock feed for one (exchange, symbol)."""

    # Import here to avoid slow startup for --help
    from .datafeed.mock_feed import MockFeed
    from .datafeed.orderbook import OrderBookStore
    from .engine.impact import uniform_jitter
    from .engine.session import SimulationSession

    rng = random.Random(seed)

    store = OrderBookStore(stale_after_ms=config.stale_after_ms)
    session = SimulationSession(
        store,
        exchange=exchange,
        symbol=symbol,
        history_limit=config.history_limit,
        jitter=uniform_jitter(config.max_jitter_ms, rng),
    )
    feed = MockFeed(
        store,
        exchange,
        symbol,
        interval_ms=config.feed_interval_ms,
        levels=config.mock_levels,
        rng=rng,
    )
    return session, feed


async def run_once(
    exchange: str,
    symbol: str,
    order: SimulatedOrder,
    config: SimConfig,
    duration: float,
    seed: int | None = None,
) -> int:
    """Run the feed, simulate `order`, print a summary. Returns an exit code."""
    from rich.console import Console

    from .engine.book_metrics import depth_series
    from .engine.session import NoOrderBookError
    from .ui.dom_view import (
        build_book_table,
        build_depth_table,
        build_history_table,
        build_preview,
        build_session_status,
    )

    console = Console()
    session, feed = build_session(exchange, symbol, config, seed)
    feed_task = asyncio.create_task(feed.run())
    try:
        # First snapshot is published before the feed's first sleep
        await asyncio.sleep(0)

        try:
            if order.delay_ms > 0:
                session.schedule(order)
                console.print(f"Order simulation scheduled for {order.delay_ms / 1000:g}s")
            else:
                session.submit(order)
        except NoOrderBookError as e:
            console.print(f"[red]{e}[/red]")
            return 1

        await asyncio.sleep(max(duration, order.delay_ms / 1000 + 0.05))
        # Feed health as seen while running; stopping the feed disconnects it
        status = build_session_status(session)
    finally:
        feed.stop()
        session.cancel_pending()
        feed_task.cancel()
        try:
            await feed_task
        except asyncio.CancelledError:
            pass

    book = session.current_book()
    console.print(status)
    if book is not None:
        console.print(build_book_table(book, config.table_levels))
        console.print(build_depth_table(depth_series(book, config.depth_levels)))
        console.print(build_preview(order, session.preview(order)))
    console.print(build_history_table(session.history))
    return 0


async def run_tui(
    exchange: str,
    symbol: str,
    order: SimulatedOrder,
    config: SimConfig,
    seed: int | None = None,
) -> None:
    """Run the live TUI until the user quits."""
    from .ui.dom_view import run_ui

    session, feed = build_session(exchange, symbol, config, seed)
    await run_ui(session, feed, order, config)


def positive_int(value: str) -> int:
    """argparse type for counts and intervals that must be >= 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    delays = ", ".join(f"{ms} ({label})" for label, ms in ORDER_DELAYS)

    parser = argparse.ArgumentParser(
        description="depth_sim - Order book depth and order impact simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Popular symbols: {", ".join(POPULAR_SYMBOLS)}
Delay presets (ms): {delays}

Examples:
    python -m depth_sim.main okx BTC-USDT --quantity 5
    python -m depth_sim.main bybit ETH-USDT --side sell --quantity 20 --delay-ms 5000
        """
    )

    parser.add_argument(
        "exchange",
        nargs="?",
        default="okx",
        choices=sorted(EXCHANGES),
        help="Exchange (default: okx)"
    )

    parser.add_argument(
        "symbol",
        nargs="?",
        default="BTC-USDT",
        help="Trading symbol (default: BTC-USDT)"
    )

    parser.add_argument("--side", choices=["buy", "sell"], default="buy", help="Order side (default: buy)")
    parser.add_argument(
        "--type",
        dest="order_type",
        choices=["market", "limit"],
        default="market",
        help="Order type (default: market)"
    )
    parser.add_argument("--quantity", type=float, default=1.0, help="Order quantity (default: 1)")
    parser.add_argument("--limit-price", type=float, default=None, help="Limit price (slippage reference)")
    parser.add_argument("--delay-ms", type=int, default=0, help="Simulation delay in ms (default: 0)")

    parser.add_argument(
        "--levels",
        dest="table_levels",
        type=int,
        default=DEFAULT_TABLE_LEVELS,
        help=f"Book levels shown per side (default: {DEFAULT_TABLE_LEVELS})"
    )
    parser.add_argument(
        "--depth-levels",
        type=int,
        default=DEFAULT_DEPTH_LEVELS,
        help=f"Depth chart levels per side (default: {DEFAULT_DEPTH_LEVELS})"
    )
    parser.add_argument("--history-limit", type=positive_int, default=None, help="Simulations kept in history (default: 10)")
    parser.add_argument("--feed-interval-ms", type=positive_int, default=None, help="Mock feed tick in ms (default: 100)")
    parser.add_argument("--duration", type=float, default=1.0, help="Seconds to run without --tui (default: 1)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for the mock feed and jitter")
    parser.add_argument("--tui", action="store_true", help="Run the interactive TUI")
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")

    return parser


def cli(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    from .engine.impact import OrderValidationError, validate_order
    from .log import setup_logging

    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    config = SimConfig.from_args(args)

    order = SimulatedOrder(
        side=args.side,
        quantity=args.quantity,
        order_type=args.order_type,
        limit_price=args.limit_price,
        delay_ms=args.delay_ms,
    )
    try:
        validate_order(order)
    except OrderValidationError as e:
        parser.error(str(e))

    try:
        if args.tui:
            asyncio.run(run_tui(args.exchange, args.symbol, order, config, args.seed))
        else:
            code = asyncio.run(run_once(args.exchange, args.symbol, order, config, args.duration, args.seed))
            sys.exit(code)
    except KeyboardInterrupt:
        print("\nShutdown requested.")
        sys.exit(0)


if __name__ == "__main__":
    cli()
