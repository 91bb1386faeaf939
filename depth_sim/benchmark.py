#!/usr/bin/env python3
"""
Micro-benchmark for depth_sim performance.

Tests:
1. Impact simulation throughput on deep books
2. Depth series generation speed
3. Feed message parsing throughput
4. Full refresh (summary + depth + preview) speed

Usage:
    python -m depth_sim.benchmark
"""

from __future__ import annotations

import random
import time
from statistics import mean, stdev

import orjson

from .datafeed.orderbook import OrderBookStore
from .engine.book_metrics import book_summary, depth_series
from .engine.impact import fixed_jitter, simulate_order_impact
from .types import OrderBook, PriceLevel, make_orderbook


def generate_deep_book(base_price: float = 50000.0, levels: int = 1000) -> OrderBook:
    """Generate a mock book with `levels` one-tick-apart levels per side."""
    tick_size = 0.1

    bids = []
    asks = []

    for i in range(levels):
        bids.append(PriceLevel(base_price - (i + 1) * tick_size, random.uniform(0.01, 5)))
        asks.append(PriceLevel(base_price + (i + 1) * tick_size, random.uniform(0.01, 5)))

    return make_orderbook(bids, asks, "BTC-USDT", int(time.time() * 1000))


def generate_okx_message(book: OrderBook) -> bytes:
    """Encode a book in OKX's wire shape (string pairs)."""
    return orjson.dumps({
        "arg": {"channel": "books5", "instId": book.symbol},
        "data": [{
            "bids": [[str(l.price), str(l.size), "0", "1"] for l in book.bids],
            "asks": [[str(l.price), str(l.size), "0", "1"] for l in book.asks],
        }],
    })


def benchmark_simulation(iterations: int = 10000) -> None:
    """Benchmark the liquidity walk."""
    print("\n=== Impact Simulation Benchmark ===")

    book = generate_deep_book()
    jitter = fixed_jitter(0.0)
    quantities = [random.uniform(1, 500) for _ in range(iterations)]

    start = time.perf_counter()
    for qty in quantities:
        simulate_order_impact("buy", qty, None, book.asks, jitter)
    elapsed = time.perf_counter() - start

    rate = iterations / elapsed
    print(f"  Simulations: {iterations:,}")
    print(f"  Time: {elapsed*1000:.1f}ms")
    print(f"  Rate: {rate:,.0f} simulations/sec")
    print(f"  Per simulation: {elapsed/iterations*1_000_000:.1f}µs")


def benchmark_depth_series(iterations: int = 1000) -> None:
    """Benchmark depth chart series generation."""
    print("\n=== Depth Series Benchmark ===")

    book = generate_deep_book()

    # Warm up
    for _ in range(10):
        depth_series(book, 20)

    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        depth_series(book, 20)
        times.append(time.perf_counter() - start)

    avg_time = mean(times) * 1000
    std_time = stdev(times) * 1000

    print(f"  Iterations: {iterations}")
    print(f"  Avg time: {avg_time:.3f}ms")
    print(f"  Std dev: {std_time:.3f}ms")
    print(f"  Rate: {1000/avg_time:,.0f} calls/sec")


def benchmark_feed_parsing(iterations: int = 1000) -> None:
    """Benchmark wire message -> store throughput."""
    print("\n=== Feed Parsing Benchmark ===")

    store = OrderBookStore()
    messages = [generate_okx_message(generate_deep_book(levels=400)) for _ in range(20)]

    start = time.perf_counter()
    for i in range(iterations):
        store.apply_message("okx", "BTC-USDT", messages[i % len(messages)])
    elapsed = time.perf_counter() - start

    rate = iterations / elapsed
    print(f"  Messages parsed: {iterations:,}")
    print(f"  Time: {elapsed*1000:.1f}ms")
    print(f"  Rate: {rate:,.0f} messages/sec")


def benchmark_full_refresh(iterations: int = 500) -> None:
    """Benchmark everything the UI recomputes per snapshot."""
    print("\n=== Full Refresh Benchmark ===")

    book = generate_deep_book()
    jitter = fixed_jitter(0.0)

    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        book_summary(book)
        depth_series(book, 20)
        simulate_order_impact("sell", 25.0, None, book.bids, jitter)
        times.append(time.perf_counter() - start)

    avg_time = mean(times) * 1000
    std_time = stdev(times) * 1000

    print(f"  Iterations: {iterations}")
    print(f"  Avg time: {avg_time:.3f}ms")
    print(f"  Std dev: {std_time:.3f}ms")
    print(f"  Max FPS possible: {1000/avg_time:,.0f}")


def main() -> None:
    """Run all benchmarks."""
    print("=" * 60)
    print("depth_sim Performance Benchmark")
    print("=" * 60)

    benchmark_simulation()
    benchmark_depth_series()
    benchmark_feed_parsing()
    benchmark_full_refresh()

    print("\n" + "=" * 60)
    print("Benchmark complete.")
    print("=" * 60)


if __name__ == "__main__":
    main()
