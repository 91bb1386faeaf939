"""Tests for formatting, Rich builders, config and the CLI."""

import asyncio

import pytest
from rich.console import Console

from depth_sim.config import SimConfig
from depth_sim.engine.book_metrics import depth_series
from depth_sim.main import build_parser, run_once
from depth_sim.types import (
    PriceLevel,
    SimulatedOrder,
    SimulationRecord,
    SimulationResult,
    make_orderbook,
)
from depth_sim.ui.dom_view import (
    build_book_table,
    build_depth_table,
    build_history_table,
    build_preview,
    build_status_text,
    fill_style,
    impact_style,
    imbalance_style,
    make_bar,
    slippage_style,
    BID_COLOR,
    ASK_COLOR,
)
from depth_sim.ui.format import (
    format_currency,
    format_duration_ms,
    format_pct,
    format_price,
    format_size,
)

BOOK = make_orderbook(
    bids=[PriceLevel(99.5, 1.0), PriceLevel(99.0, 2.0)],
    asks=[PriceLevel(100.5, 1.5), PriceLevel(101.0, 0.5)],
    symbol="BTC-USDT",
    timestamp_ms=1,
)


def _render(renderable) -> str:
    console = Console(record=True, width=140, color_system=None)
    console.print(renderable)
    return console.export_text()


def test_format_helpers() -> None:
    assert format_price(1234.5) == "1234.50"
    assert format_price(1.23456, 4) == "1.2346"
    assert format_size(2_500_000) == "2.50M"
    assert format_size(1500) == "1.50K"
    assert format_size(0.5) == "0.5000"
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-12.3) == "-$12.30"
    assert format_pct(12.346) == "12.35%"
    assert format_pct(83.333, 1) == "83.3%"
    assert format_duration_ms(2500) == "2.5s"


def test_make_bar_width() -> None:
    assert make_bar(5.0, 10.0, 10, BID_COLOR).plain == "█" * 5 + " " * 5
    assert make_bar(20.0, 10.0, 4, BID_COLOR).plain == "█" * 4
    assert make_bar(1.0, 0.0, 3, BID_COLOR).plain == "   "


def test_imbalance_style_thresholds() -> None:
    assert imbalance_style(60.0) == BID_COLOR
    assert imbalance_style(40.0) == ASK_COLOR
    assert imbalance_style(50.0) not in (BID_COLOR, ASK_COLOR)


def test_book_table_lists_asks_above_bids() -> None:
    text = _render(build_book_table(BOOK, levels=15))

    assert "Spread 1.00" in text
    # Asks descend toward the spread, then bids descend away from it
    positions = [text.index(p) for p in ("101.00", "100.50", "Spread", "99.50", "99.00")]
    assert positions == sorted(positions)


def test_status_text() -> None:
    assert build_status_text(None, "okx", connected=True).plain == "Connecting..."
    assert build_status_text(None, "okx", connected=False).plain == "Disconnected"

    live = build_status_text(BOOK, "okx", connected=True, stale=False).plain
    assert "OKX BTC-USDT" in live
    assert "LIVE" in live
    assert "60.0% Bid" in live

    assert "STALE" in build_status_text(BOOK, "okx", connected=True, stale=True).plain
    assert "DISCONNECTED" in build_status_text(BOOK, "okx", connected=False).plain


def test_depth_and_history_tables() -> None:
    depth_text = _render(build_depth_table(depth_series(BOOK, 20)))
    assert "3.0000" in depth_text  # cumulative bid depth at 99.00
    assert "2.0000" in depth_text  # cumulative ask depth at 101.00

    record = SimulationRecord(
        id="sim-1-abcdefghi",
        exchange="okx",
        symbol="BTC-USDT",
        order=SimulatedOrder("buy", 2.0, "limit", 100.0),
        result=SimulationResult(100.0, 0.5, 40.0, 2000.0),
        timestamp_ms=1,
    )
    history_text = _render(build_history_table([record]))
    assert "BUY limit 2.0000 @ 100.00" in history_text
    assert "100.0%" in history_text
    assert "40.00%" in history_text
    assert "2.0s" in history_text


def test_config_from_args() -> None:
    """Verify CLI flags map onto config and unset flags keep defaults."""
    args = build_parser().parse_args(["bybit", "ETH-USDT", "--levels", "5", "--history-limit", "3"])
    config = SimConfig.from_args(args)

    assert args.exchange == "bybit"
    assert args.symbol == "ETH-USDT"
    assert config.table_levels == 5
    assert config.history_limit == 3
    assert config.feed_interval_ms == SimConfig().feed_interval_ms
    assert config.max_jitter_ms == 5000.0


def test_parser_rejects_unknown_exchange() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["binance"])


def test_run_once_prints_summary(capsys: pytest.CaptureFixture[str]) -> None:
    """Verify a one-shot run simulates the order and prints the history."""
    config = SimConfig(feed_interval_ms=10)
    order = SimulatedOrder("buy", 3.0)

    code = asyncio.run(run_once("okx", "BTC-USDT", order, config, duration=0.05, seed=1))

    assert code == 0
    out = capsys.readouterr().out
    assert "OKX BTC-USDT" in out
    assert "BUY" in out
    assert "LIVE" in out
    assert "Preview: BUY market 3.0000" in out


def test_run_once_reports_stale_feed(capsys: pytest.CaptureFixture[str]) -> None:
    """Verify the printed status reflects the store's staleness, not a fixed LIVE."""
    config = SimConfig(feed_interval_ms=1000, stale_after_ms=20)

    code = asyncio.run(run_once("okx", "BTC-USDT", SimulatedOrder("buy", 1.0), config, duration=0.1, seed=1))

    assert code == 0
    out = capsys.readouterr().out
    assert "STALE" in out
    assert "LIVE" not in out


@pytest.mark.parametrize("flag", ["--history-limit", "--feed-interval-ms"])
@pytest.mark.parametrize("value", ["0", "-3"])
def test_parser_rejects_non_positive_counts(flag: str, value: str) -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["okx", flag, value])


def test_preview_badge_thresholds() -> None:
    """Verify fill is good from 95%, slippage warns above 1% and impact above 5%."""
    assert fill_style(95.0) == BID_COLOR
    assert fill_style(94.9) != BID_COLOR

    assert slippage_style(1.0) != ASK_COLOR
    assert slippage_style(1.01) == ASK_COLOR

    assert impact_style(5.0) != ASK_COLOR
    assert impact_style(5.01) == ASK_COLOR


def test_preview_warns_on_high_impact() -> None:
    order = SimulatedOrder("sell", 10.0)

    calm = _render(build_preview(order, SimulationResult(100.0, 0.2, 5.0, 1000.0)))
    assert "Preview: SELL market 10.0000" in calm
    assert "High Market Impact Warning" not in calm

    heavy = _render(build_preview(order, SimulationResult(60.0, 2.0, 250.0, 3000.0)))
    assert "High Market Impact Warning" in heavy
    assert "250.00%" in heavy

    assert "No orderbook data" in _render(build_preview(order, None))
