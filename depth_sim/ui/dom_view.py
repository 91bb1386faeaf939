"""
Order book + simulation TUI using Textual.

Displays:
- Top: Status bar with best bid/ask, spread, imbalance and feed health
- Left: Book ladder (asks on top, bids below) with size bars
- Middle: Cumulative depth chart as horizontal bars
- Right: Live preview of the configured order, then simulation history

The table builders are plain functions returning Rich renderables so they can
be used without a running app (CLI summary, tests).

Performance notes:
- Refreshes at ~10 FPS to avoid CPU waste
- Widgets only hold the latest snapshot reference
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from rich.console import Group, RenderableType
from rich.style import Style
from rich.table import Table
from rich.text import Text

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Static

from ..engine.book_metrics import book_summary, depth_series
from ..engine.session import NoOrderBookError
from .format import format_duration_ms, format_pct, format_price, format_size

if TYPE_CHECKING:
    from ..config import SimConfig
    from ..datafeed.mock_feed import MockFeed
    from ..engine.session import SimulationSession
    from ..types import DepthPoint, OrderBook, SimulatedOrder, SimulationRecord, SimulationResult

# Color scheme (dark theme)
BID_COLOR = "#22c55e"      # Green
ASK_COLOR = "#ef4444"      # Red
HEADER_COLOR = "#94a3b8"
BAR_BG = "#1e293b"

BAR_WIDTH = 12

# Imbalance badge thresholds (percent bid volume)
BID_HEAVY = 55.0
ASK_HEAVY = 45.0

# Preview badges: fill is good at or above, slippage and impact warn above
GOOD_FILL_PCT = 95.0
HIGH_SLIPPAGE_PCT = 1.0
HIGH_IMPACT_PCT = 5.0


def make_bar(value: float, max_value: float, width: int, color: str) -> Text:
    """Create a horizontal bar using block characters."""
    if max_value <= 0:
        return Text(" " * width)

    fill_ratio = min(1.0, value / max_value)
    fill_width = int(fill_ratio * width)

    bar = "█" * fill_width + " " * (width - fill_width)
    return Text(bar, style=Style(color=color, bgcolor=BAR_BG))


def build_book_table(book: OrderBook, levels: int = 15) -> Table:
    """Book ladder: asks descending on top, spread row, then bids descending."""
    bids = book.bids[:levels]
    asks = book.asks[:levels]

    max_size = max((level.size for level in bids + asks), default=0.0)

    table = Table(
        show_header=True,
        header_style=HEADER_COLOR,
        box=None,
        padding=(0, 1),
        collapse_padding=True,
    )
    table.add_column("Price", justify="right", width=12)
    table.add_column("Size", justify="right", width=10)
    table.add_column("Total", justify="right", width=10)
    table.add_column("", justify="left", width=BAR_WIDTH, no_wrap=True)

    # Totals accumulate from the best price outward
    ask_totals = []
    running = 0.0
    for level in asks:
        running += level.size
        ask_totals.append(running)

    for level, total in reversed(list(zip(asks, ask_totals))):
        table.add_row(
            Text(format_price(level.price), style=ASK_COLOR),
            Text(format_size(level.size)),
            Text(format_size(total), style="dim"),
            make_bar(level.size, max_size, BAR_WIDTH, ASK_COLOR),
        )

    summary = book_summary(book)
    table.add_row(
        Text(f"Spread {format_price(summary.spread)}", style="yellow"),
        Text(""),
        Text(""),
        Text(""),
    )

    running = 0.0
    for level in bids:
        running += level.size
        table.add_row(
            Text(format_price(level.price), style=BID_COLOR),
            Text(format_size(level.size)),
            Text(format_size(running), style="dim"),
            make_bar(level.size, max_size, BAR_WIDTH, BID_COLOR),
        )

    return table


def imbalance_style(imbalance_pct: float) -> str:
    if imbalance_pct > BID_HEAVY:
        return BID_COLOR
    if imbalance_pct < ASK_HEAVY:
        return ASK_COLOR
    return HEADER_COLOR


def fill_style(fill_pct: float) -> str:
    return BID_COLOR if fill_pct >= GOOD_FILL_PCT else HEADER_COLOR


def slippage_style(slippage_pct: float) -> str:
    return ASK_COLOR if slippage_pct > HIGH_SLIPPAGE_PCT else HEADER_COLOR


def impact_style(impact_pct: float) -> str:
    return ASK_COLOR if impact_pct > HIGH_IMPACT_PCT else HEADER_COLOR


def build_preview(order: SimulatedOrder, result: SimulationResult | None) -> RenderableType:
    """Live estimate for the configured order, with high-impact warning."""
    if result is None:
        return Text("No orderbook data available", style="dim")

    color = BID_COLOR if order.side == "buy" else ASK_COLOR
    title = f"{order.side.upper()} {order.order_type} {format_size(order.quantity)}"
    if order.limit_price is not None:
        title += f" @ {format_price(order.limit_price)}"

    table = Table(show_header=False, box=None, padding=(0, 1), collapse_padding=True)
    table.add_column("", style="dim")
    table.add_column("", justify="right")
    table.add_row(
        "Est. Fill",
        Text(format_pct(result.estimated_fill_pct, 1), style=fill_style(result.estimated_fill_pct)),
    )
    table.add_row("Slippage", Text(format_pct(result.slippage_pct), style=slippage_style(result.slippage_pct)))
    table.add_row(
        "Market Impact",
        Text(format_pct(result.market_impact_pct), style=impact_style(result.market_impact_pct)),
    )
    table.add_row("Est. Time", Text(format_duration_ms(result.estimated_time_to_fill_ms)))

    parts: list[RenderableType] = [Text(f"Preview: {title}", style=f"bold {color}"), table]
    if result.market_impact_pct > HIGH_IMPACT_PCT:
        parts.append(Text("High Market Impact Warning", style=f"bold {ASK_COLOR}"))
        parts.append(
            Text("This order may significantly move the market price and cause high slippage.", style="dim")
        )
    return Group(*parts)


def build_session_status(session: SimulationSession) -> Text:
    """Status line for the session's selected pair, read from its store."""
    store = session.store
    return build_status_text(
        session.current_book(),
        session.exchange,
        connected=store.is_connected,
        stale=store.is_stale(),
        updates_per_sec=store.updates_per_sec(),
    )


def build_status_text(
    book: OrderBook | None,
    exchange: str,
    connected: bool,
    stale: bool = False,
    updates_per_sec: float = 0.0,
) -> Text:
    """One-line status: venue, top of book, spread, imbalance, feed health."""
    if book is None:
        return Text("Connecting..." if connected else "Disconnected", style="dim")

    summary = book_summary(book)
    if not connected:
        health = Text("DISCONNECTED", style="bold red")
    elif stale:
        health = Text("STALE", style="bold yellow")
    else:
        health = Text("LIVE", style="bold green")

    parts = [
        Text(f" {exchange.upper()} {summary.symbol} ", style="bold white on #1e40af"),
        Text("  Bid: ", style="dim"),
        Text(format_price(summary.best_bid), style=BID_COLOR),
        Text("  Ask: ", style="dim"),
        Text(format_price(summary.best_ask), style=ASK_COLOR),
        Text("  Spread: ", style="dim"),
        Text(f"{format_price(summary.spread)} ({summary.spread_bps:.1f}bps)", style="yellow"),
        Text("  Imbalance: ", style="dim"),
        Text(f"{summary.imbalance_pct:.1f}% Bid", style=imbalance_style(summary.imbalance_pct)),
        Text("  │  ", style="dim"),
        health,
        Text("  Updates/s: ", style="dim"),
        Text(f"{updates_per_sec:.0f}", style="cyan"),
    ]

    result = Text()
    for p in parts:
        result.append(p)
    return result


def build_depth_table(points: Sequence[DepthPoint]) -> Table:
    """Cumulative depth as bars, ascending by price."""
    max_depth = max(
        (p.bid_depth if p.bid_depth is not None else p.ask_depth or 0.0 for p in points),
        default=0.0,
    )

    table = Table(
        show_header=True,
        header_style=HEADER_COLOR,
        box=None,
        padding=(0, 1),
        collapse_padding=True,
    )
    table.add_column("Price", justify="right", width=12)
    table.add_column("Depth", justify="right", width=10)
    table.add_column("", justify="left", width=BAR_WIDTH * 2, no_wrap=True)

    for point in points:
        if point.bid_depth is not None:
            depth, color = point.bid_depth, BID_COLOR
        else:
            depth, color = point.ask_depth or 0.0, ASK_COLOR
        table.add_row(
            Text(format_price(point.price), style=color),
            Text(format_size(depth)),
            make_bar(depth, max_depth, BAR_WIDTH * 2, color),
        )

    return table


def build_history_table(records: Sequence[SimulationRecord]) -> Table:
    """Archived simulations, newest first."""
    table = Table(
        show_header=True,
        header_style=HEADER_COLOR,
        box=None,
        padding=(0, 1),
        collapse_padding=True,
    )
    table.add_column("Order", justify="left")
    table.add_column("Fill", justify="right")
    table.add_column("Slippage", justify="right")
    table.add_column("Impact", justify="right")
    table.add_column("Time", justify="right")

    for record in records:
        order = record.order
        color = BID_COLOR if order.side == "buy" else ASK_COLOR
        label = f"{order.side.upper()} {order.order_type} {format_size(order.quantity)}"
        if order.limit_price is not None:
            label += f" @ {format_price(order.limit_price)}"

        result = record.result
        table.add_row(
            Text(label, style=color),
            Text(format_pct(result.estimated_fill_pct, 1)),
            Text(format_pct(result.slippage_pct), style=slippage_style(result.slippage_pct)),
            Text(format_pct(result.market_impact_pct)),
            Text(format_duration_ms(result.estimated_time_to_fill_ms)),
        )

    return table


class StatusBar(Static):
    """Status bar showing venue, top of book and feed health."""

    DEFAULT_CSS = """
    StatusBar {
        dock: top;
        height: 3;
        padding: 0 2;
        background: #0f172a;
    }
    """

    def __init__(self, session: SimulationSession) -> None:
        super().__init__()
        self._session = session

    def render(self) -> RenderableType:
        return build_session_status(self._session)


class BookPanel(Static):
    """Book ladder widget."""

    def __init__(self, session: SimulationSession, levels: int) -> None:
        super().__init__()
        self._session = session
        self._levels = levels

    def render(self) -> RenderableType:
        book = self._session.current_book()
        if book is None:
            return Text("Waiting for data...", style="dim")
        return build_book_table(book, self._levels)


class DepthPanel(Static):
    """Cumulative depth widget."""

    def __init__(self, session: SimulationSession, levels: int) -> None:
        super().__init__()
        self._session = session
        self._levels = levels

    def render(self) -> RenderableType:
        book = self._session.current_book()
        if book is None:
            return Text("Loading depth chart...", style="dim")
        return build_depth_table(depth_series(book, self._levels))


class PreviewPanel(Static):
    """Live estimate of the configured order against the current book."""

    def __init__(self, session: SimulationSession, order: SimulatedOrder) -> None:
        super().__init__()
        self._session = session
        self._order = order

    def render(self) -> RenderableType:
        return build_preview(self._order, self._session.preview(self._order))


class HistoryPanel(Static):
    """Simulation history widget."""

    def __init__(self, session: SimulationSession) -> None:
        super().__init__()
        self._session = session

    def render(self) -> RenderableType:
        records = self._session.history
        if not records:
            return Text("No simulations yet. Press 's' to simulate.", style="dim")
        return build_history_table(records)


class DepthSimApp(App):
    """Main application: live book + order impact simulation."""

    CSS = """
    Screen {
        background: #0f172a;
    }

    #main-container {
        width: 100%;
        height: 100%;
        padding: 1 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("s", "simulate", "Simulate"),
        ("c", "clear_history", "Clear History"),
        ("r", "reset_counters", "Reset Counters"),
    ]

    def __init__(
        self,
        session: SimulationSession,
        feed: MockFeed,
        order: SimulatedOrder,
        config: SimConfig,
    ) -> None:
        super().__init__()
        self.session = session
        self.feed = feed
        self.order = order
        self.sim_config = config
        self._panels: list[Static] = []

    def compose(self) -> ComposeResult:
        self._panels = [
            StatusBar(self.session),
            BookPanel(self.session, self.sim_config.table_levels),
            DepthPanel(self.session, self.sim_config.depth_levels),
            PreviewPanel(self.session, self.order),
            HistoryPanel(self.session),
        ]
        status, book, depth, preview, history = self._panels
        yield status
        yield Horizontal(book, depth, Vertical(preview, history), id="main-container")
        yield Footer()

    async def on_mount(self) -> None:
        """Start the feed and the refresh timer."""
        self.run_worker(self.feed.run(), exclusive=True)
        self.set_interval(0.1, self._refresh_panels)

    def _refresh_panels(self) -> None:
        for panel in self._panels:
            panel.refresh()

    def action_simulate(self) -> None:
        """Submit the configured order (bound to 's' key)."""
        try:
            if self.order.delay_ms > 0:
                self.session.schedule(self.order)
                self.notify(f"Order simulation scheduled for {self.order.delay_ms / 1000:g}s")
            else:
                self.session.submit(self.order)
                self.notify("Order simulation executed!")
        except NoOrderBookError:
            self.notify("No orderbook data available", severity="error")

    def action_clear_history(self) -> None:
        self.session.clear()

    def action_reset_counters(self) -> None:
        self.session.store.reset_perf_counters()

    async def action_quit(self) -> None:
        self.feed.stop()
        self.session.cancel_pending()
        self.exit()


async def run_ui(
    session: SimulationSession,
    feed: MockFeed,
    order: SimulatedOrder,
    config: SimConfig,
) -> None:
    """Run the TUI application."""
    app = DepthSimApp(session, feed, order, config)
    await app.run_async()
