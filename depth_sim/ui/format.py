"""Number formatting for display."""

from __future__ import annotations


def format_price(price: float, decimals: int = 2) -> str:
    return f"{price:.{decimals}f}"


def format_size(size: float) -> str:
    """Format quantity with M/K suffixes."""
    if size >= 1_000_000:
        return f"{size / 1_000_000:.2f}M"
    elif size >= 1000:
        return f"{size / 1000:.2f}K"
    return f"{size:.4f}"


def format_currency(amount: float) -> str:
    """USD with thousands separators, e.g. $1,234.56 / -$1,234.56."""
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"


def format_pct(value: float, decimals: int = 2) -> str:
    return f"{value:.{decimals}f}%"


def format_duration_ms(ms: float) -> str:
    """Milliseconds as seconds with one decimal, e.g. 2.5s."""
    return f"{ms / 1000:.1f}s"
