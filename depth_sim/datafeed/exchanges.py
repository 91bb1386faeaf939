"""Supported venues, symbols and order-delay presets."""

from __future__ import annotations

from typing import NamedTuple


class Exchange(NamedTuple):
    id: str
    name: str
    ws_url: str
    rest_url: str
    color: str


EXCHANGES: dict[str, Exchange] = {
    "okx": Exchange(
        id="okx",
        name="OKX",
        ws_url="wss://ws.okx.com:8443/ws/v5/public",
        rest_url="https://www.okx.com/api/v5",
        color="#00D4FF",
    ),
    "bybit": Exchange(
        id="bybit",
        name="Bybit",
        ws_url="wss://stream.bybit.com/v5/public/spot",
        rest_url="https://api.bybit.com/v5",
        color="#F7A600",
    ),
    "deribit": Exchange(
        id="deribit",
        name="Deribit",
        ws_url="wss://www.deribit.com/ws/api/v2",
        rest_url="https://www.deribit.com/api/v2",
        color="#FF6B6B",
    ),
}

POPULAR_SYMBOLS: tuple[str, ...] = (
    "BTC-USDT",
    "ETH-USDT",
    "BTC-USD",
    "ETH-USD",
    "SOL-USDT",
    "ADA-USDT",
)

# (label, delay in ms)
ORDER_DELAYS: tuple[tuple[str, int], ...] = (
    ("Immediate", 0),
    ("5 seconds", 5000),
    ("10 seconds", 10000),
    ("30 seconds", 30000),
    ("1 minute", 60000),
)


def get_exchange(exchange_id: str) -> Exchange:
    """Look up a venue by id. Raises ValueError for unknown ids."""
    try:
        return EXCHANGES[exchange_id]
    except KeyError:
        raise ValueError(
            f"unknown exchange {exchange_id!r}, expected one of {sorted(EXCHANGES)}"
        ) from None
