"""
Per-exchange feed adapters.

Each adapter turns one venue's order book message into the normalized
OrderBook snapshot. The rest of the system never sees wire formats.

Wire shapes handled:
- OKX:     {"data": [{"bids": [["price", "size", ...], ...], "asks": [...]}]}
- Bybit:   {"data": {"b": [["price", "size"], ...], "a": [...]}}
- Deribit: {"params": {"data": {"bids": [[price, size], ...], "asks": [...]}}}

Pairs are always [price, size]. String-encoded decimals are parsed with float().
"""

from __future__ import annotations

import math
import time
from typing import Any

import orjson

from ..types import OrderBook, PriceLevel, make_orderbook


class FeedParseError(ValueError):
    """Raised when a message has the book shape but malformed level data."""


def json_loads(data: bytes | str) -> Any:
    try:
        return orjson.loads(data)
    except orjson.JSONDecodeError as e:
        raise FeedParseError(f"invalid JSON: {e}") from e


def _parse_number(value: Any, what: str) -> float:
    if isinstance(value, bool):
        raise FeedParseError(f"{what} must be numeric, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise FeedParseError(f"{what} must be numeric, got {value!r}") from e
    if not math.isfinite(number) or number < 0:
        raise FeedParseError(f"{what} must be finite and >= 0, got {value!r}")
    return number


def parse_levels(pairs: Any) -> list[PriceLevel]:
    """
    Parse a list of [price, size, ...] pairs. Extra trailing fields are ignored.

    A missing side (None) parses as empty.
    """
    if pairs is None:
        return []
    if not isinstance(pairs, (list, tuple)):
        raise FeedParseError(f"levels must be a list, got {type(pairs).__name__}")

    levels: list[PriceLevel] = []
    for pair in pairs:
        if not isinstance(pair, (list, tuple)) or len(pair) < 2:
            raise FeedParseError(f"level must be a [price, size] pair, got {pair!r}")
        levels.append(PriceLevel(
            price=_parse_number(pair[0], "price"),
            size=_parse_number(pair[1], "size"),
        ))
    return levels


class FeedAdapter:
    """
    Base adapter: subclasses locate the bid/ask arrays in a venue message.

    Subclasses implement `_extract_sides()` and `subscribe_message()`.
    """

    exchange_id: str = ""

    def _extract_sides(self, message: dict) -> tuple[Any, Any] | None:
        """Return (raw_bids, raw_asks), or None if the message carries no book."""
        raise NotImplementedError

    def subscribe_message(self, symbol: str) -> dict:
        """Subscription frame the venue expects for `symbol`'s book channel."""
        raise NotImplementedError

    def parse(self, message: Any, symbol: str, timestamp_ms: int | None = None) -> OrderBook | None:
        """
        Normalize a decoded message.

        Returns None for messages without book data (acks, heartbeats).
        Raises FeedParseError for malformed book data.
        """
        if not isinstance(message, dict):
            raise FeedParseError(f"message must be an object, got {type(message).__name__}")

        sides = self._extract_sides(message)
        if sides is None:
            return None

        raw_bids, raw_asks = sides
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)

        return make_orderbook(
            bids=parse_levels(raw_bids),
            asks=parse_levels(raw_asks),
            symbol=symbol,
            timestamp_ms=timestamp_ms,
        )

    def loads(self, raw: bytes | str, symbol: str, timestamp_ms: int | None = None) -> OrderBook | None:
        """Decode JSON text and normalize it."""
        return self.parse(json_loads(raw), symbol, timestamp_ms)


class OKXAdapter(FeedAdapter):
    exchange_id = "okx"

    def _extract_sides(self, message: dict) -> tuple[Any, Any] | None:
        data = message.get("data")
        if not data or not isinstance(data, list):
            return None
        book = data[0]
        if not isinstance(book, dict):
            raise FeedParseError(f"okx book must be an object, got {type(book).__name__}")
        return book.get("bids"), book.get("asks")

    def subscribe_message(self, symbol: str) -> dict:
        return {"op": "subscribe", "args": [{"channel": "books5", "instId": symbol}]}


class BybitAdapter(FeedAdapter):
    exchange_id = "bybit"

    def _extract_sides(self, message: dict) -> tuple[Any, Any] | None:
        data = message.get("data")
        if not data:
            return None
        if not isinstance(data, dict):
            raise FeedParseError(f"bybit data must be an object, got {type(data).__name__}")
        return data.get("b"), data.get("a")

    def subscribe_message(self, symbol: str) -> dict:
        # Bybit spot symbols carry no separator: BTC-USDT -> BTCUSDT
        return {"op": "subscribe", "args": [f"orderbook.50.{symbol.replace('-', '')}"]}


class DeribitAdapter(FeedAdapter):
    exchange_id = "deribit"

    def _extract_sides(self, message: dict) -> tuple[Any, Any] | None:
        params = message.get("params")
        if not isinstance(params, dict) or not params.get("data"):
            return None
        book = params["data"]
        if not isinstance(book, dict):
            raise FeedParseError(f"deribit book must be an object, got {type(book).__name__}")
        return book.get("bids"), book.get("asks")

    def subscribe_message(self, symbol: str) -> dict:
        return {
            "jsonrpc": "2.0",
            "method": "public/subscribe",
            "params": {"channels": [f"book.{symbol}.none.10.100ms"]},
        }


ADAPTERS: dict[str, FeedAdapter] = {
    adapter.exchange_id: adapter
    for adapter in (OKXAdapter(), BybitAdapter(), DeribitAdapter())
}


def get_adapter(exchange_id: str) -> FeedAdapter:
    """Adapter for `exchange_id`. Raises KeyError for unknown venues."""
    return ADAPTERS[exchange_id]
