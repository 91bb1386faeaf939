"""Tests for per-exchange feed adapters."""

import orjson
import pytest

from depth_sim.datafeed.adapters import (
    ADAPTERS,
    BybitAdapter,
    DeribitAdapter,
    FeedParseError,
    OKXAdapter,
    get_adapter,
    parse_levels,
)
from depth_sim.datafeed.exchanges import EXCHANGES
from depth_sim.types import PriceLevel


def test_okx_string_pairs() -> None:
    """Verify OKX data[0] books with 4-field string rows."""
    message = {
        "arg": {"channel": "books5", "instId": "BTC-USDT"},
        "data": [{
            "bids": [["50000.1", "0.5", "0", "3"], ["50000.3", "1.25", "0", "1"]],
            "asks": [["50001.0", "2", "0", "2"]],
            "ts": "1700000000000",
        }],
    }

    book = OKXAdapter().parse(message, "BTC-USDT", timestamp_ms=42)

    assert book is not None
    assert book.symbol == "BTC-USDT"
    assert book.timestamp_ms == 42
    # Sorted best first even when the venue sends them out of order
    assert book.bids == (PriceLevel(50000.3, 1.25), PriceLevel(50000.1, 0.5))
    assert book.asks == (PriceLevel(50001.0, 2.0),)


def test_bybit_b_a_shape() -> None:
    """Verify Bybit data.b / data.a string pairs."""
    raw = orjson.dumps({
        "topic": "orderbook.50.BTCUSDT",
        "type": "snapshot",
        "data": {"s": "BTCUSDT", "b": [["65000.5", "0.1"]], "a": [["65001", "0.3"], ["65002", "1"]]},
    })

    book = BybitAdapter().loads(raw, "BTC-USDT", timestamp_ms=1)

    assert book is not None
    assert book.bids == (PriceLevel(65000.5, 0.1),)
    assert [l.price for l in book.asks] == [65001.0, 65002.0]


def test_deribit_numeric_pairs() -> None:
    """Verify Deribit params.data with numeric pairs."""
    message = {
        "jsonrpc": "2.0",
        "method": "subscription",
        "params": {
            "channel": "book.BTC-PERPETUAL.none.10.100ms",
            "data": {"bids": [[64000.0, 1200.0]], "asks": [[64000.5, 800.0]]},
        },
    }

    book = DeribitAdapter().parse(message, "BTC-PERPETUAL", timestamp_ms=1)

    assert book is not None
    assert book.bids[0] == PriceLevel(64000.0, 1200.0)
    assert book.asks[0] == PriceLevel(64000.5, 800.0)


def test_missing_side_parses_as_empty() -> None:
    book = BybitAdapter().parse({"data": {"b": [["1", "1"]]}}, "X", timestamp_ms=1)

    assert book is not None
    assert book.asks == ()


@pytest.mark.parametrize(
    "adapter,message",
    [
        (OKXAdapter(), {"event": "subscribe", "arg": {"channel": "books5"}}),
        (OKXAdapter(), {"data": []}),
        (BybitAdapter(), {"success": True, "op": "subscribe"}),
        (DeribitAdapter(), {"jsonrpc": "2.0", "id": 1, "result": ["book.BTC-PERPETUAL.none.10.100ms"]}),
    ],
)
def test_non_book_messages_return_none(adapter, message: dict) -> None:
    """Verify acks and heartbeats are not parse failures."""
    assert adapter.parse(message, "BTC-USDT") is None


@pytest.mark.parametrize(
    "pairs,match",
    [
        ([["abc", "1"]], "price must be numeric"),
        ([["100", None]], "size must be numeric"),
        ([["100", "-1"]], "finite and >= 0"),
        ([["-5", "1"]], "finite and >= 0"),
        ([["nan", "1"]], "finite and >= 0"),
        ([["100"]], r"\[price, size\] pair"),
        ([[True, "1"]], "price must be numeric"),
        ("not-a-list", "levels must be a list"),
    ],
)
def test_malformed_levels_raise(pairs, match: str) -> None:
    """Verify malformed pairs raise FeedParseError with a reason."""
    with pytest.raises(FeedParseError, match=match):
        parse_levels(pairs)


def test_invalid_json_raises_parse_error() -> None:
    with pytest.raises(FeedParseError, match="invalid JSON"):
        OKXAdapter().loads(b"{not json", "BTC-USDT")


def test_non_object_message_raises() -> None:
    with pytest.raises(FeedParseError, match="message must be an object"):
        OKXAdapter().parse([1, 2, 3], "BTC-USDT")


def test_subscribe_messages() -> None:
    """Verify each venue's subscription frame."""
    assert get_adapter("okx").subscribe_message("BTC-USDT") == {
        "op": "subscribe",
        "args": [{"channel": "books5", "instId": "BTC-USDT"}],
    }
    assert get_adapter("bybit").subscribe_message("BTC-USDT") == {
        "op": "subscribe",
        "args": ["orderbook.50.BTCUSDT"],
    }
    assert get_adapter("deribit").subscribe_message("BTC-PERPETUAL")["params"] == {
        "channels": ["book.BTC-PERPETUAL.none.10.100ms"],
    }


def test_registry_covers_every_exchange() -> None:
    assert set(ADAPTERS) == set(EXCHANGES)
    with pytest.raises(KeyError):
        get_adapter("binance")
