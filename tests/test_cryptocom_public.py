from datetime import datetime, timezone

import pytest

from cryptocom_exchange.adapters.cryptocom import CryptoComExchangeClient
from cryptocom_exchange.config import Environment, ExchangeConfig
from cryptocom_exchange.errors import InvalidParameterError, Reason, ResponseError


class DummyResponse:
    def __init__(self, status_code=200, json_data=None, text=""):
        self.status_code = status_code
        self._json_data = json_data if json_data is not None else {"code": 0}
        self.text = text

    def json(self):
        return self._json_data


class FixedClock:
    def now_ms(self):
        return 1700000000000


class FixedIDs:
    def generate(self):
        return 42


def _client(**kwargs):
    return CryptoComExchangeClient(
        api_key="APIKEY",
        secret_key="SECRET",
        clock=FixedClock(),
        id_generator=FixedIDs(),
        **kwargs,
    )


def test_defaults_to_production():
    c = _client()
    assert c.requester.base_url == "https://api.crypto.com/v2/"


def test_uat_environment():
    c = _client(config=ExchangeConfig(environment=Environment.UAT_SANDBOX))
    assert c.requester.base_url == "https://uat-api.3ona.co/v2/"


def test_base_url_override_gets_trailing_slash():
    c = _client(config=ExchangeConfig(base_url="http://localhost:8080/v2"))
    assert c.requester.base_url == "http://localhost:8080/v2/"


def test_get_instruments(monkeypatch):
    c = _client()
    captured = {}

    def fake_get(url, json=None, headers=None, timeout=None):
        captured.update(url=url, json=json)
        return DummyResponse(
            json_data={
                "id": 42,
                "method": "public/get-instruments",
                "code": 0,
                "result": {
                    "instruments": [
                        {
                            "instrument_name": "BTC_USDT",
                            "quote_currency": "USDT",
                            "base_currency": "BTC",
                            "price_decimals": 2,
                            "quantity_decimals": 6,
                            "margin_trading_enabled": True,
                        }
                    ]
                },
            }
        )

    monkeypatch.setattr(c.session, "get", fake_get)

    instruments = c.get_instruments()
    assert len(instruments) == 1
    assert instruments[0].instrument_name == "BTC_USDT"
    assert instruments[0].price_decimals == 2
    assert instruments[0].margin_trading_enabled is True

    assert captured["url"] == "https://api.crypto.com/v2/public/get-instruments"
    # public calls are not signed
    assert captured["json"] == {"id": 42, "method": "public/get-instruments", "nonce": 1700000000000, "params": {}}


def test_get_tickers_all(monkeypatch):
    c = _client()
    captured = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        captured["params"] = params
        return DummyResponse(
            json_data={
                "code": 0,
                "result": {
                    "data": [
                        {"i": "BTC_USDT", "b": 100.5, "k": 101.0, "a": 100.8, "t": 1700000000000, "v": 12.5},
                        {"i": "ETH_CRO", "b": 0, "k": 0, "a": 0, "t": 1700000000000},
                    ]
                },
            }
        )

    monkeypatch.setattr(c.session, "get", fake_get)

    tickers = c.get_tickers()
    assert captured["params"] == {}
    assert [t.instrument for t in tickers] == ["BTC_USDT", "ETH_CRO"]
    assert tickers[0].bid_price == 100.5
    assert tickers[0].ask_price == 101.0
    assert tickers[0].volume_24h == 12.5
    assert tickers[0].timestamp == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    assert tickers[1].bid_price == 0.0


def test_get_tickers_single_instrument(monkeypatch):
    c = _client()
    captured = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        captured["params"] = params
        return DummyResponse(json_data={"code": 0, "result": {"data": {"i": "BTC_USDT", "a": 100.8}}})

    monkeypatch.setattr(c.session, "get", fake_get)

    tickers = c.get_tickers("BTC_USDT")
    assert captured["params"] == {"instrument_name": "BTC_USDT"}
    assert len(tickers) == 1
    assert tickers[0].latest_trade_price == 100.8


def test_get_tickers_error(monkeypatch):
    c = _client()

    def fake_get(url, params=None, headers=None, timeout=None):
        return DummyResponse(status_code=400, json_data={"code": 30003})

    monkeypatch.setattr(c.session, "get", fake_get)

    with pytest.raises(ResponseError) as exc:
        c.get_tickers("NOPE_USDT")
    assert exc.value == ResponseError(30003, 400, Reason.SYMBOL_NOT_FOUND)


def test_get_book(monkeypatch):
    c = _client()
    captured = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        captured.update(url=url, params=params)
        return DummyResponse(
            json_data={
                "code": 0,
                "result": {
                    "instrument_name": "BTC_USDT",
                    "depth": 10,
                    "data": [
                        {
                            "bids": [[100.0, 1.5, 2]],
                            "asks": [[101.0, 0.5, 1], [102.0, 3, 4]],
                            "t": 1700000000000,
                        }
                    ],
                },
            }
        )

    monkeypatch.setattr(c.session, "get", fake_get)

    book = c.get_book("BTC_USDT", depth=10)
    assert captured["url"] == "https://api.crypto.com/v2/public/get-book"
    assert captured["params"] == {"instrument_name": "BTC_USDT", "depth": 10}
    assert book.bids == [[100.0, 1.5, 2.0]]
    assert len(book.asks) == 2
    assert book.timestamp is not None


def test_get_book_unwrapped_result_and_no_depth(monkeypatch):
    c = _client()
    captured = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        captured["params"] = params
        return DummyResponse(json_data={"code": 0, "result": {"bids": [[1, 2, 3]], "asks": [], "t": 1}})

    monkeypatch.setattr(c.session, "get", fake_get)

    book = c.get_book("BTC_USDT")
    assert captured["params"] == {"instrument_name": "BTC_USDT"}
    assert book.bids == [[1.0, 2.0, 3.0]]
    assert book.asks == []


def test_get_book_requires_instrument(monkeypatch):
    c = _client()

    def fail(*args, **kwargs):
        raise AssertionError("no request expected")

    monkeypatch.setattr(c.session, "get", fail)

    with pytest.raises(InvalidParameterError) as exc:
        c.get_book("")
    assert exc.value.parameter == "instrument"
