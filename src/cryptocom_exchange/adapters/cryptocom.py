from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, TypeVar

import requests

from ..auth import Generator, SignatureGenerator, SignatureRequest
from ..client import APIRequest, Requester, check_error_response
from ..clock import Clock, IDGenerator, RandomIDGenerator, RealClock
from ..config import ExchangeConfig
from ..errors import ExchangeHTTPError, InvalidParameterError
from ..models import (
    Account,
    BookResult,
    CreateOrderRequest,
    CreateOrderResult,
    GetOpenOrdersRequest,
    GetOrderHistoryRequest,
    GetTradesRequest,
    Instrument,
    OpenOrdersResult,
    OrderDetailResult,
    OrderHistoryResult,
    Ticker,
    Trade,
    to_ms,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

METHOD_GET_INSTRUMENTS = "public/get-instruments"
METHOD_GET_TICKER = "public/get-ticker"
METHOD_GET_BOOK = "public/get-book"
METHOD_GET_ACCOUNT_SUMMARY = "private/get-account-summary"
METHOD_CREATE_ORDER = "private/create-order"
METHOD_CANCEL_ORDER = "private/cancel-order"
METHOD_CANCEL_ALL_ORDERS = "private/cancel-all-orders"
METHOD_GET_ORDER_HISTORY = "private/get-order-history"
METHOD_GET_OPEN_ORDERS = "private/get-open-orders"
METHOD_GET_ORDER_DETAIL = "private/get-order-detail"
METHOD_GET_TRADES = "private/get-trades"

MAX_PAGE_SIZE = 200


def _json_number(value: Decimal) -> int | float:
    # the signed text and the JSON body must render the same number
    if value.is_finite() and value == value.to_integral_value():
        return int(value)
    return float(value)


def _build_params(**fields: Any) -> dict[str, Any]:
    """Drop unset fields; render enums, decimals and datetimes the way the exchange expects."""
    params: dict[str, Any] = {}
    for key, value in fields.items():
        if value is None or value == "":
            continue
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, datetime):
            value = to_ms(value)
        elif isinstance(value, Decimal):
            value = _json_number(value)
        params[key] = value
    return params


def _require(parameter: str, value: str) -> None:
    if not value:
        raise InvalidParameterError(parameter, "cannot be empty")


def _check_page_size(page_size: int | None) -> None:
    if page_size is None:
        return
    if page_size < 0:
        raise InvalidParameterError("req.page_size", "cannot be less than 0")
    if page_size > MAX_PAGE_SIZE:
        raise InvalidParameterError("req.page_size", f"cannot be greater than {MAX_PAGE_SIZE}")


def _no_result(result: dict[str, Any]) -> None:
    return None


def _book(result: dict[str, Any]) -> BookResult:
    # the book comes wrapped in a one-element "data" list
    book = result.get("data")
    if isinstance(book, list):
        book = book[0] if book else {}
    return BookResult.from_dict(book if book is not None else result)


def _tickers(result: dict[str, Any]) -> list[Ticker]:
    raw = result.get("data")
    if raw is None:
        return []
    # a single instrument comes back as an object, not a list
    if isinstance(raw, dict):
        return [Ticker.from_dict(raw)]
    return [Ticker.from_dict(t) for t in raw]


class CryptoComExchangeClient:
    """
    Crypto.com Exchange (v2 REST) client.

    Private calls are signed with HMAC-SHA256 (see ``auth.Generator``) and
    sent as a JSON envelope:
      {"id", "method", "nonce", "params", "sig", "api_key"}

    Rejections are raised as ``ResponseError``; compare ``err.reason``
    against ``errors.Reason`` to branch on the failure category.
    """

    def __init__(
        self,
        api_key: str,
        secret_key: str,
        *,
        config: ExchangeConfig = ExchangeConfig(),
        session: requests.Session | None = None,
        clock: Clock | None = None,
        id_generator: IDGenerator | None = None,
        signer: SignatureGenerator | None = None,
    ):
        self.clock = clock or RealClock()
        self.id_generator = id_generator or RandomIDGenerator()
        self.signer = signer or Generator()
        self.config = config
        self.requester = Requester(config.resolved_base_url, config.timeout, session)
        self.update_config(api_key, secret_key)

    @property
    def session(self) -> requests.Session:
        return self.requester.session

    def update_config(
        self,
        api_key: str,
        secret_key: str,
        *,
        config: ExchangeConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Swap credentials and, optionally, environment/timeouts or the HTTP session."""
        _require("api_key", api_key)
        _require("secret_key", secret_key)

        self.api_key = api_key
        self.secret_key = secret_key

        if config is not None:
            self.config = config
            self.requester.base_url = config.resolved_base_url
            self.requester.timeout = config.timeout
        if session is not None:
            self.requester.session = session

    # ---------- request core ----------
    def _check(
        self,
        http_method: str,
        method: str,
        status_code: int,
        data: dict[str, Any],
        parse: Callable[[dict[str, Any]], T],
    ) -> T:
        err = check_error_response(status_code, data.get("code"))
        if err is not None:
            logger.warning("%s rejected (HTTP %d): %s", method, status_code, err)
            raise err

        try:
            result = data.get("result") or {}
            if not isinstance(result, dict):
                raise TypeError(f"result is {type(result).__name__}, expected object")
            return parse(result)
        except (TypeError, ValueError, AttributeError, KeyError, IndexError) as e:
            logger.error("%s %s returned an unexpected result: %s", http_method, method, e)
            raise ExchangeHTTPError(
                status_code=status_code,
                message="Unexpected result shape",
                method=http_method,
                path=method,
            ) from e

    def _private_post(self, method: str, params: dict[str, Any], parse: Callable[[dict[str, Any]], T]) -> T:
        req_id = self.id_generator.generate()
        timestamp = self.clock.now_ms()

        sig = self.signer.generate_signature(
            SignatureRequest(
                api_key=self.api_key,
                secret_key=self.secret_key,
                id=req_id,
                method=method,
                timestamp=timestamp,
                params=params,
            )
        )

        body = APIRequest(
            id=req_id,
            method=method,
            nonce=timestamp,
            params=params,
            sig=sig,
            api_key=self.api_key,
        )
        status_code, data = self.requester.post(body)
        return self._check("POST", method, status_code, data, parse)

    # ---------- public endpoints ----------
    def get_instruments(self) -> list[Instrument]:
        """All supported instruments (e.g. BTC_USDT)."""
        body = APIRequest(
            id=self.id_generator.generate(),
            method=METHOD_GET_INSTRUMENTS,
            nonce=self.clock.now_ms(),
        )
        status_code, data = self.requester.get(body)
        return self._check(
            "GET",
            METHOD_GET_INSTRUMENTS,
            status_code,
            data,
            lambda result: [Instrument.from_dict(i) for i in result.get("instruments") or []],
        )

    def get_tickers(self, instrument: str = "") -> list[Ticker]:
        """Tickers for one instrument, or for ALL instruments when left blank."""
        status_code, data = self.requester.get_query(
            METHOD_GET_TICKER, _build_params(instrument_name=instrument)
        )
        return self._check("GET", METHOD_GET_TICKER, status_code, data, _tickers)

    def get_book(self, instrument: str, depth: int = 0) -> BookResult:
        _require("instrument", instrument)

        params: dict[str, Any] = {"instrument_name": instrument}
        if depth > 0:
            params["depth"] = depth

        status_code, data = self.requester.get_query(METHOD_GET_BOOK, params)
        return self._check("GET", METHOD_GET_BOOK, status_code, data, _book)

    # ---------- private endpoints ----------
    def get_account_summary(self, currency: str = "") -> list[Account]:
        """Balances for one currency, or for ALL currencies when left blank."""
        return self._private_post(
            METHOD_GET_ACCOUNT_SUMMARY,
            _build_params(currency=currency),
            lambda result: [Account.from_dict(a) for a in result.get("accounts") or []],
        )

    def create_order(self, req: CreateOrderRequest) -> CreateOrderResult:
        """
        Places a BUY or SELL order.

        Asynchronous on the exchange side: the result only confirms the
        request was accepted.
        """
        params = _build_params(
            instrument_name=req.instrument_name,
            side=req.side,
            type=req.type,
            price=req.price,
            quantity=req.quantity,
            notional=req.notional,
            client_oid=req.client_oid,
            time_in_force=req.time_in_force,
            exec_inst=req.exec_inst,
            trigger_price=req.trigger_price,
        )
        return self._private_post(METHOD_CREATE_ORDER, params, CreateOrderResult.from_dict)

    def cancel_order(self, instrument_name: str, order_id: str) -> None:
        _require("instrument_name", instrument_name)
        _require("order_id", order_id)

        self._private_post(
            METHOD_CANCEL_ORDER,
            {"instrument_name": instrument_name, "order_id": order_id},
            _no_result,
        )

    def cancel_all_orders(self, instrument_name: str) -> None:
        _require("instrument_name", instrument_name)

        self._private_post(METHOD_CANCEL_ALL_ORDERS, {"instrument_name": instrument_name}, _no_result)

    def get_order_history(self, req: GetOrderHistoryRequest) -> OrderHistoryResult:
        _check_page_size(req.page_size)

        params = _build_params(
            instrument_name=req.instrument_name,
            page_size=req.page_size,
            start_ts=req.start,
            end_ts=req.end,
        )
        params["page"] = req.page

        return self._private_post(METHOD_GET_ORDER_HISTORY, params, OrderHistoryResult.from_dict)

    def get_open_orders(self, req: GetOpenOrdersRequest) -> OpenOrdersResult:
        _check_page_size(req.page_size)

        params = _build_params(instrument_name=req.instrument_name, page_size=req.page_size)
        params["page"] = req.page

        return self._private_post(METHOD_GET_OPEN_ORDERS, params, OpenOrdersResult.from_dict)

    def get_order_detail(self, order_id: str) -> OrderDetailResult:
        _require("order_id", order_id)

        return self._private_post(METHOD_GET_ORDER_DETAIL, {"order_id": order_id}, OrderDetailResult.from_dict)

    def get_trades(self, req: GetTradesRequest) -> list[Trade]:
        _check_page_size(req.page_size)

        params = _build_params(
            instrument_name=req.instrument_name,
            page_size=req.page_size,
            start_ts=req.start,
            end_ts=req.end,
        )
        params["page"] = req.page

        return self._private_post(
            METHOD_GET_TRADES,
            params,
            lambda result: [Trade.from_dict(t) for t in result.get("trade_list") or []],
        )
