from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    LIMIT = "LIMIT"
    MARKET = "MARKET"
    STOP_LOSS = "STOP_LOSS"
    STOP_LIMIT = "STOP_LIMIT"
    TAKE_PROFIT = "TAKE_PROFIT"
    TAKE_PROFIT_LIMIT = "TAKE_PROFIT_LIMIT"


class TimeInForce(str, Enum):
    GOOD_TILL_CANCEL = "GOOD_TILL_CANCEL"
    FILL_OR_KILL = "FILL_OR_KILL"
    IMMEDIATE_OR_CANCEL = "IMMEDIATE_OR_CANCEL"


class ExecInst(str, Enum):
    POST_ONLY = "POST_ONLY"


class OrderStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CANCELED = "CANCELED"
    FILLED = "FILLED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


def to_ms(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def from_ms(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def _float(value: Any) -> float:
    return float(value) if value not in (None, "") else 0.0


E = TypeVar("E", bound=Enum)


def _enum(enum_cls: type[E], value: Any) -> E | str:
    # values the exchange adds later stay plain strings
    if value in (None, ""):
        return ""
    try:
        return enum_cls(value)
    except ValueError:
        return str(value)


# ---------- requests ----------
# None means "not sent". A field set to 0 is sent as 0.


@dataclass
class CreateOrderRequest:
    """
    Params for private/create-order.

    Mandatory fields by order type:
      LIMIT              both  quantity, price
      MARKET             BUY   notional or quantity (mutually exclusive)
      MARKET             SELL  quantity
      STOP_LIMIT         both  price, quantity, trigger_price
      TAKE_PROFIT_LIMIT  both  price, quantity, trigger_price
      STOP_LOSS          BUY   notional, trigger_price
      STOP_LOSS          SELL  quantity, trigger_price
      TAKE_PROFIT        BUY   notional, trigger_price
      TAKE_PROFIT        SELL  quantity, trigger_price
    """

    instrument_name: str
    side: OrderSide | str
    type: OrderType | str
    price: float | Decimal | None = None
    quantity: float | Decimal | None = None
    notional: float | Decimal | None = None
    client_oid: str | None = None
    # Limit orders only; exchange default is GOOD_TILL_CANCEL
    time_in_force: TimeInForce | str | None = None
    exec_inst: ExecInst | str | None = None
    trigger_price: float | Decimal | None = None


@dataclass
class GetOpenOrdersRequest:
    instrument_name: str | None = None
    # Default: 20, Max: 200
    page_size: int | None = None
    page: int = 0


@dataclass
class GetOrderHistoryRequest:
    """Start and end may be at most 24 hours apart, else the exchange answers INVALID_DATE_RANGE."""

    instrument_name: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    page_size: int | None = None
    page: int = 0


@dataclass
class GetTradesRequest:
    instrument_name: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    page_size: int | None = None
    page: int = 0


# ---------- results ----------


@dataclass(frozen=True)
class Instrument:
    instrument_name: str
    quote_currency: str
    base_currency: str
    price_decimals: int
    quantity_decimals: int
    margin_trading_enabled: bool

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Instrument":
        return cls(
            instrument_name=data.get("instrument_name", ""),
            quote_currency=data.get("quote_currency", ""),
            base_currency=data.get("base_currency", ""),
            price_decimals=int(data.get("price_decimals") or 0),
            quantity_decimals=int(data.get("quantity_decimals") or 0),
            margin_trading_enabled=bool(data.get("margin_trading_enabled", False)),
        )


@dataclass(frozen=True)
class Ticker:
    """Prices are 0 when there were no bids/asks/trades."""

    instrument: str
    bid_price: float
    ask_price: float
    latest_trade_price: float
    timestamp: datetime | None
    volume_24h: float
    price_high_24h: float
    price_low_24h: float
    price_change_24h: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Ticker":
        # the exchange uses one-letter keys here
        return cls(
            instrument=data.get("i", ""),
            bid_price=_float(data.get("b")),
            ask_price=_float(data.get("k")),
            latest_trade_price=_float(data.get("a")),
            timestamp=from_ms(data.get("t")),
            volume_24h=_float(data.get("v")),
            price_high_24h=_float(data.get("h")),
            price_low_24h=_float(data.get("l")),
            price_change_24h=_float(data.get("c")),
        )


@dataclass(frozen=True)
class BookResult:
    # each level is [price, quantity, number of orders]
    bids: list[list[float]]
    asks: list[list[float]]
    timestamp: datetime | None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BookResult":
        def levels(raw: Any) -> list[list[float]]:
            return [[_float(x) for x in level] for level in raw or []]

        return cls(
            bids=levels(data.get("bids")),
            asks=levels(data.get("asks")),
            timestamp=from_ms(data.get("t")),
        )


@dataclass(frozen=True)
class Account:
    """balance = available + order + stake"""

    currency: str
    balance: float
    available: float
    order: float
    stake: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Account":
        return cls(
            currency=data.get("currency", ""),
            balance=_float(data.get("balance")),
            available=_float(data.get("available")),
            order=_float(data.get("order")),
            stake=_float(data.get("stake")),
        )


@dataclass(frozen=True)
class CreateOrderResult:
    order_id: str
    client_oid: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CreateOrderResult":
        return cls(
            order_id=str(data.get("order_id", "")),
            client_oid=data.get("client_oid") or "",
        )


@dataclass(frozen=True)
class Order:
    """A partially filled order is ACTIVE with cumulative_quantity > 0."""

    order_id: str
    client_oid: str
    status: OrderStatus | str
    reason: str
    side: OrderSide | str
    order_type: OrderType | str
    instrument_name: str
    price: float
    quantity: float
    cumulative_quantity: float
    cumulative_value: float
    avg_price: float
    fee_currency: str
    time_in_force: TimeInForce | str
    exec_inst: ExecInst | str
    trigger_price: float
    create_time: datetime | None
    update_time: datetime | None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Order":
        return cls(
            order_id=str(data.get("order_id", "")),
            client_oid=data.get("client_oid") or "",
            status=_enum(OrderStatus, data.get("status")),
            reason=str(data.get("reason") or ""),
            side=_enum(OrderSide, data.get("side")),
            order_type=_enum(OrderType, data.get("type")),
            instrument_name=data.get("instrument_name", ""),
            price=_float(data.get("price")),
            quantity=_float(data.get("quantity")),
            cumulative_quantity=_float(data.get("cumulative_quantity")),
            cumulative_value=_float(data.get("cumulative_value")),
            avg_price=_float(data.get("avg_price")),
            fee_currency=data.get("fee_currency", ""),
            time_in_force=_enum(TimeInForce, data.get("time_in_force")),
            exec_inst=_enum(ExecInst, data.get("exec_inst")),
            trigger_price=_float(data.get("trigger_price")),
            create_time=from_ms(data.get("create_time")),
            update_time=from_ms(data.get("update_time")),
        )

    @property
    def is_partially_filled(self) -> bool:
        return self.status == OrderStatus.ACTIVE and self.cumulative_quantity > 0


@dataclass(frozen=True)
class Trade:
    trade_id: str
    order_id: str
    side: OrderSide | str
    instrument_name: str
    fee: float
    fee_currency: str
    traded_price: float
    traded_quantity: float
    create_time: datetime | None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Trade":
        return cls(
            trade_id=str(data.get("trade_id", "")),
            order_id=str(data.get("order_id", "")),
            side=_enum(OrderSide, data.get("side")),
            instrument_name=data.get("instrument_name", ""),
            fee=_float(data.get("fee")),
            fee_currency=data.get("fee_currency", ""),
            traded_price=_float(data.get("traded_price")),
            traded_quantity=_float(data.get("traded_quantity")),
            create_time=from_ms(data.get("create_time")),
        )


@dataclass(frozen=True)
class OrderHistoryResult:
    # enumerate pages from 0 until order_list comes back empty
    order_list: list[Order] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderHistoryResult":
        return cls(order_list=[Order.from_dict(o) for o in data.get("order_list") or []])


@dataclass(frozen=True)
class OpenOrdersResult:
    count: int = 0
    order_list: list[Order] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OpenOrdersResult":
        return cls(
            count=int(data.get("count") or 0),
            order_list=[Order.from_dict(o) for o in data.get("order_list") or []],
        )


@dataclass(frozen=True)
class OrderDetailResult:
    order_info: Order
    trade_list: list[Trade] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderDetailResult":
        return cls(
            order_info=Order.from_dict(data.get("order_info") or {}),
            trade_list=[Trade.from_dict(t) for t in data.get("trade_list") or []],
        )
