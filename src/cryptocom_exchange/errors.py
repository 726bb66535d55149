from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class ExchangeClientError(Exception):
    """Base exception for all client errors."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class ExchangeHTTPError(ExchangeClientError):
    """HTTP-level errors, e.g. a response body that is not a JSON object."""

    def __init__(
        self,
        status_code: int,
        message: str,
        *,
        method: str | None = None,
        path: str | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.method = method
        self.path = path
        self.body = body


class ExchangeNetworkError(ExchangeClientError):
    """Network/timeout/connection related errors."""


class SignatureError(ExchangeClientError):
    """A request could not be signed."""


class InvalidParameterError(ExchangeClientError, ValueError):
    """Caller input rejected before any request is sent."""

    def __init__(self, parameter: str, reason: str):
        super().__init__(f"invalid parameter: {parameter} {reason}")
        self.parameter = parameter
        self.reason = reason


class Reason(Enum):
    """Reason codes the exchange reports in the ``code`` field of a response."""

    UNEXPECTED_ERROR = "unexpected error"
    SYSTEM_ERROR = "system error"
    UNAUTHORIZED = "request not authenticated or key/signature is incorrect"
    ILLEGAL_IP = "ip address not whitelisted"
    BAD_REQUEST = "missing required fields"
    USER_TIER_INVALID = "disallowed based on user tier"
    TOO_MANY_REQUESTS = "requests have exceeded rate limits"
    INVALID_NONCE = "nonce value differs by more than 30 seconds from server"
    METHOD_NOT_FOUND = "invalid method specified"
    INVALID_DATE_RANGE = "invalid date range"
    DUPLICATE_RECORD = "duplicated record"
    NEGATIVE_BALANCE = "insufficient balance"
    SYMBOL_NOT_FOUND = "invalid instrument_name specified"
    SIDE_NOT_SUPPORTED = "invalid side specified"
    ORDER_TYPE_NOT_SUPPORTED = "invalid type specified"
    MIN_PRICE_VIOLATED = "price is lower than the minimum"
    MAX_PRICE_VIOLATED = "price is higher than the maximum"
    MIN_QUANTITY_VIOLATED = "quantity is lower than the minimum"
    MAX_QUANTITY_VIOLATED = "quantity is higher than the maximum"
    MISSING_ARGUMENT = "required argument is blank or missing"
    INVALID_PRICE_PRECISION = "too many decimal places for price"
    INVALID_QUANTITY_PRECISION = "too many decimal places for quantity"
    MIN_NOTIONAL_VIOLATED = "the notional amount is less than the minimum"
    MAX_NOTIONAL_VIOLATED = "the notional amount exceeds the maximum"
    MIN_AMOUNT_VIOLATED = "amount is less than the minimum"
    MAX_AMOUNT_VIOLATED = "amount exceeds the maximum"
    AMOUNT_PRECISION_OVERFLOW = "amount precision exceeds the maximum"
    MG_INVALID_ACCOUNT_STATUS = (
        "operation has failed due to your account's status. please try again later"
    )
    MG_TRANSFER_ACTIVE_LOAN = (
        "transfer has failed due to holding an active loan. please repay your loan and try again later"
    )
    MG_INVALID_LOAN_CURRENCY = "currency is not same as loan currency of active loan"
    MG_INVALID_REPAY_AMOUNT = "only supporting full repayment of all margin loans"
    MG_NO_ACTIVE_LOAN = "no active loan"
    MG_BLOCKED_BORROW = "borrow has been suspended. please try again later"
    MG_BLOCKED_NEW_ORDER = "placing new order has been suspended. please try again later"
    MG_CREDIT_LINE_NOT_MAINTAINED = "please ensure your credit line is maintained and try again later"


REASONS_BY_CODE: Mapping[int, Reason] = MappingProxyType(
    {
        10001: Reason.SYSTEM_ERROR,
        100001: Reason.SYSTEM_ERROR,
        10002: Reason.UNAUTHORIZED,
        10003: Reason.ILLEGAL_IP,
        10004: Reason.BAD_REQUEST,
        10005: Reason.USER_TIER_INVALID,
        10006: Reason.TOO_MANY_REQUESTS,
        10007: Reason.INVALID_NONCE,
        10008: Reason.METHOD_NOT_FOUND,
        10009: Reason.INVALID_DATE_RANGE,
        20001: Reason.DUPLICATE_RECORD,
        20002: Reason.NEGATIVE_BALANCE,
        30003: Reason.SYMBOL_NOT_FOUND,
        30004: Reason.SIDE_NOT_SUPPORTED,
        30005: Reason.ORDER_TYPE_NOT_SUPPORTED,
        30006: Reason.MIN_PRICE_VIOLATED,
        30007: Reason.MAX_PRICE_VIOLATED,
        30008: Reason.MIN_QUANTITY_VIOLATED,
        30009: Reason.MAX_QUANTITY_VIOLATED,
        30010: Reason.MISSING_ARGUMENT,
        30013: Reason.INVALID_PRICE_PRECISION,
        30014: Reason.INVALID_QUANTITY_PRECISION,
        30016: Reason.MIN_NOTIONAL_VIOLATED,
        30017: Reason.MAX_NOTIONAL_VIOLATED,
        30023: Reason.MIN_AMOUNT_VIOLATED,
        30024: Reason.MAX_AMOUNT_VIOLATED,
        30025: Reason.AMOUNT_PRECISION_OVERFLOW,
        40001: Reason.MG_INVALID_ACCOUNT_STATUS,
        40002: Reason.MG_TRANSFER_ACTIVE_LOAN,
        40003: Reason.MG_INVALID_LOAN_CURRENCY,
        40004: Reason.MG_INVALID_REPAY_AMOUNT,
        40005: Reason.MG_NO_ACTIVE_LOAN,
        40006: Reason.MG_BLOCKED_BORROW,
        40007: Reason.MG_BLOCKED_NEW_ORDER,
        50001: Reason.MG_CREDIT_LINE_NOT_MAINTAINED,
    }
)


class ResponseError(ExchangeClientError):
    """
    The exchange rejected a request.

    Two errors are equal when code, HTTP status and reason all match. To
    branch on the category alone, compare ``reason``::

        except ResponseError as e:
            if e.is_reason(Reason.TOO_MANY_REQUESTS):
                ...
    """

    def __init__(self, code: int, http_status_code: int, reason: Reason | None):
        super().__init__(self._format(code, reason))
        self.code = code
        self.http_status_code = http_status_code
        self.reason = reason

    @staticmethod
    def _format(code: int, reason: Reason | None) -> str:
        description = reason.value if reason is not None else "unknown reason"
        return f"{code}: {description}"

    def is_reason(self, reason: Reason) -> bool:
        return self.reason is reason

    def _key(self) -> tuple[Any, ...]:
        return (type(self), self.code, self.http_status_code, self.reason)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResponseError):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, "
            f"http_status_code={self.http_status_code!r}, reason={self.reason!r})"
        )


class InvalidResponseCodeError(ResponseError):
    """The ``code`` field of an error response was not an integer."""

    def __init__(self, http_status_code: int, raw_code: Any):
        super().__init__(0, http_status_code, None)
        self.raw_code = raw_code
        self.args = (f"invalid response code: {raw_code}",)

    def _key(self) -> tuple[Any, ...]:
        return super()._key() + (repr(self.raw_code),)


def new_response_error(http_status_code: int, code: int) -> ResponseError | None:
    """Map an exchange reason code to a ``ResponseError``; code 0 is success."""
    if code == 0:
        return None
    return ResponseError(code, http_status_code, REASONS_BY_CODE.get(code, Reason.UNEXPECTED_ERROR))
