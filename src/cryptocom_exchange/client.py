from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

import requests
from requests.exceptions import InvalidJSONError, RequestException, Timeout

from .errors import (
    ExchangeHTTPError,
    ExchangeNetworkError,
    InvalidParameterError,
    InvalidResponseCodeError,
    ResponseError,
    new_response_error,
)

logger = logging.getLogger(__name__)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_CODE_RE = re.compile(r"[+-]?[0-9]+")


@dataclass
class APIRequest:
    """Envelope sent as the JSON body of every non-query request."""

    id: int
    method: str
    nonce: int
    params: dict[str, Any] = field(default_factory=dict)
    sig: str = ""
    api_key: str = ""

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "id": self.id,
            "method": self.method,
            "nonce": self.nonce,
            "params": dict(self.params),
        }
        if self.sig:
            body["sig"] = self.sig
        if self.api_key:
            body["api_key"] = self.api_key
        return body


def _parse_response_code(raw: Any) -> int:
    # code is numeric but sometimes arrives as a JSON string
    if isinstance(raw, bool):
        raise ValueError(raw)
    if isinstance(raw, int):
        code = raw
    elif isinstance(raw, str) and _CODE_RE.fullmatch(raw):
        code = int(raw)
    else:
        raise ValueError(raw)
    if not _INT64_MIN <= code <= _INT64_MAX:
        raise ValueError(raw)
    return code


def check_error_response(http_status_code: int, response_code: Any) -> ResponseError | None:
    """
    Classify a response. Returns None on success, otherwise the error to raise.

    A status below 400 is success whatever the code says. Past that, code 0
    is success too; any other code maps to a ``Reason``.
    """
    if http_status_code < 400:
        return None
    try:
        code = _parse_response_code(response_code)
    except ValueError:
        return InvalidResponseCodeError(http_status_code, response_code)
    return new_response_error(http_status_code, code)


class Requester:
    """Sends request envelopes and hands back (status, decoded body)."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def post(self, body: APIRequest) -> tuple[int, dict[str, Any]]:
        return self._send("POST", body.method, json_body=body.to_dict())

    def get(self, body: APIRequest) -> tuple[int, dict[str, Any]]:
        return self._send("GET", body.method, json_body=body.to_dict())

    def get_query(self, method: str, params: dict[str, Any] | None = None) -> tuple[int, dict[str, Any]]:
        return self._send("GET", method, params=params or {})

    def _send(
        self,
        http_method: str,
        method: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> tuple[int, dict[str, Any]]:
        url = f"{self.base_url}{method}"
        headers = {"Content-Type": "application/json"}

        logger.debug("%s %s", http_method, method)
        try:
            if http_method == "POST":
                response = self.session.post(url, json=json_body, headers=headers, timeout=self.timeout)
            elif json_body is not None:
                response = self.session.get(url, json=json_body, headers=headers, timeout=self.timeout)
            else:
                response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
        except InvalidJSONError as e:
            # raised while preparing the body, nothing was sent
            raise InvalidParameterError("params", f"cannot be encoded as JSON: {e}") from e
        except Timeout as e:
            logger.error("%s %s timed out", http_method, method)
            raise ExchangeNetworkError(f"Timeout calling {url}", cause=e) from e
        except RequestException as e:
            logger.error("%s %s network error: %s", http_method, method, e)
            raise ExchangeNetworkError(f"Network error calling {url}: {e}", cause=e) from e

        try:
            data = response.json()
        except ValueError as e:
            raise ExchangeHTTPError(
                status_code=response.status_code,
                message="Invalid JSON in response",
                method=http_method,
                path=method,
                body=(response.text or "")[:300],
            ) from e

        if not isinstance(data, dict):
            raise ExchangeHTTPError(
                status_code=response.status_code,
                message="Unexpected JSON type (expected object)",
                method=http_method,
                path=method,
                body=(response.text or "")[:300],
            )

        return response.status_code, data
