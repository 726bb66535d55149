from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Protocol

from .errors import SignatureError


@dataclass(frozen=True)
class SignatureRequest:
    api_key: str
    secret_key: str = field(repr=False)
    id: int
    method: str
    timestamp: int
    params: Mapping[str, Any] = field(default_factory=dict)


class SignatureGenerator(Protocol):
    def generate_signature(self, req: SignatureRequest) -> str: ...


class Generator:
    """
    Crypto.com request signer.

    Signature:
      payload = method + id + api_key + sorted(key + value ...) + nonce
      sig     = hex(HMAC-SHA256(secret_key, payload))
    """

    def generate_signature(self, req: SignatureRequest) -> str:
        payload = f"{req.method}{req.id}{req.api_key}{self.build_param_string(req.params)}{req.timestamp}"
        return hmac.new(
            req.secret_key.encode("utf-8"),
            payload.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def build_param_string(self, params: Mapping[str, Any] | None) -> str:
        if not params:
            return ""
        # IMPORTANT: key+value concatenation, no '=' and no '&'
        return "".join(f"{k}{self._format_value(k, v)}" for k, v in sorted(params.items()))

    @staticmethod
    def _format_value(key: str, value: Any) -> str:
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, Enum):
            value = value.value
        if isinstance(value, (str, int, float, Decimal)):
            return str(value)
        raise SignatureError(f"failed to create signature: unsupported value for param {key!r}: {type(value).__name__}")
