from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Environment(str, Enum):
    PRODUCTION = "production"
    UAT_SANDBOX = "uat_sandbox"

    @property
    def base_url(self) -> str:
        return _BASE_URLS[self]


_BASE_URLS = {
    Environment.PRODUCTION: "https://api.crypto.com/v2/",
    Environment.UAT_SANDBOX: "https://uat-api.3ona.co/v2/",
}


@dataclass(frozen=True)
class ExchangeConfig:
    environment: Environment = Environment.PRODUCTION
    # Overrides the environment's URL when set (e.g. a local mock server)
    base_url: str | None = None
    timeout: float = 10.0

    @property
    def resolved_base_url(self) -> str:
        url = self.base_url or self.environment.base_url
        # methods are appended directly: "<base>/private/create-order"
        return url if url.endswith("/") else f"{url}/"
