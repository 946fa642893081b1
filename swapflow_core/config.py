"""
Engine settings: admission limits, retry policy, simulator parameters.

Defaults: 10 concurrent orders, 100 starts per
minute, 3 attempts with 1 s exponential backoff. from_env() overrides them
from SWAPFLOW_* environment variables.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

from swapflow_core.errors import ConfigError

ENV_PREFIX = "SWAPFLOW_"


@dataclass(frozen=True)
class EngineSettings:
    """All tunables of the engine. Immutable; use with_overrides() to derive."""

    concurrency: int = 10
    rate_limit: int = 100
    rate_window: float = 60.0
    max_attempts: int = 3
    backoff_base: float = 1.0
    base_price: float = 100.0
    quote_latency_min: float = 0.2
    quote_latency_max: float = 0.4
    settlement_latency_min: float = 2.0
    settlement_latency_max: float = 3.0
    failure_rate: float = 0.02
    list_limit: int = 100
    subscription_hint: str = "/api/orders/execute (websocket)"
    database_path: str | None = None

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ConfigError("concurrency must be >= 1")
        if self.rate_limit < 1:
            raise ConfigError("rate_limit must be >= 1")
        if self.rate_window <= 0:
            raise ConfigError("rate_window must be > 0")
        if self.max_attempts < 1:
            raise ConfigError("max_attempts must be >= 1")
        if self.backoff_base < 0:
            raise ConfigError("backoff_base must be >= 0")
        if self.base_price <= 0:
            raise ConfigError("base_price must be > 0")
        if not 0.0 <= self.failure_rate <= 1.0:
            raise ConfigError("failure_rate must be within [0, 1]")
        if self.quote_latency_min > self.quote_latency_max:
            raise ConfigError("quote_latency_min must not exceed quote_latency_max")
        if self.settlement_latency_min > self.settlement_latency_max:
            raise ConfigError("settlement_latency_min must not exceed settlement_latency_max")
        if self.list_limit < 1:
            raise ConfigError("list_limit must be >= 1")

    @property
    def quote_latency(self) -> tuple[float, float]:
        return (self.quote_latency_min, self.quote_latency_max)

    @property
    def settlement_latency(self) -> tuple[float, float]:
        return (self.settlement_latency_min, self.settlement_latency_max)

    def with_overrides(self, **changes: Any) -> EngineSettings:
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineSettings:
        """
        Build settings from SWAPFLOW_<FIELD> variables (e.g. SWAPFLOW_CONCURRENCY=20).
        Unset variables keep their defaults; malformed values raise ConfigError.
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            overrides[f.name] = _parse(f.name, raw.strip(), _PARSERS.get(f.name, str))
        return cls(**overrides)


def _parse(name: str, raw: str, parser: Callable[[str], Any]) -> Any:
    try:
        return parser(raw)
    except ValueError as e:
        raise ConfigError(f"{ENV_PREFIX}{name.upper()}={raw!r}: {e}") from e


_PARSERS: dict[str, Callable[[str], Any]] = {
    "concurrency": int,
    "rate_limit": int,
    "rate_window": float,
    "max_attempts": int,
    "backoff_base": float,
    "base_price": float,
    "quote_latency_min": float,
    "quote_latency_max": float,
    "settlement_latency_min": float,
    "settlement_latency_max": float,
    "failure_rate": float,
    "list_limit": int,
}
