"""Configuration for the exchange engine and service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from exchange.constants import BPS_DENOMINATOR, DEFAULT_FEE_BPS

_TRUTHY = ("true", "1", "yes")


@dataclass(frozen=True)
class PoolConfig:
    """Fixed configuration of a pool.

    Attributes:
        fee_bps: Swap fee in basis points, deducted from the input and kept
            in the pool (default: 30 = 0.3%)
    """

    fee_bps: int = DEFAULT_FEE_BPS

    def __post_init__(self) -> None:
        if isinstance(self.fee_bps, bool) or not isinstance(self.fee_bps, int):
            raise TypeError(f"fee_bps must be int, got {type(self.fee_bps).__name__}")
        if not 0 <= self.fee_bps < BPS_DENOMINATOR:
            raise ValueError(f"fee_bps must be in [0, {BPS_DENOMINATOR}), got {self.fee_bps}")


@dataclass(frozen=True)
class Settings:
    """Service settings, read from EXCHANGE_* environment variables.

    Attributes:
        host: Host the API binds to
        port: Port the API binds to
        debug: Enable uvicorn reload mode
        log_level: Minimum structlog level name
        seed_liquidity: Add the default liquidity when deploying
        pool: Pool configuration
    """

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"
    seed_liquidity: bool = True
    pool: PoolConfig = field(default_factory=PoolConfig)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Build settings from the environment, falling back to defaults."""
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("EXCHANGE_HOST", "0.0.0.0"),
            port=int(env.get("EXCHANGE_PORT", "8000")),
            debug=env.get("EXCHANGE_DEBUG", "false").lower() in _TRUTHY,
            log_level=env.get("EXCHANGE_LOG_LEVEL", "INFO").upper(),
            seed_liquidity=env.get("EXCHANGE_SEED_LIQUIDITY", "true").lower() in _TRUTHY,
            pool=PoolConfig(fee_bps=int(env.get("EXCHANGE_FEE_BPS", str(DEFAULT_FEE_BPS)))),
        )


DEFAULT_POOL_CONFIG = PoolConfig()
