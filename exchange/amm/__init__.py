"""Constant product AMM: pure math and the stateful pool."""

from exchange.amm.base import LiquidityResult, PoolSnapshot, SwapResult
from exchange.amm.constant_product import get_amount_in, get_amount_out
from exchange.amm.pool import Pool

__all__ = [
    "Pool",
    "PoolSnapshot",
    "LiquidityResult",
    "SwapResult",
    "get_amount_out",
    "get_amount_in",
]
