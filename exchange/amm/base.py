"""Result records returned by pool operations."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SwapResult:
    """Result of a swap executed against a pool."""

    amount_in: int
    amount_out: int
    token_in: str
    token_out: str
    trader: str
    reserve_a: int
    reserve_b: int


@dataclass(frozen=True)
class LiquidityResult:
    """Result of adding or removing liquidity."""

    provider: str
    amount_a: int
    amount_b: int
    shares: int
    total_shares: int


@dataclass(frozen=True)
class PoolSnapshot:
    """Point-in-time view of a pool's accounting."""

    address: str
    token_a: str
    token_b: str
    reserve_a: int
    reserve_b: int
    total_shares: int
    fee_bps: int

    @property
    def is_empty(self) -> bool:
        return self.total_shares == 0

    @property
    def k(self) -> int:
        """Constant-product value reserve_a * reserve_b."""
        return self.reserve_a * self.reserve_b
