"""Factory functions for creating test objects.

Usage:
    from tests.helpers import make_token, fund

    token = make_token("TKA")
    fund(token, ALICE, 100 * ETHER, spender=pool.address)
"""

from exchange.amm.pool import Pool
from exchange.config import PoolConfig
from exchange.errors import TokenError
from exchange.ledger import InMemoryToken
from tests.helpers.constants import DEPLOYER, T0


class FakeClock:
    """Settable clock for escrow tests (unix seconds)."""

    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class FailingPayoutToken(InMemoryToken):
    """Token that rejects every transfer sent from failing_sender."""

    def __init__(self, symbol: str, sender: str | None = None) -> None:
        super().__init__(f"Token {symbol}", symbol)
        self.failing_sender = sender

    def transfer(self, sender: str, to: str, amount: int) -> None:
        if self.failing_sender is not None and sender == self.failing_sender:
            raise TokenError(f"{self.symbol}: transfer from {sender} rejected")
        super().transfer(sender, to, amount)


def make_token(symbol: str, supply: int = 0, owner: str = DEPLOYER) -> InMemoryToken:
    """Create a token, minting supply to owner."""
    return InMemoryToken(f"Token {symbol}", symbol, supply, owner=owner if supply else None)


def fund(token: InMemoryToken, owner: str, amount: int, spender: str | None = None) -> None:
    """Mint amount to owner and, if spender is given, approve it for the same amount."""
    token.mint(owner, amount)
    if spender is not None:
        token.approve(owner, spender, token.allowance(owner, spender) + amount)


def make_pool(
    reserve_a: int = 0,
    reserve_b: int = 0,
    fee_bps: int = 30,
    provider: str = DEPLOYER,
) -> Pool:
    """Create a pool over two fresh tokens, seeded by provider when reserves are given."""
    pool = Pool(make_token("TKA"), make_token("TKB"), config=PoolConfig(fee_bps=fee_bps))
    if reserve_a or reserve_b:
        fund(pool.token_a, provider, reserve_a, spender=pool.address)
        fund(pool.token_b, provider, reserve_b, spender=pool.address)
        pool.add_liquidity(reserve_a, reserve_b, provider)
    return pool


__all__ = ["FakeClock", "FailingPayoutToken", "make_token", "fund", "make_pool"]
