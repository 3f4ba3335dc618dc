"""Constant product liquidity pool.

A Pool holds custody of two token balances and a ledger of liquidity
shares. Reserves are tracked internally rather than read from the token
ledgers, so tokens sent to the pool outside of these operations are not
counted.

Every operation validates its inputs and the caller's token approvals
before changing anything, then commits reserves, shares and transfers
together while holding the pool lock.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

import structlog

from exchange.amm import constant_product
from exchange.amm.base import LiquidityResult, PoolSnapshot, SwapResult
from exchange.config import DEFAULT_POOL_CONFIG, PoolConfig
from exchange.errors import (
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientShares,
    SlippageExceeded,
    ZeroAmount,
)
from exchange.ledger import TokenLedger, derive_address
from exchange.models.types import normalize_address
from exchange.safe_int import S

logger = structlog.get_logger()


class Pool:
    """Two-asset constant product pool with fee-accruing liquidity shares.

    Invariants:
    - reserve_a == 0, reserve_b == 0 and total_liquidity == 0 hold together
    - the sum of all provider shares equals total_liquidity
    - reserve_a * reserve_b never decreases across a swap
    """

    def __init__(
        self,
        token_a: TokenLedger,
        token_b: TokenLedger,
        config: PoolConfig = DEFAULT_POOL_CONFIG,
        address: str | None = None,
    ) -> None:
        if normalize_address(token_a.address) == normalize_address(token_b.address):
            raise ValueError("Pool tokens must be distinct")

        self._token_a = token_a
        self._token_b = token_b
        self.config = config
        self._address = normalize_address(
            address or derive_address("pool", token_a.address, token_b.address), validate=True
        )
        self._reserve_a = 0
        self._reserve_b = 0
        self._total_shares = 0
        self._shares: dict[str, int] = {}
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return (
            f"Pool({self._address}, reserves=({self._reserve_a}, {self._reserve_b}), "
            f"shares={self._total_shares})"
        )

    # --- Read accessors ---

    @property
    def address(self) -> str:
        return self._address

    @property
    def token_a(self) -> TokenLedger:
        return self._token_a

    @property
    def token_b(self) -> TokenLedger:
        return self._token_b

    @property
    def fee_bps(self) -> int:
        return self.config.fee_bps

    @property
    def reserve_a(self) -> int:
        return self._reserve_a

    @property
    def reserve_b(self) -> int:
        return self._reserve_b

    @property
    def total_liquidity(self) -> int:
        return self._total_shares

    def liquidity_of(self, provider: str) -> int:
        return self._shares.get(normalize_address(provider), 0)

    def snapshot(self) -> PoolSnapshot:
        with self._lock:
            return PoolSnapshot(
                address=self._address,
                token_a=self._token_a.address,
                token_b=self._token_b.address,
                reserve_a=self._reserve_a,
                reserve_b=self._reserve_b,
                total_shares=self._total_shares,
                fee_bps=self.fee_bps,
            )

    def get_reserves(self, a_to_b: bool) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        with self._lock:
            if a_to_b:
                return self._reserve_a, self._reserve_b
            return self._reserve_b, self._reserve_a

    # --- Quotes (no side effects) ---

    def get_amount_out(self, amount_in: int, a_to_b: bool) -> int:
        """Output received for swapping amount_in in the given direction.

        Raises:
            ZeroAmount: If amount_in is not positive
            EmptyPool: If the pool has no reserves
        """
        reserve_in, reserve_out = self.get_reserves(a_to_b)
        return constant_product.get_amount_out(amount_in, reserve_in, reserve_out, self.fee_bps)

    def get_amount_in(self, amount_out: int, a_to_b: bool) -> int:
        """Smallest input that yields at least amount_out in the given direction."""
        reserve_in, reserve_out = self.get_reserves(a_to_b)
        return constant_product.get_amount_in(amount_out, reserve_in, reserve_out, self.fee_bps)

    def quote(self, amount: int, a_to_b: bool = True) -> int:
        """Counter-amount that matches amount at the current reserve ratio.

        With a_to_b=True, amount is in token A and the result in token B.
        """
        reserve_in, reserve_out = self.get_reserves(a_to_b)
        return constant_product.quote(amount, reserve_in, reserve_out)

    # --- Liquidity ---

    def add_liquidity(self, amount_a: int, amount_b: int, provider: str) -> LiquidityResult:
        """Deposit both tokens and mint liquidity shares to provider.

        The first deposit sets the price and mints floor(sqrt(a * b))
        shares. Later deposits must match the reserve ratio.

        Provider must have approved the pool for both amounts.

        Raises:
            ZeroAmount: If an amount is zero or the deposit mints no shares
            RatioMismatch: If the deposit is off the reserve ratio
            InsufficientAllowance, InsufficientBalance: If the pull would fail
        """
        provider = normalize_address(provider)
        if amount_a <= 0 or amount_b <= 0:
            raise ZeroAmount("Both deposit amounts must be positive")

        with self._lock:
            if self._total_shares == 0:
                minted = constant_product.initial_shares(amount_a, amount_b)
            else:
                minted = constant_product.shares_for_deposit(
                    amount_a, amount_b, self._reserve_a, self._reserve_b, self._total_shares
                )

            new_reserve_a = (S(self._reserve_a) + S(amount_a)).to_uint256()
            new_reserve_b = (S(self._reserve_b) + S(amount_b)).to_uint256()

            self._pull(provider, [(self._token_a, amount_a), (self._token_b, amount_b)])

            self._reserve_a = new_reserve_a
            self._reserve_b = new_reserve_b
            self._total_shares += minted
            self._shares[provider] = self._shares.get(provider, 0) + minted

            result = LiquidityResult(
                provider=provider,
                amount_a=amount_a,
                amount_b=amount_b,
                shares=minted,
                total_shares=self._total_shares,
            )

        logger.info(
            "liquidity_added",
            pool=self._address,
            provider=provider,
            amount_a=amount_a,
            amount_b=amount_b,
            shares=minted,
            total_shares=result.total_shares,
        )
        return result

    def remove_liquidity(self, shares: int, provider: str) -> LiquidityResult:
        """Burn provider's shares and pay out the proportional reserves.

        Raises:
            InsufficientShares: If shares is not in (0, provider balance]
            ZeroAmount: If the payout of either token rounds down to zero
            TokenError: If a ledger rejects a payout; shares and reserves are unchanged
        """
        provider = normalize_address(provider)

        with self._lock:
            owned = self._shares.get(provider, 0)
            if shares <= 0 or shares > owned:
                raise InsufficientShares(f"{provider} owns {owned} shares, cannot burn {shares}")

            amount_a, amount_b = constant_product.withdrawal_amounts(
                shares, self._reserve_a, self._reserve_b, self._total_shares
            )
            if amount_a == 0 or amount_b == 0:
                raise ZeroAmount(f"Burning {shares} shares pays out ({amount_a}, {amount_b})")

            new_reserve_a = (S(self._reserve_a) - S(amount_a)).value
            new_reserve_b = (S(self._reserve_b) - S(amount_b)).value
            new_total = (S(self._total_shares) - S(shares)).value

            self._pay(provider, [(self._token_a, amount_a), (self._token_b, amount_b)])

            self._reserve_a = new_reserve_a
            self._reserve_b = new_reserve_b
            self._total_shares = new_total
            remaining = owned - shares
            if remaining:
                self._shares[provider] = remaining
            else:
                del self._shares[provider]

            result = LiquidityResult(
                provider=provider,
                amount_a=amount_a,
                amount_b=amount_b,
                shares=shares,
                total_shares=self._total_shares,
            )

        logger.info(
            "liquidity_removed",
            pool=self._address,
            provider=provider,
            amount_a=amount_a,
            amount_b=amount_b,
            shares=shares,
            total_shares=result.total_shares,
        )
        return result

    # --- Swaps ---

    def swap(
        self, amount_in: int, trader: str, a_to_b: bool, min_amount_out: int = 0
    ) -> SwapResult:
        """Swap amount_in of the input token for the output token.

        Trader must have approved the pool for amount_in of the input token.

        Raises:
            ZeroAmount: If amount_in is zero or the output rounds down to zero
            EmptyPool: If the pool has no reserves
            SlippageExceeded: If the output is below min_amount_out
            InsufficientAllowance, InsufficientBalance: If the pull would fail
            TokenError: If the ledger rejects the payout; the input is returned
        """
        trader = normalize_address(trader)
        token_in, token_out = (
            (self._token_a, self._token_b) if a_to_b else (self._token_b, self._token_a)
        )

        with self._lock:
            reserve_in, reserve_out = self.get_reserves(a_to_b)
            amount_out = constant_product.get_amount_out(
                amount_in, reserve_in, reserve_out, self.fee_bps
            )
            if amount_out == 0:
                raise ZeroAmount(f"Swap of {amount_in} yields no output")
            if amount_out < min_amount_out:
                raise SlippageExceeded(f"Output {amount_out} below minimum {min_amount_out}")

            new_reserve_in = (S(reserve_in) + S(amount_in)).to_uint256()
            new_reserve_out = (S(reserve_out) - S(amount_out)).value

            self._pull(trader, [(token_in, amount_in)])
            try:
                self._pay(trader, [(token_out, amount_out)])
            except Exception:
                token_in.transfer(self._address, trader, amount_in)
                raise

            if a_to_b:
                self._reserve_a, self._reserve_b = new_reserve_in, new_reserve_out
            else:
                self._reserve_b, self._reserve_a = new_reserve_in, new_reserve_out

            result = SwapResult(
                amount_in=amount_in,
                amount_out=amount_out,
                token_in=token_in.address,
                token_out=token_out.address,
                trader=trader,
                reserve_a=self._reserve_a,
                reserve_b=self._reserve_b,
            )

        logger.info(
            "swap_executed",
            pool=self._address,
            trader=trader,
            token_in=result.token_in,
            amount_in=amount_in,
            amount_out=amount_out,
            reserve_a=result.reserve_a,
            reserve_b=result.reserve_b,
        )
        return result

    def swap_a_for_b(self, amount_in: int, trader: str, min_amount_out: int = 0) -> SwapResult:
        return self.swap(amount_in, trader, a_to_b=True, min_amount_out=min_amount_out)

    def swap_b_for_a(self, amount_in: int, trader: str, min_amount_out: int = 0) -> SwapResult:
        return self.swap(amount_in, trader, a_to_b=False, min_amount_out=min_amount_out)

    # --- Custody ---

    def _pull(self, owner: str, transfers: Iterable[tuple[TokenLedger, int]]) -> None:
        """Pull approved tokens from owner into pool custody, all or nothing."""
        transfers = list(transfers)
        for token, amount in transfers:
            allowed = token.allowance(owner, self._address)
            if allowed < amount:
                raise InsufficientAllowance(
                    f"Pool allowance for {token.address} is {allowed}, need {amount}"
                )
            balance = token.balance_of(owner)
            if balance < amount:
                raise InsufficientBalance(
                    f"{owner} holds {balance} of {token.address}, need {amount}"
                )

        pulled: list[tuple[TokenLedger, int]] = []
        try:
            for token, amount in transfers:
                token.transfer_from(self._address, owner, self._address, amount)
                pulled.append((token, amount))
        except Exception:
            for token, amount in reversed(pulled):
                token.transfer(self._address, owner, amount)
            raise

    def _pay(self, owner: str, transfers: Iterable[tuple[TokenLedger, int]]) -> None:
        """Pay tokens out of pool custody to owner, all or nothing."""
        paid: list[tuple[TokenLedger, int]] = []
        try:
            for token, amount in transfers:
                token.transfer(self._address, owner, amount)
                paid.append((token, amount))
        except Exception:
            for token, amount in reversed(paid):
                token.transfer(owner, self._address, amount)
            raise
