"""Token ledger collaborator.

The pool and the escrow never own token balances directly; they hold
balances in external fungible-token ledgers addressed by the component's
own address. TokenLedger is the minimal interface they rely on.
InMemoryToken is a conventional approve/transferFrom token used by the
deployment bootstrap, the HTTP service and the tests.
"""

from __future__ import annotations

import hashlib
import itertools
import threading
from typing import Protocol, runtime_checkable

import structlog

from exchange.constants import TOKEN_DECIMALS
from exchange.errors import InsufficientAllowance, InsufficientBalance
from exchange.models.types import normalize_address
from exchange.safe_int import S

logger = structlog.get_logger()

_token_nonce = itertools.count()


@runtime_checkable
class TokenLedger(Protocol):
    """Minimal token interface the exchange components depend on."""

    @property
    def address(self) -> str: ...

    def balance_of(self, owner: str) -> int: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def transfer(self, sender: str, to: str, amount: int) -> None: ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None: ...


def derive_address(*parts: str | int) -> str:
    """Derive a deterministic 20-byte address from arbitrary parts."""
    digest = hashlib.sha256(":".join(str(p) for p in parts).encode()).digest()
    return "0x" + digest[-20:].hex()


class InMemoryToken:
    """Fungible token with balances and allowances held in memory.

    Transfers validate balance and allowance before touching either, so a
    failed transfer leaves the ledger unchanged.
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        initial_supply: int = 0,
        owner: str | None = None,
        decimals: int = TOKEN_DECIMALS,
        address: str | None = None,
    ) -> None:
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self._address = normalize_address(
            address or derive_address("token", name, symbol, next(_token_nonce)),
            validate=True,
        )
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._total_supply = 0
        self._lock = threading.RLock()

        if initial_supply:
            if owner is None:
                raise ValueError("initial_supply requires an owner")
            self.mint(owner, initial_supply)

    def __repr__(self) -> str:
        return f"InMemoryToken({self.symbol}, {self._address})"

    @property
    def address(self) -> str:
        return self._address

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, owner: str) -> int:
        return self._balances.get(normalize_address(owner), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        """Set the amount spender may move out of owner's balance."""
        S(amount).to_uint256()
        with self._lock:
            self._allowances[(normalize_address(owner), normalize_address(spender))] = amount
        logger.debug(
            "token_approval", token=self.symbol, owner=owner, spender=spender, amount=amount
        )

    def mint(self, to: str, amount: int) -> None:
        """Create new tokens in to's balance."""
        with self._lock:
            to = normalize_address(to)
            new_supply = (S(self._total_supply) + S(amount)).to_uint256()
            self._balances[to] = self._balances.get(to, 0) + amount
            self._total_supply = new_supply

    def transfer(self, sender: str, to: str, amount: int) -> None:
        """Move amount from sender to to.

        Raises:
            InsufficientBalance: If sender holds less than amount
        """
        with self._lock:
            self._check_balance(sender, amount)
            self._move(sender, to, amount)

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        """Move amount from owner to to, consuming spender's allowance.

        Raises:
            InsufficientAllowance: If spender is approved for less than amount
            InsufficientBalance: If owner holds less than amount
        """
        with self._lock:
            allowed = self.allowance(owner, spender)
            if allowed < amount:
                raise InsufficientAllowance(
                    f"{self.symbol}: allowance {allowed} < {amount} for spender {spender}"
                )
            self._check_balance(owner, amount)
            key = (normalize_address(owner), normalize_address(spender))
            self._allowances[key] = allowed - amount
            self._move(owner, to, amount)

    def _check_balance(self, owner: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Transfer amount cannot be negative: {amount}")
        balance = self.balance_of(owner)
        if balance < amount:
            raise InsufficientBalance(f"{self.symbol}: balance {balance} < {amount} for {owner}")

    def _move(self, sender: str, to: str, amount: int) -> None:
        sender, to = normalize_address(sender), normalize_address(to)
        self._balances[sender] = (S(self._balances.get(sender, 0)) - S(amount)).value
        self._balances[to] = self._balances.get(to, 0) + amount
