"""Hash time-locked escrow for two-party atomic swaps.

An initiator locks tokens for a counterparty behind the hash of a secret.
Before expiry the counterparty claims them by revealing the secret; from
expiry on, only the initiator can take them back. Each record settles
exactly once.
"""

from __future__ import annotations

import hashlib
import itertools
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

import structlog
from eth_abi import encode  # type: ignore[attr-defined]

from exchange.constants import SECRET_HASH_LENGTH
from exchange.errors import (
    AlreadySettled,
    Expired,
    ExpiryInPast,
    InsufficientAllowance,
    InsufficientBalance,
    NotFound,
    NotYetExpired,
    SecretMismatch,
    Unauthorized,
    ZeroAmount,
)
from exchange.htlc.secrets import verify_secret
from exchange.ledger import TokenLedger, derive_address
from exchange.models.types import bytes_to_hex, hex_to_bytes, normalize_address

logger = structlog.get_logger()

Clock = Callable[[], int]

_escrow_nonce = itertools.count()


def system_clock() -> int:
    """Current unix time in whole seconds."""
    return int(time.time())


class SwapState(str, Enum):
    """Lifecycle state of an escrowed swap."""

    CREATED = "created"
    CLAIMED = "claimed"
    REFUNDED = "refunded"

    @property
    def is_terminal(self) -> bool:
        return self is not SwapState.CREATED


@dataclass
class SwapRecord:
    """An escrowed swap.

    Only the escrow mutates a record, and only once: from CREATED to
    CLAIMED or REFUNDED.
    """

    id: str
    initiator: str
    counterparty: str
    asset: TokenLedger
    amount: int
    secret_hash: bytes
    expiry: int
    nonce: int
    state: SwapState = SwapState.CREATED
    # Revealed by a successful claim
    secret: bytes | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def is_expired(self, now: int) -> bool:
        return now >= self.expiry


def swap_id(
    initiator: str,
    counterparty: str,
    asset: str,
    amount: int,
    secret_hash: bytes,
    nonce: int,
) -> str:
    """Deterministic id of a swap: sha256 over the ABI-encoded terms."""
    encoded = encode(
        ["address", "address", "address", "uint256", "bytes32", "uint256"],
        [
            hex_to_bytes(initiator),
            hex_to_bytes(counterparty),
            hex_to_bytes(asset),
            amount,
            secret_hash,
            nonce,
        ],
    )
    return bytes_to_hex(hashlib.sha256(encoded).digest())


class AtomicSwapEscrow:
    """Custodian of hash time-locked swap records.

    Args:
        clock: Returns the current time in unix seconds (default: system time)
        address: Escrow address on the token ledgers (default: derived)
    """

    def __init__(self, clock: Clock = system_clock, address: str | None = None) -> None:
        self._clock = clock
        self._address = normalize_address(
            address or derive_address("escrow", next(_escrow_nonce)), validate=True
        )
        self._records: dict[str, SwapRecord] = {}
        self._nonce = itertools.count()
        self._lock = threading.Lock()

    @property
    def address(self) -> str:
        return self._address

    def now(self) -> int:
        return self._clock()

    def get(self, record_id: str) -> SwapRecord:
        """Look up a swap record.

        Raises:
            NotFound: If no record has this id
        """
        record = self._records.get(record_id.lower())
        if record is None:
            raise NotFound(f"No swap with id {record_id}")
        return record

    def records(self) -> list[SwapRecord]:
        return list(self._records.values())

    def create(
        self,
        counterparty: str,
        asset: TokenLedger,
        amount: int,
        secret_hash: bytes,
        expiry: int,
        initiator: str,
    ) -> SwapRecord:
        """Lock amount of asset for counterparty behind secret_hash until expiry.

        Initiator must have approved the escrow for amount.

        Raises:
            ZeroAmount: If amount is not positive
            ExpiryInPast: If expiry is not strictly after the current time
            ValueError: If secret_hash is not 32 bytes
            InsufficientAllowance, InsufficientBalance: If the pull would fail
        """
        initiator = normalize_address(initiator, validate=True)
        counterparty = normalize_address(counterparty, validate=True)
        if amount <= 0:
            raise ZeroAmount("Escrow amount must be positive")
        if len(secret_hash) != SECRET_HASH_LENGTH:
            raise ValueError(
                f"secret_hash must be {SECRET_HASH_LENGTH} bytes, got {len(secret_hash)}"
            )
        now = self.now()
        if expiry <= now:
            raise ExpiryInPast(f"Expiry {expiry} is not after current time {now}")

        allowed = asset.allowance(initiator, self._address)
        if allowed < amount:
            raise InsufficientAllowance(f"Escrow allowance is {allowed}, need {amount}")
        balance = asset.balance_of(initiator)
        if balance < amount:
            raise InsufficientBalance(f"{initiator} holds {balance}, need {amount}")

        with self._lock:
            nonce = next(self._nonce)
            record = SwapRecord(
                id=swap_id(initiator, counterparty, asset.address, amount, secret_hash, nonce),
                initiator=initiator,
                counterparty=counterparty,
                asset=asset,
                amount=amount,
                secret_hash=secret_hash,
                expiry=expiry,
                nonce=nonce,
            )
            asset.transfer_from(self._address, initiator, self._address, amount)
            self._records[record.id] = record

        logger.info(
            "swap_created",
            swap_id=record.id,
            initiator=initiator,
            counterparty=counterparty,
            asset=asset.address,
            amount=amount,
            expiry=expiry,
        )
        return record

    def claim(self, record_id: str, secret: bytes, claimant: str) -> SwapRecord:
        """Release the escrowed tokens to the counterparty.

        Raises:
            NotFound: If no record has this id
            Expired: If the current time is at or past expiry
            AlreadySettled: If the record was already claimed
            Unauthorized: If claimant is not the counterparty
            SecretMismatch: If secret does not hash to the secret hash
        """
        record = self.get(record_id)
        claimant = normalize_address(claimant)

        with record._lock:
            now = self.now()
            if record.is_expired(now):
                raise Expired(f"Swap {record.id} expired at {record.expiry} (now {now})")
            if record.state.is_terminal:
                raise AlreadySettled(f"Swap {record.id} is already {record.state.value}")
            if claimant != record.counterparty:
                raise Unauthorized(f"{claimant} is not the counterparty of swap {record.id}")
            if not verify_secret(secret, record.secret_hash):
                raise SecretMismatch(f"Secret does not match hashlock of swap {record.id}")

            record.asset.transfer(self._address, claimant, record.amount)
            record.state = SwapState.CLAIMED
            record.secret = secret

        logger.info("swap_claimed", swap_id=record.id, claimant=claimant, amount=record.amount)
        return record

    def refund(self, record_id: str, caller: str) -> SwapRecord:
        """Return the escrowed tokens to the initiator after expiry.

        Raises:
            NotFound: If no record has this id
            NotYetExpired: If the current time is before expiry
            AlreadySettled: If the record was already claimed or refunded
            Unauthorized: If caller is not the initiator
        """
        record = self.get(record_id)
        caller = normalize_address(caller)

        with record._lock:
            now = self.now()
            if not record.is_expired(now):
                raise NotYetExpired(f"Swap {record.id} expires at {record.expiry} (now {now})")
            if record.state.is_terminal:
                raise AlreadySettled(f"Swap {record.id} is already {record.state.value}")
            if caller != record.initiator:
                raise Unauthorized(f"{caller} is not the initiator of swap {record.id}")

            record.asset.transfer(self._address, record.initiator, record.amount)
            record.state = SwapState.REFUNDED

        logger.info(
            "swap_refunded", swap_id=record.id, initiator=record.initiator, amount=record.amount
        )
        return record
