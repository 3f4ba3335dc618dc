"""Hash time-locked atomic swap escrow."""

from exchange.htlc.escrow import AtomicSwapEscrow, SwapRecord, SwapState, swap_id
from exchange.htlc.secrets import hash_secret, new_secret, verify_secret

__all__ = [
    "AtomicSwapEscrow",
    "SwapRecord",
    "SwapState",
    "swap_id",
    "hash_secret",
    "new_secret",
    "verify_secret",
]
