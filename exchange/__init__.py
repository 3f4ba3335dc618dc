"""Constant product AMM and hash time-locked atomic swap escrow."""

from exchange.amm.pool import Pool
from exchange.htlc.escrow import AtomicSwapEscrow

__version__ = "0.1.0"
__all__ = ["Pool", "AtomicSwapEscrow", "__version__"]
