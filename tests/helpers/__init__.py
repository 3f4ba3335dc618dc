"""Test helpers module for shared test utilities.

- constants: Accounts, amounts and the escrow start time
- factories: Token, pool and clock factories
"""

from tests.helpers.constants import (
    ALICE,
    ALICE_FUNDS,
    BOB,
    BOB_FUNDS,
    CAROL,
    DEPLOYER,
    ETHER,
    T0,
)
from tests.helpers.factories import FailingPayoutToken, FakeClock, fund, make_pool, make_token

__all__ = [
    # Constants
    "DEPLOYER",
    "ALICE",
    "BOB",
    "CAROL",
    "ETHER",
    "ALICE_FUNDS",
    "BOB_FUNDS",
    "T0",
    # Factories
    "FakeClock",
    "FailingPayoutToken",
    "make_token",
    "fund",
    "make_pool",
]
