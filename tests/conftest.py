"""Pytest configuration and fixtures."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from exchange.amm.pool import Pool
from exchange.api.endpoints import get_deployment
from exchange.api.main import app
from exchange.config import Settings
from exchange.deploy import Deployment, deploy
from exchange.htlc.escrow import AtomicSwapEscrow
from exchange.ledger import InMemoryToken
from tests.helpers import (
    ALICE,
    ALICE_FUNDS,
    BOB,
    BOB_FUNDS,
    DEPLOYER,
    ETHER,
    FakeClock,
    make_token,
)

# =============================================================================
# Tokens and pools
# =============================================================================


@pytest.fixture
def token_a() -> InMemoryToken:
    """Token A with the deployer's supply, Alice and Bob funded."""
    token = make_token("TKA", supply=1_000_000 * ETHER)
    token.transfer(DEPLOYER, ALICE, ALICE_FUNDS)
    token.transfer(DEPLOYER, BOB, BOB_FUNDS)
    return token


@pytest.fixture
def token_b() -> InMemoryToken:
    """Token B with the deployer's supply, Alice and Bob funded."""
    token = make_token("TKB", supply=1_000_000 * ETHER)
    token.transfer(DEPLOYER, ALICE, ALICE_FUNDS)
    token.transfer(DEPLOYER, BOB, BOB_FUNDS)
    return token


@pytest.fixture
def pool(token_a: InMemoryToken, token_b: InMemoryToken) -> Pool:
    """An empty pool with the default 30 bps fee."""
    return Pool(token_a, token_b)


@pytest.fixture
def funded_pool(pool: Pool) -> Pool:
    """Pool after Alice deposits 100 A / 200 B."""
    pool.token_a.approve(ALICE, pool.address, 1_000 * ETHER)
    pool.token_b.approve(ALICE, pool.address, 1_000 * ETHER)
    pool.add_liquidity(100 * ETHER, 200 * ETHER, ALICE)
    return pool


# =============================================================================
# Escrow
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def escrow(clock: FakeClock) -> AtomicSwapEscrow:
    return AtomicSwapEscrow(clock=clock)


# =============================================================================
# Deployment and API
# =============================================================================


@pytest.fixture
def deployment(clock: FakeClock) -> Deployment:
    """A seeded deployment using the fake clock."""
    return deploy(Settings(), deployer=DEPLOYER, clock=clock)


@pytest.fixture
def client(deployment: Deployment) -> Iterator[TestClient]:
    """Test client bound to a fresh deployment."""
    app.dependency_overrides[get_deployment] = lambda: deployment
    yield TestClient(app)
    app.dependency_overrides.clear()
