"""Deployment bootstrap.

Creates two tokens, a pool over them and an atomic swap escrow, then seeds
the pool with initial liquidity from the deployer.

Usage:
    python -m exchange.deploy --deployer 0x... [--no-seed] [--fee-bps 30]
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, replace

import structlog

from exchange.amm.pool import Pool
from exchange.config import PoolConfig, Settings
from exchange.constants import (
    DEFAULT_INITIAL_SUPPLY,
    ONE_TOKEN,
    SEED_LIQUIDITY_A,
    SEED_LIQUIDITY_B,
)
from exchange.errors import UnknownToken
from exchange.htlc.escrow import AtomicSwapEscrow, Clock, system_clock
from exchange.ledger import InMemoryToken, derive_address
from exchange.logging import configure_logging
from exchange.models.types import normalize_address

logger = structlog.get_logger()

DEFAULT_DEPLOYER = derive_address("deployer")


@dataclass
class Deployment:
    """Everything created by deploy()."""

    deployer: str
    token_a: InMemoryToken
    token_b: InMemoryToken
    pool: Pool
    escrow: AtomicSwapEscrow

    @property
    def tokens(self) -> list[InMemoryToken]:
        return [self.token_a, self.token_b]

    def token(self, key: str) -> InMemoryToken:
        """Find a deployed token by address or symbol.

        Raises:
            UnknownToken: If no deployed token matches
        """
        for token in self.tokens:
            if token.symbol.lower() == key.lower() or token.address == normalize_address(key):
                return token
        raise UnknownToken(f"No deployed token {key}")

    def summary(self) -> dict[str, str | int]:
        return {
            "deployer": self.deployer,
            "token_a": self.token_a.address,
            "token_b": self.token_b.address,
            "pool": self.pool.address,
            "escrow": self.escrow.address,
            "reserve_a": self.pool.reserve_a,
            "reserve_b": self.pool.reserve_b,
            "total_liquidity": self.pool.total_liquidity,
        }


def deploy(
    settings: Settings | None = None,
    deployer: str = DEFAULT_DEPLOYER,
    initial_supply: int = DEFAULT_INITIAL_SUPPLY,
    clock: Clock = system_clock,
) -> Deployment:
    """Deploy the tokens, pool and escrow.

    Args:
        settings: Pool configuration and seeding flag (default: from environment)
        deployer: Address that receives the token supply and seeds the pool
        initial_supply: Supply minted for each token
        clock: Time source for the escrow

    Returns:
        The Deployment, with the pool seeded when settings.seed_liquidity is set
    """
    settings = settings or Settings.from_env()
    deployer = normalize_address(deployer, validate=True)

    token_a = InMemoryToken("RSK Token A", "RTKA", initial_supply, owner=deployer)
    token_b = InMemoryToken("RSK Token B", "RTKB", initial_supply, owner=deployer)
    logger.info("token_deployed", symbol=token_a.symbol, address=token_a.address)
    logger.info("token_deployed", symbol=token_b.symbol, address=token_b.address)

    pool = Pool(token_a, token_b, config=settings.pool)
    logger.info("pool_deployed", address=pool.address, fee_bps=pool.fee_bps)

    escrow = AtomicSwapEscrow(clock=clock)
    logger.info("escrow_deployed", address=escrow.address)

    deployment = Deployment(
        deployer=deployer, token_a=token_a, token_b=token_b, pool=pool, escrow=escrow
    )

    if settings.seed_liquidity:
        token_a.approve(deployer, pool.address, SEED_LIQUIDITY_A)
        token_b.approve(deployer, pool.address, SEED_LIQUIDITY_B)
        pool.add_liquidity(SEED_LIQUIDITY_A, SEED_LIQUIDITY_B, deployer)

    logger.info("deployment_complete", **deployment.summary())
    return deployment


def _format_amount(amount: int) -> str:
    whole, frac = divmod(amount, ONE_TOKEN)
    return f"{whole}.{frac:018d}".rstrip("0").rstrip(".")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Deploy tokens, pool and escrow")
    parser.add_argument("--deployer", default=DEFAULT_DEPLOYER, help="Deployer address")
    parser.add_argument("--fee-bps", type=int, default=None, help="Swap fee in basis points")
    parser.add_argument("--no-seed", action="store_true", help="Skip initial liquidity")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    args = parser.parse_args(argv)

    configure_logging("DEBUG" if args.verbose else "INFO")

    try:
        settings = Settings.from_env()
        deployer = normalize_address(args.deployer, validate=True)
        if args.fee_bps is not None:
            settings = replace(settings, pool=PoolConfig(fee_bps=args.fee_bps))
    except ValueError as err:
        parser.error(str(err))
    if args.no_seed:
        settings = replace(settings, seed_liquidity=False)

    deployment = deploy(settings, deployer=deployer)

    summary = deployment.summary()
    print("=" * 60)
    print("Deployment Summary")
    print("=" * 60)
    print(f"Token A ({deployment.token_a.symbol}): {summary['token_a']}")
    print(f"Token B ({deployment.token_b.symbol}): {summary['token_b']}")
    print(f"Pool:            {summary['pool']}")
    print(f"Escrow:          {summary['escrow']}")
    print(f"Reserve A:       {_format_amount(deployment.pool.reserve_a)}")
    print(f"Reserve B:       {_format_amount(deployment.pool.reserve_b)}")
    print(f"Total Liquidity: {_format_amount(deployment.pool.total_liquidity)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
