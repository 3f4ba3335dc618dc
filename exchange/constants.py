"""Protocol constants for the exchange engine.

Centralizes fee parameters and the default deployment amounts.
"""

# Fees are expressed in basis points of the swap input
BPS_DENOMINATOR = 10_000

# Standard constant-product fee (30 bps = 0.3%)
DEFAULT_FEE_BPS = 30

# Largest amount a token ledger can hold
UINT256_MAX = 2**256 - 1

# Token amounts use 18 decimals, like ether
TOKEN_DECIMALS = 18
ONE_TOKEN = 10**TOKEN_DECIMALS

# Deployment defaults
DEFAULT_INITIAL_SUPPLY = 1_000_000 * ONE_TOKEN
SEED_LIQUIDITY_A = 1_000 * ONE_TOKEN
SEED_LIQUIDITY_B = 2_000 * ONE_TOKEN

# Size of a hashlock commitment (sha256 digest)
SECRET_HASH_LENGTH = 32
