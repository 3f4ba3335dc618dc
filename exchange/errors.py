"""Exchange error classes.

Every error is raised before any reserve, share or escrow state changes and
before any token moves. Each class carries a stable ``code`` (used as the
API error identifier) and the HTTP status the service answers with.
"""


class ExchangeError(Exception):
    """Base error for exchange operations."""

    code = "exchange_error"
    status_code = 400


# --- Pool errors ---


class PoolError(ExchangeError):
    """Base error for pool operations."""

    code = "pool_error"


class ZeroAmount(PoolError):
    """An input amount, or the amount it would produce, is zero."""

    code = "zero_amount"


class EmptyPool(PoolError):
    """The pool holds no reserves."""

    code = "empty_pool"
    status_code = 409


class RatioMismatch(PoolError):
    """Deposit amounts do not match the current reserve ratio."""

    code = "ratio_mismatch"


class InsufficientShares(PoolError):
    """Provider does not own the shares being withdrawn."""

    code = "insufficient_shares"


class SlippageExceeded(PoolError):
    """Swap output is below the caller's minimum."""

    code = "slippage_exceeded"
    status_code = 409


class InsufficientLiquidity(PoolError):
    """Requested output is not available in the pool."""

    code = "insufficient_liquidity"
    status_code = 409


# --- Escrow errors ---


class EscrowError(ExchangeError):
    """Base error for atomic swap escrow operations."""

    code = "escrow_error"


class NotFound(EscrowError):
    """No swap record with the given id."""

    code = "not_found"
    status_code = 404


class AlreadySettled(EscrowError):
    """Swap record is already claimed or refunded."""

    code = "already_settled"
    status_code = 409


class Expired(EscrowError):
    """Claim attempted at or after expiry."""

    code = "expired"
    status_code = 409


class NotYetExpired(EscrowError):
    """Refund attempted before expiry."""

    code = "not_yet_expired"
    status_code = 409


class SecretMismatch(EscrowError):
    """Revealed secret does not hash to the record's secret hash."""

    code = "secret_mismatch"
    status_code = 403


class Unauthorized(EscrowError):
    """Caller is not the party allowed to settle the record."""

    code = "unauthorized"
    status_code = 403


class ExpiryInPast(EscrowError):
    """Expiry is not strictly in the future."""

    code = "expiry_in_past"


# --- Token ledger errors ---


class TokenError(ExchangeError):
    """Base error for token ledger transfers."""

    code = "token_error"


class InsufficientBalance(TokenError):
    """Owner balance is lower than the transfer amount."""

    code = "insufficient_balance"


class InsufficientAllowance(TokenError):
    """Spender allowance is lower than the transfer amount."""

    code = "insufficient_allowance"


class UnknownToken(TokenError):
    """No token with the given address or symbol is deployed."""

    code = "unknown_token"
    status_code = 404
