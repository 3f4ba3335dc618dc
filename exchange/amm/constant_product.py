"""Constant product AMM math.

The pool prices swaps with the constant product formula x * y = k.
A fee in basis points is taken off the input before pricing and stays in
the pool, so k grows with every swap.

All functions are pure and work on integer amounts in the smallest unit,
rounding down (in the pool's favour) unless stated otherwise.
"""

from exchange.constants import BPS_DENOMINATOR, DEFAULT_FEE_BPS
from exchange.errors import EmptyPool, InsufficientLiquidity, RatioMismatch, ZeroAmount
from exchange.safe_int import S


def fee_multiplier(fee_bps: int) -> int:
    """Share of the input that is priced, in basis points (9970 for 30 bps)."""
    return BPS_DENOMINATOR - fee_bps


def amount_in_after_fee(amount_in: int, fee_bps: int = DEFAULT_FEE_BPS) -> int:
    """Input amount left for pricing once the fee is deducted."""
    return (S(amount_in) * S(fee_multiplier(fee_bps)) // S(BPS_DENOMINATOR)).value


def get_amount_out(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_bps: int = DEFAULT_FEE_BPS,
) -> int:
    """Calculate output amount using the constant product formula.

    Formula:
        in_after_fee = in * (10000 - fee_bps) // 10000
        out = res_out * in_after_fee // (res_in + in_after_fee)

    The result is always strictly below reserve_out.

    Args:
        amount_in: Input token amount
        reserve_in: Reserve of input token in pool
        reserve_out: Reserve of output token in pool
        fee_bps: Swap fee in basis points

    Returns:
        Output token amount

    Raises:
        ZeroAmount: If amount_in is not positive
        EmptyPool: If either reserve is zero
    """
    if amount_in <= 0:
        raise ZeroAmount("Swap input must be positive")
    if reserve_in <= 0 or reserve_out <= 0:
        raise EmptyPool("Pool has no reserves")

    after_fee = S(amount_in_after_fee(amount_in, fee_bps))
    numerator = S(reserve_out) * after_fee
    denominator = S(reserve_in) + after_fee

    return (numerator // denominator).value


def get_amount_in(
    amount_out: int,
    reserve_in: int,
    reserve_out: int,
    fee_bps: int = DEFAULT_FEE_BPS,
) -> int:
    """Calculate the smallest input whose output is at least amount_out.

    Inverts get_amount_out exactly: the fee-adjusted input needed is
    ceil(res_in * out / (res_out - out)), and the gross input is the
    smallest value whose floored fee-adjusted amount reaches it.

    Raises:
        ZeroAmount: If amount_out is not positive
        EmptyPool: If either reserve is zero
        InsufficientLiquidity: If amount_out would drain the output reserve
    """
    if amount_out <= 0:
        raise ZeroAmount("Swap output must be positive")
    if reserve_in <= 0 or reserve_out <= 0:
        raise EmptyPool("Pool has no reserves")
    if amount_out >= reserve_out:
        raise InsufficientLiquidity(f"Requested {amount_out} but reserve is {reserve_out}")

    needed_after_fee = (S(reserve_in) * S(amount_out)).ceiling_div(S(reserve_out) - S(amount_out))
    return (needed_after_fee * S(BPS_DENOMINATOR)).ceiling_div(fee_multiplier(fee_bps)).value


def quote(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Amount of B matching amount_a at the current reserve ratio.

    Raises:
        ZeroAmount: If amount_a is not positive
        EmptyPool: If either reserve is zero
    """
    if amount_a <= 0:
        raise ZeroAmount("Quote amount must be positive")
    if reserve_a <= 0 or reserve_b <= 0:
        raise EmptyPool("Pool has no reserves")
    return (S(amount_a) * S(reserve_b) // S(reserve_a)).value


def initial_shares(amount_a: int, amount_b: int) -> int:
    """Shares minted by the first deposit: floor(sqrt(amount_a * amount_b)).

    The geometric mean keeps the share unit independent of the price ratio
    the first provider picks.
    """
    if amount_a <= 0 or amount_b <= 0:
        raise ZeroAmount("Both deposit amounts must be positive")
    return (S(amount_a) * S(amount_b)).sqrt().value


def shares_for_deposit(
    amount_a: int,
    amount_b: int,
    reserve_a: int,
    reserve_b: int,
    total_shares: int,
) -> int:
    """Shares minted by a deposit into a funded pool.

    Each side implies amount * total_shares // reserve shares. The deposit
    is accepted only when both sides imply the same share count, so
    providers cannot shift the price by depositing off-ratio.

    Raises:
        ZeroAmount: If an amount is not positive or no shares would be minted
        EmptyPool: If the pool has no reserves
        RatioMismatch: If the two sides imply different share counts
    """
    if amount_a <= 0 or amount_b <= 0:
        raise ZeroAmount("Both deposit amounts must be positive")
    if reserve_a <= 0 or reserve_b <= 0 or total_shares <= 0:
        raise EmptyPool("Pool has no reserves")

    shares_a = S(amount_a) * S(total_shares) // S(reserve_a)
    shares_b = S(amount_b) * S(total_shares) // S(reserve_b)
    if shares_a != shares_b:
        raise RatioMismatch(
            f"Deposit ({amount_a}, {amount_b}) implies {shares_a} vs {shares_b} shares "
            f"at reserves ({reserve_a}, {reserve_b})"
        )

    minted = shares_a.min(shares_b).value
    if minted == 0:
        raise ZeroAmount("Deposit too small to mint any shares")
    return minted


def withdrawal_amounts(
    shares: int,
    reserve_a: int,
    reserve_b: int,
    total_shares: int,
) -> tuple[int, int]:
    """Reserve amounts paid out for burning shares, rounded down."""
    amount_a = S(reserve_a) * S(shares) // S(total_shares)
    amount_b = S(reserve_b) * S(shares) // S(total_shares)
    return amount_a.value, amount_b.value
