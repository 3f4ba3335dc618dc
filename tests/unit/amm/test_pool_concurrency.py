"""Tests for pool state under concurrent callers."""

from concurrent.futures import ThreadPoolExecutor

from exchange.ledger import derive_address
from tests.helpers import ETHER, fund, make_pool

TRADERS = [derive_address("trader", i) for i in range(8)]
SWAPS_PER_TRADER = 25


class TestConcurrentSwaps:
    """Swaps from many threads leave reserves equal to custody."""

    def test_reserves_match_custody(self):
        pool = make_pool(1_000 * ETHER, 2_000 * ETHER)
        k_before = pool.reserve_a * pool.reserve_b
        for trader in TRADERS:
            fund(pool.token_a, trader, 100 * ETHER, spender=pool.address)
            fund(pool.token_b, trader, 100 * ETHER, spender=pool.address)

        def trade(index: int) -> int:
            trader = TRADERS[index]
            received = 0
            for i in range(SWAPS_PER_TRADER):
                result = pool.swap(ETHER // 10, trader, a_to_b=(i + index) % 2 == 0)
                received += result.amount_out
            return received

        with ThreadPoolExecutor(max_workers=len(TRADERS)) as executor:
            outputs = list(executor.map(trade, range(len(TRADERS))))

        assert all(out > 0 for out in outputs)
        assert pool.token_a.balance_of(pool.address) == pool.reserve_a
        assert pool.token_b.balance_of(pool.address) == pool.reserve_b
        assert pool.reserve_a * pool.reserve_b >= k_before

    def test_concurrent_deposits_and_withdrawals(self):
        """With reserves equal to total shares every deposit and payout is exact."""
        pool = make_pool(1_000 * ETHER, 1_000 * ETHER)
        providers = TRADERS[:4]
        for provider in providers:
            fund(pool.token_a, provider, 50 * ETHER, spender=pool.address)
            fund(pool.token_b, provider, 50 * ETHER, spender=pool.address)

        def provide(provider: str) -> None:
            for _ in range(5):
                result = pool.add_liquidity(10 * ETHER, 10 * ETHER, provider)
                pool.remove_liquidity(result.shares, provider)

        with ThreadPoolExecutor(max_workers=len(providers)) as executor:
            list(executor.map(provide, providers))

        assert all(pool.liquidity_of(p) == 0 for p in providers)
        assert pool.token_a.balance_of(pool.address) == pool.reserve_a
        assert pool.token_b.balance_of(pool.address) == pool.reserve_b
        assert pool.reserve_a == pool.reserve_b == pool.total_liquidity == 1_000 * ETHER
