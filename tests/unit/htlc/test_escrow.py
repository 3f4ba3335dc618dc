"""Tests for the hash time-locked atomic swap escrow."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from exchange.errors import (
    AlreadySettled,
    Expired,
    ExpiryInPast,
    InsufficientAllowance,
    NotFound,
    NotYetExpired,
    SecretMismatch,
    Unauthorized,
    ZeroAmount,
)
from exchange.htlc.escrow import AtomicSwapEscrow, SwapState, swap_id
from exchange.htlc.secrets import hash_secret
from tests.helpers import ALICE, BOB, CAROL, T0, fund, make_token

SECRET = b"correct horse battery staple"
SECRET_HASH = hash_secret(SECRET)
HOUR = 3600


@pytest.fixture
def token():
    return make_token("SWP")


@pytest.fixture
def record(escrow, token):
    """Alice locks 50 tokens for Bob, expiring in one hour."""
    fund(token, ALICE, 50, spender=escrow.address)
    return escrow.create(BOB, token, 50, SECRET_HASH, T0 + HOUR, ALICE)


class TestCreate:
    """Tests for locking funds in the escrow."""

    def test_create_locks_funds(self, escrow, token, record):
        assert record.state is SwapState.CREATED
        assert record.initiator == ALICE
        assert record.counterparty == BOB
        assert record.amount == 50
        assert record.expiry == T0 + HOUR
        assert record.secret is None
        assert token.balance_of(ALICE) == 0
        assert token.balance_of(escrow.address) == 50
        assert escrow.get(record.id) is record

    def test_id_is_derived_from_terms(self, token, record):
        assert record.id == swap_id(ALICE, BOB, token.address, 50, SECRET_HASH, 0)
        assert record.id.startswith("0x")
        assert len(record.id) == 66

    def test_identical_terms_get_distinct_ids(self, escrow, token, record):
        fund(token, ALICE, 50, spender=escrow.address)
        second = escrow.create(BOB, token, 50, SECRET_HASH, T0 + HOUR, ALICE)
        assert second.id != record.id
        assert second.nonce == record.nonce + 1
        assert len(escrow.records()) == 2

    def test_zero_amount_rejected(self, escrow, token):
        with pytest.raises(ZeroAmount):
            escrow.create(BOB, token, 0, SECRET_HASH, T0 + HOUR, ALICE)

    def test_expiry_must_be_in_future(self, escrow, token):
        fund(token, ALICE, 50, spender=escrow.address)
        with pytest.raises(ExpiryInPast):
            escrow.create(BOB, token, 50, SECRET_HASH, T0, ALICE)
        with pytest.raises(ExpiryInPast):
            escrow.create(BOB, token, 50, SECRET_HASH, T0 - 1, ALICE)
        assert escrow.records() == []
        assert token.balance_of(ALICE) == 50

    def test_secret_hash_length_checked(self, escrow, token):
        fund(token, ALICE, 50, spender=escrow.address)
        with pytest.raises(ValueError):
            escrow.create(BOB, token, 50, b"short", T0 + HOUR, ALICE)

    def test_requires_approval(self, escrow, token):
        token.mint(ALICE, 50)
        with pytest.raises(InsufficientAllowance):
            escrow.create(BOB, token, 50, SECRET_HASH, T0 + HOUR, ALICE)
        assert escrow.records() == []
        assert token.balance_of(ALICE) == 50


class TestClaim:
    """Tests for the counterparty claiming with the secret."""

    def test_claim_before_expiry(self, escrow, token, record, clock):
        clock.advance(HOUR - 1)

        claimed = escrow.claim(record.id, SECRET, BOB)

        assert claimed.state is SwapState.CLAIMED
        assert claimed.secret == SECRET
        assert token.balance_of(BOB) == 50
        assert token.balance_of(escrow.address) == 0

    def test_second_claim_fails(self, escrow, record):
        escrow.claim(record.id, SECRET, BOB)
        with pytest.raises(AlreadySettled):
            escrow.claim(record.id, SECRET, BOB)

    def test_claim_at_expiry_fails(self, escrow, record, clock):
        clock.advance(HOUR)
        with pytest.raises(Expired):
            escrow.claim(record.id, SECRET, BOB)

    def test_expired_checked_before_other_conditions(self, escrow, record, clock):
        """After expiry every claim fails with Expired, whoever sends it."""
        clock.advance(2 * HOUR)
        with pytest.raises(Expired):
            escrow.claim(record.id, b"wrong", CAROL)

    def test_wrong_secret(self, escrow, token, record):
        with pytest.raises(SecretMismatch):
            escrow.claim(record.id, b"wrong", BOB)
        assert record.state is SwapState.CREATED
        assert token.balance_of(BOB) == 0

    def test_wrong_claimant(self, escrow, record):
        with pytest.raises(Unauthorized):
            escrow.claim(record.id, SECRET, CAROL)

    def test_unknown_id(self, escrow):
        with pytest.raises(NotFound):
            escrow.claim("0x" + "00" * 32, SECRET, BOB)

    def test_claim_after_refund_fails(self, escrow, record, clock):
        """Refunds only happen after expiry, so a later claim is Expired."""
        clock.advance(HOUR)
        escrow.refund(record.id, ALICE)
        with pytest.raises(Expired):
            escrow.claim(record.id, SECRET, BOB)
        assert record.state is SwapState.REFUNDED

    def test_claim_after_claim_and_expiry(self, escrow, record, clock):
        escrow.claim(record.id, SECRET, BOB)
        clock.advance(HOUR)
        with pytest.raises(Expired):
            escrow.claim(record.id, SECRET, BOB)

    def test_concurrent_claims_settle_once(self, escrow, token, record):
        """Of many simultaneous claims exactly one pays out."""

        def attempt(_: int) -> str:
            try:
                escrow.claim(record.id, SECRET, BOB)
            except AlreadySettled:
                return "settled"
            return "claimed"

        with ThreadPoolExecutor(max_workers=8) as executor:
            outcomes = list(executor.map(attempt, range(32)))

        assert outcomes.count("claimed") == 1
        assert outcomes.count("settled") == 31
        assert token.balance_of(BOB) == 50
        assert token.balance_of(escrow.address) == 0


class TestRefund:
    """Tests for the initiator reclaiming after expiry."""

    def test_refund_after_expiry(self, escrow, token, record, clock):
        clock.advance(HOUR)

        refunded = escrow.refund(record.id, ALICE)

        assert refunded.state is SwapState.REFUNDED
        assert token.balance_of(ALICE) == 50
        assert token.balance_of(escrow.address) == 0

    def test_refund_before_expiry_fails(self, escrow, record, clock):
        clock.advance(HOUR - 1)
        with pytest.raises(NotYetExpired):
            escrow.refund(record.id, ALICE)

    def test_not_yet_expired_checked_before_caller(self, escrow, record):
        with pytest.raises(NotYetExpired):
            escrow.refund(record.id, CAROL)

    def test_wrong_caller(self, escrow, record, clock):
        clock.advance(HOUR)
        with pytest.raises(Unauthorized):
            escrow.refund(record.id, BOB)

    def test_second_refund_fails(self, escrow, record, clock):
        clock.advance(HOUR)
        escrow.refund(record.id, ALICE)
        with pytest.raises(AlreadySettled):
            escrow.refund(record.id, ALICE)

    def test_refund_after_claim_fails(self, escrow, token, record, clock):
        escrow.claim(record.id, SECRET, BOB)
        clock.advance(HOUR)
        with pytest.raises(AlreadySettled):
            escrow.refund(record.id, ALICE)
        assert token.balance_of(ALICE) == 0

    def test_refund_of_claimed_record_before_expiry(self, escrow, record):
        escrow.claim(record.id, SECRET, BOB)
        with pytest.raises(NotYetExpired):
            escrow.refund(record.id, ALICE)
        assert record.state is SwapState.CLAIMED

    def test_unknown_id(self, escrow):
        with pytest.raises(NotFound):
            escrow.refund("0x" + "ff" * 32, ALICE)


class TestCrossSwap:
    """Two escrowed legs settle a trade between Alice and Bob with one secret."""

    def test_secret_revealed_by_claim_unlocks_other_side(self, clock):
        token_x, token_y = make_token("X"), make_token("Y")
        escrow = AtomicSwapEscrow(clock=clock)
        fund(token_x, ALICE, 100, spender=escrow.address)
        fund(token_y, BOB, 300, spender=escrow.address)

        # Alice locks first with the longer timeout; Bob mirrors with the same hashlock
        alice_lock = escrow.create(BOB, token_x, 100, SECRET_HASH, T0 + 2 * HOUR, ALICE)
        bob_lock = escrow.create(ALICE, token_y, 300, SECRET_HASH, T0 + HOUR, BOB)

        escrow.claim(bob_lock.id, SECRET, ALICE)
        revealed = escrow.get(bob_lock.id).secret
        escrow.claim(alice_lock.id, revealed, BOB)

        assert token_x.balance_of(BOB) == 100
        assert token_y.balance_of(ALICE) == 300
        assert {r.state for r in escrow.records()} == {SwapState.CLAIMED}
