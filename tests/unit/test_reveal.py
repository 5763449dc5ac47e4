"""
Tests for reveal settlement.

Tests cover:
1. Decoy, over-escrowed, losing and winning bids
2. Displaced-leader credit
3. Idempotent slot consumption and re-attemptable mismatches
4. Batch shape and phase errors
"""

import pytest

from blindbid.core.auction import BidRevealed, compute_commitment, create_sealed_bid
from blindbid.core.errors import InvalidInput, MalformedReveal, PhaseViolation

ALICE = b"\xaa" * 20
BOB = b"\xbb" * 20
CAROL = b"\xcc" * 20

REVEAL_TIME = 1120


def place(auction, who, *sealed):
    for bid in sealed:
        auction.place_bid(who, bid.commitment, bid.escrow)


def open_all(auction, who, *sealed):
    return auction.reveal(
        who,
        [bid.value for bid in sealed],
        [bid.fake for bid in sealed],
        [bid.secret for bid in sealed],
    )


@pytest.fixture
def revealing(auction, clock):
    """Move an auction to its reveal phase once bids are placed."""
    def _go():
        clock.now = REVEAL_TIME
        return auction
    return _go


class TestSettlement:
    """Per-slot settlement rules."""

    def test_decoy_fully_refunded(self, auction, bank, revealing):
        decoy = create_sealed_bid(value=2, fake=True, escrow=3, secret=b"x")
        place(auction, ALICE, decoy)
        revealing()

        assert open_all(auction, ALICE, decoy) == 3
        assert bank.paid_to(ALICE) == 3
        assert auction.highest_bid == 0
        assert auction.highest_bidder is None

    def test_first_real_bid_becomes_leader(self, auction, bank, revealing):
        bid = create_sealed_bid(value=3000, escrow=3000)
        place(auction, BOB, bid)
        revealing()

        assert open_all(auction, BOB, bid) == 0
        assert auction.highest_bid == 3000
        assert auction.highest_bidder == BOB
        assert bank.payments == []

    def test_higher_bid_refunds_excess_and_credits_displaced(self, auction, bank, revealing):
        bob_bid = create_sealed_bid(value=3000, escrow=3000)
        alice_bid = create_sealed_bid(value=3100, escrow=3500, secret=b"y")
        place(auction, BOB, bob_bid)
        place(auction, ALICE, alice_bid)
        revealing()
        open_all(auction, BOB, bob_bid)

        refund = open_all(auction, ALICE, alice_bid)

        assert refund == 400
        assert bank.paid_to(ALICE) == 400
        assert auction.highest_bid == 3100
        assert auction.highest_bidder == ALICE
        assert auction.pending_returns(BOB) == 3000
        assert bank.paid_to(BOB) == 0

    def test_lower_bid_fully_refunded(self, auction, revealing):
        bob_bid = create_sealed_bid(value=3000)
        carol_bid = create_sealed_bid(value=2000, escrow=2500)
        place(auction, BOB, bob_bid)
        place(auction, CAROL, carol_bid)
        revealing()
        open_all(auction, BOB, bob_bid)

        assert open_all(auction, CAROL, carol_bid) == 2500
        assert auction.highest_bidder == BOB
        assert auction.pending_returns(BOB) == 0

    def test_equal_bid_does_not_displace(self, auction, revealing):
        first = create_sealed_bid(value=500)
        second = create_sealed_bid(value=500, escrow=600)
        place(auction, BOB, first)
        place(auction, CAROL, second)
        revealing()
        open_all(auction, BOB, first)

        assert open_all(auction, CAROL, second) == 600
        assert auction.highest_bidder == BOB

    def test_value_above_escrow_is_refunded_not_promoted(self, auction, bank, revealing):
        """A bid claiming more than it escrowed is settled as a full refund."""
        bid = create_sealed_bid(value=5000, escrow=1000)
        place(auction, ALICE, bid)
        revealing()

        assert open_all(auction, ALICE, bid) == 1000
        assert auction.highest_bid == 0
        assert auction.highest_bidder is None
        assert auction.bid(ALICE, 0).consumed

    def test_zero_value_bid_refunds_escrow(self, auction, revealing):
        bid = create_sealed_bid(value=0, escrow=10)
        place(auction, ALICE, bid)
        revealing()
        assert open_all(auction, ALICE, bid) == 10
        assert auction.highest_bidder is None

    def test_zero_escrow_bid_makes_no_payment(self, auction, bank, revealing):
        bid = create_sealed_bid(value=0, escrow=0)
        place(auction, ALICE, bid)
        revealing()
        assert open_all(auction, ALICE, bid) == 0
        assert bank.payments == []


class TestBatches:
    """Batch handling across a participant's bids."""

    def test_refunds_paid_once_per_call(self, auction, bank, revealing):
        bids = [
            create_sealed_bid(value=1, fake=True, escrow=10),
            create_sealed_bid(value=2, fake=True, escrow=20),
            create_sealed_bid(value=3, fake=True, escrow=30),
        ]
        place(auction, ALICE, *bids)
        revealing()

        assert open_all(auction, ALICE, *bids) == 60
        assert len(bank.payments) == 1

    def test_own_bids_displace_each_other(self, auction, revealing):
        low = create_sealed_bid(value=100)
        high = create_sealed_bid(value=200, escrow=250)
        place(auction, ALICE, low, high)
        revealing()

        assert open_all(auction, ALICE, low, high) == 50
        assert auction.highest_bid == 200
        assert auction.highest_bidder == ALICE
        assert auction.pending_returns(ALICE) == 100

    def test_decoy_and_real_bid_mixed(self, auction, revealing):
        decoy = create_sealed_bid(value=9999, fake=True, escrow=3000)
        real = create_sealed_bid(value=3100, escrow=3500)
        place(auction, ALICE, decoy, real)
        revealing()

        assert open_all(auction, ALICE, decoy, real) == 3400
        assert auction.highest_bid == 3100

    def test_events_per_consumed_slot(self, auction, revealing):
        seen = []
        auction.subscribe(seen.append, BidRevealed)
        decoy = create_sealed_bid(value=1, fake=True, escrow=5)
        real = create_sealed_bid(value=4, escrow=5)
        place(auction, ALICE, decoy, real)
        revealing()
        open_all(auction, ALICE, decoy, real)

        assert [(e.index, e.fake, e.promoted) for e in seen] == [
            (0, True, False),
            (1, False, True),
        ]


class TestIdempotence:
    """A slot settles at most once."""

    def test_repeated_reveal_has_no_effect(self, auction, bank, revealing):
        bob_bid = create_sealed_bid(value=100)
        alice_bid = create_sealed_bid(value=300, escrow=400)
        place(auction, BOB, bob_bid)
        place(auction, ALICE, alice_bid)
        revealing()
        open_all(auction, BOB, bob_bid)
        open_all(auction, ALICE, alice_bid)

        assert open_all(auction, ALICE, alice_bid) == 0
        assert open_all(auction, BOB, bob_bid) == 0
        assert bank.paid_to(ALICE) == 100
        assert auction.highest_bid == 300
        assert auction.pending_returns(BOB) == 100

    def test_mismatched_secret_is_skipped_and_retryable(self, auction, bank, revealing):
        bid = create_sealed_bid(value=7, fake=True, escrow=10)
        place(auction, ALICE, bid)
        revealing()

        assert auction.reveal(ALICE, [7], [True], [b"wrong"]) == 0
        assert not auction.bid(ALICE, 0).consumed
        assert bank.payments == []

        assert open_all(auction, ALICE, bid) == 10
        assert auction.bid(ALICE, 0).consumed

    def test_partial_batch_settles_matching_slots_only(self, auction, revealing):
        good = create_sealed_bid(value=1, fake=True, escrow=10)
        bad = create_sealed_bid(value=2, fake=True, escrow=20)
        place(auction, ALICE, good, bad)
        revealing()

        refund = auction.reveal(ALICE, [1, 2], [True, False], [good.secret, bad.secret])
        assert refund == 10
        assert auction.bid(ALICE, 0).consumed
        assert not auction.bid(ALICE, 1).consumed

        assert open_all(auction, ALICE, good, bad) == 20

    def test_oversized_secret_is_skipped_not_fatal(self, auction, bank, revealing):
        long_secret = b"\x07" * 2000
        auction.place_bid(ALICE, compute_commitment(0, True, long_secret), 100)
        small = create_sealed_bid(value=0, fake=True, escrow=50)
        place(auction, ALICE, small)
        revealing()

        refund = auction.reveal(ALICE, [0, 0], [True, True], [long_secret, small.secret])

        assert refund == 50
        assert not auction.bid(ALICE, 0).consumed
        assert auction.bid(ALICE, 1).consumed
        assert auction.audit()["unrevealed_escrow"] == 100


class TestRevealErrors:
    """Rejected calls leave no trace."""

    @pytest.mark.parametrize("values,fakes,secrets", [
        ([1], [True, True], [b"a", b"b"]),
        ([1, 2], [True], [b"a", b"b"]),
        ([1, 2], [True, True], [b"a"]),
        ([1, 2, 3], [True, True, True], [b"a", b"b", b"c"]),
    ])
    def test_shape_mismatch(self, auction, revealing, values, fakes, secrets):
        bids = [
            create_sealed_bid(value=1, fake=True, escrow=10, secret=b"a"),
            create_sealed_bid(value=2, fake=True, escrow=20, secret=b"b"),
        ]
        place(auction, ALICE, *bids)
        revealing()

        with pytest.raises(MalformedReveal) as exc_info:
            auction.reveal(ALICE, values, fakes, secrets)

        assert exc_info.value.expected == 2
        assert not auction.bid(ALICE, 0).consumed
        assert not auction.bid(ALICE, 1).consumed

    def test_no_bids_and_empty_batch(self, auction, revealing):
        revealing()
        assert auction.reveal(ALICE, [], [], []) == 0

    def test_reveal_during_bidding(self, auction, clock):
        bid = create_sealed_bid(value=1)
        place(auction, ALICE, bid)

        with pytest.raises(PhaseViolation) as exc_info:
            open_all(auction, ALICE, bid)
        assert exc_info.value.boundary == auction.bidding_end
        assert not auction.bid(ALICE, 0).consumed

    def test_reveal_after_window(self, auction, clock):
        bid = create_sealed_bid(value=1)
        place(auction, ALICE, bid)
        clock.now = auction.reveal_end

        with pytest.raises(PhaseViolation) as exc_info:
            open_all(auction, ALICE, bid)
        assert exc_info.value.boundary == auction.reveal_end
        assert auction.highest_bid == 0

    def test_non_integer_value_rejected(self, auction, revealing):
        bid = create_sealed_bid(value=1, escrow=1, secret=b"s")
        place(auction, ALICE, bid)
        revealing()

        with pytest.raises(InvalidInput):
            auction.reveal(ALICE, [True], [False], [b"s"])
        with pytest.raises(InvalidInput):
            auction.reveal(ALICE, [1], [0], [b"s"])
        assert not auction.bid(ALICE, 0).consumed
