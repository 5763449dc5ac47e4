"""Shared fixtures: a manual clock, an in-memory bank and a fresh auction."""

import pytest

from blindbid.core.auction import BlindAuction
from blindbid.core.config import AuctionConfig
from blindbid.core.payments import InMemoryBank

ALICE = b"\xaa" * 20
BOB = b"\xbb" * 20
CAROL = b"\xcc" * 20
BENEFICIARY = b"\xbe" * 20

START = 1000
BIDDING_END = 1100
REVEAL_END = 1150


class ManualClock:
    """Time source driven by the test."""

    def __init__(self, now: float = START):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def bank():
    return InMemoryBank()


@pytest.fixture
def config():
    return AuctionConfig(bidding_time=BIDDING_END - START, reveal_time=REVEAL_END - BIDDING_END)


@pytest.fixture
def auction(bank, clock, config):
    return BlindAuction(
        beneficiary=BENEFICIARY,
        transfers=bank,
        clock=clock,
        config=config,
        start=START,
    )
