"""
BlindBid Auction Module.

This module provides the sealed-bid auction:
- Commitment creation and verification
- Bid ledger and pending-returns escrow
- Phase clock
- Reveal settlement and finalization
"""

from blindbid.core.auction.commitment import (
    SealedBid,
    compute_commitment,
    verify_commitment,
    create_sealed_bid,
    ZERO_COMMITMENT,
)

from blindbid.core.auction.ledger import BidCommitment, BidLedger
from blindbid.core.auction.escrow import PendingReturns
from blindbid.core.auction.phase import Phase, PhaseClock
from blindbid.core.auction.state import AuctionRecord, AuctionState, Accounting
from blindbid.core.auction.events import (
    AuctionEnded,
    BidPlaced,
    BidRevealed,
    Withdrawal,
    EventBus,
)
from blindbid.core.auction.journal import AuctionJournal
from blindbid.core.auction.blind_auction import BlindAuction

__all__ = [
    # Commitments
    "SealedBid",
    "compute_commitment",
    "verify_commitment",
    "create_sealed_bid",
    "ZERO_COMMITMENT",
    # State
    "BidCommitment",
    "BidLedger",
    "PendingReturns",
    "AuctionRecord",
    "AuctionState",
    "Accounting",
    "AuctionJournal",
    # Phases
    "Phase",
    "PhaseClock",
    # Events
    "AuctionEnded",
    "BidPlaced",
    "BidRevealed",
    "Withdrawal",
    "EventBus",
    # Auction
    "BlindAuction",
]
