"""
Auction state - the complete durable state of one blind auction.

Three mappings plus one record:
- BidLedger: participant -> ordered sealed bids
- PendingReturns: participant -> withdrawable balance
- AuctionRecord: highest bid, highest bidder, ended flag

Accounting totals ride along so funds conservation can be audited at any
point:

    deposited - paid_out == unrevealed escrow + pending returns + held bid

where the held bid is highest_bid until finalization and 0 after.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Optional

from blindbid.core.auction.escrow import PendingReturns
from blindbid.core.auction.ledger import BidCommitment, BidLedger


@dataclass
class AuctionRecord:
    """Leading bid and lifecycle flag."""
    highest_bid: int = 0
    highest_bidder: Optional[bytes] = None
    ended: bool = False


@dataclass
class Accounting:
    """Running totals of value in and out of the auction."""
    deposited: int = 0
    refunded: int = 0      # paid by reveal() directly
    withdrawn: int = 0     # paid by withdraw()
    settled: int = 0       # paid to the beneficiary by finalize()

    @property
    def paid_out(self) -> int:
        return self.refunded + self.withdrawn + self.settled


@dataclass
class AuctionState:
    """Everything an auction operation may mutate."""
    ledger: BidLedger = field(default_factory=BidLedger)
    record: AuctionRecord = field(default_factory=AuctionRecord)
    pending: PendingReturns = field(default_factory=PendingReturns)
    accounting: Accounting = field(default_factory=Accounting)

    def checkpoint(self) -> "StateCheckpoint":
        """
        Capture what rollback() needs to undo the next changes.

        The ledger is only marked; record, accounting and pending balances are
        small and copied outright.
        """
        return StateCheckpoint(
            ledger_mark=self.ledger.mark(),
            record=replace(self.record),
            accounting=replace(self.accounting),
            pending=dict(self.pending.balances),
        )

    def rollback(self, checkpoint: "StateCheckpoint") -> None:
        self.ledger.revert_to(checkpoint.ledger_mark)
        self.record = replace(checkpoint.record)
        self.accounting = replace(checkpoint.accounting)
        self.pending = PendingReturns(balances=dict(checkpoint.pending))

    def release(self) -> None:
        """Forget undo history once nothing can roll back past this point."""
        self.ledger.release()

    @property
    def held_bid(self) -> int:
        """Value held for the beneficiary and not yet paid out."""
        return 0 if self.record.ended else self.record.highest_bid

    def audit(self) -> dict:
        """Funds-conservation report."""
        unrevealed = self.ledger.total_unrevealed_escrow()
        pending = self.pending.total()
        held = self.held_bid
        on_hand = self.accounting.deposited - self.accounting.paid_out
        return {
            "deposited": self.accounting.deposited,
            "paid_out": self.accounting.paid_out,
            "unrevealed_escrow": unrevealed,
            "pending_returns": pending,
            "held_bid": held,
            "balanced": on_hand == unrevealed + pending + held,
        }

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_snapshot(self) -> dict:
        """Plain-data form used by storage."""
        return {
            "record": {
                "highest_bid": self.record.highest_bid,
                "highest_bidder": self.record.highest_bidder,
                "ended": self.record.ended,
            },
            "accounting": {
                "deposited": self.accounting.deposited,
                "refunded": self.accounting.refunded,
                "withdrawn": self.accounting.withdrawn,
                "settled": self.accounting.settled,
            },
            "bids": [
                (participant, index, bid.commitment_hash, bid.escrowed_amount)
                for participant, index, bid in self.ledger
            ],
            "pending": dict(self.pending.balances),
        }

    @classmethod
    def from_snapshot(cls, snapshot: dict) -> "AuctionState":
        state = cls()
        state.record = AuctionRecord(**snapshot["record"])
        state.accounting = Accounting(**snapshot["accounting"])
        for participant, _index, commitment_hash, escrowed in sorted(
            snapshot["bids"], key=lambda row: (row[0], row[1])
        ):
            state.ledger.append(participant, commitment_hash, escrowed)
        state.pending = PendingReturns(balances=dict(snapshot["pending"]))
        state.release()
        return state


@dataclass
class StateCheckpoint:
    ledger_mark: int
    record: AuctionRecord
    accounting: Accounting
    pending: Dict[bytes, int]


__all__ = [
    "AuctionRecord",
    "Accounting",
    "AuctionState",
    "StateCheckpoint",
    "BidCommitment",
]
