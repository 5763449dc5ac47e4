"""
Blind Auction - sealed-bid auction with commit-reveal and pull refunds.

This module implements the full auction lifecycle:
1. Bidding: participants place any number of sealed bids, each locking an
   escrow amount that may exceed the hidden true value
2. Revealing: each participant opens all of their bids in one batch; valid
   openings settle immediately (leading bid updated, excess refunded)
3. Closed: the winning amount is paid to the beneficiary exactly once

Settlement Rules:
----------------
For every unconsumed slot whose opening verifies:
- decoy, under-escrowed (value > escrow) or not-higher bids refund the whole
  escrow
- a real bid that beats the current leader becomes the leader; only the
  excess escrow - value is refunded, and the displaced leader's bid is
  credited to their pending returns

Refunds from one reveal call are summed and paid once, after every
bookkeeping change of that call is in place. Displaced leaders are never
paid directly; they pull their balance with withdraw().

Every public operation is atomic: see AuctionJournal.
"""

import dataclasses
import time
from contextlib import contextmanager
from typing import Callable, List, Optional, Sequence

from blindbid.core.auction.commitment import ZERO_COMMITMENT, verify_commitment
from blindbid.core.auction.events import (
    AuctionEnded,
    BidPlaced,
    BidRevealed,
    EventBus,
    Withdrawal,
)
from blindbid.core.auction.journal import AuctionJournal
from blindbid.core.auction.ledger import BidCommitment
from blindbid.core.auction.phase import Phase, PhaseClock
from blindbid.core.auction.state import AuctionState
from blindbid.core.config import AuctionConfig
from blindbid.core.errors import (
    AlreadyFinalized,
    AmountOverflow,
    AmountUnderflow,
    InvalidInput,
    MalformedReveal,
)
from blindbid.core.payments import TransferGateway
from blindbid.crypto import short_hex
from blindbid.utils.logger import get_logger
from blindbid.utils.validation import (
    checked_add,
    checked_sub,
    validate_address,
    validate_amount,
    validate_bytes,
    validate_flag,
    validate_hash,
)

logger = get_logger("auction")


def _require(check) -> None:
    is_valid, error = check
    if not is_valid:
        raise InvalidInput(error)


class BlindAuction:
    """
    A single sealed-bid auction.

    Args:
        beneficiary: Address receiving the winning amount
        transfers: Gateway executing outbound payments
        clock: Time source; defaults to wall-clock seconds
        config: Phase durations and limits
        start: Auction start time; defaults to clock() at construction
        storage: Optional StorageManager; state is restored from it and
            written back after every committed operation
    """

    def __init__(
        self,
        beneficiary: bytes,
        transfers: TransferGateway,
        clock: Callable[[], float] = time.time,
        config: Optional[AuctionConfig] = None,
        start: Optional[float] = None,
        storage=None,
    ):
        self.config = config or AuctionConfig()
        self.transfers = transfers
        self.events = EventBus()
        self.storage = storage

        saved = storage.load_auction() if storage is not None else None
        if saved is not None:
            self.beneficiary = saved["beneficiary"]
            self.clock = PhaseClock(saved["bidding_end"], saved["reveal_end"], clock)
            state = AuctionState.from_snapshot(saved["state"])
            logger.info(
                f"Restored auction: {len(state.ledger)} bids, "
                f"highest={state.record.highest_bid}, ended={state.record.ended}"
            )
        else:
            _require(validate_address(beneficiary, "beneficiary"))
            self.beneficiary = bytes(beneficiary)
            self.clock = PhaseClock.from_durations(
                clock() if start is None else start,
                self.config.bidding_time,
                self.config.reveal_time,
                clock,
            )
            state = AuctionState()
            logger.info(
                f"Auction created for {short_hex(self.beneficiary)}: "
                f"bidding until {self.clock.bidding_end}, reveal until {self.clock.reveal_end}"
            )

        self.journal = AuctionJournal(
            state,
            self.events,
            persist=self._persist if storage is not None else None,
        )

        if storage is not None and saved is None:
            self._persist(state)

    @property
    def state(self) -> AuctionState:
        return self.journal.state

    @contextmanager
    def _operation(self, name: str):
        mark = self.transfers.mark()
        with self.journal.transaction(
            name, on_rollback=lambda: self.transfers.revert_to(mark)
        ) as state:
            yield state

    def _persist(self, state: AuctionState) -> None:
        self.storage.save_auction(
            beneficiary=self.beneficiary,
            bidding_end=self.clock.bidding_end,
            reveal_end=self.clock.reveal_end,
            snapshot=state.to_snapshot(),
        )

    # =========================================================================
    # Bidding Phase
    # =========================================================================

    def place_bid(self, participant: bytes, commitment: bytes, amount: int) -> int:
        """
        Record a sealed bid together with its escrow.

        Args:
            participant: Bidder address
            commitment: 32-byte commitment (see compute_commitment)
            amount: Escrow deposited with this bid; may be zero

        Returns:
            The bid's index in the participant's sequence
        """
        with self._operation("place_bid") as state:
            self.clock.require("place_bid", Phase.BIDDING)

            _require(validate_address(participant))
            participant = bytes(participant)
            _require(validate_hash(commitment, "commitment"))
            _require(validate_amount(amount))
            if commitment == ZERO_COMMITMENT:
                raise InvalidInput("commitment must not be the zero hash")

            if state.ledger.bid_count(participant) >= self.config.max_bids_per_participant:
                raise InvalidInput(
                    f"participant already placed {self.config.max_bids_per_participant} bids"
                )

            index = state.ledger.append(participant, bytes(commitment), amount)
            state.accounting.deposited += amount
            self.journal.emit(BidPlaced(participant, index, amount))

        logger.debug(f"Bid #{index} from {short_hex(participant)}: escrow={amount}")
        return index

    # =========================================================================
    # Reveal Phase
    # =========================================================================

    def reveal(
        self,
        participant: bytes,
        values: Sequence[int],
        fakes: Sequence[bool],
        secrets: Sequence[bytes],
    ) -> int:
        """
        Open every bid the participant placed, in placement order.

        Slots whose opening does not match are left untouched and may be
        revealed again later in the reveal phase. Already consumed slots are
        skipped.

        Returns:
            Total refunded to the participant by this call
        """
        with self._operation("reveal") as state:
            self.clock.require("reveal", Phase.REVEALING)
            _require(validate_address(participant))
            participant = bytes(participant)
            self._check_reveal_shape(state, participant, values, fakes, secrets)

            refund = 0
            bids = state.ledger.bids_for(participant)
            for index, bid in enumerate(bids):
                if bid.consumed:
                    continue

                value, fake, secret = values[index], fakes[index], secrets[index]
                if len(secret) > self.config.max_secret_size:
                    logger.debug(f"Reveal #{index} from {short_hex(participant)} has an oversized secret")
                    continue
                if not verify_commitment(bid.commitment_hash, value, fake, secret):
                    logger.debug(f"Reveal #{index} from {short_hex(participant)} does not match")
                    continue

                state.ledger.consume(participant, index)
                deposit = bid.escrowed_amount
                contribution = deposit
                promoted = False

                if not fake and value <= deposit and value > state.record.highest_bid:
                    self._promote(state, participant, value)
                    contribution = checked_sub(deposit, value)
                    if contribution is None:
                        raise AmountUnderflow(f"escrow {deposit} below revealed value {value}")
                    promoted = True

                refund = checked_add(refund, contribution)
                if refund is None:
                    raise AmountOverflow("reveal refund total exceeds uint256")

                self.journal.emit(BidRevealed(participant, index, value, fake, promoted))

            if refund:
                state.accounting.refunded += refund
                self.transfers.transfer(participant, refund)

        logger.debug(f"Reveal from {short_hex(participant)} refunded {refund}")
        return refund

    def _check_reveal_shape(self, state, participant, values, fakes, secrets) -> None:
        for name, seq in (("values", values), ("fakes", fakes), ("secrets", secrets)):
            if not isinstance(seq, (list, tuple)):
                raise InvalidInput(f"{name} must be list/tuple, got {type(seq).__name__}")

        expected = state.ledger.bid_count(participant)
        if not (len(values) == len(fakes) == len(secrets) == expected):
            raise MalformedReveal(expected, len(values), len(fakes), len(secrets))

        for index in range(expected):
            _require(validate_amount(values[index], f"values[{index}]"))
            _require(validate_flag(fakes[index], f"fakes[{index}]"))
            _require(validate_bytes(secrets[index], f"secrets[{index}]"))

    def _promote(self, state: AuctionState, participant: bytes, value: int) -> None:
        record = state.record
        if record.highest_bidder is not None:
            state.pending.credit(record.highest_bidder, record.highest_bid)
            logger.debug(
                f"{short_hex(record.highest_bidder)} displaced, "
                f"{record.highest_bid} credited to pending returns"
            )
        record.highest_bidder = participant
        record.highest_bid = value
        logger.info(f"New highest bid {value} from {short_hex(participant)}")

    # =========================================================================
    # Withdrawal
    # =========================================================================

    def withdraw(self, participant: bytes) -> int:
        """
        Pay out the participant's pending returns.

        The balance is zeroed before the payment is attempted. Allowed in any
        phase; returns 0 when nothing is owed.
        """
        _require(validate_address(participant))
        participant = bytes(participant)

        with self._operation("withdraw") as state:
            amount = state.pending.take(participant)
            if amount:
                state.accounting.withdrawn += amount
                self.transfers.transfer(participant, amount)
                self.journal.emit(Withdrawal(participant, amount))

        if amount:
            logger.info(f"Withdrawal of {amount} by {short_hex(participant)}")
        return amount

    # =========================================================================
    # Finalization
    # =========================================================================

    def finalize(self) -> AuctionEnded:
        """
        End the auction and pay the winning amount to the beneficiary.

        Only valid once the reveal window has closed, and only once.
        """
        with self._operation("finalize") as state:
            self.clock.require("finalize", Phase.CLOSED)
            if state.record.ended:
                raise AlreadyFinalized()

            state.record.ended = True
            amount = state.record.highest_bid
            state.accounting.settled += amount
            event = AuctionEnded(winner=state.record.highest_bidder, amount=amount)
            self.transfers.transfer(self.beneficiary, amount)
            self.journal.emit(event)

        logger.info(f"Auction finalized: winner={short_hex(event.winner)}, amount={event.amount}")
        return event

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def highest_bid(self) -> int:
        return self.state.record.highest_bid

    @property
    def highest_bidder(self) -> Optional[bytes]:
        return self.state.record.highest_bidder

    @property
    def ended(self) -> bool:
        return self.state.record.ended

    @property
    def bidding_end(self) -> float:
        return self.clock.bidding_end

    @property
    def reveal_end(self) -> float:
        return self.clock.reveal_end

    def phase(self) -> Phase:
        return self.clock.phase()

    def pending_returns(self, participant: bytes) -> int:
        return self.state.pending.balance(participant)

    def bid_count(self, participant: bytes) -> int:
        return self.state.ledger.bid_count(participant)

    def bid(self, participant: bytes, index: int) -> BidCommitment:
        """Copy of one bid's metadata. Raises IndexError."""
        return dataclasses.replace(self.state.ledger.get(participant, index))

    def bids(self, participant: bytes) -> List[BidCommitment]:
        return [dataclasses.replace(b) for b in self.state.ledger.bids_for(participant)]

    def subscribe(self, handler, event_type=None) -> None:
        """Register an event handler (see EventBus.subscribe)."""
        self.events.subscribe(handler, event_type)

    def audit(self) -> dict:
        """Funds-conservation report (see AuctionState.audit)."""
        return self.state.audit()

    def __repr__(self) -> str:
        return (
            f"BlindAuction(phase={self.phase().name}, bids={len(self.state.ledger)}, "
            f"highest={self.highest_bid}, ended={self.ended})"
        )

    def stats(self) -> dict:
        """Get auction statistics."""
        ledger = self.state.ledger
        return {
            "phase": self.phase().name,
            "bidding_end": self.bidding_end,
            "reveal_end": self.reveal_end,
            "participants": len(ledger.participants()),
            "bids": len(ledger),
            "unrevealed_bids": sum(1 for _, _, bid in ledger if not bid.consumed),
            "highest_bid": self.highest_bid,
            "highest_bidder": self.highest_bidder.hex() if self.highest_bidder else None,
            "ended": self.ended,
            "pending_returns_total": self.state.pending.total(),
        }
