"""
Bid Ledger - append-only per-participant record of sealed bids.

Storage Layout:
--------------
Records live in one flat arena list; each participant owns an ordered list
of arena positions. A bid is addressed by (participant, index) where index is
the participant's own insertion order, which is the order reveal batches
must follow.

Slots are never removed once committed. A successful reveal only overwrites
the commitment hash with ZERO_COMMITMENT so the slot cannot be processed
twice; the escrowed amount is never mutated.

Undo Log:
--------
append() and consume() record an undo entry. mark() returns the log
position and revert_to(mark) replays entries backwards, so rolling back an
operation costs only what that operation wrote. release() drops the log once
no transaction can roll back past it.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from blindbid.core.auction.commitment import ZERO_COMMITMENT


@dataclass
class BidCommitment:
    """A single sealed bid and the amount locked with it."""
    commitment_hash: bytes
    escrowed_amount: int

    @property
    def consumed(self) -> bool:
        """Whether a reveal has already settled this slot."""
        return self.commitment_hash == ZERO_COMMITMENT


@dataclass
class BidLedger:
    """
    Ordered bids per participant.

    Attributes:
        records: Arena of every bid ever placed
        positions: participant -> arena positions in insertion order
    """
    records: List[BidCommitment] = field(default_factory=list)
    positions: Dict[bytes, List[int]] = field(default_factory=dict)
    _undo: List[Tuple[bytes, int, Optional[bytes]]] = field(default_factory=list, repr=False, compare=False)

    def append(self, participant: bytes, commitment_hash: bytes, escrowed_amount: int) -> int:
        """
        Record a new bid.

        Returns:
            The bid's index within the participant's sequence
        """
        self.records.append(BidCommitment(commitment_hash, escrowed_amount))
        slots = self.positions.setdefault(participant, [])
        slots.append(len(self.records) - 1)
        self._undo.append((participant, len(self.records) - 1, None))
        return len(slots) - 1

    def bid_count(self, participant: bytes) -> int:
        return len(self.positions.get(participant, ()))

    def get(self, participant: bytes, index: int) -> BidCommitment:
        """Bid at `index` of the participant's sequence. Raises IndexError."""
        slots = self.positions.get(participant, [])
        if index < 0 or index >= len(slots):
            raise IndexError(f"participant has {len(slots)} bids, no index {index}")
        return self.records[slots[index]]

    def bids_for(self, participant: bytes) -> List[BidCommitment]:
        return [self.records[pos] for pos in self.positions.get(participant, [])]

    def consume(self, participant: bytes, index: int) -> None:
        """Mark a slot as revealed."""
        bid = self.get(participant, index)
        self._undo.append((participant, self.positions[participant][index], bid.commitment_hash))
        bid.commitment_hash = ZERO_COMMITMENT

    def participants(self) -> List[bytes]:
        return list(self.positions.keys())

    def __iter__(self) -> Iterator[Tuple[bytes, int, BidCommitment]]:
        for participant, slots in self.positions.items():
            for index, pos in enumerate(slots):
                yield participant, index, self.records[pos]

    def __len__(self) -> int:
        return len(self.records)

    def total_unrevealed_escrow(self) -> int:
        """Escrow still locked behind an unconsumed commitment."""
        return sum(
            record.escrowed_amount
            for record in self.records
            if not record.consumed
        )

    # =========================================================================
    # Undo Log
    # =========================================================================

    def mark(self) -> int:
        return len(self._undo)

    def revert_to(self, mark: int) -> None:
        """Undo every append and consume recorded after `mark`."""
        while len(self._undo) > mark:
            participant, pos, previous_hash = self._undo.pop()
            if previous_hash is None:
                self.records.pop()
                slots = self.positions[participant]
                slots.pop()
                if not slots:
                    del self.positions[participant]
            else:
                self.records[pos].commitment_hash = previous_hash

    def release(self) -> None:
        self._undo.clear()
