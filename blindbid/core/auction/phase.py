"""
Phase Clock - derives the auction phase from the current time.

    BIDDING ──(bidding_end)──► REVEALING ──(reveal_end)──► CLOSED

Transitions are pure functions of time; nothing is stored beyond the two
boundary timestamps. Whether finalization already happened is tracked by
the auction record, not here.
"""

import time
from enum import IntEnum
from typing import Callable, Optional

from blindbid.core.errors import PhaseViolation


class Phase(IntEnum):
    """Phase of a blind auction."""
    BIDDING = 0      # Accepting sealed bids
    REVEALING = 1    # Accepting reveals
    CLOSED = 2       # Ready for finalization


class PhaseClock:
    """
    Phase gate for auction operations.

    Args:
        bidding_end: Timestamp at which bidding stops and reveals open
        reveal_end: Timestamp at which reveals stop
        clock: Time source returning seconds; host supplied
    """

    def __init__(
        self,
        bidding_end: float,
        reveal_end: float,
        clock: Callable[[], float] = time.time,
    ):
        if reveal_end < bidding_end:
            raise ValueError("reveal_end must not precede bidding_end")
        self.bidding_end = bidding_end
        self.reveal_end = reveal_end
        self.clock = clock

    @classmethod
    def from_durations(
        cls,
        start: float,
        bidding_time: float,
        reveal_time: float,
        clock: Callable[[], float] = time.time,
    ) -> "PhaseClock":
        bidding_end = start + bidding_time
        return cls(bidding_end, bidding_end + reveal_time, clock)

    def now(self) -> float:
        return self.clock()

    def phase(self, now: Optional[float] = None) -> Phase:
        """Phase at `now` (defaults to the clock's current time)."""
        if now is None:
            now = self.now()
        if now < self.bidding_end:
            return Phase.BIDDING
        if now < self.reveal_end:
            return Phase.REVEALING
        return Phase.CLOSED

    def boundary_for(self, required: Phase, actual: Phase) -> float:
        """
        The timestamp relevant to a caller who is in the wrong phase.

        Too early: when `required` starts. Too late: when `required` ended.
        """
        if actual < required:
            return self.bidding_end if required == Phase.REVEALING else self.reveal_end
        return self.bidding_end if required == Phase.BIDDING else self.reveal_end

    def require(self, operation: str, required: Phase, now: Optional[float] = None) -> float:
        """
        Fail with PhaseViolation unless the auction is in `required`.

        Returns:
            The timestamp the check was made at
        """
        if now is None:
            now = self.now()
        actual = self.phase(now)
        if actual != required:
            raise PhaseViolation(operation, required, actual, self.boundary_for(required, actual))
        return now

    def __repr__(self) -> str:
        return f"PhaseClock(bidding_end={self.bidding_end}, reveal_end={self.reveal_end})"
