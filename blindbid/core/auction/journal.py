"""
Auction Journal - all-or-nothing execution of auction operations.

Each public operation runs inside `transaction()`. On entry the journal
takes a checkpoint of the AuctionState (an undo-log mark for the ledger,
copies of the small record, accounting and pending-returns maps); if
anything raises before the block exits, the state is rolled back to the
checkpoint and the buffered events of that block are dropped.

Transactions nest. A payout hook may call back into the auction while an
outer operation is still open; the inner call gets its own checkpoint and
rollback, and the outermost transaction alone persists state and publishes
events once everything below it has succeeded. Publishing happens after the
commit, so a failing subscriber can no longer roll anything back.
"""

from contextlib import contextmanager
from typing import Callable, List, Optional

from blindbid.core.auction.events import EventBus
from blindbid.core.auction.state import AuctionState
from blindbid.utils.logger import get_logger

logger = get_logger("journal")


class AuctionJournal:
    """
    Checkpoint-based transaction wrapper around an AuctionState.

    Args:
        state: Live state mutated by operations
        events: Bus that receives events after the outermost commit
        persist: Called with the state just before the outermost commit;
            an exception here rolls the operation back
    """

    def __init__(
        self,
        state: AuctionState,
        events: EventBus,
        persist: Optional[Callable[[AuctionState], None]] = None,
    ):
        self.state = state
        self.events = events
        self.persist = persist
        self._depth = 0
        self._buffered: List[object] = []

    @property
    def depth(self) -> int:
        return self._depth

    def emit(self, event) -> None:
        """Queue an event for delivery when the transaction commits."""
        if self._depth == 0:
            self.events.publish(event)
        else:
            self._buffered.append(event)

    @contextmanager
    def transaction(self, operation: str, on_rollback: Optional[Callable[[], None]] = None):
        """
        Run the enclosed block atomically.

        Args:
            operation: Name used in log lines
            on_rollback: Called after the state has been rolled back, before
                the exception propagates
        """
        checkpoint = self.state.checkpoint()
        mark = len(self._buffered)
        self._depth += 1
        try:
            yield self.state
            if self._depth == 1 and self.persist is not None:
                self.persist(self.state)
        except BaseException as exc:
            self.state.rollback(checkpoint)
            del self._buffered[mark:]
            if on_rollback is not None:
                on_rollback()
            logger.warning(f"{operation} rolled back: {type(exc).__name__}: {exc}")
            raise
        finally:
            self._depth -= 1
            if self._depth == 0:
                self.state.release()

        if self._depth == 0:
            committed, self._buffered = self._buffered, []
            for event in committed:
                self.events.publish(event)
