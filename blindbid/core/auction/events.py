"""
Auction notifications.

Handlers subscribe to the EventBus; the auction publishes only after an
operation has committed, so a handler never sees an event from a call that
was rolled back.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Type

from blindbid.utils.logger import get_logger

logger = get_logger("events")


@dataclass(frozen=True)
class BidPlaced:
    participant: bytes
    index: int
    escrowed_amount: int


@dataclass(frozen=True)
class BidRevealed:
    """One consumed slot of a reveal batch."""
    participant: bytes
    index: int
    value: int
    fake: bool
    promoted: bool


@dataclass(frozen=True)
class Withdrawal:
    participant: bytes
    amount: int


@dataclass(frozen=True)
class AuctionEnded:
    """Emitted once by finalize()."""
    winner: Optional[bytes]
    amount: int


Handler = Callable[[object], None]


class EventBus:
    """Synchronous fan-out of auction events."""

    def __init__(self):
        self._subscribers: List[tuple] = []

    def subscribe(self, handler: Handler, event_type: Optional[Type] = None) -> None:
        """
        Register a handler.

        Args:
            handler: Callable receiving the event
            event_type: Only deliver events of this type (all when None)
        """
        self._subscribers.append((handler, event_type))

    def publish(self, event) -> None:
        for handler, event_type in list(self._subscribers):
            if event_type is None or isinstance(event, event_type):
                handler(event)
        logger.debug(f"Published {type(event).__name__}")
