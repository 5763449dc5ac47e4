"""
Payments - the boundary where value leaves the auction.

The auction never moves currency itself. Deposits arrive with place_bid
(already collected by the host), and every payout goes through a
TransferGateway supplied by the host. A gateway signals failure by raising;
the auction then rolls the whole operation back.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from blindbid.core.errors import TransferFailed
from blindbid.utils.logger import get_logger

logger = get_logger("payments")


class TransferGateway(ABC):
    """Executes outbound payments for the auction."""

    @abstractmethod
    def transfer(self, recipient: bytes, amount: int) -> None:
        """Pay `amount` to `recipient`, or raise."""

    def mark(self) -> Optional[int]:
        """
        Savepoint taken before an operation starts.

        Gateways whose payments can be undone return a token here and honour
        it in revert_to(); the default gateway cannot undo anything.
        """
        return None

    def revert_to(self, mark: Optional[int]) -> None:
        """Undo payments made since `mark` when the operation rolls back."""


@dataclass
class Payment:
    recipient: bytes
    amount: int


class InMemoryBank(TransferGateway):
    """
    Reference gateway that records payouts in memory.

    `on_transfer` runs before a payment is recorded and may raise to simulate
    a failed transfer, or call back into the auction to simulate a recipient
    that re-enters during payment. Payments recorded by a transfer whose
    enclosing operation later rolls back are removed again by `revert_to`.
    """

    def __init__(self, on_transfer: Optional[Callable[[bytes, int], None]] = None):
        self.on_transfer = on_transfer
        self.payments: List[Payment] = []
        self.received: Dict[bytes, int] = defaultdict(int)
        self.failing: set = set()

    def transfer(self, recipient: bytes, amount: int) -> None:
        if recipient in self.failing:
            raise TransferFailed(recipient, amount, "recipient rejects payments")
        if self.on_transfer is not None:
            self.on_transfer(recipient, amount)
        self.payments.append(Payment(recipient, amount))
        self.received[recipient] += amount
        logger.debug(f"Paid {amount} to 0x{recipient.hex()[:8]}")

    def fail_for(self, recipient: bytes) -> None:
        """Make every future payment to `recipient` fail."""
        self.failing.add(recipient)

    def recover(self, recipient: bytes) -> None:
        self.failing.discard(recipient)

    def mark(self) -> int:
        """Position in the payment log, for revert_to()."""
        return len(self.payments)

    def revert_to(self, mark: int) -> None:
        """Undo payments recorded after `mark`."""
        for payment in self.payments[mark:]:
            self.received[payment.recipient] -= payment.amount
        del self.payments[mark:]

    def total_paid(self) -> int:
        return sum(payment.amount for payment in self.payments)

    def paid_to(self, recipient: bytes) -> int:
        return self.received.get(recipient, 0)
