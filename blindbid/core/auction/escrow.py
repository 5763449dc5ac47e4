"""
Pending-Returns Escrow - withdrawable balances owed to participants.

Refunds are never pushed to bidders during settlement; they are credited
here and pulled by the owner with withdraw(). `take` reads and zeroes a
balance in one step so the payout that follows can never observe or claim
the same balance twice.
"""

from dataclasses import dataclass, field
from typing import Dict

from blindbid.core.errors import AmountOverflow
from blindbid.utils.validation import checked_add


@dataclass
class PendingReturns:
    """participant -> withdrawable balance"""
    balances: Dict[bytes, int] = field(default_factory=dict)

    def balance(self, participant: bytes) -> int:
        return self.balances.get(participant, 0)

    def credit(self, participant: bytes, amount: int) -> int:
        """Add to a participant's balance; returns the new balance."""
        new_balance = checked_add(self.balance(participant), amount)
        if new_balance is None:
            raise AmountOverflow(
                f"pending returns for 0x{participant.hex()} would overflow"
            )
        if new_balance:
            self.balances[participant] = new_balance
        return new_balance

    def take(self, participant: bytes) -> int:
        """Zero a participant's balance and return what it held."""
        return self.balances.pop(participant, 0)

    def total(self) -> int:
        return sum(self.balances.values())

    def __len__(self) -> int:
        return len(self.balances)
