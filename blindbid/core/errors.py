"""
Auction errors.

Every failure aborts the enclosing operation with no partial effect; the
exception carries enough context (boundary timestamp, expected lengths) for
the caller to decide whether to wait, resubmit or give up.
"""

from typing import Optional


class AuctionError(Exception):
    """Base class for all auction failures."""


class PhaseViolation(AuctionError):
    """
    Operation invoked outside its allowed phase.

    `boundary` is the timestamp at which the operation becomes valid (when
    called too early) or stopped being valid (when called too late).
    """

    def __init__(self, operation: str, required, actual, boundary: float):
        self.operation = operation
        self.required = required
        self.actual = actual
        self.boundary = boundary
        when = "opens" if self.too_early else "closed"
        super().__init__(
            f"{operation} requires phase {required.name}, auction is {actual.name} "
            f"({required.name} {when} at {boundary})"
        )

    @property
    def too_early(self) -> bool:
        return self.actual < self.required


class MalformedReveal(AuctionError):
    """Reveal batch shape does not match the caller's recorded bids."""

    def __init__(self, expected: int, values: int, fakes: int, secrets: int):
        self.expected = expected
        self.got = (values, fakes, secrets)
        super().__init__(
            f"Reveal expects {expected} entries per sequence, got "
            f"values={values}, fakes={fakes}, secrets={secrets}"
        )


class AlreadyFinalized(AuctionError):
    """finalize() was already executed."""

    def __init__(self):
        super().__init__("Auction already finalized")


class Unauthorized(AuctionError):
    """Request could not be attributed to the claimed principal."""


class InvalidInput(AuctionError):
    """An argument failed validation (type, range, size)."""


class AmountOverflow(AuctionError):
    """Accumulated amount would exceed the unsigned 256-bit range."""


class AmountUnderflow(AuctionError):
    """Subtraction would produce a negative amount."""


class TransferFailed(AuctionError):
    """Outbound payment could not be executed by the transfer gateway."""

    def __init__(self, recipient: bytes, amount: int, reason: Optional[str] = None):
        self.recipient = recipient
        self.amount = amount
        message = f"Transfer of {amount} to 0x{recipient.hex()} failed"
        if reason:
            message += f": {reason}"
        super().__init__(message)
