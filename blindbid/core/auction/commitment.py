"""
Bid commitments - the sealed part of a sealed bid.

A commitment binds a bidder to three things without disclosing them:

    C = keccak256(uint256(value) || uint256(fake) || secret)

- value: the true bid, which may be lower than the escrowed amount
- fake: decoy flag; a decoy is provably "not a real bid" and is always
  fully refunded on reveal
- secret: blinding bytes that stop anyone from brute-forcing small values

Escrowing more than the true value, and mixing decoys in with real bids,
keeps the real bid hidden until the reveal phase.
"""

import hmac
from dataclasses import dataclass, field
from typing import Optional

from blindbid.core.errors import InvalidInput
from blindbid.crypto import keccak256, random_secret
from blindbid.utils.validation import MAX_SECRET_SIZE, validate_secret

# Marks a ledger slot whose commitment has already been consumed by a reveal
ZERO_COMMITMENT = bytes(32)

WORD_SIZE = 32


def _word(value: int) -> bytes:
    return value.to_bytes(WORD_SIZE, byteorder="big")


def compute_commitment(value: int, fake: bool, secret: bytes) -> bytes:
    """
    Compute the commitment hash for a bid.

    Args:
        value: True bid value (unsigned 256-bit)
        fake: Whether the bid is a decoy
        secret: Blinding secret

    Returns:
        32-byte commitment
    """
    return keccak256(_word(value) + _word(int(fake)) + bytes(secret))


def verify_commitment(commitment: bytes, value: int, fake: bool, secret: bytes) -> bool:
    """
    Check a claimed (value, fake, secret) opening against a stored commitment.

    A mismatch is a normal outcome, not an error. Consumed slots never verify.
    """
    if commitment == ZERO_COMMITMENT:
        return False
    if value < 0 or value >= 2 ** (8 * WORD_SIZE):
        return False
    return hmac.compare_digest(commitment, compute_commitment(value, fake, secret))


@dataclass
class SealedBid:
    """
    Everything a bidder needs to place and later reveal one bid.

    The commitment and escrow go to the auction during bidding; value, fake
    and secret are kept private until the reveal phase.
    """
    value: int
    escrow: int
    fake: bool = False
    secret: bytes = field(default_factory=random_secret)

    @property
    def commitment(self) -> bytes:
        return compute_commitment(self.value, self.fake, self.secret)


def create_sealed_bid(
    value: int,
    fake: bool = False,
    escrow: Optional[int] = None,
    secret: Optional[bytes] = None,
    max_secret_size: int = MAX_SECRET_SIZE,
) -> SealedBid:
    """
    Create a bid and its reveal material.

    Args:
        value: True bid value
        fake: Decoy flag
        escrow: Amount to lock with the bid; defaults to the value itself
        secret: Blinding secret; 32 random bytes when omitted
        max_secret_size: Largest secret the auction will accept on reveal

    Returns:
        SealedBid

    Raises:
        InvalidInput: secret is not bytes or is longer than max_secret_size
    """
    if secret is None:
        secret = random_secret()
    is_valid, error = validate_secret(secret, max_secret_size)
    if not is_valid:
        raise InvalidInput(error)

    return SealedBid(
        value=value,
        escrow=value if escrow is None else escrow,
        fake=fake,
        secret=bytes(secret),
    )
