"""
Auction Gateway - authenticated entry point for hosted auctions.

The auction core trusts whatever participant address it is handed. A host
that receives requests over a network puts this gateway in front of it:
every request carries the sender's public key and an ECDSA signature over
its canonical encoding, and the gateway derives the participant address
from the key rather than trusting a claimed one.

Request Encoding:
----------------
    sha256(json({"action", "nonce", "payload"}, sorted keys, no spaces))

bytes inside the payload are encoded as 0x-prefixed hex. Nonces must
strictly increase per sender; a request that fails inside the auction does
not consume its nonce.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from blindbid.core.auction.blind_auction import BlindAuction
from blindbid.core.errors import InvalidInput, Unauthorized
from blindbid.crypto import (
    KeyPair,
    address_from_public_key,
    bytes_to_hex,
    hex_to_bytes,
    sha256,
    short_hex,
    sign,
    verify,
)
from blindbid.utils.logger import get_logger

logger = get_logger("gateway")

ACTIONS = ("place_bid", "reveal", "withdraw", "finalize")


def _encode(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes_to_hex(bytes(value))
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    if isinstance(value, dict):
        return {key: _encode(item) for key, item in value.items()}
    return value


@dataclass
class SignedRequest:
    """
    A request to the auction signed by its sender.

    Attributes:
        action: One of place_bid, reveal, withdraw, finalize
        payload: Action arguments (see AuctionGateway.submit)
        nonce: Per-sender, strictly increasing
        public_key: Sender's 64-byte secp256k1 public key
        signature: 64-byte ECDSA signature over signing_hash()
    """
    action: str
    payload: Dict[str, Any] = field(default_factory=dict)
    nonce: int = 0
    public_key: bytes = b""
    signature: bytes = b""

    def to_bytes(self) -> bytes:
        """Canonical encoding covered by the signature."""
        body = {"action": self.action, "nonce": self.nonce, "payload": _encode(self.payload)}
        return json.dumps(body, sort_keys=True, separators=(",", ":")).encode()

    def signing_hash(self) -> bytes:
        return sha256(self.to_bytes())

    def sign(self, keypair: KeyPair) -> "SignedRequest":
        self.public_key = keypair.public_key
        self.signature = sign(self.signing_hash(), keypair.private_key)
        return self

    def verify_signature(self) -> bool:
        return verify(self.signing_hash(), self.signature, self.public_key)

    @property
    def sender(self) -> bytes:
        return address_from_public_key(self.public_key)


def create_request(keypair: KeyPair, action: str, nonce: int, **payload) -> SignedRequest:
    """Build and sign a request in one step."""
    return SignedRequest(action=action, payload=payload, nonce=nonce).sign(keypair)


class AuctionGateway:
    """
    Authenticates signed requests and dispatches them to a BlindAuction.

    Payloads:
        place_bid: commitment (bytes), amount (int)
        reveal: values (list[int]), fakes (list[bool]), secrets (list[bytes])
        withdraw, finalize: empty
    """

    def __init__(self, auction: BlindAuction):
        self.auction = auction
        self.nonces: Dict[bytes, int] = {}

    def authenticate(self, request: SignedRequest, expected_sender: Optional[bytes] = None) -> bytes:
        """
        Check a request's signature and nonce.

        Returns:
            The sender's participant address

        Raises:
            Unauthorized: bad signature, wrong sender or replayed nonce
        """
        if len(request.public_key) != 64 or not request.verify_signature():
            raise Unauthorized("request signature does not verify")

        sender = request.sender
        if expected_sender is not None and sender != expected_sender:
            raise Unauthorized(
                f"request signed by {short_hex(sender)}, expected {short_hex(expected_sender)}"
            )

        last = self.nonces.get(sender)
        if last is not None and request.nonce <= last:
            raise Unauthorized(f"nonce {request.nonce} already used (last {last})")

        return sender

    def submit(self, request: SignedRequest, expected_sender: Optional[bytes] = None):
        """
        Authenticate and execute a request.

        Returns:
            Whatever the underlying auction operation returns
        """
        if request.action not in ACTIONS:
            raise InvalidInput(f"unknown action {request.action!r}")

        sender = self.authenticate(request, expected_sender)
        payload = request.payload

        try:
            if request.action == "place_bid":
                result = self.auction.place_bid(
                    sender, _as_bytes(payload["commitment"]), payload["amount"]
                )
            elif request.action == "reveal":
                result = self.auction.reveal(
                    sender,
                    list(payload["values"]),
                    list(payload["fakes"]),
                    [_as_bytes(secret) for secret in payload["secrets"]],
                )
            elif request.action == "withdraw":
                result = self.auction.withdraw(sender)
            else:
                result = self.auction.finalize()
        except KeyError as exc:
            raise InvalidInput(f"{request.action} payload missing {exc.args[0]!r}") from exc

        self.nonces[sender] = request.nonce
        logger.debug(f"{request.action} from {short_hex(sender)} accepted (nonce {request.nonce})")
        return result


def _as_bytes(value) -> bytes:
    if isinstance(value, str):
        return hex_to_bytes(value)
    return value
