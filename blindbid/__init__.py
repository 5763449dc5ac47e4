"""
BlindBid - Sealed-bid auction engine.

A commit-reveal ("blind") auction integrating:
- Hash commitments binding value, decoy flag and secret
- Phase-gated bidding and reveal windows
- Per-participant bid ledger with multiple bids
- Pull-payment refund escrow and one-time settlement
"""

__version__ = "0.1.0"
