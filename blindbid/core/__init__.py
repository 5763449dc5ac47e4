"""Auction engine: state machine, settlement, payments, storage."""
