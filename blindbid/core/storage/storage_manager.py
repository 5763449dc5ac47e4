from pathlib import Path
from typing import Optional

from blindbid.core.storage.sqlite_adapter import SQLiteAdapter
from blindbid.utils.logger import get_logger

logger = get_logger("storage.manager")


class StorageManager:
    """
    Manages persistent storage for one auction.

    Translates between the auction's plain-data snapshot and the
    SQLite tables. The whole durable state is written in one SQL
    transaction, so a crash never leaves a half-written auction.
    """

    def __init__(self, data_dir: Path, db_name: str = "auction.db"):
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / db_name
        self.adapter = SQLiteAdapter(self.db_path)

        logger.info(f"StorageManager initialized at {self.db_path}")

    def save_auction(
        self,
        beneficiary: bytes,
        bidding_end: float,
        reveal_end: float,
        snapshot: dict,
    ):
        """Persist the auction's complete state."""
        record = snapshot["record"]
        accounting = snapshot["accounting"]
        meta = {
            "beneficiary": beneficiary.hex(),
            "bidding_end": repr(float(bidding_end)),
            "reveal_end": repr(float(reveal_end)),
            "highest_bid": str(record["highest_bid"]),
            "highest_bidder": record["highest_bidder"].hex() if record["highest_bidder"] else None,
            "ended": "1" if record["ended"] else "0",
        }
        for name, amount in accounting.items():
            meta[f"accounting.{name}"] = str(amount)

        self.adapter.replace_state(meta, snapshot["bids"], snapshot["pending"])

    def load_auction(self) -> Optional[dict]:
        """
        Load a previously saved auction.

        Returns:
            dict with beneficiary, bidding_end, reveal_end and state snapshot,
            or None when nothing was saved yet
        """
        meta = self.adapter.get_meta()
        if "beneficiary" not in meta:
            return None

        bidder = meta.get("highest_bidder")
        snapshot = {
            "record": {
                "highest_bid": int(meta["highest_bid"]),
                "highest_bidder": bytes.fromhex(bidder) if bidder else None,
                "ended": meta["ended"] == "1",
            },
            "accounting": {
                key.split(".", 1)[1]: int(value)
                for key, value in meta.items()
                if key.startswith("accounting.")
            },
            "bids": self.adapter.get_bids(),
            "pending": self.adapter.get_pending_returns(),
        }
        return {
            "beneficiary": bytes.fromhex(meta["beneficiary"]),
            "bidding_end": float(meta["bidding_end"]),
            "reveal_end": float(meta["reveal_end"]),
            "state": snapshot,
        }

    def close(self):
        self.adapter.close()
