import sqlite3
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from blindbid.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteAdapter:
    """
    SQLite backend for persistent auction state.

    Tables:
    1. auction_meta: beneficiary, phase boundaries, auction record, accounting
    2. bids: (participant, position) -> commitment, escrow
    3. pending_returns: participant -> balance

    Amounts can exceed SQLite's 64-bit INTEGER and are stored as decimal TEXT.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn_local = threading.local()

        if not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            self._conn_local.conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                check_same_thread=False
            )
            self._conn_local.conn.row_factory = sqlite3.Row
            self._conn_local.conn.execute("PRAGMA journal_mode=WAL;")
            self._conn_local.conn.execute("PRAGMA synchronous=NORMAL;")
        return self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS auction_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS bids (
                    participant BLOB NOT NULL,
                    position INTEGER NOT NULL,
                    commitment BLOB NOT NULL,
                    escrow TEXT NOT NULL,
                    PRIMARY KEY (participant, position)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS pending_returns (
                    participant BLOB PRIMARY KEY,
                    balance TEXT NOT NULL
                )
            """)

    def close(self):
        conn = getattr(self._conn_local, "conn", None)
        if conn is not None:
            conn.close()
            del self._conn_local.conn

    # =========================================================================
    # Reads
    # =========================================================================

    def get_meta(self) -> Dict[str, Optional[str]]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT key, value FROM auction_meta")
        return {row["key"]: row["value"] for row in cursor}

    def get_bids(self) -> List[Tuple[bytes, int, bytes, int]]:
        """All bids as (participant, position, commitment, escrow)."""
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT participant, position, commitment, escrow FROM bids "
            "ORDER BY participant, position"
        )
        return [
            (bytes(row["participant"]), row["position"], bytes(row["commitment"]), int(row["escrow"]))
            for row in cursor
        ]

    def get_pending_returns(self) -> Dict[bytes, int]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT participant, balance FROM pending_returns")
        return {bytes(row["participant"]): int(row["balance"]) for row in cursor}

    # =========================================================================
    # Writes
    # =========================================================================

    def replace_state(
        self,
        meta: Dict[str, Optional[str]],
        bids: List[Tuple[bytes, int, bytes, int]],
        pending: Dict[bytes, int],
    ):
        """
        Atomically replace the stored auction state.

        Args:
            meta: key -> text value
            bids: (participant, position, commitment, escrow) rows
            pending: participant -> balance
        """
        conn = self._get_conn()
        with conn:
            conn.execute("DELETE FROM auction_meta")
            conn.executemany(
                "INSERT INTO auction_meta (key, value) VALUES (?, ?)",
                list(meta.items())
            )

            conn.execute("DELETE FROM bids")
            conn.executemany(
                "INSERT INTO bids (participant, position, commitment, escrow) VALUES (?, ?, ?, ?)",
                [(p, pos, c, str(escrow)) for p, pos, c, escrow in bids]
            )

            conn.execute("DELETE FROM pending_returns")
            conn.executemany(
                "INSERT INTO pending_returns (participant, balance) VALUES (?, ?)",
                [(p, str(balance)) for p, balance in pending.items()]
            )
