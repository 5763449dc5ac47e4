"""
Persistent Storage Module.

Provides SQLite-backed persistence for:
- Auction record and phase boundaries
- Bid ledger
- Pending returns
"""

from blindbid.core.storage.sqlite_adapter import SQLiteAdapter
from blindbid.core.storage.storage_manager import StorageManager

__all__ = ["SQLiteAdapter", "StorageManager"]
