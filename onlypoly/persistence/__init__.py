"""
Persistence layer for the Onlypoly server.

Provides SQLite-based storage for room snapshots and player sessions.
"""

from onlypoly.persistence.database import (
    Database,
    get_database,
    init_database
)
from onlypoly.persistence.models import (
    PlayerRecord,
    RoomRecord
)
from onlypoly.persistence.repository import RoomRepository
from onlypoly.persistence.writer import SnapshotWriter


__all__ = [
    # Database
    "Database",
    "get_database",
    "init_database",

    # Models
    "PlayerRecord",
    "RoomRecord",

    # Repository
    "RoomRepository",
    "SnapshotWriter",
]
