"""
Data models for database operations.

These are simple dataclasses that map to database rows,
separate from the game engine models.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass
class RoomRecord:
    """Database representation of a room and its latest snapshot."""
    id: str
    state_json: str = "{}"
    closed: bool = False
    created_at: datetime | None = None

    @property
    def state(self) -> dict[str, Any]:
        return json.loads(self.state_json) if self.state_json else {}

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "RoomRecord":
        """Create from database row."""
        return cls(
            id=row["id"],
            state_json=row["state"],
            closed=bool(row["closed"]),
            created_at=row["created_at"]
        )


@dataclass
class PlayerRecord:
    """Session record of a player, used to restore reconnects."""
    id: str
    name: str
    token: str
    room_id: str | None = None
    connection_id: str | None = None
    last_active: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PlayerRecord":
        """Create from database row."""
        return cls(
            id=row["id"],
            name=row["name"],
            token=row["token"],
            room_id=row["room_id"],
            connection_id=row["connection_id"],
            last_active=row["last_active"]
        )
