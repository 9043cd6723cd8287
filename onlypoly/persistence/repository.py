"""
Repository layer for room snapshots and player sessions.
"""

import json
import logging
from typing import Any

from onlypoly.persistence.database import Database, get_database
from onlypoly.persistence.models import PlayerRecord, RoomRecord


logger = logging.getLogger(__name__)


class RoomRepository:
    """
    Repository for room persistence operations.

    Rooms store one JSON snapshot of the whole game; players store the
    session data needed to recognise a reconnecting client.
    """

    def __init__(self, database: Database | None = None):
        self.db = database or get_database()

    # =========================================================================
    # Room Operations
    # =========================================================================

    def save_room(self, room_id: str, state: dict[str, Any]) -> None:
        """Insert or replace the room's snapshot."""
        with self.db.get_connection() as conn:
            conn.execute(
                """
                INSERT INTO rooms (id, state, closed)
                VALUES (?, ?, 0)
                ON CONFLICT(id) DO UPDATE SET state = excluded.state, closed = 0
                """,
                (room_id, json.dumps(state))
            )

    def get_room_record(self, room_id: str) -> RoomRecord | None:
        """Get an open room row."""
        with self.db.get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM rooms WHERE id = ? AND closed = 0",
                (room_id,)
            )
            row = cursor.fetchone()

            if row:
                return RoomRecord.from_row(dict(row))
            return None

    def get_room(self, room_id: str) -> dict[str, Any] | None:
        """Get the stored snapshot of an open room."""
        record = self.get_room_record(room_id)
        return record.state if record else None

    def close_room(self, room_id: str) -> None:
        """Delete a room together with its player sessions."""
        with self.db.get_connection() as conn:
            conn.execute("DELETE FROM players WHERE room_id = ?", (room_id,))
            conn.execute("DELETE FROM rooms WHERE id = ?", (room_id,))

    # =========================================================================
    # Player Operations
    # =========================================================================

    def create_player(self, player: PlayerRecord) -> PlayerRecord:
        """Create (or refresh) a player session."""
        with self.db.get_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO players (
                    id, room_id, name, connection_id, token, last_active
                )
                VALUES (?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                """,
                (
                    player.id,
                    player.room_id,
                    player.name,
                    player.connection_id,
                    player.token
                )
            )
        return player

    def get_player(self, player_id: str) -> PlayerRecord | None:
        """Get a player session by ID."""
        with self.db.get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM players WHERE id = ?",
                (player_id,)
            )
            row = cursor.fetchone()

            if row:
                return PlayerRecord.from_row(dict(row))
            return None

    def get_players_for_room(self, room_id: str) -> list[PlayerRecord]:
        with self.db.get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM players WHERE room_id = ? ORDER BY last_active",
                (room_id,)
            )
            return [PlayerRecord.from_row(dict(row)) for row in cursor.fetchall()]

    def update_player_connection(self, player_id: str, connection_id: str | None) -> None:
        """Bind a session to its current connection and mark it active."""
        with self.db.get_connection() as conn:
            conn.execute(
                """
                UPDATE players
                SET connection_id = ?, last_active = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (connection_id, player_id)
            )

    def delete_player(self, player_id: str) -> bool:
        with self.db.get_connection() as conn:
            cursor = conn.execute("DELETE FROM players WHERE id = ?", (player_id,))
            return cursor.rowcount > 0

    def cleanup_stale_players(self, max_age_seconds: float) -> int:
        """
        Delete sessions idle for longer than max_age_seconds.

        Returns:
            Number of sessions removed
        """
        with self.db.get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM players WHERE last_active < datetime('now', ?)",
                (f"-{int(max_age_seconds)} seconds",)
            )
            removed = cursor.rowcount

        if removed:
            logger.info(f"Removed {removed} stale player sessions")
        return removed
