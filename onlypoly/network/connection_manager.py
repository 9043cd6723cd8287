"""
Connection manager for WebSocket clients.

Every socket gets a connection id on CONNECT; joining or restoring a
session binds a player id to it. Handles sending messages to individual
players or broadcasting to everyone connected.
"""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from websockets.asyncio.server import ServerConnection

from shared.protocol import Message


logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ClientConnection:
    """Tracks one connected socket."""
    connection_id: str
    websocket: ServerConnection
    player_id: str | None = None
    connected_at: datetime = field(default_factory=_now)
    last_activity: datetime = field(default_factory=_now)

    def update_activity(self) -> None:
        """Update last activity timestamp."""
        self.last_activity = _now()


class ConnectionManager:
    """
    Manages WebSocket connections and connection-to-player bindings.

    A player is bound to at most one connection; binding from a new socket
    detaches the player from the old one.
    """

    def __init__(self):
        # connection_id -> ClientConnection
        self._connections: dict[str, ClientConnection] = {}

        # player_id -> connection_id (for quick lookup)
        self._player_to_connection: dict[str, str] = {}

        self._lock = asyncio.Lock()

    # =========================================================================
    # Connection Lifecycle
    # =========================================================================

    async def register(self, websocket: ServerConnection) -> ClientConnection:
        """Register a new socket under a fresh connection id."""
        async with self._lock:
            connection = ClientConnection(
                connection_id=str(uuid.uuid4()),
                websocket=websocket,
            )
            self._connections[connection.connection_id] = connection
            logger.debug(f"Connection {connection.connection_id} registered")
            return connection

    async def unregister(self, connection_id: str) -> ClientConnection | None:
        """
        Forget a socket.

        Returns:
            The ClientConnection if found, None otherwise
        """
        async with self._lock:
            connection = self._connections.pop(connection_id, None)
            if connection and connection.player_id:
                if self._player_to_connection.get(connection.player_id) == connection_id:
                    del self._player_to_connection[connection.player_id]
                logger.info(f"Player {connection.player_id} disconnected ({connection_id})")
            return connection

    async def bind_player(self, connection_id: str, player_id: str) -> bool:
        """
        Associate a player with a connection.

        Returns:
            True if successful, False if the connection is gone
        """
        async with self._lock:
            connection = self._connections.get(connection_id)
            if not connection:
                return False

            previous_id = self._player_to_connection.get(player_id)
            if previous_id and previous_id != connection_id:
                previous = self._connections.get(previous_id)
                if previous:
                    previous.player_id = None
                logger.info(f"Player {player_id} moved from {previous_id} to {connection_id}")

            if connection.player_id and connection.player_id != player_id:
                self._player_to_connection.pop(connection.player_id, None)

            connection.player_id = player_id
            self._player_to_connection[player_id] = connection_id
            return True

    async def unbind_player(self, connection_id: str) -> str | None:
        """
        Detach the player from a connection, keeping the socket.

        Returns:
            The player id that was bound, if any
        """
        async with self._lock:
            connection = self._connections.get(connection_id)
            if not connection or not connection.player_id:
                return None

            player_id = connection.player_id
            connection.player_id = None
            if self._player_to_connection.get(player_id) == connection_id:
                del self._player_to_connection[player_id]
            return player_id

    # =========================================================================
    # Queries
    # =========================================================================

    def get_connection(self, connection_id: str) -> ClientConnection | None:
        return self._connections.get(connection_id)

    def get_player_id(self, connection_id: str) -> str | None:
        """Get player ID bound to a connection."""
        connection = self._connections.get(connection_id)
        return connection.player_id if connection else None

    def get_connection_id(self, player_id: str) -> str | None:
        return self._player_to_connection.get(player_id)

    def is_player_connected(self, player_id: str) -> bool:
        """Check if a player is currently connected."""
        return player_id in self._player_to_connection

    def connected_player_ids(self) -> set[str]:
        return set(self._player_to_connection)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    # =========================================================================
    # Messaging
    # =========================================================================

    async def send_to_player(self, player_id: str, message: Message | dict | str) -> bool:
        """
        Send a message to a specific player.

        Returns:
            True if sent successfully, False if player not connected
        """
        connection_id = self._player_to_connection.get(player_id)
        if not connection_id:
            return False

        return await self.send_to_connection(connection_id, message)

    async def send_to_connection(self, connection_id: str, message: Message | dict | str) -> bool:
        """
        Send a message to a specific connection.

        Returns:
            True if sent successfully, False on error
        """
        connection = self._connections.get(connection_id)
        if not connection:
            return False

        return await self._send(connection, message)

    async def broadcast_to_all(self, message: Message | dict | str) -> int:
        """
        Broadcast a message to every open connection.

        Returns:
            Number of connections the message was sent to
        """
        data = self._encode(message)
        sent_count = 0
        for connection in list(self._connections.values()):
            if await self._send(connection, data):
                sent_count += 1
        return sent_count

    @staticmethod
    def _encode(message: Message | dict | str) -> str:
        if isinstance(message, Message):
            return message.to_json()
        elif isinstance(message, dict):
            return json.dumps(message)
        return message

    async def _send(self, connection: ClientConnection, message: Message | dict | str) -> bool:
        """Internal helper to send a message to a connection."""
        try:
            await connection.websocket.send(self._encode(message))
            connection.update_activity()
            return True
        except Exception as e:
            logger.error(f"Failed to send message to {connection.connection_id}: {e}")
            return False
