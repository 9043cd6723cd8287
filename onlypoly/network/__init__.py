"""
Network layer for the Onlypoly server.

Provides WebSocket server, connection management, and message handling.
"""

from onlypoly.network.connection_manager import ClientConnection, ConnectionManager
from onlypoly.network.game_manager import GameManager, Room
from onlypoly.network.message_handler import HandleResult, MessageHandler
from onlypoly.network.server import OnlypolyServer, run_server


__all__ = [
    "ClientConnection",
    "ConnectionManager",
    "GameManager",
    "Room",
    "MessageHandler",
    "HandleResult",
    "OnlypolyServer",
    "run_server",
]
