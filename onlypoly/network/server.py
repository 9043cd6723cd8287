"""
WebSocket server for Onlypoly.

Main entry point that ties together connection management,
game management, and message handling.
"""

import asyncio
import json
import logging
import signal
import sys

import websockets
from websockets.asyncio.server import ServerConnection, serve

from onlypoly.config import settings
from onlypoly.game_engine import Auction
from onlypoly.network.connection_manager import ClientConnection, ConnectionManager
from onlypoly.network.game_manager import GameManager, Room
from onlypoly.network.message_handler import HandleResult, MessageHandler
from onlypoly.persistence import RoomRepository, init_database
from shared.enums import MessageType
from shared.protocol import (
    ErrorMessage,
    ConnectedMessage,
    SessionRestoredMessage,
    SessionInvalidMessage,
    StateUpdateMessage,
)


logger = logging.getLogger(__name__)


class OnlypolyServer:
    """
    WebSocket server for the Onlypoly room.

    Handles client connections, routes messages, and delivers the
    resulting responses and broadcasts.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        db_path: str | None = None,
        game_manager: GameManager | None = None
    ):
        self.host = host or settings.HOST
        self.port = port or settings.PORT

        # Initialize managers
        if game_manager is None:
            db = init_database(db_path)
            game_manager = GameManager(RoomRepository(db))
        self._games = game_manager
        self._games.on_auction_finished = self._on_auction_finished
        self._connections = ConnectionManager()
        self._handler = MessageHandler(self._games, self._connections)

        # Server state
        self._server = None
        self._running = False
        self._shutdown_event = asyncio.Event()
        self._cleanup_task: asyncio.Task | None = None
        self._stop_task: asyncio.Task | None = None

    @property
    def games(self) -> GameManager:
        return self._games

    @property
    def connections(self) -> ConnectionManager:
        return self._connections

    def prepare(self) -> None:
        """
        Restore stored state before accepting clients.

        Storage errors propagate; the caller treats them as fatal.
        """
        if settings.RESET_ON_START:
            self._games.wipe_storage()
        self._games.load()

    async def start(self) -> None:
        """Start the WebSocket server."""
        self.prepare()

        self._running = True
        self._shutdown_event.clear()
        self._games.start()
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())

        self._server = await serve(
            self._handle_client,
            self.host,
            self.port,
            ping_interval=30,
            ping_timeout=10,
        )

        logger.info(f"Onlypoly server started on ws://{self.host}:{self.port}")

        # Wait for shutdown signal
        await self._shutdown_event.wait()

    async def stop(self) -> None:
        """Stop the server gracefully."""
        logger.info("Shutting down server...")
        self._running = False

        if self._cleanup_task:
            self._cleanup_task.cancel()
            self._cleanup_task = None

        if self._server:
            self._server.close()
            await self._server.wait_closed()

        await self._games.stop()

        self._shutdown_event.set()
        logger.info("Server stopped")

    def request_shutdown(self) -> None:
        """Request server shutdown (can be called from signal handler)."""
        if self._stop_task is None:
            self._stop_task = asyncio.create_task(self.stop())

    # =========================================================================
    # Client Lifecycle
    # =========================================================================

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """
        Handle a client connection.

        The first message must be CONNECT. After that, messages are routed
        through the message handler.
        """
        connection = None

        try:
            connection = await self._handle_connect(websocket)

            if not connection:
                return

            async for raw_message in websocket:
                if not self._running:
                    break

                await self._handle_message(connection.connection_id, raw_message)

        except websockets.ConnectionClosed:
            logger.debug(f"Connection closed for {connection.connection_id if connection else 'unregistered client'}")
        except Exception as e:
            logger.exception(f"Error handling client: {e}")
        finally:
            if connection:
                await self._handle_disconnect(connection.connection_id)

    async def _handle_connect(self, websocket: ServerConnection) -> ClientConnection | None:
        """
        Handle the CONNECT handshake.

        Registers the socket, restores the session named by session_id if
        it is still valid, and sends the current state.

        Returns:
            The registered connection, or None if the handshake failed
        """
        try:
            raw = await asyncio.wait_for(websocket.recv(), timeout=settings.CONNECT_TIMEOUT)
            data = json.loads(raw)
        except asyncio.TimeoutError:
            await self._send_error(websocket, "Connection timeout", "TIMEOUT")
            return None
        except json.JSONDecodeError:
            await self._send_error(websocket, "Invalid JSON", "PARSE_ERROR")
            return None

        if not isinstance(data, dict) or data.get("type") != MessageType.CONNECT.value:
            await self._send_error(websocket, "First message must be CONNECT", "CONNECT_REQUIRED")
            return None

        payload = data.get("data")
        session_id = payload.get("session_id") if isinstance(payload, dict) else None

        connection = await self._connections.register(websocket)
        await self._connections.send_to_connection(
            connection.connection_id,
            ConnectedMessage.create(connection.connection_id)
        )

        if isinstance(session_id, str) and session_id:
            await self._restore_session(connection, session_id)

        await self._connections.send_to_connection(
            connection.connection_id,
            StateUpdateMessage.create(self._games.game.get_state())
        )

        logger.info(f"Client connected as {connection.connection_id}")

        return connection

    async def _restore_session(self, connection: ClientConnection, session_id: str) -> None:
        player = self._games.restore_session(session_id)
        if player is None:
            await self._connections.send_to_connection(
                connection.connection_id,
                SessionInvalidMessage.create()
            )
            logger.info(f"Session {session_id} could not be restored")
            return

        await self._connections.bind_player(connection.connection_id, player.id)
        self._games.touch_session(player.id, connection.connection_id)

        await self._connections.send_to_connection(
            connection.connection_id,
            SessionRestoredMessage.create(
                player_id=player.id,
                name=player.name,
                token=player.token or "",
                host_id=self._games.game.host_id,
            )
        )
        logger.info(f"Player {player.name} ({player.id}) restored on {connection.connection_id}")

    async def _handle_message(self, connection_id: str, raw_message: str) -> None:
        """Handle an incoming message from a connected client."""
        try:
            result = await self._handler.handle_message(connection_id, raw_message)
            await self.dispatch(connection_id, result)
        except Exception as e:
            logger.exception(f"Error handling message from {connection_id}: {e}")
            await self._connections.send_to_connection(
                connection_id,
                ErrorMessage.create(f"Internal error: {e}", "INTERNAL_ERROR")
            )

    async def _handle_disconnect(self, connection_id: str) -> None:
        """Handle a closed socket; lobby players leave with it."""
        connection = await self._connections.unregister(connection_id)
        if not connection or not connection.player_id:
            return

        player_id = connection.player_id
        if self._connections.is_player_connected(player_id):
            return

        game = self._games.game
        if game.started or player_id not in game.players:
            self._games.touch_session(player_id, None)
            return

        validation = game.remove_player(player_id)
        if validation.valid:
            self._games.forget_session(player_id)
            logger.info(f"Player {player_id} left the lobby on disconnect")
            await self.dispatch(None, HandleResult(broadcast_state=True, should_save=True))

    # =========================================================================
    # Delivery
    # =========================================================================

    async def dispatch(self, connection_id: str | None, result: HandleResult) -> None:
        """
        Deliver a HandleResult.

        Critical results are written to storage before anything goes out.
        """
        if result.should_save or result.critical:
            self._games.save()
        if result.critical and not await self._games.flush():
            logger.error("Critical snapshot could not be written; broadcasting anyway")

        if result.response and connection_id:
            await self._connections.send_to_connection(connection_id, result.response)

        for player_id, message in result.targeted:
            await self._connections.send_to_player(player_id, message)

        for broadcast in result.broadcasts:
            await self._connections.broadcast_to_all(broadcast)

        if result.broadcast_state:
            await self._connections.broadcast_to_all(
                StateUpdateMessage.create(self._games.game.get_state())
            )

    async def _on_auction_finished(self, room: Room, auction: Auction) -> None:
        """Announce an auction resolved by its timer."""
        await self.dispatch(None, self._handler.auction_finished(room, auction))

    async def _cleanup_loop(self) -> None:
        """Periodically drop sessions nobody has used for a while."""
        max_age = settings.SESSION_TTL_HOURS * 3600
        while self._running:
            await asyncio.sleep(settings.CLEANUP_INTERVAL_SECONDS)
            try:
                await asyncio.to_thread(self._games.cleanup_stale_sessions, max_age)
            except Exception as e:
                logger.exception(f"Session cleanup failed: {e}")

    async def _send_error(self, websocket: ServerConnection, message: str, code: str) -> None:
        """Send an error message to a websocket."""
        try:
            await websocket.send(ErrorMessage.create(message, code).to_json())
        except websockets.ConnectionClosed:
            logger.debug("Could not send error, connection already closed")


async def run_server(host: str | None = None, port: int | None = None, db_path: str | None = None) -> None:
    """
    Run the Onlypoly server.

    Sets up signal handlers for graceful shutdown.
    """
    server = OnlypolyServer(host, port, db_path)

    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, server.request_shutdown)

    try:
        await server.start()
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)


def main():
    """Entry point for running the server."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    settings.ensure_directories()

    print(f"Starting Onlypoly server on ws://{settings.HOST}:{settings.PORT}")
    print("Press Ctrl+C to stop")

    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        print("\nServer stopped")
    except Exception as e:
        logger.critical(f"Server failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
