"""
Game manager owning the room the server plays in.

Ties the game engine, the auction house, the trade desk and the snapshot
writer together, and backs player sessions with the repository.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from onlypoly.config import settings
from onlypoly.game_engine import Auction, AuctionHouse, Dice, Game, Player, TradeDesk
from onlypoly.persistence import (
    PlayerRecord,
    RoomRepository,
    SnapshotWriter,
    get_database,
)


logger = logging.getLogger(__name__)


@dataclass
class Room:
    """A game together with the subsystems layered on it."""
    id: str
    game: Game
    auctions: AuctionHouse
    trades: TradeDesk
    writer: SnapshotWriter


class GameManager:
    """
    Manages the room and its persistence.

    Only one room is served, but rooms are kept in a map keyed by id so
    handlers always go through an explicit handle.
    """

    def __init__(
        self,
        repository: RoomRepository | None = None,
        room_id: str | None = None,
        auction_duration: float | None = None,
        clock: Callable[[], float] = time.time,
        dice: Dice | None = None
    ):
        self._repository = repository or RoomRepository(get_database())
        self.room_id = room_id or settings.ROOM_ID
        self._auction_duration = (
            settings.AUCTION_DURATION_SECONDS if auction_duration is None else auction_duration
        )
        self._clock = clock
        self._dice = dice

        # Set by the server; awaited when an auction timer resolves
        self.on_auction_finished: Callable[[Room, Auction], Awaitable[None]] | None = None

        self.rooms: dict[str, Room] = {}
        self.rooms[self.room_id] = self._create_room(self._new_game())

    # =========================================================================
    # Room Lifecycle
    # =========================================================================

    @property
    def room(self) -> Room:
        return self.rooms[self.room_id]

    @property
    def game(self) -> Game:
        return self.room.game

    @property
    def repository(self) -> RoomRepository:
        return self._repository

    def get_room(self, room_id: str) -> Room | None:
        return self.rooms.get(room_id)

    def _new_game(self) -> Game:
        game = Game(id=self.room_id)
        if self._dice is not None:
            game.dice = self._dice
        self._apply_limits(game)
        return game

    @staticmethod
    def _apply_limits(game: Game) -> None:
        game.max_players = settings.MAX_PLAYERS
        game.min_players = settings.MIN_PLAYERS
        game.min_ready = settings.MIN_READY_PLAYERS

    def _create_room(self, game: Game, writer: SnapshotWriter | None = None) -> Room:
        room = Room(
            id=self.room_id,
            game=game,
            auctions=None,
            trades=TradeDesk(game),
            writer=writer or SnapshotWriter(self._repository, self.room_id),
        )
        room.auctions = AuctionHouse(
            game,
            duration=self._auction_duration,
            clock=self._clock,
            on_finished=lambda auction: self._auction_finished(room, auction),
            grace=settings.AUCTION_GRACE_SECONDS,
        )
        return room

    async def _auction_finished(self, room: Room, auction: Auction) -> None:
        if self.on_auction_finished is not None:
            await self.on_auction_finished(room, auction)

    def load(self) -> bool:
        """
        Restore the stored snapshot, if any.

        Errors propagate: a server that cannot read its storage must not start.

        Returns:
            True if a snapshot was restored
        """
        state = self._repository.get_room(self.room_id)
        if not state:
            logger.info(f"No stored state for room {self.room_id}, starting fresh")
            return False

        game = Game.from_dict(state, dice=self._dice)
        self._apply_limits(game)
        self.rooms[self.room_id] = self._create_room(game, writer=self.room.writer)

        logger.info(
            f"Room {self.room_id} restored with {len(game.players)} players "
            f"({'started' if game.started else 'lobby'})"
        )
        return True

    def wipe_storage(self) -> None:
        """Drop the stored room and every session tied to it."""
        self._repository.close_room(self.room_id)
        logger.info(f"Stored state for room {self.room_id} wiped")

    def start(self) -> None:
        self.room.writer.start()

    async def stop(self) -> None:
        self.room.auctions.cancel()
        await self.room.writer.stop()

    def reset_game(self) -> None:
        """Return the room to an empty lobby."""
        room = self.room
        room.auctions.cancel()
        room.trades.clear()
        room.game.reset()
        self.save()
        logger.info(f"Room {self.room_id} reset")

    # =========================================================================
    # Persistence
    # =========================================================================

    def snapshot(self) -> dict[str, Any]:
        return self.game.to_dict()

    def save(self) -> None:
        """Queue a snapshot write; returns immediately."""
        self.room.writer.request_save(self.snapshot())

    async def flush(self) -> bool:
        """Wait until the latest snapshot is written."""
        return await self.room.writer.flush()

    # =========================================================================
    # Sessions
    # =========================================================================

    @staticmethod
    def new_token() -> str:
        return secrets.token_urlsafe(16)

    def create_session(self, player: Player, connection_id: str | None) -> PlayerRecord:
        """Record a joined player so the client can resume later."""
        record = PlayerRecord(
            id=player.id,
            name=player.name,
            token=player.token or self.new_token(),
            room_id=self.room_id,
            connection_id=connection_id,
        )
        return self._repository.create_player(record)

    def restore_session(self, session_id: str) -> Player | None:
        """
        Find the seated player a session id belongs to.

        Returns:
            The player, or None if the session is unknown, stale or the
            player is no longer in the game
        """
        record = self._repository.get_player(session_id)
        if record is None or record.room_id != self.room_id:
            return None
        return self.game.players.get(record.id)

    def touch_session(self, player_id: str, connection_id: str | None) -> None:
        self._repository.update_player_connection(player_id, connection_id)

    def forget_session(self, player_id: str) -> None:
        self._repository.delete_player(player_id)

    def cleanup_stale_sessions(self, max_age_seconds: float) -> int:
        return self._repository.cleanup_stale_players(max_age_seconds)
