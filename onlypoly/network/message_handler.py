"""
Message handler for routing client messages to game actions.

Parses incoming messages, validates them, executes the appropriate
game actions, and formats responses and broadcasts.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from onlypoly.game_engine import Auction, ValidationResult
from onlypoly.network.connection_manager import ConnectionManager
from onlypoly.network.game_manager import GameManager, Room
from shared.constants import MAX_NAME_LENGTH
from shared.enums import MessageType, RejectReason, TradeStatus
from shared.protocol import (
    Message,
    ErrorMessage,
    JoinedMessage,
    JoinErrorMessage,
    StateUpdateMessage,
    ActionRejectedMessage,
    DiceRolledMessage,
    AuctionMessage,
    TradeOfferMessage,
    TradeUpdatedMessage,
    JailPaidMessage,
    JailTurnSkippedMessage,
    PlayerBankruptMessage,
    GameOverMessage,
    GameResetMessage,
)


logger = logging.getLogger(__name__)


class PayloadError(ValueError):
    """A message is missing a field or carries one of the wrong type."""


@dataclass
class HandleResult:
    """Result of handling a message."""
    # Response to send back to the requesting connection
    response: Message | None = None
    # Messages to broadcast to every connection
    broadcasts: list[Message] = field(default_factory=list)
    # Messages for specific players: (player_id, message)
    targeted: list[tuple[str, Message]] = field(default_factory=list)
    # Whether to broadcast the full game state after this action
    broadcast_state: bool = False
    # Whether to queue a snapshot write after this action
    should_save: bool = False
    # Whether the snapshot must be written before anything is sent
    critical: bool = False


def error_result(message: str, code: str, request_id: str | None = None) -> HandleResult:
    return HandleResult(response=ErrorMessage.create(message, code, request_id))


def _require_int(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise PayloadError(f"'{key}' must be an integer")
    return value


def _require_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise PayloadError(f"'{key}' must be a non-empty string")
    return value.strip()


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise PayloadError(f"'{key}' must be a string")
    return value.strip() or None


class MessageHandler:
    """
    Routes incoming messages to appropriate game actions.

    Each handler method returns a HandleResult containing:
    - A response to send to the requesting connection
    - Broadcasts and player-targeted messages
    - Flags for state broadcast and snapshot writes
    """

    def __init__(self, game_manager: GameManager, connection_manager: ConnectionManager):
        self._games = game_manager
        self._connections = connection_manager

    async def handle_message(
        self,
        connection_id: str,
        message: Message | str | dict
    ) -> HandleResult:
        """
        Handle an incoming message from a connection.

        Args:
            connection_id: Connection the message arrived on
            message: The message (Message object, JSON string, or dict)

        Returns:
            HandleResult with response and broadcasts
        """
        if not isinstance(message, Message):
            parsed = self._parse(message)
            if isinstance(parsed, HandleResult):
                return parsed
            message = parsed

        handler = self._get_handler(message.type)
        if not handler:
            return error_result(
                f"Unknown message type: {message.type.value}",
                "UNKNOWN_MESSAGE_TYPE",
                message.request_id
            )

        try:
            result = await handler(connection_id, message)
        except PayloadError as e:
            logger.warning(f"Malformed {message.type.value} from {connection_id}: {e}")
            return error_result(str(e), "INVALID_PAYLOAD", message.request_id)
        except Exception as e:
            logger.exception(f"Error handling message {message.type.value}: {e}")
            return error_result(f"Internal error: {e}", "INTERNAL_ERROR", message.request_id)

        # Preserve request_id in response
        if result.response and message.request_id:
            result.response.request_id = message.request_id

        self.collect_game_events(result)
        return result

    def _parse(self, raw: str | dict) -> Message | HandleResult:
        """Turn raw input into a Message, or an error result."""
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.warning(f"Failed to parse message: {e}")
                return error_result(f"Invalid message format: {e}", "PARSE_ERROR")

        if not isinstance(raw, dict) or not isinstance(raw.get("type"), str):
            return error_result("Message must be an object with a 'type'", "PARSE_ERROR")

        request_id = raw.get("request_id")
        if not isinstance(request_id, str):
            request_id = None

        try:
            message_type = MessageType(raw["type"])
        except ValueError:
            return error_result(f"Unknown message type: {raw['type']}", "UNKNOWN_MESSAGE_TYPE", request_id)

        data = raw.get("data")
        if data is None:
            data = {}
        if not isinstance(data, dict):
            return error_result("Message data must be an object", "INVALID_PAYLOAD", request_id)

        return Message(type=message_type, data=data, request_id=request_id)

    def _get_handler(self, message_type: MessageType):
        """Get the handler method for a message type."""
        handlers = {
            # Lobby
            MessageType.JOIN_LOBBY: self._handle_join_lobby,
            MessageType.SET_COLOR: self._handle_set_color,
            MessageType.SET_READY: self._handle_set_ready,
            MessageType.START_GAME: self._handle_start_game,
            MessageType.LEAVE_LOBBY: self._handle_leave_lobby,
            MessageType.RESET_GAME: self._handle_reset_game,

            # Turn actions
            MessageType.ROLL_DICE: self._handle_roll_dice,
            MessageType.END_TURN: self._handle_end_turn,
            MessageType.PAY_JAIL_FINE: self._handle_pay_jail_fine,
            MessageType.DECLARE_BANKRUPTCY: self._handle_declare_bankruptcy,

            # Property actions
            MessageType.BUY_PROPERTY: self._handle_buy_property,
            MessageType.BUILD_HOUSE: self._handle_building,
            MessageType.BUILD_HOTEL: self._handle_building,
            MessageType.SELL_HOUSE: self._handle_building,
            MessageType.SELL_HOTEL: self._handle_building,

            # Auctions
            MessageType.START_AUCTION: self._handle_start_auction,
            MessageType.AUCTION_BID: self._handle_auction_bid,

            # Trading
            MessageType.PROPOSE_TRADE: self._handle_propose_trade,
            MessageType.ACCEPT_TRADE: self._handle_accept_trade,
            MessageType.REJECT_TRADE: self._handle_reject_trade,

            # State query
            MessageType.GAME_STATE: self._handle_get_state,
        }
        return handlers.get(message_type)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _require_player(self, connection_id: str) -> tuple[str | None, HandleResult | None]:
        """Player bound to a connection, or an error if none is seated."""
        player_id = self._connections.get_player_id(connection_id)
        if not player_id or player_id not in self._games.game.players:
            return None, error_result("Join the lobby first", "NOT_JOINED")
        return player_id, None

    def _state_message(self) -> StateUpdateMessage:
        return StateUpdateMessage.create(self._games.game.get_state())

    @staticmethod
    def _reject(validation: ValidationResult, message: Message) -> HandleResult:
        """Rejection sent only to the initiator."""
        reason = validation.reason.value if validation.reason else "rejected"
        return HandleResult(
            response=ActionRejectedMessage.create(
                reason=reason,
                message=validation.message,
                action=message.type.value,
            )
        )

    def _player_name(self, player_id: str) -> str:
        player = self._games.game.players.get(player_id)
        return player.name if player else "Unknown"

    def collect_game_events(self, result: HandleResult) -> None:
        """
        Turn notifications queued by the engine into outbound messages,
        and announce the winner once the game is decided.
        """
        room = self._games.room
        game = room.game

        for notification in game.pop_notifications():
            kind = notification.get("type")
            if kind == "player_bankrupt":
                player_id = notification["player_id"]
                result.broadcasts.append(
                    PlayerBankruptMessage.create(player_id, notification["player_name"])
                )
                for trade in room.trades.discard_for(player_id):
                    trade.status = TradeStatus.FAILED
                    update = TradeUpdatedMessage.create(
                        trade.to_dict(), TradeStatus.FAILED.value, "A player went bankrupt"
                    )
                    for party in (trade.from_player_id, trade.to_player_id):
                        if party != player_id:
                            result.targeted.append((party, update))
                result.broadcast_state = True
                result.should_save = True
                result.critical = True
            elif kind == "jail_turn_skipped":
                result.broadcasts.append(
                    JailTurnSkippedMessage.create(
                        notification["player_id"],
                        notification["player_name"],
                        notification["turns_remaining"],
                    )
                )

        winner_id = game.check_game_over()
        if winner_id:
            winner = game.players[winner_id]
            result.broadcasts.append(
                GameOverMessage.create(
                    winner_id=winner.id,
                    winner_name=winner.name,
                    winner_color=winner.color,
                    winner_money=winner.money,
                    winner_properties=len(winner.properties),
                )
            )
            result.broadcast_state = True
            result.should_save = True
            result.critical = True

    def auction_finished(self, room: Room, auction: Auction) -> HandleResult:
        """Announcement for an auction resolved by its timer or a late bid."""
        result = HandleResult(
            broadcasts=[AuctionMessage.create(MessageType.AUCTION_FINISHED, auction.to_dict())],
            broadcast_state=True,
            should_save=True,
            critical=True,
        )
        self.collect_game_events(result)
        return result

    # =========================================================================
    # Lobby Handlers
    # =========================================================================

    async def _handle_join_lobby(self, connection_id: str, message: Message) -> HandleResult:
        """Handle JOIN_LOBBY request."""
        name = _require_str(message.data, "name")[:MAX_NAME_LENGTH]
        color = _optional_str(message.data, "color")
        existing_id = _optional_str(message.data, "existing_id")

        game = self._games.game
        result = HandleResult()

        bound_id = self._connections.get_player_id(connection_id)
        if bound_id and bound_id in game.players and existing_id is None:
            existing_id = bound_id

        if existing_id and existing_id in game.players:
            other_connection = self._connections.get_connection_id(existing_id)
            if other_connection and other_connection != connection_id:
                return HandleResult(response=JoinErrorMessage.create(
                    RejectReason.PLAYER_NOT_FOUND.value,
                    "That player is connected elsewhere"
                ))
        else:
            existing_id = None

        # A started game nobody is connected to any more is abandoned
        if game.started and existing_id is None:
            connected = self._connections.connected_player_ids() & set(game.players)
            if not connected:
                logger.info("Resetting abandoned game for a new lobby")
                self._games.reset_game()
                result.broadcasts.append(GameResetMessage.create("abandoned"))

        validation, player = game.add_player(
            name,
            player_id=existing_id,
            color=color,
            token=self._games.new_token(),
        )
        if not validation.valid:
            return HandleResult(response=JoinErrorMessage.create(
                validation.reason.value, validation.message
            ))

        if not player.token:
            player.token = self._games.new_token()

        await self._connections.bind_player(connection_id, player.id)
        self._games.create_session(player, connection_id)

        logger.info(f"Player {player.name} ({player.id}) joined on {connection_id}")

        result.response = JoinedMessage.create(player.id, player.token, game.host_id)
        result.broadcast_state = True
        result.should_save = True
        return result

    async def _handle_set_color(self, connection_id: str, message: Message) -> HandleResult:
        """Handle SET_COLOR request."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        color = _require_str(message.data, "color")
        validation = self._games.game.set_color(player_id, color)
        if not validation.valid:
            return self._reject(validation, message)

        return HandleResult(broadcast_state=True, should_save=True)

    async def _handle_set_ready(self, connection_id: str, message: Message) -> HandleResult:
        """Handle SET_READY request."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        ready = message.data.get("ready", True)
        if not isinstance(ready, bool):
            raise PayloadError("'ready' must be a boolean")

        validation = self._games.game.mark_ready(player_id, ready)
        if not validation.valid:
            return self._reject(validation, message)

        return HandleResult(broadcast_state=True, should_save=True)

    async def _handle_start_game(self, connection_id: str, message: Message) -> HandleResult:
        """Handle START_GAME request."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        validation = self._games.game.start_game(player_id)
        if not validation.valid:
            return self._reject(validation, message)

        return HandleResult(broadcast_state=True, should_save=True)

    async def _handle_leave_lobby(self, connection_id: str, message: Message) -> HandleResult:
        """Handle LEAVE_LOBBY request."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        validation = self._games.game.remove_player(player_id)
        if not validation.valid:
            return self._reject(validation, message)

        await self._connections.unbind_player(connection_id)
        self._games.forget_session(player_id)

        return HandleResult(broadcast_state=True, should_save=True)

    async def _handle_reset_game(self, connection_id: str, message: Message) -> HandleResult:
        """Handle RESET_GAME request (host only)."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        if player_id != self._games.game.host_id:
            return self._reject(
                ValidationResult.failure(RejectReason.NOT_HOST, "Only the host can reset the game"),
                message
            )

        self._games.reset_game()

        return HandleResult(
            broadcasts=[GameResetMessage.create("host_reset")],
            broadcast_state=True,
            should_save=True,
            critical=True,
        )

    # =========================================================================
    # Turn Handlers
    # =========================================================================

    async def _handle_roll_dice(self, connection_id: str, message: Message) -> HandleResult:
        """Handle ROLL_DICE request."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        validation, move = self._games.game.roll_dice(player_id)
        if not validation.valid:
            return self._reject(validation, message)

        return HandleResult(
            broadcasts=[DiceRolledMessage.create(player_id, move.to_dict())],
            broadcast_state=True,
            should_save=True,
        )

    async def _handle_end_turn(self, connection_id: str, message: Message) -> HandleResult:
        """Handle END_TURN request."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        validation = self._games.game.end_turn(player_id)
        if not validation.valid:
            return self._reject(validation, message)

        return HandleResult(broadcast_state=True, should_save=True)

    async def _handle_pay_jail_fine(self, connection_id: str, message: Message) -> HandleResult:
        """Handle PAY_JAIL_FINE request."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        validation = self._games.game.pay_jail_fine(player_id)
        if not validation.valid:
            return self._reject(validation, message)

        return HandleResult(
            broadcasts=[JailPaidMessage.create(player_id, self._player_name(player_id))],
            broadcast_state=True,
            should_save=True,
        )

    async def _handle_declare_bankruptcy(self, connection_id: str, message: Message) -> HandleResult:
        """Handle DECLARE_BANKRUPTCY request."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        validation = self._games.game.declare_bankruptcy(player_id)
        if not validation.valid:
            return self._reject(validation, message)

        # The bankruptcy notification adds the broadcast and marks it critical
        return HandleResult(broadcast_state=True, should_save=True)

    # =========================================================================
    # Property Handlers
    # =========================================================================

    async def _handle_buy_property(self, connection_id: str, message: Message) -> HandleResult:
        """Handle BUY_PROPERTY request."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        property_id = _require_int(message.data, "property_id")
        validation = self._games.game.buy_property(player_id, property_id)
        if not validation.valid:
            return self._reject(validation, message)

        return HandleResult(broadcast_state=True, should_save=True)

    async def _handle_building(self, connection_id: str, message: Message) -> HandleResult:
        """Handle BUILD_HOUSE, BUILD_HOTEL, SELL_HOUSE and SELL_HOTEL requests."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        property_id = _require_int(message.data, "property_id")
        game = self._games.game
        actions = {
            MessageType.BUILD_HOUSE: game.build_house,
            MessageType.BUILD_HOTEL: game.build_hotel,
            MessageType.SELL_HOUSE: game.sell_house,
            MessageType.SELL_HOTEL: game.sell_hotel,
        }

        validation = actions[message.type](player_id, property_id)
        if not validation.valid:
            return self._reject(validation, message)

        return HandleResult(broadcast_state=True, should_save=True)

    # =========================================================================
    # Auction Handlers
    # =========================================================================

    async def _handle_start_auction(self, connection_id: str, message: Message) -> HandleResult:
        """Handle START_AUCTION request."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        property_id = _require_int(message.data, "property_id")
        validation, auction = self._games.room.auctions.start_auction(property_id, player_id)
        if not validation.valid:
            return self._reject(validation, message)

        return HandleResult(
            broadcasts=[AuctionMessage.create(MessageType.AUCTION_STARTED, auction.to_dict())],
            broadcast_state=True,
            should_save=True,
        )

    async def _handle_auction_bid(self, connection_id: str, message: Message) -> HandleResult:
        """Handle AUCTION_BID request."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        room = self._games.room
        validation, auction = room.auctions.place_bid(player_id, message.data.get("step"))

        if validation.reason == RejectReason.AUCTION_ENDED and auction is not None:
            # This bid closed the auction; announce it like the timer would
            result = self.auction_finished(room, auction)
            result.response = self._reject(validation, message).response
            return result

        if not validation.valid:
            return self._reject(validation, message)

        return HandleResult(
            broadcasts=[AuctionMessage.create(MessageType.AUCTION_UPDATED, auction.to_dict())]
        )

    # =========================================================================
    # Trade Handlers
    # =========================================================================

    async def _handle_propose_trade(self, connection_id: str, message: Message) -> HandleResult:
        """Handle PROPOSE_TRADE request."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        data = message.data
        to_player_id = _require_str(data, "to_player_id")
        validation, trade = self._games.room.trades.propose(
            player_id,
            to_player_id,
            offer_money=data.get("offer_money", 0),
            request_money=data.get("request_money", 0),
            offer_properties=data.get("offer_properties", []),
            request_properties=data.get("request_properties", []),
        )
        if not validation.valid:
            return self._reject(validation, message)

        offer = TradeOfferMessage.create(trade.to_dict())
        return HandleResult(
            response=TradeOfferMessage.create(trade.to_dict()),
            targeted=[(to_player_id, offer)],
        )

    async def _handle_accept_trade(self, connection_id: str, message: Message) -> HandleResult:
        """Handle ACCEPT_TRADE request."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        trade_id = _require_str(message.data, "trade_id")
        validation, trade = self._games.room.trades.accept(trade_id, player_id)

        if trade is None:
            return self._reject(validation, message)

        reason = None if validation.valid else validation.message
        update = TradeUpdatedMessage.create(trade.to_dict(), trade.status.value, reason)
        result = HandleResult(
            targeted=[(trade.from_player_id, update), (trade.to_player_id, update)],
        )
        if validation.valid:
            result.broadcast_state = True
            result.should_save = True
        return result

    async def _handle_reject_trade(self, connection_id: str, message: Message) -> HandleResult:
        """Handle REJECT_TRADE request."""
        player_id, error = self._require_player(connection_id)
        if error:
            return error

        trade_id = _require_str(message.data, "trade_id")
        validation, trade = self._games.room.trades.reject(trade_id, player_id)
        if not validation.valid:
            return self._reject(validation, message)

        other_id = trade.to_player_id if player_id == trade.from_player_id else trade.from_player_id
        update = TradeUpdatedMessage.create(trade.to_dict(), trade.status.value)
        return HandleResult(
            response=TradeUpdatedMessage.create(trade.to_dict(), trade.status.value),
            targeted=[(other_id, update)],
        )

    # =========================================================================
    # State Query Handler
    # =========================================================================

    async def _handle_get_state(self, connection_id: str, message: Message) -> HandleResult:
        """Handle GAME_STATE request (get current state)."""
        return HandleResult(response=self._state_message())
