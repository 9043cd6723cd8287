"""
Message protocol for client-server communication.

All messages are JSON objects with a "type" field and optional "data" field.
"""

from dataclasses import dataclass, field
from typing import Any
import json

from shared.enums import MessageType


@dataclass
class Message:
    """Base message structure for all client-server communication."""
    type: MessageType
    data: dict[str, Any] = field(default_factory=dict)
    request_id: str | None = None  # Optional, for matching requests to responses

    def to_json(self) -> str:
        """Serialize message to JSON string."""
        return json.dumps(self.to_dict())

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "type": self.type.value,
            "data": self.data,
            "request_id": self.request_id,
        }

    @classmethod
    def from_json(cls, json_str: str) -> "Message":
        """Deserialize message from JSON string."""
        raw = json.loads(json_str)
        if not isinstance(raw, dict):
            raise ValueError("Message must be a JSON object")
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: dict) -> "Message":
        """Create message from dictionary."""
        data = raw.get("data") or {}
        if not isinstance(data, dict):
            raise ValueError("Message data must be an object")
        return cls(
            type=MessageType(raw["type"]),
            data=data,
            request_id=raw.get("request_id"),
        )


@dataclass
class ErrorMessage(Message):
    """Error response message."""
    type: MessageType = MessageType.ERROR

    @classmethod
    def create(cls, message: str, code: str = "ERROR", request_id: str | None = None) -> "ErrorMessage":
        """Create an error message."""
        return cls(
            data={"message": message, "code": code},
            request_id=request_id,
        )


# =============================================================================
# Connection and Lobby Messages (Client -> Server)
# =============================================================================

@dataclass
class ConnectRequest(Message):
    """First frame on every connection, optionally resuming a session."""
    type: MessageType = MessageType.CONNECT

    @classmethod
    def create(cls, session_id: str | None = None) -> "ConnectRequest":
        data = {}
        if session_id:
            data["session_id"] = session_id
        return cls(data=data)


@dataclass
class JoinLobbyRequest(Message):
    """Request to join the lobby."""
    type: MessageType = MessageType.JOIN_LOBBY

    @classmethod
    def create(
        cls,
        name: str,
        color: str | None = None,
        existing_id: str | None = None,
        request_id: str | None = None
    ) -> "JoinLobbyRequest":
        data = {"name": name}
        if color:
            data["color"] = color
        if existing_id:
            data["existing_id"] = existing_id
        return cls(data=data, request_id=request_id)


@dataclass
class SetColorRequest(Message):
    """Request to change the player's color in the lobby."""
    type: MessageType = MessageType.SET_COLOR

    @classmethod
    def create(cls, color: str, request_id: str | None = None) -> "SetColorRequest":
        return cls(data={"color": color}, request_id=request_id)


@dataclass
class SetReadyRequest(Message):
    """Request to toggle the ready flag in the lobby."""
    type: MessageType = MessageType.SET_READY

    @classmethod
    def create(cls, ready: bool = True, request_id: str | None = None) -> "SetReadyRequest":
        return cls(data={"ready": ready}, request_id=request_id)


# =============================================================================
# Game Action Messages (Client -> Server)
# =============================================================================

@dataclass
class PropertyActionRequest(Message):
    """Any action that targets a single tile (buy, auction, build, sell)."""
    type: MessageType = MessageType.BUY_PROPERTY

    @classmethod
    def create(
        cls,
        action: MessageType,
        property_id: int,
        request_id: str | None = None
    ) -> "PropertyActionRequest":
        return cls(type=action, data={"property_id": property_id}, request_id=request_id)


@dataclass
class AuctionBidRequest(Message):
    """Request to raise the current auction by one step."""
    type: MessageType = MessageType.AUCTION_BID

    @classmethod
    def create(cls, step: int, request_id: str | None = None) -> "AuctionBidRequest":
        return cls(data={"step": step}, request_id=request_id)


@dataclass
class ProposeTradeRequest(Message):
    """Request to offer a trade to another player."""
    type: MessageType = MessageType.PROPOSE_TRADE

    @classmethod
    def create(
        cls,
        to_player_id: str,
        offer_money: int = 0,
        request_money: int = 0,
        offer_properties: list[int] | None = None,
        request_properties: list[int] | None = None,
        request_id: str | None = None
    ) -> "ProposeTradeRequest":
        return cls(
            data={
                "to_player_id": to_player_id,
                "offer_money": offer_money,
                "request_money": request_money,
                "offer_properties": offer_properties or [],
                "request_properties": request_properties or [],
            },
            request_id=request_id,
        )


@dataclass
class TradeResponseRequest(Message):
    """Accept or reject a pending trade."""
    type: MessageType = MessageType.ACCEPT_TRADE

    @classmethod
    def create(
        cls,
        trade_id: str,
        accept: bool = True,
        request_id: str | None = None
    ) -> "TradeResponseRequest":
        action = MessageType.ACCEPT_TRADE if accept else MessageType.REJECT_TRADE
        return cls(type=action, data={"trade_id": trade_id}, request_id=request_id)


# =============================================================================
# Server Response/Broadcast Messages (Server -> Client)
# =============================================================================

@dataclass
class ConnectedMessage(Message):
    """Acknowledges a CONNECT frame."""
    type: MessageType = MessageType.CONNECTED

    @classmethod
    def create(cls, connection_id: str) -> "ConnectedMessage":
        return cls(data={"connection_id": connection_id})


@dataclass
class SessionRestoredMessage(Message):
    """Sent when a session id from a previous connection was accepted."""
    type: MessageType = MessageType.SESSION_RESTORED

    @classmethod
    def create(
        cls,
        player_id: str,
        name: str,
        token: str,
        host_id: str | None
    ) -> "SessionRestoredMessage":
        return cls(data={
            "player_id": player_id,
            "name": name,
            "token": token,
            "host_id": host_id,
        })


@dataclass
class SessionInvalidMessage(Message):
    """Sent when a session id could not be restored."""
    type: MessageType = MessageType.SESSION_INVALID

    @classmethod
    def create(cls) -> "SessionInvalidMessage":
        return cls()


@dataclass
class JoinedMessage(Message):
    """Confirms a lobby join."""
    type: MessageType = MessageType.JOINED

    @classmethod
    def create(cls, player_id: str, token: str, host_id: str | None) -> "JoinedMessage":
        return cls(data={
            "player_id": player_id,
            "token": token,
            "host_id": host_id,
        })


@dataclass
class JoinErrorMessage(Message):
    """Sent when the lobby refused a join."""
    type: MessageType = MessageType.JOIN_ERROR

    @classmethod
    def create(cls, reason: str, message: str = "") -> "JoinErrorMessage":
        return cls(data={"reason": reason, "message": message})


@dataclass
class StateUpdateMessage(Message):
    """Full game state broadcast to all connections."""
    type: MessageType = MessageType.STATE_UPDATE

    @classmethod
    def create(cls, game_state: dict, request_id: str | None = None) -> "StateUpdateMessage":
        return cls(data=game_state, request_id=request_id)


@dataclass
class ActionRejectedMessage(Message):
    """Sent only to the player whose action was refused."""
    type: MessageType = MessageType.ACTION_REJECTED

    @classmethod
    def create(
        cls,
        reason: str,
        message: str = "",
        action: str | None = None,
        request_id: str | None = None
    ) -> "ActionRejectedMessage":
        return cls(
            data={"reason": reason, "message": message, "action": action},
            request_id=request_id,
        )


@dataclass
class DiceRolledMessage(Message):
    """Broadcast when dice are rolled."""
    type: MessageType = MessageType.DICE_ROLLED

    @classmethod
    def create(cls, player_id: str, move_result: dict) -> "DiceRolledMessage":
        return cls(data={"player_id": player_id, **move_result})


@dataclass
class AuctionMessage(Message):
    """Auction lifecycle broadcast (started, updated, finished)."""
    type: MessageType = MessageType.AUCTION_STARTED

    @classmethod
    def create(cls, event: MessageType, auction: dict) -> "AuctionMessage":
        return cls(type=event, data=auction)


@dataclass
class TradeOfferMessage(Message):
    """Sent to both parties when a trade is proposed."""
    type: MessageType = MessageType.TRADE_OFFER

    @classmethod
    def create(cls, trade: dict) -> "TradeOfferMessage":
        return cls(data=trade)


@dataclass
class TradeUpdatedMessage(Message):
    """Sent to trade parties when a trade is accepted, rejected or fails."""
    type: MessageType = MessageType.TRADE_UPDATED

    @classmethod
    def create(
        cls,
        trade: dict,
        status: str,
        reason: str | None = None
    ) -> "TradeUpdatedMessage":
        return cls(data={"trade": trade, "status": status, "reason": reason})


@dataclass
class JailPaidMessage(Message):
    """Broadcast when a player buys their way out of jail."""
    type: MessageType = MessageType.JAIL_PAID

    @classmethod
    def create(cls, player_id: str, player_name: str) -> "JailPaidMessage":
        return cls(data={"player_id": player_id, "player_name": player_name})


@dataclass
class JailTurnSkippedMessage(Message):
    """Broadcast when a jailed player's turn passes."""
    type: MessageType = MessageType.JAIL_TURN_SKIPPED

    @classmethod
    def create(
        cls,
        player_id: str,
        player_name: str,
        turns_remaining: int
    ) -> "JailTurnSkippedMessage":
        return cls(data={
            "player_id": player_id,
            "player_name": player_name,
            "turns_remaining": turns_remaining,
        })


@dataclass
class PlayerBankruptMessage(Message):
    """Broadcast when a player goes bankrupt."""
    type: MessageType = MessageType.PLAYER_BANKRUPT

    @classmethod
    def create(cls, player_id: str, player_name: str) -> "PlayerBankruptMessage":
        return cls(data={
            "player_id": player_id,
            "player_name": player_name,
        })


@dataclass
class GameOverMessage(Message):
    """Broadcast when only one solvent player remains."""
    type: MessageType = MessageType.GAME_OVER

    @classmethod
    def create(
        cls,
        winner_id: str,
        winner_name: str,
        winner_color: str | None,
        winner_money: int,
        winner_properties: int
    ) -> "GameOverMessage":
        return cls(data={
            "winner_id": winner_id,
            "winner_name": winner_name,
            "winner_color": winner_color,
            "winner_money": winner_money,
            "winner_properties": winner_properties,
        })


@dataclass
class GameResetMessage(Message):
    """Broadcast when the session returns to an empty lobby."""
    type: MessageType = MessageType.GAME_RESET

    @classmethod
    def create(cls, reason: str) -> "GameResetMessage":
        return cls(data={"reason": reason})


# =============================================================================
# Helper function for parsing incoming messages
# =============================================================================

def parse_message(json_str: str) -> Message:
    """
    Parse a JSON string into a Message.

    The message handler uses the type field to determine how to process it.
    """
    return Message.from_json(json_str)
