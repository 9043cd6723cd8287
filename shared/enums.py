"""
Enumerations used throughout the game.
"""
from enum import Enum


class TileType(str, Enum):
    """Types of tiles on the board."""
    START = "START"
    PROPERTY = "PROPERTY"
    AIRPORT = "AIRPORT"
    UTILITY = "UTILITY"
    TAX = "TAX"
    CHANCE = "CHANCE"
    COMMUNITY_CHEST = "COMMUNITY_CHEST"
    JAIL = "JAIL"
    GO_TO_JAIL = "GO_TO_JAIL"
    FREE_PARKING = "FREE_PARKING"


class CardKind(str, Enum):
    """Effects a chance card can have."""
    MONEY = "MONEY"
    MOVE = "MOVE"
    GO_TO_JAIL = "GO_TO_JAIL"


class RejectReason(str, Enum):
    """Reason codes sent to a player whose action was refused."""
    # Lobby
    GAME_STARTED = "game_started"
    GAME_FULL = "game_full"
    GAME_NOT_STARTED = "game_not_started"
    COLOR_TAKEN = "color_taken"
    NOT_HOST = "not_host"
    CANNOT_START_GAME = "cannot_start_game"
    PLAYER_NOT_FOUND = "player_not_found"

    # Turn
    NOT_YOUR_TURN = "not_your_turn"
    PLAYER_BANKRUPT = "player_bankrupt"
    ALREADY_ROLLED = "already_rolled"
    MUST_ROLL_FIRST = "must_roll_first"
    IN_JAIL = "in_jail"
    PAID_JAIL_FINE = "paid_jail_fine"

    # Property
    ALREADY_BOUGHT = "already_bought"
    AUCTION_STARTED = "auction_started"
    INVALID_PROPERTY = "invalid_property"
    PROPERTY_ALREADY_OWNED = "property_already_owned"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NOT_OWNER = "not_owner"
    NO_MONOPOLY = "no_monopoly"
    CANNOT_BUILD = "cannot_build"
    CANNOT_SELL = "cannot_sell"

    # Auction
    AUCTION_ALREADY_STARTED = "auction_already_started"
    CANNOT_START_AUCTION = "cannot_start_auction"
    INVALID_BID_STEP = "invalid_bid_step"
    BID_REJECTED = "bid_rejected"
    AUCTION_ENDED = "auction_ended"

    # Jail
    NOT_IN_JAIL = "not_in_jail"
    CANNOT_PAY_FINE = "cannot_pay_fine"

    # Trading
    INVALID_TRADE = "invalid_trade"
    TRADE_NOT_FOUND = "trade_not_found"
    NOT_TRADE_PARTY = "not_trade_party"
    TRADE_FAILED = "trade_failed"


class TradeStatus(str, Enum):
    """Status of a trade offer."""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    FAILED = "FAILED"


class MessageType(str, Enum):
    """Types of messages between client and server."""
    # Connection
    CONNECT = "CONNECT"
    CONNECTED = "CONNECTED"
    SESSION_RESTORED = "SESSION_RESTORED"
    SESSION_INVALID = "SESSION_INVALID"

    # Lobby
    JOIN_LOBBY = "JOIN_LOBBY"
    JOINED = "JOINED"
    JOIN_ERROR = "JOIN_ERROR"
    SET_COLOR = "SET_COLOR"
    SET_READY = "SET_READY"
    START_GAME = "START_GAME"
    LEAVE_LOBBY = "LEAVE_LOBBY"
    RESET_GAME = "RESET_GAME"
    GAME_RESET = "GAME_RESET"

    # State
    GAME_STATE = "GAME_STATE"
    STATE_UPDATE = "STATE_UPDATE"

    # Turn actions
    ROLL_DICE = "ROLL_DICE"
    DICE_ROLLED = "DICE_ROLLED"
    END_TURN = "END_TURN"
    ACTION_REJECTED = "ACTION_REJECTED"

    # Property actions
    BUY_PROPERTY = "BUY_PROPERTY"
    BUILD_HOUSE = "BUILD_HOUSE"
    BUILD_HOTEL = "BUILD_HOTEL"
    SELL_HOUSE = "SELL_HOUSE"
    SELL_HOTEL = "SELL_HOTEL"

    # Auctions
    START_AUCTION = "START_AUCTION"
    AUCTION_BID = "AUCTION_BID"
    AUCTION_STARTED = "AUCTION_STARTED"
    AUCTION_UPDATED = "AUCTION_UPDATED"
    AUCTION_FINISHED = "AUCTION_FINISHED"

    # Trading
    PROPOSE_TRADE = "PROPOSE_TRADE"
    ACCEPT_TRADE = "ACCEPT_TRADE"
    REJECT_TRADE = "REJECT_TRADE"
    TRADE_OFFER = "TRADE_OFFER"
    TRADE_UPDATED = "TRADE_UPDATED"

    # Jail
    PAY_JAIL_FINE = "PAY_JAIL_FINE"
    JAIL_PAID = "JAIL_PAID"
    JAIL_TURN_SKIPPED = "JAIL_TURN_SKIPPED"

    # Game end
    DECLARE_BANKRUPTCY = "DECLARE_BANKRUPTCY"
    PLAYER_BANKRUPT = "PLAYER_BANKRUPT"
    GAME_OVER = "GAME_OVER"

    # Errors
    ERROR = "ERROR"
