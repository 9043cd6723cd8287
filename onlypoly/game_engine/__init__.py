"""
Game engine package.
"""
from .dice import Dice, DiceResult
from .player import OwnedProperty, Player
from .board import DEFAULT_BOARD, Board, Tile
from .cards import ChanceCard, ChanceDeck
from .rules import RuleEngine, TurnFlags, ValidationResult
from .game import BANK, Game, GameEvent, MoveResult
from .auction import Auction, AuctionHouse
from .trade import TradeDesk, TradeOffer

__all__ = [
    "Dice",
    "DiceResult",
    "OwnedProperty",
    "Player",
    "DEFAULT_BOARD",
    "Board",
    "Tile",
    "ChanceCard",
    "ChanceDeck",
    "RuleEngine",
    "TurnFlags",
    "ValidationResult",
    "BANK",
    "Game",
    "GameEvent",
    "MoveResult",
    "Auction",
    "AuctionHouse",
    "TradeDesk",
    "TradeOffer",
]
