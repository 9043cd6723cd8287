"""
Main game orchestration - the authoritative turn and economy state machine.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set, Tuple, Union

from shared.constants import (
    DEFAULT_COLORS, JAIL_FINE, JAIL_POSITION, MAX_NAME_LENGTH, MAX_PLAYERS,
    RENT_CAP_RATIO
)
from shared.enums import CardKind, RejectReason, TileType

from .board import DEFAULT_BOARD, Board, Tile
from .cards import ChanceCard, ChanceDeck
from .dice import Dice, DiceResult
from .player import Player
from .rent import calculate_rent, has_monopoly
from .rules import RuleEngine, TurnFlags, ValidationResult


logger = logging.getLogger(__name__)

MAX_EVENT_LOG = 500


class BankAccount:
    """The non-player counterparty: an unlimited source and sink of money."""

    def __repr__(self) -> str:
        return "BANK"


BANK = BankAccount()

Account = Union[str, BankAccount]


@dataclass
class GameEvent:
    """Represents something that happened in the game."""
    event_type: str
    data: dict
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class MoveResult:
    """Outcome of a roll: the dice, the tile landed on and what happened there."""
    dice: DiceResult
    tile: Tile
    events: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "dice": self.dice.to_dict(),
            "tile": self.tile.to_dict(),
            "events": self.events,
        }


def player_not_found() -> ValidationResult:
    return ValidationResult.failure(RejectReason.PLAYER_NOT_FOUND, "Player not found")


@dataclass
class Game:
    """
    Single authoritative game session.

    Every public action validates first and only then mutates, so a
    rejected action leaves the session untouched.
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    # Game components
    board: Board = field(default_factory=lambda: DEFAULT_BOARD)
    dice: Dice = field(default_factory=Dice)
    deck: ChanceDeck = field(default_factory=ChanceDeck)
    rules: RuleEngine = field(init=False)

    # Players
    players: Dict[str, Player] = field(default_factory=dict)
    turn_order: List[str] = field(default_factory=list)
    current_turn_index: int = 0

    # Lifecycle
    started: bool = False
    host_id: Optional[str] = None
    ready_players: Set[str] = field(default_factory=set)

    # Turn state
    turn_flags: TurnFlags = field(default_factory=TurnFlags)
    last_dice: Optional[DiceResult] = None
    winner_id: Optional[str] = None

    # Event log and notifications waiting to be broadcast
    events: List[GameEvent] = field(default_factory=list)
    notifications: List[dict] = field(default_factory=list)

    max_players: int = MAX_PLAYERS
    min_players: int = 2
    min_ready: int = 2

    def __post_init__(self):
        """Initialize rule engine after board is set."""
        self.rules = RuleEngine(self.board)

    @property
    def current_player_id(self) -> Optional[str]:
        """Id of the player whose turn it is."""
        if not self.turn_order or self.current_turn_index >= len(self.turn_order):
            return None
        return self.turn_order[self.current_turn_index]

    @property
    def current_player(self) -> Optional[Player]:
        player_id = self.current_player_id
        return self.players.get(player_id) if player_id else None

    @property
    def active_player_ids(self) -> List[str]:
        """Players still in the turn order and solvent."""
        return [
            pid for pid in self.turn_order
            if pid in self.players and not self.players[pid].bankrupt
        ]

    @property
    def is_game_over(self) -> bool:
        """One solvent player left. Reported here, enforced by the caller."""
        return self.started and len(self.active_player_ids) <= 1

    def _log_event(self, event_type: str, data: dict) -> GameEvent:
        """Log a game event."""
        event = GameEvent(event_type=event_type, data=data)
        self.events.append(event)
        if len(self.events) > MAX_EVENT_LOG:
            del self.events[:-MAX_EVENT_LOG]
        return event

    def _notify(self, notification: dict) -> None:
        self.notifications.append(notification)

    def pop_notifications(self) -> List[dict]:
        """Drain notifications queued by the last action."""
        pending = self.notifications
        self.notifications = []
        return pending

    # =========== Lobby ===========

    def _color_taken(self, color: str, except_player_id: Optional[str] = None) -> bool:
        return any(
            p.color == color and p.id != except_player_id
            for p in self.players.values()
        )

    def add_player(
        self,
        name: str,
        player_id: Optional[str] = None,
        color: Optional[str] = None,
        token: Optional[str] = None
    ) -> Tuple[ValidationResult, Optional[Player]]:
        """
        Add a player to the lobby, or reconnect one already seated.

        Returns:
            Tuple of (validation, player)
        """
        if player_id and player_id in self.players:
            player = self.players[player_id]
            if color and not self.started and not self._color_taken(color, player_id):
                player.color = color
            return ValidationResult.success(f"{player.name} rejoined"), player

        if self.started:
            return ValidationResult.failure(RejectReason.GAME_STARTED, "Game has already started"), None

        if len(self.players) >= self.max_players:
            return ValidationResult.failure(
                RejectReason.GAME_FULL,
                f"Game is full ({self.max_players} players maximum)"
            ), None

        if color and self._color_taken(color):
            return ValidationResult.failure(RejectReason.COLOR_TAKEN, "Color already taken"), None

        player = Player(name=name.strip()[:MAX_NAME_LENGTH], color=color or None, token=token)
        if player_id:
            player.id = player_id

        self.players[player.id] = player
        if not self.host_id:
            self.host_id = player.id
        self.turn_order = list(self.players)

        self._log_event("player_joined", {
            "player_id": player.id,
            "player_name": player.name,
        })

        return ValidationResult.success(f"{player.name} joined the game"), player

    def set_color(self, player_id: str, color: str) -> ValidationResult:
        """Pick a lobby color, unique among players."""
        player = self.players.get(player_id)
        if not player:
            return player_not_found()

        if self.started:
            return ValidationResult.failure(RejectReason.GAME_STARTED, "Game has already started")

        if self._color_taken(color, player_id):
            return ValidationResult.failure(RejectReason.COLOR_TAKEN, "Color already taken")

        player.color = color
        return ValidationResult.success()

    def mark_ready(self, player_id: str, ready: bool) -> ValidationResult:
        if player_id not in self.players:
            return player_not_found()

        if self.started:
            return ValidationResult.failure(RejectReason.GAME_STARTED, "Game has already started")

        if ready:
            self.ready_players.add(player_id)
        else:
            self.ready_players.discard(player_id)
        return ValidationResult.success()

    def can_start(self) -> bool:
        return len(self.players) >= self.min_players and len(self.ready_players) >= self.min_ready

    def start_game(self, requester_id: str) -> ValidationResult:
        """Start the game (host only)."""
        if self.started:
            return ValidationResult.failure(RejectReason.GAME_STARTED, "Game has already started")

        if requester_id != self.host_id:
            return ValidationResult.failure(RejectReason.NOT_HOST, "Only the host can start the game")

        if not self.can_start():
            return ValidationResult.failure(
                RejectReason.CANNOT_START_GAME,
                f"Need at least {self.min_players} players and {self.min_ready} ready"
            )

        # Hand out unused default colors to anyone who never picked one
        used = {p.color for p in self.players.values() if p.color}
        free_colors = [c for c in DEFAULT_COLORS if c not in used]
        for player in self.players.values():
            if not player.color:
                player.color = free_colors.pop(0) if free_colors else DEFAULT_COLORS[0]

        self.started = True
        self.turn_order = list(self.players)
        self.current_turn_index = 0
        self.turn_flags.reset()
        self.winner_id = None

        self._log_event("game_started", {"turn_order": list(self.turn_order)})
        logger.info(f"Game {self.id} started with {len(self.turn_order)} players")

        return ValidationResult.success("Game started!")

    def remove_player(self, player_id: str) -> ValidationResult:
        """Remove a player from the lobby. Players are never removed once started."""
        if self.started:
            return ValidationResult.failure(RejectReason.GAME_STARTED, "Game has already started")

        player = self.players.pop(player_id, None)
        if not player:
            return player_not_found()

        self.ready_players.discard(player_id)
        self.turn_order = [pid for pid in self.turn_order if pid != player_id]

        if not self.turn_order:
            self.reset()
        else:
            if self.host_id == player_id:
                self.host_id = self.turn_order[0]
            if self.current_turn_index >= len(self.turn_order):
                self.current_turn_index = 0

        self._log_event("player_left", {"player_id": player_id})

        return ValidationResult.success(f"{player.name} left the game")

    def reset(self) -> None:
        """Return to an empty lobby."""
        self.players = {}
        self.turn_order = []
        self.current_turn_index = 0
        self.started = False
        self.host_id = None
        self.ready_players = set()
        self.deck.shuffle()
        self.turn_flags = TurnFlags()
        self.last_dice = None
        self.winner_id = None
        self.notifications = []
        self._log_event("game_reset", {})

    # =========== Lookups ===========

    def get_tile(self, tile_id: int) -> Optional[Tile]:
        return self.board.get_tile(tile_id)

    def find_owner(self, tile_id: int) -> Optional[str]:
        """Id of the player owning a tile, if any."""
        for player in self.players.values():
            if player.owns(tile_id):
                return player.id
        return None

    def has_monopoly(self, player_id: str, group: Optional[str]) -> bool:
        return has_monopoly(self.board, self.players.get(player_id), group)

    def total_asset_value(self, player_id: str) -> int:
        """Cash plus the liquidation value of every tile held."""
        player = self.players.get(player_id)
        if not player:
            return 0
        total = player.money
        for tile_id in player.properties:
            tile = self.get_tile(tile_id)
            if tile:
                total += tile.mortgage_value
        return total

    def assign_property(self, tile_id: int, player_id: Optional[str]) -> None:
        """Give a tile to a player, clearing it from everyone else first."""
        for player in self.players.values():
            player.remove_property(tile_id)

        if player_id is None:
            return

        tile = self.get_tile(tile_id)
        owner = self.players.get(player_id)
        if tile is None or not tile.is_purchasable or owner is None:
            return

        owner.add_property(tile_id)

    # =========== Money ===========

    def transfer(self, from_account: Account, to_account: Account, amount: int) -> bool:
        """
        Move money between accounts.

        Fails without side effects if the amount is not positive, an account
        is unknown, or a player payer cannot cover it.
        """
        amount = int(amount)
        if amount <= 0:
            return False

        payer = None if from_account is BANK else self.players.get(from_account)
        payee = None if to_account is BANK else self.players.get(to_account)
        if from_account is not BANK and payer is None:
            return False
        if to_account is not BANK and payee is None:
            return False

        if payer is not None:
            if payer.money < amount:
                return False
            payer.money -= amount
        if payee is not None:
            payee.money += amount

        if payer is not None:
            self.check_bankruptcy(payer.id)
        return True

    def settle(self, from_account: Account, to_account: Account, amount: int) -> bool:
        """
        Force a payment through.

        Liquidates the payer's tiles to cover a shortfall and, if that is not
        enough, debits anyway and lets the bankruptcy check take over.
        """
        amount = int(amount)
        if amount <= 0:
            return False

        if self.transfer(from_account, to_account, amount):
            return True

        payer = None if from_account is BANK else self.players.get(from_account)
        if payer is None:
            return False

        self.liquidate(payer.id, amount - payer.money)
        if self.transfer(from_account, to_account, amount):
            return True

        payee = None if to_account is BANK else self.players.get(to_account)
        payer.money -= amount
        if payee is not None:
            payee.money += amount

        self._log_event("forced_payment", {
            "player_id": payer.id,
            "to": None if to_account is BANK else to_account,
            "amount": amount,
        })

        self.check_bankruptcy(payer.id)
        return True

    def liquidate(self, player_id: str, target: int) -> int:
        """
        Return tiles to the unowned pool for their mortgage value until
        at least `target` has been raised or nothing is left.

        Returns:
            Amount raised
        """
        player = self.players.get(player_id)
        if not player or target <= 0:
            return 0

        raised = 0
        released = []
        for tile_id in sorted(player.properties):
            if raised >= target:
                break
            tile = self.get_tile(tile_id)
            raised += tile.mortgage_value if tile else 0
            player.remove_property(tile_id)
            released.append(tile_id)

        player.money += raised

        if released:
            self._log_event("assets_liquidated", {
                "player_id": player_id,
                "tiles": released,
                "raised": raised,
            })

        return raised

    def check_bankruptcy(self, player_id: str) -> bool:
        """
        Bankrupt a player whose balance is still negative after liquidation.

        Returns:
            True if the player was bankrupted by this call
        """
        player = self.players.get(player_id)
        if not player or player.bankrupt or player.money >= 0:
            return False

        self.liquidate(player_id, -player.money)
        if player.money >= 0:
            return False

        self._mark_bankrupt(player)
        return True

    def _mark_bankrupt(self, player: Player) -> None:
        """Flag, strip and remove a player from the turn order (once)."""
        was_current = self.current_player_id == player.id

        player.bankrupt = True
        player.properties.clear()
        player.money = 0
        player.release_from_jail()

        if player.id in self.turn_order:
            index = self.turn_order.index(player.id)
            self.turn_order.remove(player.id)
            if index < self.current_turn_index:
                self.current_turn_index -= 1
            if self.turn_order:
                self.current_turn_index %= len(self.turn_order)
            else:
                self.current_turn_index = 0

        if was_current:
            self.turn_flags.reset()

        self.ready_players.discard(player.id)

        self._notify({
            "type": "player_bankrupt",
            "player_id": player.id,
            "player_name": player.name,
        })
        self._log_event("bankruptcy", {
            "player_id": player.id,
            "player_name": player.name,
        })
        logger.info(f"Player {player.name} ({player.id}) is bankrupt")

    def declare_bankruptcy(self, player_id: str) -> ValidationResult:
        """Voluntarily leave a running game, releasing every tile."""
        player = self.players.get(player_id)
        if not player:
            return player_not_found()

        if not self.started:
            return ValidationResult.failure(RejectReason.GAME_NOT_STARTED, "The game has not started")

        if player.bankrupt:
            return ValidationResult.failure(RejectReason.PLAYER_BANKRUPT, "Already bankrupt")

        self._mark_bankrupt(player)
        return ValidationResult.success(f"{player.name} declared bankruptcy")

    def check_game_over(self) -> Optional[str]:
        """
        Record the winner the first time only one solvent player remains.

        Returns:
            The winner's id on that first call, None otherwise
        """
        if self.winner_id or not self.started:
            return None

        active = self.active_player_ids
        if len(active) != 1:
            return None

        self.winner_id = active[0]
        self._log_event("game_over", {"winner_id": self.winner_id})
        logger.info(f"Game {self.id} over, winner {self.winner_id}")
        return self.winner_id

    # =========== Movement ===========

    def roll_dice(self, player_id: str) -> Tuple[ValidationResult, Optional[MoveResult]]:
        """
        Roll for the current player, move and resolve the landing tile.

        Returns:
            Tuple of (validation, move_result)
        """
        player = self.players.get(player_id)
        if not player:
            return player_not_found(), None

        validation = self.rules.validate_roll_dice(
            player, self.current_player_id, self.started, self.turn_flags
        )
        if not validation.valid:
            return validation, None

        result = self.dice.roll()
        self.last_dice = result
        self.turn_flags.has_rolled = True

        self._log_event("dice_rolled", {
            "player_id": player_id,
            **result.to_dict(),
        })

        tile = self.move_player(player_id, result.total)
        events = self.resolve_tile(player_id, tile, result.total)

        return ValidationResult.success(), MoveResult(dice=result, tile=tile, events=events)

    def move_player(self, player_id: str, delta: int) -> Optional[Tile]:
        """
        Move a player by `delta` tiles.

        Salary is paid once for every time a forward move wraps past the
        start tile; backward moves wrap without salary.
        """
        player = self.players.get(player_id)
        if not player:
            return None

        start_tile = self.board.first_of_type(TileType.START)
        salary = start_tile.salary if start_tile else 0

        new_position = player.position + delta
        while new_position >= self.board.size:
            new_position -= self.board.size
            if salary:
                self.transfer(BANK, player_id, salary)
            self._log_event("passed_start", {
                "player_id": player_id,
                "collected": salary,
            })
        while new_position < 0:
            new_position += self.board.size

        old_position = player.position
        player.position = new_position

        self._log_event("player_moved", {
            "player_id": player_id,
            "from": old_position,
            "to": new_position,
        })

        return self.get_tile(new_position)

    def send_to_jail(self, player_id: str) -> None:
        player = self.players.get(player_id)
        if not player:
            return
        jail = self.board.first_of_type(TileType.JAIL)
        player.send_to_jail(jail.id if jail else JAIL_POSITION)
        self._log_event("sent_to_jail", {"player_id": player_id})

    def resolve_tile(self, player_id: str, tile: Optional[Tile], dice_total: int) -> List[dict]:
        """Apply the effect of landing on a tile and describe what happened."""
        events: List[dict] = []
        player = self.players.get(player_id)
        if tile is None or player is None:
            return events

        if tile.type == TileType.TAX:
            self.settle(player_id, BANK, tile.amount)
            events.append({"type": "tax", "amount": tile.amount})

        elif tile.type == TileType.GO_TO_JAIL:
            self.send_to_jail(player_id)
            events.append({"type": "goto_jail"})

        elif tile.type == TileType.CHANCE:
            card = self.deck.draw()
            events.append({"type": "chance", "card": card.to_dict()})
            events.extend(self.apply_chance_card(player_id, card, dice_total))

        elif tile.is_purchasable:
            owner_id = self.find_owner(tile.id)
            if owner_id is None:
                events.append({"type": "unowned_property", "property_id": tile.id})
            elif owner_id != player_id:
                events.append(self._charge_rent(player_id, owner_id, tile, dice_total))

        return events

    def _charge_rent(self, player_id: str, owner_id: str, tile: Tile, dice_total: int) -> dict:
        """Charge rent, capped at a share of the payer's total assets."""
        rent = calculate_rent(self.board, tile.id, self.players[owner_id], dice_total)

        max_rent = int(self.total_asset_value(player_id) * RENT_CAP_RATIO)
        if rent > max_rent:
            self.liquidate(player_id, rent - max_rent)
            rent = max_rent

        if rent > 0:
            self.settle(player_id, owner_id, rent)

        self._log_event("rent_paid", {
            "payer_id": player_id,
            "payee_id": owner_id,
            "amount": rent,
            "property_id": tile.id,
        })

        return {"type": "rent_paid", "to": owner_id, "amount": rent, "property_id": tile.id}

    def apply_chance_card(self, player_id: str, card: ChanceCard, dice_total: int) -> List[dict]:
        """Apply a drawn card; relative moves resolve the new tile as well."""
        self._log_event("card_drawn", {
            "player_id": player_id,
            "card_id": card.id,
        })

        if card.kind == CardKind.MONEY:
            if card.amount > 0:
                self.transfer(BANK, player_id, card.amount)
            else:
                self.settle(player_id, BANK, -card.amount)
            return []

        elif card.kind == CardKind.MOVE:
            tile = self.move_player(player_id, card.delta)
            return self.resolve_tile(player_id, tile, dice_total)

        elif card.kind == CardKind.GO_TO_JAIL:
            self.send_to_jail(player_id)
            return [{"type": "goto_jail"}]

        return []

    # =========== Property Actions ===========

    def buy_property(self, player_id: str, tile_id: int) -> ValidationResult:
        """Buy the unowned tile the player rolled onto."""
        player = self.players.get(player_id)
        if not player:
            return player_not_found()

        validation = self.rules.validate_buy_property(
            player, tile_id, self.current_player_id, self.turn_flags, self.find_owner(tile_id)
        )
        if not validation.valid:
            return validation

        tile = self.get_tile(tile_id)
        self.transfer(player_id, BANK, tile.price)
        self.assign_property(tile_id, player_id)
        self.turn_flags.has_bought = True

        self._log_event("property_bought", {
            "player_id": player_id,
            "property_id": tile_id,
            "price": tile.price,
        })

        return ValidationResult.success(f"Bought {tile.name} for ${tile.price}")

    def validate_start_auction(self, player_id: str, tile_id: int) -> ValidationResult:
        """Turn-level checks for putting a tile up for auction."""
        player = self.players.get(player_id)
        if not player:
            return player_not_found()

        return self.rules.validate_start_auction(
            player, tile_id, self.current_player_id, self.turn_flags, self.find_owner(tile_id)
        )

    def build_house(self, player_id: str, tile_id: int) -> ValidationResult:
        """Build a house on a property."""
        player = self.players.get(player_id)
        if not player:
            return player_not_found()

        validation = self.rules.validate_build_house(player, tile_id, self.current_player_id)
        if not validation.valid:
            return validation

        tile = self.get_tile(tile_id)
        self.transfer(player_id, BANK, tile.house_price)
        owned = player.properties[tile_id]
        owned.houses += 1

        self._log_event("house_built", {
            "player_id": player_id,
            "property_id": tile_id,
            "houses": owned.houses,
        })

        return ValidationResult.success(f"Built house on {tile.name} (now {owned.houses} houses)")

    def build_hotel(self, player_id: str, tile_id: int) -> ValidationResult:
        """Build a hotel, replacing 4 houses."""
        player = self.players.get(player_id)
        if not player:
            return player_not_found()

        validation = self.rules.validate_build_hotel(player, tile_id, self.current_player_id)
        if not validation.valid:
            return validation

        tile = self.get_tile(tile_id)
        self.transfer(player_id, BANK, tile.hotel_price)
        owned = player.properties[tile_id]
        owned.houses = 0
        owned.hotel = True

        self._log_event("hotel_built", {
            "player_id": player_id,
            "property_id": tile_id,
        })

        return ValidationResult.success(f"Built hotel on {tile.name}")

    def sell_house(self, player_id: str, tile_id: int) -> ValidationResult:
        """Sell a house back to the bank for half its price."""
        player = self.players.get(player_id)
        if not player:
            return player_not_found()

        validation = self.rules.validate_sell_house(player, tile_id)
        if not validation.valid:
            return validation

        tile = self.get_tile(tile_id)
        refund = tile.house_price // 2
        player.properties[tile_id].houses -= 1
        self.transfer(BANK, player_id, refund)

        self._log_event("building_sold", {
            "player_id": player_id,
            "property_id": tile_id,
            "building_type": "house",
            "refund": refund,
        })

        return ValidationResult.success(f"Sold house on {tile.name} for ${refund}")

    def sell_hotel(self, player_id: str, tile_id: int) -> ValidationResult:
        """Sell a hotel for half its price; the tile reverts to 4 houses."""
        player = self.players.get(player_id)
        if not player:
            return player_not_found()

        validation = self.rules.validate_sell_hotel(player, tile_id)
        if not validation.valid:
            return validation

        tile = self.get_tile(tile_id)
        refund = tile.hotel_price // 2
        owned = player.properties[tile_id]
        owned.hotel = False
        owned.houses = 4
        self.transfer(BANK, player_id, refund)

        self._log_event("building_sold", {
            "player_id": player_id,
            "property_id": tile_id,
            "building_type": "hotel",
            "refund": refund,
        })

        return ValidationResult.success(f"Sold hotel on {tile.name} for ${refund}")

    # =========== Jail Actions ===========

    def pay_jail_fine(self, player_id: str) -> ValidationResult:
        """Pay the fine to leave jail now. Rolling stays blocked this turn."""
        player = self.players.get(player_id)
        if not player:
            return player_not_found()

        validation = self.rules.validate_pay_jail_fine(
            player, self.current_player_id, self.turn_flags
        )
        if not validation.valid:
            return validation

        self.settle(player_id, BANK, JAIL_FINE)
        player.release_from_jail()
        self.turn_flags.paid_jail_fine = True

        self._log_event("jail_fine_paid", {
            "player_id": player_id,
            "amount": JAIL_FINE,
        })

        return ValidationResult.success(f"Paid ${JAIL_FINE} fine")

    # =========== Turn Management ===========

    def end_turn(self, player_id: str) -> ValidationResult:
        """End the current player's turn and pass it on."""
        player = self.players.get(player_id)
        if not player:
            return player_not_found()

        validation = self.rules.validate_end_turn(player, self.current_player_id, self.turn_flags)
        if not validation.valid:
            return validation

        if player.in_jail:
            player.jail_turns -= 1
            if player.jail_turns <= 0:
                player.release_from_jail()
            self._notify({
                "type": "jail_turn_skipped",
                "player_id": player.id,
                "player_name": player.name,
                "turns_remaining": player.jail_turns,
            })

        self.turn_flags.reset()
        if self.turn_order:
            self.current_turn_index = (self.current_turn_index + 1) % len(self.turn_order)

        self._log_event("turn_started", {"player_id": self.current_player_id})

        return ValidationResult.success("Turn ended")

    # =========== Serialization ===========

    def to_dict(self) -> dict:
        """Full snapshot for persistence."""
        return {
            "id": self.id,
            "started": self.started,
            "host_id": self.host_id,
            "players": {
                pid: {**player.to_dict(), "token": player.token}
                for pid, player in self.players.items()
            },
            "turn_order": list(self.turn_order),
            "current_turn_index": self.current_turn_index,
            "ready_players": sorted(self.ready_players),
            "turn_flags": self.turn_flags.to_dict(),
            "last_dice": self.last_dice.to_dict() if self.last_dice else None,
            "winner_id": self.winner_id,
            "deck": self.deck.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict, dice: Optional[Dice] = None) -> "Game":
        """Restore a game from a persisted snapshot."""
        game = cls(id=data.get("id") or str(uuid.uuid4()))
        if dice is not None:
            game.dice = dice

        game.players = {
            pid: Player.from_dict(pdata)
            for pid, pdata in data.get("players", {}).items()
        }
        game.turn_order = [pid for pid in data.get("turn_order", []) if pid in game.players]
        game.current_turn_index = int(data.get("current_turn_index", 0))
        if game.current_turn_index >= len(game.turn_order):
            game.current_turn_index = 0
        game.started = bool(data.get("started", False))
        game.host_id = data.get("host_id")
        game.ready_players = set(data.get("ready_players", [])) & set(game.players)
        game.turn_flags = TurnFlags.from_dict(data.get("turn_flags", {}))
        if data.get("last_dice"):
            game.last_dice = DiceResult.from_dict(data["last_dice"])
        game.winner_id = data.get("winner_id")
        game.deck = ChanceDeck.from_dict(data.get("deck", {}))

        return game

    def get_state(self) -> dict:
        """Snapshot broadcast to every connection after a state change."""
        return {
            "players": {pid: player.to_dict() for pid, player in self.players.items()},
            "turn_order": list(self.turn_order),
            "current_turn_index": self.current_turn_index,
            "current_player_id": self.current_player_id,
            "started": self.started,
            "host_id": self.host_id,
            "board": self.board.to_list(),
            "last_dice": self.last_dice.to_dict() if self.last_dice else None,
            "turn_flags": self.turn_flags.to_dict(),
            "ready_players": sorted(self.ready_players),
            "winner_id": self.winner_id,
        }
