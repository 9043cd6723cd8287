"""
Rule enforcement and validation for turn and property actions.

Validators only inspect state; the game applies an action after its
validator succeeds, so a rejected action never changes anything.
"""
from dataclasses import dataclass

from shared.constants import JAIL_FINE
from shared.enums import RejectReason

from .board import Board
from .player import Player
from .rent import has_monopoly


@dataclass
class ValidationResult:
    """Result of validating an action."""
    valid: bool
    reason: RejectReason | None = None
    message: str = ""

    @classmethod
    def success(cls, message: str = "") -> "ValidationResult":
        return cls(valid=True, reason=None, message=message)

    @classmethod
    def failure(cls, reason: RejectReason, message: str = "") -> "ValidationResult":
        return cls(valid=False, reason=reason, message=message)


@dataclass
class TurnFlags:
    """Per-turn gates, reset exactly once per end of turn."""
    has_rolled: bool = False
    has_bought: bool = False
    has_started_auction: bool = False
    paid_jail_fine: bool = False

    def reset(self) -> None:
        self.has_rolled = False
        self.has_bought = False
        self.has_started_auction = False
        self.paid_jail_fine = False

    def to_dict(self) -> dict:
        return {
            "has_rolled": self.has_rolled,
            "has_bought": self.has_bought,
            "has_started_auction": self.has_started_auction,
            "paid_jail_fine": self.paid_jail_fine,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TurnFlags":
        return cls(
            has_rolled=bool(data.get("has_rolled", False)),
            has_bought=bool(data.get("has_bought", False)),
            has_started_auction=bool(data.get("has_started_auction", False)),
            paid_jail_fine=bool(data.get("paid_jail_fine", False)),
        )


def not_your_turn() -> ValidationResult:
    return ValidationResult.failure(RejectReason.NOT_YOUR_TURN, "It's not your turn")


class RuleEngine:
    """
    Enforces turn legality and validates economic actions.
    """

    def __init__(self, board: Board):
        """
        Initialize rule engine.

        Args:
            board: The board catalog
        """
        self.board = board

    def validate_roll_dice(
        self,
        player: Player,
        current_player_id: str | None,
        started: bool,
        flags: TurnFlags
    ) -> ValidationResult:
        """Validate if player can roll dice."""
        if not started:
            return ValidationResult.failure(
                RejectReason.GAME_NOT_STARTED,
                "The game has not started"
            )

        if player.id != current_player_id:
            return not_your_turn()

        if player.bankrupt:
            return ValidationResult.failure(
                RejectReason.PLAYER_BANKRUPT,
                "Bankrupt players cannot roll"
            )

        if flags.has_rolled:
            return ValidationResult.failure(
                RejectReason.ALREADY_ROLLED,
                "You have already rolled this turn"
            )

        if player.in_jail:
            return ValidationResult.failure(
                RejectReason.IN_JAIL,
                "You are in jail - pay the fine or end your turn"
            )

        if flags.paid_jail_fine:
            return ValidationResult.failure(
                RejectReason.PAID_JAIL_FINE,
                "You paid your way out of jail this turn"
            )

        return ValidationResult.success()

    def _validate_landed_unowned(
        self,
        player: Player,
        tile_id: int,
        flags: TurnFlags,
        owner_id: str | None
    ) -> ValidationResult:
        """Shared checks for acting on the unowned tile a player rolled onto."""
        tile = self.board.get_tile(tile_id)
        if tile is None or not tile.is_purchasable:
            return ValidationResult.failure(
                RejectReason.INVALID_PROPERTY,
                "This tile cannot be bought"
            )

        if not flags.has_rolled or player.position != tile_id:
            return ValidationResult.failure(
                RejectReason.INVALID_PROPERTY,
                f"You are not standing on {tile.name}"
            )

        if owner_id is not None:
            return ValidationResult.failure(
                RejectReason.PROPERTY_ALREADY_OWNED,
                f"{tile.name} is already owned"
            )

        return ValidationResult.success()

    def validate_buy_property(
        self,
        player: Player,
        tile_id: int,
        current_player_id: str | None,
        flags: TurnFlags,
        owner_id: str | None
    ) -> ValidationResult:
        """Validate if player can buy the tile."""
        if player.id != current_player_id:
            return not_your_turn()

        if flags.has_bought:
            return ValidationResult.failure(
                RejectReason.ALREADY_BOUGHT,
                "You already bought a property this turn"
            )

        if flags.has_started_auction:
            return ValidationResult.failure(
                RejectReason.AUCTION_STARTED,
                "You already put this property up for auction"
            )

        validation = self._validate_landed_unowned(player, tile_id, flags, owner_id)
        if not validation.valid:
            return validation

        tile = self.board.get_tile(tile_id)
        if not player.can_afford(tile.price):
            return ValidationResult.failure(
                RejectReason.INSUFFICIENT_FUNDS,
                f"You need ${tile.price} to buy {tile.name}"
            )

        return ValidationResult.success()

    def validate_start_auction(
        self,
        player: Player,
        tile_id: int,
        current_player_id: str | None,
        flags: TurnFlags,
        owner_id: str | None
    ) -> ValidationResult:
        """Validate if player can put the tile up for auction."""
        if player.id != current_player_id:
            return not_your_turn()

        if flags.has_bought:
            return ValidationResult.failure(
                RejectReason.ALREADY_BOUGHT,
                "You already bought a property this turn"
            )

        if flags.has_started_auction:
            return ValidationResult.failure(
                RejectReason.AUCTION_ALREADY_STARTED,
                "You already started an auction this turn"
            )

        return self._validate_landed_unowned(player, tile_id, flags, owner_id)

    def _validate_own_plain_property(self, player: Player, tile_id: int) -> ValidationResult:
        if not self.board.is_plain_property(tile_id):
            return ValidationResult.failure(
                RejectReason.INVALID_PROPERTY,
                "Can only build on country properties"
            )

        if not player.owns(tile_id):
            return ValidationResult.failure(
                RejectReason.NOT_OWNER,
                "You don't own this property"
            )

        return ValidationResult.success()

    def validate_build_house(
        self,
        player: Player,
        tile_id: int,
        current_player_id: str | None
    ) -> ValidationResult:
        """Validate if player can build a house on a property."""
        if player.id != current_player_id:
            return not_your_turn()

        validation = self._validate_own_plain_property(player, tile_id)
        if not validation.valid:
            return validation

        tile = self.board.get_tile(tile_id)
        if not has_monopoly(self.board, player, tile.group):
            return ValidationResult.failure(
                RejectReason.NO_MONOPOLY,
                "You need every property in the country to build"
            )

        if not player.properties[tile_id].can_add_house:
            return ValidationResult.failure(
                RejectReason.CANNOT_BUILD,
                "Property is fully developed"
            )

        if not player.can_afford(tile.house_price):
            return ValidationResult.failure(
                RejectReason.INSUFFICIENT_FUNDS,
                f"You need ${tile.house_price} to build a house"
            )

        return ValidationResult.success()

    def validate_build_hotel(
        self,
        player: Player,
        tile_id: int,
        current_player_id: str | None
    ) -> ValidationResult:
        """Validate if player can build a hotel on a property."""
        if player.id != current_player_id:
            return not_your_turn()

        validation = self._validate_own_plain_property(player, tile_id)
        if not validation.valid:
            return validation

        tile = self.board.get_tile(tile_id)
        if not has_monopoly(self.board, player, tile.group):
            return ValidationResult.failure(
                RejectReason.NO_MONOPOLY,
                "You need every property in the country to build"
            )

        if not player.properties[tile_id].can_add_hotel:
            return ValidationResult.failure(
                RejectReason.CANNOT_BUILD,
                "A hotel needs 4 houses and replaces them"
            )

        if not player.can_afford(tile.hotel_price):
            return ValidationResult.failure(
                RejectReason.INSUFFICIENT_FUNDS,
                f"You need ${tile.hotel_price} to build a hotel"
            )

        return ValidationResult.success()

    def validate_sell_house(self, player: Player, tile_id: int) -> ValidationResult:
        """Validate if player can sell a house from a property."""
        validation = self._validate_own_plain_property(player, tile_id)
        if not validation.valid:
            return validation

        owned = player.properties[tile_id]
        if owned.hotel or owned.houses <= 0:
            return ValidationResult.failure(
                RejectReason.CANNOT_SELL,
                "No houses to sell"
            )

        return ValidationResult.success()

    def validate_sell_hotel(self, player: Player, tile_id: int) -> ValidationResult:
        """Validate if player can sell a hotel from a property."""
        validation = self._validate_own_plain_property(player, tile_id)
        if not validation.valid:
            return validation

        if not player.properties[tile_id].hotel:
            return ValidationResult.failure(
                RejectReason.CANNOT_SELL,
                "No hotel to sell"
            )

        return ValidationResult.success()

    def validate_pay_jail_fine(
        self,
        player: Player,
        current_player_id: str | None,
        flags: TurnFlags
    ) -> ValidationResult:
        """Validate if player can pay the jail fine."""
        if player.id != current_player_id:
            return not_your_turn()

        if not player.in_jail:
            return ValidationResult.failure(
                RejectReason.NOT_IN_JAIL,
                "You are not in jail"
            )

        if flags.paid_jail_fine:
            return ValidationResult.failure(
                RejectReason.CANNOT_PAY_FINE,
                "You already paid the fine this turn"
            )

        if not player.can_afford(JAIL_FINE):
            return ValidationResult.failure(
                RejectReason.INSUFFICIENT_FUNDS,
                f"You need ${JAIL_FINE} to pay the fine"
            )

        return ValidationResult.success()

    def validate_end_turn(
        self,
        player: Player,
        current_player_id: str | None,
        flags: TurnFlags
    ) -> ValidationResult:
        """Validate if player can end their turn."""
        if player.id != current_player_id:
            return not_your_turn()

        if not flags.has_rolled and not player.in_jail and not flags.paid_jail_fine:
            return ValidationResult.failure(
                RejectReason.MUST_ROLL_FIRST,
                "You must roll before ending your turn"
            )

        return ValidationResult.success()
