"""
Pairwise trade offers between players.

Nothing moves when a trade is proposed. Ownership and funds are checked
again when the counterparty accepts, and the whole exchange is applied
at once or not at all.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from shared.enums import RejectReason, TradeStatus

from .game import Game
from .rules import ValidationResult


logger = logging.getLogger(__name__)


@dataclass
class TradeOffer:
    """A proposed exchange of money and tiles."""
    from_player_id: str
    to_player_id: str
    offer_money: int = 0
    request_money: int = 0
    offer_properties: List[int] = field(default_factory=list)
    request_properties: List[int] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: TradeStatus = TradeStatus.PENDING

    def involves(self, player_id: str) -> bool:
        return player_id in (self.from_player_id, self.to_player_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "from_player_id": self.from_player_id,
            "to_player_id": self.to_player_id,
            "offer_money": self.offer_money,
            "request_money": self.request_money,
            "offer_properties": list(self.offer_properties),
            "request_properties": list(self.request_properties),
            "status": self.status.value,
        }


def _invalid(message: str) -> ValidationResult:
    return ValidationResult.failure(RejectReason.INVALID_TRADE, message)


def _is_amount(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _normalize_tiles(values) -> Optional[List[int]]:
    """De-duplicated tile ids in first-seen order, or None if malformed."""
    if not isinstance(values, (list, tuple)):
        return None
    tiles: List[int] = []
    for value in values:
        if not isinstance(value, int) or isinstance(value, bool):
            return None
        if value not in tiles:
            tiles.append(value)
    return tiles


class TradeDesk:
    """
    Holds pending trades for one game.
    """

    def __init__(self, game: Game):
        self.game = game
        self.trades: Dict[str, TradeOffer] = {}

    def get(self, trade_id: str) -> Optional[TradeOffer]:
        return self.trades.get(trade_id)

    def trades_for(self, player_id: str) -> List[TradeOffer]:
        """Pending trades a player is party to."""
        return [trade for trade in self.trades.values() if trade.involves(player_id)]

    def discard_for(self, player_id: str) -> List[TradeOffer]:
        """Drop every trade involving a player (e.g. after bankruptcy)."""
        dropped = self.trades_for(player_id)
        for trade in dropped:
            del self.trades[trade.id]
        return dropped

    def clear(self) -> None:
        self.trades = {}

    # =========== Validation ===========

    def _validate_parties(self, from_id: str, to_id: str) -> ValidationResult:
        if not self.game.started:
            return ValidationResult.failure(RejectReason.GAME_NOT_STARTED, "The game has not started")

        proposer = self.game.players.get(from_id)
        counterparty = self.game.players.get(to_id)
        if not proposer or not counterparty:
            return ValidationResult.failure(RejectReason.PLAYER_NOT_FOUND, "Player not found")

        if proposer.bankrupt or counterparty.bankrupt:
            return ValidationResult.failure(RejectReason.PLAYER_BANKRUPT, "Bankrupt players cannot trade")

        if from_id == to_id:
            return _invalid("You cannot trade with yourself")

        return ValidationResult.success()

    def _validate_holdings(self, trade: TradeOffer, check_funds: bool) -> ValidationResult:
        """Check both parties still hold what the trade moves."""
        proposer = self.game.players[trade.from_player_id]
        counterparty = self.game.players[trade.to_player_id]

        for tile_id in trade.offer_properties:
            if not proposer.owns(tile_id):
                return _invalid(f"{proposer.name} no longer owns tile {tile_id}")
        for tile_id in trade.request_properties:
            if not counterparty.owns(tile_id):
                return _invalid(f"{counterparty.name} no longer owns tile {tile_id}")

        if check_funds:
            if not proposer.can_afford(trade.offer_money):
                return ValidationResult.failure(
                    RejectReason.INSUFFICIENT_FUNDS,
                    f"{proposer.name} cannot cover ${trade.offer_money}"
                )
            if not counterparty.can_afford(trade.request_money):
                return ValidationResult.failure(
                    RejectReason.INSUFFICIENT_FUNDS,
                    f"{counterparty.name} cannot cover ${trade.request_money}"
                )

            for tile_id in trade.offer_properties:
                if proposer.properties[tile_id].has_buildings:
                    return _invalid("Sell buildings before trading a property")
            for tile_id in trade.request_properties:
                if counterparty.properties[tile_id].has_buildings:
                    return _invalid("Sell buildings before trading a property")

        return ValidationResult.success()

    # =========== Actions ===========

    def propose(
        self,
        from_id: str,
        to_id: str,
        offer_money: int = 0,
        request_money: int = 0,
        offer_properties: Optional[List[int]] = None,
        request_properties: Optional[List[int]] = None
    ) -> Tuple[ValidationResult, Optional[TradeOffer]]:
        """
        Record a pending trade. No money or tiles move yet.

        Returns:
            Tuple of (validation, trade)
        """
        validation = self._validate_parties(from_id, to_id)
        if not validation.valid:
            return validation, None

        if not _is_amount(offer_money) or not _is_amount(request_money):
            return _invalid("Money amounts must be non-negative whole numbers"), None

        offered = _normalize_tiles(offer_properties if offer_properties is not None else [])
        requested = _normalize_tiles(request_properties if request_properties is not None else [])
        if offered is None or requested is None:
            return _invalid("Property lists must contain tile ids"), None

        for tile_id in offered + requested:
            if not self.game.board.is_purchasable(tile_id):
                return _invalid(f"Tile {tile_id} cannot be traded"), None

        if set(offered) & set(requested):
            return _invalid("A tile cannot be on both sides of a trade"), None

        if not (offer_money or request_money or offered or requested):
            return _invalid("A trade must exchange something"), None

        trade = TradeOffer(
            from_player_id=from_id,
            to_player_id=to_id,
            offer_money=offer_money,
            request_money=request_money,
            offer_properties=offered,
            request_properties=requested,
        )

        validation = self._validate_holdings(trade, check_funds=False)
        if not validation.valid:
            return validation, None

        self.trades[trade.id] = trade
        self.game._log_event("trade_proposed", trade.to_dict())
        logger.info(f"Trade {trade.id} proposed by {from_id} to {to_id}")

        return ValidationResult.success("Trade proposed"), trade

    def accept(self, trade_id: str, player_id: str) -> Tuple[ValidationResult, Optional[TradeOffer]]:
        """
        Accept a pending trade as its counterparty.

        A trade that no longer holds up is discarded and comes back with
        status FAILED so both parties can be told.

        Returns:
            Tuple of (validation, trade)
        """
        trade = self.trades.get(trade_id)
        if not trade:
            return ValidationResult.failure(RejectReason.TRADE_NOT_FOUND, "Trade not found"), None

        if player_id != trade.to_player_id:
            return ValidationResult.failure(
                RejectReason.NOT_TRADE_PARTY,
                "Only the receiving player can accept a trade"
            ), None

        validation = self._validate_parties(trade.from_player_id, trade.to_player_id)
        if validation.valid:
            validation = self._validate_holdings(trade, check_funds=True)

        del self.trades[trade.id]

        if not validation.valid:
            trade.status = TradeStatus.FAILED
            self.game._log_event("trade_failed", {"trade_id": trade.id, "reason": validation.message})
            logger.info(f"Trade {trade.id} failed: {validation.message}")
            return ValidationResult.failure(RejectReason.TRADE_FAILED, validation.message), trade

        self._apply(trade)
        trade.status = TradeStatus.ACCEPTED
        self.game._log_event("trade_accepted", trade.to_dict())
        logger.info(f"Trade {trade.id} accepted")

        return ValidationResult.success("Trade completed"), trade

    def reject(self, trade_id: str, player_id: str) -> Tuple[ValidationResult, Optional[TradeOffer]]:
        """Reject (or withdraw) a pending trade as either party."""
        trade = self.trades.get(trade_id)
        if not trade:
            return ValidationResult.failure(RejectReason.TRADE_NOT_FOUND, "Trade not found"), None

        if not trade.involves(player_id):
            return ValidationResult.failure(
                RejectReason.NOT_TRADE_PARTY,
                "You are not part of this trade"
            ), None

        del self.trades[trade.id]
        trade.status = TradeStatus.REJECTED
        self.game._log_event("trade_rejected", {"trade_id": trade.id, "by": player_id})

        return ValidationResult.success("Trade rejected"), trade

    def _apply(self, trade: TradeOffer) -> None:
        """Move tiles and money. Holdings were checked just before."""
        for tile_id in trade.offer_properties:
            self.game.assign_property(tile_id, trade.to_player_id)
        for tile_id in trade.request_properties:
            self.game.assign_property(tile_id, trade.from_player_id)

        if trade.offer_money:
            self.game.transfer(trade.from_player_id, trade.to_player_id, trade.offer_money)
        if trade.request_money:
            self.game.transfer(trade.to_player_id, trade.from_player_id, trade.request_money)
