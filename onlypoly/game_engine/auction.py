"""
Timed single-slot property auction.

At most one auction runs at a time. It is resolved exactly once, either by
its own timer or eagerly by a bid that arrives after the deadline; both
paths go through finish_auction().
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple

from shared.constants import AUCTION_BID_STEPS
from shared.enums import RejectReason

from .game import BANK, Game
from .rules import ValidationResult


logger = logging.getLogger(__name__)


@dataclass
class Auction:
    """A live or just-resolved auction."""
    property_id: int
    started_by: str
    ends_at: float
    highest_bid: int = 0
    highest_bidder: Optional[str] = None
    active: bool = True

    def to_dict(self) -> dict:
        return {
            "property_id": self.property_id,
            "started_by": self.started_by,
            "highest_bid": self.highest_bid,
            "highest_bidder": self.highest_bidder,
            "ends_at": int(self.ends_at * 1000),
            "active": self.active,
        }


class AuctionHouse:
    """
    Runs property auctions against a game's money and ownership primitives.
    """

    def __init__(
        self,
        game: Game,
        duration: float = 30,
        clock: Callable[[], float] = time.time,
        on_finished: Optional[Callable[[Auction], Awaitable[None]]] = None,
        grace: float = 0.05
    ):
        """
        Initialize the auction house.

        Args:
            game: Game whose tiles are auctioned
            duration: Seconds an auction stays open
            clock: Wall-clock source, injectable for tests
            on_finished: Awaited after the timer resolves an auction
            grace: Extra seconds the timer waits past the deadline
        """
        self.game = game
        self.duration = duration
        self.clock = clock
        self.on_finished = on_finished
        self.grace = grace
        self.current: Optional[Auction] = None
        self._timer: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self.current is not None and self.current.active

    def start_auction(self, property_id: int, starter_id: str) -> Tuple[ValidationResult, Optional[Auction]]:
        """
        Put the tile the starter rolled onto up for auction.

        Returns:
            Tuple of (validation, auction)
        """
        validation = self.game.validate_start_auction(starter_id, property_id)
        if not validation.valid:
            return validation, None

        tile = self.game.get_tile(property_id)
        if self.is_active or not self.game.board.is_plain_property(property_id):
            return ValidationResult.failure(
                RejectReason.CANNOT_START_AUCTION,
                "Cannot start an auction for this property now"
            ), None

        self.game.turn_flags.has_started_auction = True
        self.current = Auction(
            property_id=property_id,
            started_by=starter_id,
            ends_at=self.clock() + self.duration,
        )
        self._schedule_timer()

        self.game._log_event("auction_started", {
            "property_id": property_id,
            "started_by": starter_id,
        })
        logger.info(f"Auction started for tile {property_id} by {starter_id}")

        return ValidationResult.success(f"Auction started for {tile.name}"), self.current

    def place_bid(self, player_id: str, step: int) -> Tuple[ValidationResult, Optional[Auction]]:
        """
        Raise the highest bid by one of the allowed steps.

        Returns:
            Tuple of (validation, auction)
        """
        if not isinstance(step, int) or isinstance(step, bool) or step not in AUCTION_BID_STEPS:
            return ValidationResult.failure(
                RejectReason.INVALID_BID_STEP,
                f"Bid step must be one of {', '.join(str(s) for s in AUCTION_BID_STEPS)}"
            ), None

        auction = self.current
        if auction is None or not auction.active:
            return ValidationResult.failure(RejectReason.BID_REJECTED, "No auction is running"), None

        # Late bids resolve the auction; the resolved auction comes back so it
        # can still be announced.
        if self.clock() >= auction.ends_at:
            resolved = self.finish_auction()
            return ValidationResult.failure(RejectReason.AUCTION_ENDED, "The auction has ended"), resolved

        player = self.game.players.get(player_id)
        if not player or player.bankrupt:
            return ValidationResult.failure(RejectReason.BID_REJECTED, "You cannot bid"), None

        new_bid = auction.highest_bid + step
        if new_bid > player.money:
            return ValidationResult.failure(
                RejectReason.BID_REJECTED,
                f"You cannot cover a bid of ${new_bid}"
            ), None

        if auction.highest_bidder == player_id and auction.highest_bid == new_bid:
            return ValidationResult.failure(RejectReason.BID_REJECTED, "You already hold that bid"), None

        auction.highest_bid = new_bid
        auction.highest_bidder = player_id

        return ValidationResult.success(f"Bid ${new_bid}"), auction

    def finish_auction(self) -> Optional[Auction]:
        """
        Resolve the live auction.

        A solvent highest bidder pays the bank exactly the highest bid and
        receives the tile; otherwise the tile stays unowned.

        Returns:
            The resolved auction, or None if nothing was live
        """
        auction = self.current
        if auction is None or not auction.active:
            return None

        auction.active = False
        self.current = None
        self._cancel_timer()

        winner = self.game.players.get(auction.highest_bidder) if auction.highest_bidder else None
        if (
            winner is not None
            and not winner.bankrupt
            and auction.highest_bid > 0
            and self.game.find_owner(auction.property_id) is None
            and self.game.transfer(winner.id, BANK, auction.highest_bid)
        ):
            self.game.assign_property(auction.property_id, winner.id)
            self.game._log_event("auction_won", {
                "property_id": auction.property_id,
                "player_id": winner.id,
                "amount": auction.highest_bid,
            })
            logger.info(f"Auction for tile {auction.property_id} won by {winner.id} for ${auction.highest_bid}")
        else:
            auction.highest_bidder = None
            self.game._log_event("auction_unsold", {"property_id": auction.property_id})
            logger.info(f"Auction for tile {auction.property_id} ended without a sale")

        return auction

    def cancel(self) -> None:
        """Drop the live auction without resolving it."""
        self.current = None
        self._cancel_timer()

    # =========== Timer ===========

    def _schedule_timer(self) -> None:
        self._cancel_timer()
        delay = max(0.0, self.current.ends_at - self.clock()) + self.grace
        self._timer = asyncio.create_task(self._run_timer(delay))

    def _cancel_timer(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is not None and timer is not asyncio.current_task() and not timer.done():
            timer.cancel()

    async def _run_timer(self, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            auction = self.finish_auction()
            if auction is not None and self.on_finished is not None:
                await self.on_finished(auction)
        except Exception as e:
            logger.exception(f"Error resolving auction: {e}")
