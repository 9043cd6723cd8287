"""
Chance card deck.
"""
import random
from dataclasses import dataclass
from typing import Dict, List

from shared.constants import CHANCE_CARDS
from shared.enums import CardKind


@dataclass(frozen=True)
class ChanceCard:
    """A single chance card."""

    id: str
    kind: CardKind
    text: str
    amount: int = 0  # Money gained (positive) or paid (negative)
    delta: int = 0  # Tiles moved for MOVE cards

    def to_dict(self) -> dict:
        """Convert card to dictionary."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "text": self.text,
            "amount": self.amount,
            "delta": self.delta,
        }


BASE_CHANCE_CARDS: List[ChanceCard] = [
    ChanceCard(id=card_id, kind=CardKind(kind), text=text, amount=amount, delta=delta)
    for card_id, kind, amount, delta, text in CHANCE_CARDS
]

CARDS_BY_ID: Dict[str, ChanceCard] = {card.id: card for card in BASE_CHANCE_CARDS}


class ChanceDeck:
    """
    Shuffled chance deck drawn one card at a time.

    When every card has been drawn the deck is reshuffled and drawing
    starts over.
    """

    def __init__(self, seed: int | None = None, cards: List[ChanceCard] | None = None):
        self._random = random.Random(seed)
        self._base = list(cards) if cards is not None else list(BASE_CHANCE_CARDS)
        self.cards: List[ChanceCard] = []
        self.cursor = 0
        self.shuffle()

    def shuffle(self) -> None:
        """Shuffle a fresh copy of the deck and reset the cursor."""
        self.cards = list(self._base)
        self._random.shuffle(self.cards)
        self.cursor = 0

    def draw(self) -> ChanceCard:
        """Draw the next card, reshuffling once the deck is exhausted."""
        if self.cursor >= len(self.cards):
            self.shuffle()
        card = self.cards[self.cursor]
        self.cursor += 1
        return card

    @property
    def remaining(self) -> int:
        return len(self.cards) - self.cursor

    def to_dict(self) -> dict:
        return {
            "order": [card.id for card in self.cards],
            "cursor": self.cursor,
        }

    @classmethod
    def from_dict(cls, data: dict, seed: int | None = None) -> "ChanceDeck":
        """Restore a deck; unknown card ids fall back to a fresh shuffle."""
        deck = cls(seed=seed)
        order = data.get("order") or []
        if order and all(card_id in CARDS_BY_ID for card_id in order):
            deck.cards = [CARDS_BY_ID[card_id] for card_id in order]
            deck.cursor = max(0, min(int(data.get("cursor", 0)), len(deck.cards)))
        return deck
