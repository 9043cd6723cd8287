"""
Dice rolling mechanics.
"""
import random
from dataclasses import dataclass


@dataclass
class DiceResult:
    """Result of rolling two dice."""
    die1: int
    die2: int

    @property
    def total(self) -> int:
        """Sum of both dice."""
        return self.die1 + self.die2

    def to_dict(self) -> dict:
        """Wire shape of a roll."""
        return {"d1": self.die1, "d2": self.die2, "total": self.total}

    @classmethod
    def from_dict(cls, data: dict) -> "DiceResult":
        return cls(die1=int(data["d1"]), die2=int(data["d2"]))


class Dice:
    """Handles all dice rolling for the game."""

    def __init__(self, seed: int | None = None):
        """
        Initialize dice roller.

        Args:
            seed: Optional seed for reproducible rolls (useful for testing)
        """
        self._random = random.Random(seed)

    def roll(self) -> DiceResult:
        """
        Roll two six-sided dice.

        Returns:
            DiceResult with values of both dice
        """
        die1 = self._random.randint(1, 6)
        die2 = self._random.randint(1, 6)
        return DiceResult(die1=die1, die2=die2)
