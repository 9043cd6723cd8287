"""
Player state management.
"""
from dataclasses import dataclass, field
from typing import Dict
import uuid

from shared.constants import JAIL_TURNS, MAX_HOUSES_PER_PROPERTY, STARTING_MONEY


@dataclass
class OwnedProperty:
    """Build state of one tile a player owns."""

    houses: int = 0
    hotel: bool = False

    @property
    def has_buildings(self) -> bool:
        return self.hotel or self.houses > 0

    @property
    def can_add_house(self) -> bool:
        return not self.hotel and self.houses < MAX_HOUSES_PER_PROPERTY

    @property
    def can_add_hotel(self) -> bool:
        return not self.hotel and self.houses == MAX_HOUSES_PER_PROPERTY

    def to_dict(self) -> dict:
        return {"houses": self.houses, "hotel": self.hotel}

    @classmethod
    def from_dict(cls, data: dict) -> "OwnedProperty":
        return cls(houses=int(data.get("houses", 0)), hotel=bool(data.get("hotel", False)))


@dataclass
class Player:
    """Represents a player in the game."""

    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    color: str | None = None
    money: int = STARTING_MONEY
    position: int = 0

    # Jail tracking
    in_jail: bool = False
    jail_turns: int = 0

    bankrupt: bool = False

    # Tiles owned, keyed by tile id
    properties: Dict[int, OwnedProperty] = field(default_factory=dict)

    # Session token handed out on join
    token: str | None = None

    def owns(self, tile_id: int) -> bool:
        """Check if the player owns a tile."""
        return tile_id in self.properties

    def can_afford(self, amount: int) -> bool:
        """Check if player can afford a given amount."""
        return self.money >= amount

    def add_property(self, tile_id: int) -> OwnedProperty:
        """Take ownership of a tile with no buildings."""
        owned = OwnedProperty()
        self.properties[tile_id] = owned
        return owned

    def remove_property(self, tile_id: int) -> None:
        """Drop ownership of a tile (and anything built on it)."""
        self.properties.pop(tile_id, None)

    def send_to_jail(self, jail_position: int) -> None:
        """Send player to jail."""
        self.position = jail_position
        self.in_jail = True
        self.jail_turns = JAIL_TURNS

    def release_from_jail(self) -> None:
        """Release player from jail."""
        self.in_jail = False
        self.jail_turns = 0

    def to_dict(self) -> dict:
        """Convert player to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "money": self.money,
            "position": self.position,
            "in_jail": self.in_jail,
            "jail_turns": self.jail_turns,
            "bankrupt": self.bankrupt,
            "properties": {
                str(tile_id): owned.to_dict()
                for tile_id, owned in self.properties.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Player":
        """Create player from dictionary."""
        player = cls(
            name=data["name"],
            id=data["id"],
            color=data.get("color"),
            money=int(data.get("money", STARTING_MONEY)),
            position=int(data.get("position", 0)),
            in_jail=bool(data.get("in_jail", False)),
            jail_turns=int(data.get("jail_turns", 0)),
            bankrupt=bool(data.get("bankrupt", False)),
            token=data.get("token"),
        )
        player.properties = {
            int(tile_id): OwnedProperty.from_dict(owned)
            for tile_id, owned in data.get("properties", {}).items()
        }
        return player
