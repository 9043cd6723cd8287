"""
Board catalog: the immutable tile list every game is played on.

Ownership and buildings are tracked on players, so nothing here changes
during a game.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from shared.constants import BOARD_SIZE, SALARY_AMOUNT, TILES
from shared.enums import TileType


PURCHASABLE_TYPES = (TileType.PROPERTY, TileType.AIRPORT, TileType.UTILITY)


@dataclass(frozen=True)
class Tile:
    """A single board tile."""

    id: int
    name: str
    type: TileType
    price: int | None = None
    group: str | None = None
    rents: Tuple[int, ...] | None = None
    house_price: int | None = None
    hotel_price: int | None = None

    @property
    def is_purchasable(self) -> bool:
        """Property, airport or utility."""
        return self.type in PURCHASABLE_TYPES

    @property
    def mortgage_value(self) -> int:
        """Liquidation value (half of purchase price)."""
        return (self.price or 0) // 2

    @property
    def amount(self) -> int:
        """Amount due on a tax tile."""
        if self.type != TileType.TAX:
            return 0
        return self.price or 0

    @property
    def salary(self) -> int:
        """Salary paid for passing the start tile."""
        return SALARY_AMOUNT if self.type == TileType.START else 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "price": self.price,
            "group": self.group,
            "rents": list(self.rents) if self.rents else None,
            "house_price": self.house_price,
            "hotel_price": self.hotel_price,
            "mortgage_value": self.mortgage_value if self.is_purchasable else None,
            "amount": self.amount or None,
            "salary": self.salary or None,
        }


class Board:
    """
    Lookup table over all tiles.

    Built once from the tile constants; a single instance can be shared by
    every game in the process.
    """

    def __init__(self, tiles: Optional[List[Tile]] = None):
        if tiles is None:
            tiles = [
                Tile(
                    id=tile_id,
                    name=name,
                    type=TileType(tile_type),
                    price=price,
                    group=group,
                    rents=tuple(rents) if rents else None,
                    house_price=house_price,
                    hotel_price=hotel_price,
                )
                for tile_id, name, tile_type, price, group, rents, house_price, hotel_price in TILES
            ]
        self._tiles: Dict[int, Tile] = {tile.id: tile for tile in tiles}

    @property
    def size(self) -> int:
        return BOARD_SIZE

    def get_tile(self, tile_id: int) -> Tile | None:
        """Get the tile with the given id, if it exists."""
        return self._tiles.get(tile_id)

    def tiles_of_type(self, tile_type: TileType) -> List[Tile]:
        return [tile for tile in self.tiles() if tile.type == tile_type]

    def tiles_in_group(self, group: str) -> List[Tile]:
        """All plain properties sharing a country group."""
        return [
            tile for tile in self.tiles()
            if tile.group == group and tile.type == TileType.PROPERTY
        ]

    def first_of_type(self, tile_type: TileType) -> Tile | None:
        matches = self.tiles_of_type(tile_type)
        return matches[0] if matches else None

    def is_purchasable(self, tile_id: int) -> bool:
        tile = self.get_tile(tile_id)
        return tile is not None and tile.is_purchasable

    def is_plain_property(self, tile_id: int) -> bool:
        tile = self.get_tile(tile_id)
        return tile is not None and tile.type == TileType.PROPERTY

    def tiles(self) -> List[Tile]:
        """All tiles ordered by id."""
        return [self._tiles[tile_id] for tile_id in sorted(self._tiles)]

    def to_list(self) -> list[dict]:
        """Serialized catalog, included in every state broadcast."""
        return [tile.to_dict() for tile in self.tiles()]


DEFAULT_BOARD = Board()
