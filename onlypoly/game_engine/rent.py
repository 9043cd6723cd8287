"""
Rent calculation.
"""
from shared.constants import UTILITY_MULTIPLIERS
from shared.enums import TileType

from .board import Board
from .player import Player


def has_monopoly(board: Board, player: Player | None, group: str | None) -> bool:
    """Check if player owns every plain property in a country group."""
    if player is None or not group:
        return False

    group_tiles = board.tiles_in_group(group)
    if not group_tiles:
        return False

    return all(player.owns(tile.id) for tile in group_tiles)


def count_owned_of_type(board: Board, player: Player, tile_type: TileType) -> int:
    """Count how many tiles of one type a player owns."""
    count = 0
    for tile_id in player.properties:
        tile = board.get_tile(tile_id)
        if tile is not None and tile.type == tile_type:
            count += 1
    return count


def calculate_rent(
    board: Board,
    tile_id: int,
    owner: Player | None,
    dice_total: int = 0
) -> int:
    """
    Calculate rent owed when landing on a tile.

    Args:
        board: The board catalog
        tile_id: Tile landed on
        owner: Player owning the tile (None if unowned)
        dice_total: Sum of dice (for utilities)

    Returns:
        Rent amount owed
    """
    tile = board.get_tile(tile_id)
    if tile is None or owner is None or not owner.owns(tile_id):
        return 0

    if tile.type == TileType.PROPERTY:
        owned = owner.properties[tile_id]
        if owned.hotel:
            return tile.rents[5]
        elif owned.houses > 0:
            return tile.rents[owned.houses]
        elif has_monopoly(board, owner, tile.group):
            return tile.rents[0] * 2  # Double rent for a full country
        else:
            return tile.rents[0]

    elif tile.type == TileType.AIRPORT:
        # Rent based on number of airports owned
        owned_count = count_owned_of_type(board, owner, TileType.AIRPORT)
        if 1 <= owned_count <= len(tile.rents):
            return tile.rents[owned_count - 1]
        return tile.rents[0]

    elif tile.type == TileType.UTILITY:
        owned_count = count_owned_of_type(board, owner, TileType.UTILITY)
        multiplier = UTILITY_MULTIPLIERS.get(owned_count, 4)
        return (dice_total or 0) * multiplier

    return 0
