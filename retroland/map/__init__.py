"""Tile map data model and its binary codec"""

from .tilemap import TileMap, MapSize, GROUND_TILE_ID, EMPTY_TILE_ID
from .codec import encode_map, decode_map, read_map

__all__ = [
    "TileMap",
    "MapSize",
    "GROUND_TILE_ID",
    "EMPTY_TILE_ID",
    "encode_map",
    "decode_map",
    "read_map",
]
