"""
Retroland - layered tile maps shared over the network

Requisitos:
    pip install numpy pillow pygame
"""

from .errors import (
    RetrolandError, TileMapError, InvalidPositionError, InvalidLayerError,
    MapWriteError, MapReadError, InvalidViewportSizeError
)
from .map.tilemap import TileMap, MapSize, GROUND_TILE_ID, EMPTY_TILE_ID
from .viewport import Viewport
from .net import serve, fetch, DEFAULT_PORT

__version__ = "0.1.0"
__all__ = [
    "TileMap",
    "MapSize",
    "GROUND_TILE_ID",
    "EMPTY_TILE_ID",
    "Viewport",
    "serve",
    "fetch",
    "DEFAULT_PORT",
    "RetrolandError",
    "TileMapError",
    "InvalidPositionError",
    "InvalidLayerError",
    "MapWriteError",
    "MapReadError",
    "InvalidViewportSizeError",
]
