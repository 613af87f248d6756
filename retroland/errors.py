"""
Exception hierarchy shared by the tile map, the codec and the viewport.

    RetrolandError
    ├── TileMapError
    │   ├── InvalidPositionError   position outside the grid
    │   ├── InvalidLayerError      layer index >= layer_count
    │   ├── MapWriteError          encode or I/O failure while saving/sending
    │   └── MapReadError           decode or I/O failure while loading/receiving
    └── InvalidViewportSizeError   zero visible tile count (or zero tile size)

All of them are local, recoverable conditions: the caller aborts the
operation (a load, a save, a click) and carries on.
"""


class RetrolandError(Exception):
    """Base class for every error raised by this package."""


class TileMapError(RetrolandError):
    """Base class for tile map errors."""


class InvalidPositionError(TileMapError):
    """The (x, y) position does not exist on the map."""

    def __init__(self, position, size):
        super().__init__(f"position {tuple(position)} is outside map of size "
                         f"{size[0]}x{size[1]}")
        self.position = position
        self.size = size


class InvalidLayerError(TileMapError):
    """The layer index does not exist on the map."""

    def __init__(self, layer, layer_count):
        super().__init__(f"layer {layer} does not exist "
                         f"(map has {layer_count} layers)")
        self.layer = layer
        self.layer_count = layer_count


class MapWriteError(TileMapError):
    """The map could not be encoded or written."""


class MapReadError(TileMapError):
    """The byte source does not hold a valid encoded map."""


class InvalidViewportSizeError(RetrolandError):
    """The viewport would end up with a zero (undrawable) tile size."""
