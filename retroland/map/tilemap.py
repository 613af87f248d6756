"""
Layered 2-D tile grid

=============================================================================
DATA STRUCTURE: 3D NUMPY ARRAY
=============================================================================

A map is stored as one uint32 array: tiles[layer, y, x]

    layer 0 (ground)        layer 1 (buildings)
    +---+---+---+           +---+---+---+
    | 2 | 2 | 2 |           | 0 | 50| 0 |
    +---+---+---+           +---+---+---+
    | 2 | 2 | 2 |           | 0 | 0 | 0 |
    +---+---+---+           +---+---+---+

- layer: stacking order, 0 is drawn first
- y: row (0 to height-1)
- x: column (0 to width-1)

A single allocation holds every layer, so the layer-major / row-major order
of the array is also the order of the bytes on disk and on the wire.

=============================================================================
TILE IDS
=============================================================================

Ids are plain unsigned 32-bit integers, no ruleset behind them:

    0 = empty (transparent) on every layer except the ground layer
    2 = grass, the id a fresh ground layer is filled with

=============================================================================
"""

from pathlib import Path
from typing import BinaryIO, NamedTuple, Optional, Tuple, Union

import numpy as np

from ..errors import InvalidLayerError, InvalidPositionError, MapWriteError
from .codec import U32_MAX, decode_map, encode_map, read_map

# Id layer 0 is seeded with
GROUND_TILE_ID = 2
# Id every other layer is seeded with
EMPTY_TILE_ID = 0

Position = Tuple[int, int]


class MapSize(NamedTuple):
    """Map dimensions in cells."""
    width: int
    height: int


class TileMap:
    """
    Raw representation of a tile map.

    ==========================================================================
    USAGE EXAMPLE
    ==========================================================================

    ```python
    tile_map = TileMap((30, 20), 2)

    tile_map.set_tile((4, 7), 1, 50)     # house on the building layer
    tile_map.get_tile((4, 7), 1)          # -> 50
    tile_map.get_tile((99, 0), 0)         # -> None (off the map)

    tile_map.save("world.map")
    same = TileMap.load("world.map")
    ```

    ==========================================================================
    """

    def __init__(self, size: Tuple[int, int], layer_count: int):
        """
        Create a new tile map.

        Parameters:
        -----------
        size : (int, int)
            Width and height in cells. A zero-area map is valid.
        layer_count : int
            Number of stacked layers (at least 1)

        Layer 0 is filled with GROUND_TILE_ID, the others with EMPTY_TILE_ID.
        """
        width, height = (int(v) for v in size)
        layer_count = int(layer_count)

        # Dimensions must stay representable in the u32 wire fields
        if not (0 <= width <= U32_MAX and 0 <= height <= U32_MAX):
            raise ValueError(f"invalid map size {width}x{height}")
        if not 1 <= layer_count <= U32_MAX:
            raise ValueError(f"invalid layer count {layer_count}")

        self._size = MapSize(width, height)
        self._tiles = np.full((layer_count, height, width), EMPTY_TILE_ID,
                              dtype=np.uint32)
        self._tiles[0] = GROUND_TILE_ID

    @classmethod
    def _from_array(cls, tiles: np.ndarray, width: int, height: int) -> 'TileMap':
        """Wrap an already decoded (layers, height, width) array."""
        tile_map = cls.__new__(cls)
        tile_map._size = MapSize(width, height)
        tile_map._tiles = tiles
        return tile_map

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def size(self) -> MapSize:
        return self._size

    def layer_count(self) -> int:
        return self._tiles.shape[0]

    def layers(self) -> np.ndarray:
        """
        Read-only view of every layer, shape (layer_count, height, width).

        Meant for presentation code that needs the whole grid at once
        (viewport cache, renderer). Writes must go through set_tile().
        """
        view = self._tiles.view()
        view.flags.writeable = False
        return view

    # =========================================================================
    # INDEXING
    # =========================================================================

    def _compute_index(self, position: Position) -> Optional[int]:
        """
        Row-major index of a position, or None when off the map.

        Single source of truth for bounds: get_tile and set_tile both
        derive their cell from here.

            index = x + y * width

        Example with width 6:
            (0, 0) -> 0
            (1, 1) -> 7
            (5, 4) -> 29
        """
        x, y = position
        if x < 0 or y < 0 or x >= self._size.width or y >= self._size.height:
            return None
        return x + y * self._size.width

    def get_tile(self, position: Position, layer: int) -> Optional[int]:
        """
        Tile id at position on layer.

        Returns None if the position or the layer does not exist.
        """
        index = self._compute_index(position)
        if index is None or not 0 <= layer < self.layer_count():
            return None
        return int(self._tiles[layer].reshape(-1)[index])

    def set_tile(self, position: Position, layer: int, tile_id: int):
        """
        Overwrite the tile id at position on layer.

        Raises:
        -------
        InvalidPositionError : position is off the map (checked first)
        InvalidLayerError : layer does not exist
        ValueError : tile_id does not fit in 32 bits
        """
        index = self._compute_index(position)
        if index is None:
            raise InvalidPositionError(position, self._size)
        if not 0 <= layer < self.layer_count():
            raise InvalidLayerError(layer, self.layer_count())
        if not 0 <= tile_id <= U32_MAX:
            raise ValueError(f"tile id {tile_id} out of range")

        # reshape(-1) of a C-contiguous slice is a view, the write lands
        # in the arena
        self._tiles[layer].reshape(-1)[index] = tile_id

    def fill(self, layer: int, tile_id: int):
        """Set every cell of a layer to tile_id."""
        if not 0 <= layer < self.layer_count():
            raise InvalidLayerError(layer, self.layer_count())
        if not 0 <= tile_id <= U32_MAX:
            raise ValueError(f"tile id {tile_id} out of range")
        self._tiles[layer] = tile_id

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_bytes(self) -> bytes:
        return encode_map(self._tiles)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'TileMap':
        """Decode a map from a buffer holding exactly one encoded map."""
        tiles, width, height = decode_map(bytes(data))
        return cls._from_array(tiles, width, height)

    def write(self, writer: BinaryIO):
        """
        Write the encoded map to a binary sink in a single write call.

        Any encoding or I/O failure raises MapWriteError; nothing is
        retried, the caller discards the target.
        """
        payload = self.to_bytes()
        try:
            writer.write(payload)
            flush = getattr(writer, 'flush', None)
            if flush is not None:
                flush()
        except (OSError, ValueError) as exc:
            # ValueError: write to a closed file
            raise MapWriteError(f"cannot write map: {exc}") from exc

    @classmethod
    def read(cls, stream: BinaryIO) -> 'TileMap':
        """
        Decode one map from a binary stream (open file, socket file).

        Raises MapReadError on malformed or truncated input.
        """
        tiles, width, height = read_map(stream)
        return cls._from_array(tiles, width, height)

    @classmethod
    def load(cls, filepath: Union[str, Path]) -> 'TileMap':
        """
        Load a map from a save file.

        Raises:
        -------
        FileNotFoundError : If the save file doesn't exist
        MapReadError : If the file content is not a valid map
        """
        with open(filepath, 'rb') as f:
            return cls.read(f)

    def save(self, filepath: Union[str, Path]):
        """
        Save the map to a file.

        The map is written to a temporary sibling first and renamed over
        the target, so a failed save keeps the previous file intact.
        """
        filepath = Path(filepath)
        temp_path = filepath.with_name(filepath.name + '.tmp')
        try:
            with open(temp_path, 'wb') as f:
                self.write(f)
            temp_path.replace(filepath)
        except OSError as exc:
            raise MapWriteError(f"cannot save map to {filepath}: {exc}") from exc
        finally:
            if temp_path.exists():
                temp_path.unlink()

    # =========================================================================
    # COMPARISON
    # =========================================================================

    def __eq__(self, other):
        if not isinstance(other, TileMap):
            return NotImplemented
        return (self._size == other._size
                and np.array_equal(self._tiles, other._tiles))

    def __repr__(self):
        return (f"TileMap(size={self._size.width}x{self._size.height}, "
                f"layers={self.layer_count()})")
