"""
Viewport: coordinate frame between screen pixels and map cells

=============================================================================
WHAT DOES THE VIEWPORT DO?
=============================================================================

The map is a grid of cells, the screen is a grid of pixels. The viewport
owns the mapping between the two:

- TILE SIZE: how many pixels one cell spans on screen
- PAN: how far the view has been dragged since it was created
- CACHE: a copy of the map's tiles, the renderer draws from it

    SCREEN (1920x1080, 5x5 cells wanted)
    +-----------------------------------+
    |+----+----+----+----+----+         |
    ||0,0 |1,0 |2,0 |3,0 |4,0 |         |   tile size = 216 px
    |+----+----+----+----+----+         |   (1080 / 5, the height
    ||0,1 |    |    |    |    |         |    is the tighter axis)
    |+----+----+----+----+----+         |
    |  ...                              |
    +-----------------------------------+

=============================================================================
TILE SIZE: FIT, NOT FILL
=============================================================================

Two candidates, one per axis:

    size_x = screen_width  // desired_width
    size_y = screen_height // desired_height

The SMALLER one is used, so the requested block of cells fits on screen
in both directions. Taking the larger one would fill the screen but crop
one axis.

    1920x1080, desired 5x5   -> min(384, 216) = 216
    1920x1080, desired 10x10 -> min(192, 108) = 108

=============================================================================
PANNING
=============================================================================

Panning moves the view center. The center at creation time is kept as
origin_center; the net displacement is

    view_offset = origin_center - current_center

A cell (x, y) is drawn at

    (x * tile_size, y * tile_size) + view_offset

and a pointer position is mapped back by subtracting the same offset
before dividing by the tile size. Pans are plain additions, so
pan(a); pan(b) is the same as pan(a + b).

=============================================================================
"""

from typing import List, Optional, Set, Tuple

import numpy as np

from .errors import InvalidLayerError, InvalidPositionError, InvalidViewportSizeError
from .map.codec import U32_MAX
from .map.tilemap import MapSize, TileMap

Cell = Tuple[int, int]


class Viewport:
    """
    Presentation-time mapping between pixels and cells of one TileMap.

    ==========================================================================
    USAGE EXAMPLE
    ==========================================================================

    ```python
    viewport = Viewport(tile_map, (1920, 1080), (15, 15))

    # In input handling:
    viewport.pan((dx, dy))
    cell = viewport.world_to_cell(mouse_pos)
    if cell is not None:
        tile_map.set_tile(cell, 0, tile_id)
        viewport.set_tile(cell, 0, tile_id)   # keep the cache in sync

    # On zoom:
    viewport.recompute(tile_map, screen_size, viewport.zoomed(-1))
    ```

    The viewport never writes to the TileMap. Single-cell edits are
    mirrored with set_tile(); anything that changes the map size or the
    visible tile count needs a full recompute().

    ==========================================================================
    """

    def __init__(self, tile_map: TileMap, screen_size: Tuple[int, int],
                 desired_visible_tile_count: Tuple[int, int]):
        """
        Create the viewport and compute its first tiling.

        Parameters:
        -----------
        tile_map : TileMap
            Map to present
        screen_size : (int, int)
            Drawable area in pixels
        desired_visible_tile_count : (int, int)
            How many cells should fit on screen along each axis

        Raises InvalidViewportSizeError when the tiling would be degenerate.
        """
        screen_width, screen_height = screen_size

        # Center of the unpanned view, fixed for the viewport's lifetime
        self.origin_center = (screen_width / 2, screen_height / 2)
        self.center = self.origin_center

        self.tile_pixel_size = 0.0
        self.map_size = MapSize(0, 0)
        self.screen_size = (0, 0)
        self.desired_visible_tile_count = (0, 0)

        # Bumped on every recompute, lets renderers drop their caches
        self.revision = 0

        self._tiles = np.zeros((1, 0, 0), dtype=np.uint32)
        self._dirty: Set[Cell] = set()

        self.recompute(tile_map, screen_size, desired_visible_tile_count)

    # =========================================================================
    # TILING
    # =========================================================================

    def recompute(self, tile_map: TileMap, screen_size: Tuple[int, int],
                  desired_visible_tile_count: Tuple[int, int]):
        """
        Derive the tile size and refresh the cache from tile_map.

        Must be called whenever the map size, the screen size or the
        desired visible tile count changes. The pan is kept.

        Raises:
        -------
        InvalidViewportSizeError
            A desired count component is zero or negative, or the screen is
            too small to give a cell at least one pixel.
        """
        screen_width, screen_height = (int(v) for v in screen_size)
        desired_width, desired_height = (int(v) for v in desired_visible_tile_count)

        if desired_width <= 0 or desired_height <= 0:
            raise InvalidViewportSizeError(
                f"visible tile count must be positive, got "
                f"{desired_width}x{desired_height}")

        # Fit policy: the smaller candidate keeps both axes on screen
        tile_size = min(screen_width // desired_width,
                        screen_height // desired_height)
        if tile_size <= 0:
            raise InvalidViewportSizeError(
                f"screen {screen_width}x{screen_height} is too small for "
                f"{desired_width}x{desired_height} visible tiles")

        self.tile_pixel_size = float(tile_size)
        self.screen_size = (screen_width, screen_height)
        self.desired_visible_tile_count = (desired_width, desired_height)
        self.map_size = tile_map.size()

        self._tiles = np.array(tile_map.layers())
        self._dirty.clear()
        self.revision += 1

    def zoomed(self, step: int) -> Tuple[int, int]:
        """
        Visible tile count after a zoom step, for feeding into recompute().

        Negative steps show fewer cells (zoom in), positive steps more.
        The count never drops below 1 on either axis.
        """
        width, height = self.desired_visible_tile_count
        return max(1, width + step), max(1, height + step)

    # =========================================================================
    # PANNING
    # =========================================================================

    def pan(self, delta: Tuple[float, float]):
        """Move the view center by delta world pixels."""
        dx, dy = delta
        self.center = (self.center[0] + dx, self.center[1] + dy)

    @property
    def pan_offset(self) -> Tuple[float, float]:
        """Total pan since creation (current_center - origin_center)."""
        return (self.center[0] - self.origin_center[0],
                self.center[1] - self.origin_center[1])

    def view_offset(self) -> Tuple[float, float]:
        """Net displacement of the drawn map: origin_center - current_center."""
        return (self.origin_center[0] - self.center[0],
                self.origin_center[1] - self.center[1])

    # =========================================================================
    # COORDINATE CONVERSION
    # =========================================================================

    def world_to_cell(self, world_position: Tuple[float, float]) -> Optional[Cell]:
        """
        Map a pointer position to the cell under it.

        Parameters:
        -----------
        world_position : (float, float)
            Position in unpanned view coordinates (window pixels)

        Returns:
        --------
        (int, int) or None : cell coordinates, None past the right or
                             bottom edge of the map

        Negative candidates are saturated to 0 rather than rejected:
        with tile size 216 and no pan, (-420, 210) maps to (0, 0).
        """
        offset_x, offset_y = self.view_offset()
        candidate_x = (world_position[0] - offset_x) / self.tile_pixel_size
        candidate_y = (world_position[1] - offset_y) / self.tile_pixel_size

        # int() truncates toward zero
        cell_x = int(max(candidate_x, 0.0))
        cell_y = int(max(candidate_y, 0.0))

        if cell_x >= self.map_size.width or cell_y >= self.map_size.height:
            return None
        return cell_x, cell_y

    def cell_to_world(self, cell: Cell) -> Tuple[float, float]:
        """Top-left pixel where cell is drawn, pan included."""
        offset_x, offset_y = self.view_offset()
        return (cell[0] * self.tile_pixel_size + offset_x,
                cell[1] * self.tile_pixel_size + offset_y)

    def visible_cells(self) -> Tuple[int, int, int, int]:
        """
        Range of cells at least partly on screen.

        Returns:
        --------
        tuple : (start_x, start_y, end_x, end_y), ends exclusive and
                clipped to the map. Empty when the map is panned away.
        """
        offset_x, offset_y = self.view_offset()
        size = self.tile_pixel_size
        screen_width, screen_height = self.screen_size

        start_x = max(0, int(np.floor(-offset_x / size)))
        start_y = max(0, int(np.floor(-offset_y / size)))
        end_x = min(self.map_size.width,
                    int(np.floor((screen_width - offset_x) / size)) + 1)
        end_y = min(self.map_size.height,
                    int(np.floor((screen_height - offset_y) / size)) + 1)

        return start_x, start_y, max(start_x, end_x), max(start_y, end_y)

    # =========================================================================
    # PRESENTATION CACHE
    # =========================================================================

    def set_tile(self, position: Cell, layer: int, tile_id: int):
        """
        Update one cached cell and mark it for redraw.

        Does NOT touch the TileMap; call TileMap.set_tile() as well.
        Raises the same errors as TileMap.set_tile().
        """
        x, y = position
        if x < 0 or y < 0 or x >= self.map_size.width or y >= self.map_size.height:
            raise InvalidPositionError(position, self.map_size)
        if not 0 <= layer < self._tiles.shape[0]:
            raise InvalidLayerError(layer, self._tiles.shape[0])
        if not 0 <= tile_id <= U32_MAX:
            raise ValueError(f"tile id {tile_id} out of range")

        self._tiles[layer, y, x] = tile_id
        self._dirty.add((x, y))

    def cached_tile(self, position: Cell, layer: int) -> Optional[int]:
        x, y = position
        if x < 0 or y < 0 or x >= self.map_size.width or y >= self.map_size.height:
            return None
        if not 0 <= layer < self._tiles.shape[0]:
            return None
        return int(self._tiles[layer, y, x])

    def cached_stack(self, position: Cell) -> List[int]:
        """
        Tile ids of every layer at position, bottom layer first.

        Empty list when position is off the map.
        """
        x, y = position
        if x < 0 or y < 0 or x >= self.map_size.width or y >= self.map_size.height:
            return []
        return [int(tile_id) for tile_id in self._tiles[:, y, x]]

    def take_dirty(self) -> Set[Cell]:
        """Cells edited since the last call (or since recompute)."""
        dirty = self._dirty
        self._dirty = set()
        return dirty
