"""
pygame renderer for a Viewport

Draws the viewport's cached tiles, visible cells only, layer 0 first.
Textures come in as an explicit id -> PIL image table.

Each on-screen cell is composited once (all its layers into one surface)
and reused until the viewport reports the cell dirty or recomputes.
"""

from typing import Dict, Optional, Tuple

import pygame
from PIL import Image

from .map.tilemap import EMPTY_TILE_ID
from .viewport import Viewport

# Colors
BLACK = (0, 0, 0)
RED = (255, 0, 0)
GRID_COLOR = (64, 64, 64)


def pil_to_surface(image: Image.Image) -> pygame.Surface:
    """Convert a PIL image to an RGBA pygame surface."""
    image = image.convert('RGBA')
    return pygame.image.frombytes(image.tobytes(), image.size, 'RGBA')


class TileMapRenderer:
    """Handles drawing the cells of a viewport onto a pygame surface"""

    def __init__(self, viewport: Viewport, textures: Dict[int, Image.Image]):
        self.viewport = viewport
        self.source_surfaces = {tile_id: pil_to_surface(image)
                                for tile_id, image in textures.items()}
        self.show_grid = False

        self.scaled_cache: Dict[int, pygame.Surface] = {}
        self.cell_cache: Dict[Tuple[int, int], pygame.Surface] = {}
        self._revision = None

    def _sync(self):
        """Drop cached surfaces the viewport has invalidated."""
        if self._revision != self.viewport.revision:
            # New tile size or new map, everything goes
            self.scaled_cache.clear()
            self.cell_cache.clear()
            self._revision = self.viewport.revision
            self.viewport.take_dirty()
            return

        for cell in self.viewport.take_dirty():
            self.cell_cache.pop(cell, None)

    def get_tile_surface(self, tile_id: int) -> Optional[pygame.Surface]:
        """Texture for tile_id at the current tile size, None if unknown"""
        if tile_id in self.scaled_cache:
            return self.scaled_cache[tile_id]

        source = self.source_surfaces.get(tile_id)
        if source is None:
            return None

        size = int(self.viewport.tile_pixel_size)
        scaled = pygame.transform.scale(source, (size, size))
        self.scaled_cache[tile_id] = scaled
        return scaled

    def _compose_cell(self, cell: Tuple[int, int]) -> pygame.Surface:
        size = int(self.viewport.tile_pixel_size)
        surface = pygame.Surface((size, size), pygame.SRCALPHA)

        for layer, tile_id in enumerate(self.viewport.cached_stack(cell)):
            # Upper layers are transparent where empty
            if layer > 0 and tile_id == EMPTY_TILE_ID:
                continue

            tile_surface = self.get_tile_surface(tile_id)
            if tile_surface is not None:
                surface.blit(tile_surface, (0, 0))
            else:
                # Unknown id: red cell with a black outline
                surface.fill(RED)
                pygame.draw.rect(surface, BLACK, surface.get_rect(), 1)

        return surface

    def draw(self, target: pygame.Surface) -> int:
        """
        Draw every visible cell onto target.

        Returns the number of cells drawn.
        """
        self._sync()

        start_x, start_y, end_x, end_y = self.viewport.visible_cells()
        drawn = 0
        for y in range(start_y, end_y):
            for x in range(start_x, end_x):
                cell = (x, y)
                surface = self.cell_cache.get(cell)
                if surface is None:
                    surface = self._compose_cell(cell)
                    self.cell_cache[cell] = surface

                px, py = self.viewport.cell_to_world(cell)
                target.blit(surface, (round(px), round(py)))
                drawn += 1

        if self.show_grid:
            self.draw_grid(target)

        return drawn

    def draw_grid(self, target: pygame.Surface):
        """Draw cell borders over the visible part of the map"""
        start_x, start_y, end_x, end_y = self.viewport.visible_cells()
        if start_x >= end_x or start_y >= end_y:
            return

        left, top = self.viewport.cell_to_world((start_x, start_y))
        right, bottom = self.viewport.cell_to_world((end_x, end_y))

        for x in range(start_x, end_x + 1):
            px = round(self.viewport.cell_to_world((x, start_y))[0])
            pygame.draw.line(target, GRID_COLOR, (px, round(top)), (px, round(bottom)))
        for y in range(start_y, end_y + 1):
            py = round(self.viewport.cell_to_world((start_x, y))[1])
            pygame.draw.line(target, GRID_COLOR, (round(left), py), (round(right), py))
