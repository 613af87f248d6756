"""
Inventory overlay: tile picker for the editor

Lays every known tile out in a grid over a translucent panel:

    +-------------------------------------------+  <- screen
    |  50px                                     |
    |   +-----------------------------------+   |
    |   | 25  +-----+ 25 +-----+ 25 +-----+ |   |
    |   |     |  0  |    |  1  |    |  2  | |   |  items are 100px,
    |   |     +-----+    +-----+    +-----+ |   |  rows wrap when the
    |   |     +-----+                       |   |  next item would cross
    |   |     |  3  |  ...                  |   |  the panel's right border
    |   +-----------------------------------+   |
    +-------------------------------------------+
"""

from typing import Dict, List, Optional, Tuple

import pygame
from PIL import Image

from .renderer import pil_to_surface

PANEL_BORDER = 50
ITEM_BORDER = 25
ITEM_SIZE = 100
PANEL_COLOR = (44, 62, 80, 240)


class Inventory:
    """Grid of selectable tiles, one per texture, in id order"""

    def __init__(self, screen_size: Tuple[int, int],
                 textures: Dict[int, Image.Image]):
        screen_width, screen_height = screen_size
        self.background = pygame.Rect(
            PANEL_BORDER, PANEL_BORDER,
            max(0, screen_width - PANEL_BORDER * 2),
            max(0, screen_height - PANEL_BORDER * 2))

        # (rect, tile_id) in layout order
        self.items: List[Tuple[pygame.Rect, int]] = []
        self._textures = textures
        self._surfaces: Dict[int, pygame.Surface] = {}

        column = 0
        line = 0
        for tile_id in sorted(textures):
            # Start a new line if this item would overlap the border
            right_edge = column * (ITEM_SIZE + ITEM_BORDER) + ITEM_BORDER + ITEM_SIZE
            if column > 0 and right_edge >= self.background.width - ITEM_BORDER:
                column = 0
                line += 1

            rect = pygame.Rect(
                self.background.x + column * (ITEM_SIZE + ITEM_BORDER) + ITEM_BORDER,
                self.background.y + line * (ITEM_SIZE + ITEM_BORDER) + ITEM_BORDER,
                ITEM_SIZE, ITEM_SIZE)
            self.items.append((rect, tile_id))
            column += 1

    def item_at(self, position: Tuple[float, float]) -> Optional[int]:
        """Tile id of the item under position, or None."""
        point = (int(position[0]), int(position[1]))
        for rect, tile_id in self.items:
            if rect.collidepoint(point):
                return tile_id
        return None

    def draw(self, target: pygame.Surface):
        panel = pygame.Surface(self.background.size, pygame.SRCALPHA)
        panel.fill(PANEL_COLOR)
        target.blit(panel, self.background.topleft)

        for rect, tile_id in self.items:
            surface = self._surfaces.get(tile_id)
            if surface is None:
                surface = pygame.transform.scale(
                    pil_to_surface(self._textures[tile_id]), rect.size)
                self._surfaces[tile_id] = surface
            target.blit(surface, rect.topleft)
