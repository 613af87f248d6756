"""
Retroland map viewer and editor (pygame)

Viewer controls:
- WASD / Arrows:  Pan view
- Right drag:     Pan view
- + / -:          Zoom in / out (fewer / more visible tiles)
- G:              Toggle grid
- ESC:            Quit

Editor, in addition:
- Left click:     Paint current tile on the active layer
- E:              Toggle inventory (click an item to pick it)
- PgUp / PgDn:    Change active layer
- C:              Clear active layer
- Ctrl+S:         Save
"""

from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import pygame
from PIL import Image

from .errors import InvalidViewportSizeError, RetrolandError
from .inventory import Inventory
from .map.tilemap import EMPTY_TILE_ID, GROUND_TILE_ID, TileMap
from .renderer import TileMapRenderer
from .viewport import Viewport

SCREEN_SIZE = (1280, 720)
VISIBLE_TILES = (15, 15)

# Keyboard pan speed, world pixels per second
PAN_SPEED = 4000.0

# Colors
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


class MapViewer:
    """Read-only map window: pan, zoom, nothing else"""

    caption = "Retroland Client"

    def __init__(self, tile_map: TileMap, textures: Dict[int, Image.Image],
                 screen: Optional[pygame.Surface] = None):
        """
        Parameters:
        -----------
        tile_map : TileMap
            Map to show
        textures : dict
            Tile id -> image table, shared with the renderer
        screen : pygame.Surface, optional
            Target surface; a window is opened when omitted
        """
        if screen is None:
            pygame.init()
            screen = pygame.display.set_mode(SCREEN_SIZE)
            pygame.display.set_caption(self.caption)
        self.screen = screen

        self.tile_map = tile_map
        self.textures = textures
        self.viewport = Viewport(tile_map, self.screen.get_size(), VISIBLE_TILES)
        self.renderer = TileMapRenderer(self.viewport, textures)

        # Right-button drag state
        self.dragging = False

        self.clock = pygame.time.Clock()
        self.running = True

    # =========================================================================
    # VIEW CONTROL
    # =========================================================================

    def zoom(self, step: int):
        """
        Change the visible tile count by step and retile.

        A zoom the screen can't fit is reported and ignored, the previous
        tiling stays.
        """
        try:
            self.viewport.recompute(self.tile_map, self.screen.get_size(),
                                    self.viewport.zoomed(step))
        except InvalidViewportSizeError as e:
            print(f"Warning: {e}")

    def pan_from_keys(self, keys, dt: float) -> Tuple[float, float]:
        """Pan delta for the held direction keys over dt seconds."""
        move = PAN_SPEED * dt
        dx = dy = 0.0
        if keys[pygame.K_LEFT] or keys[pygame.K_a]:
            dx = -move
        if keys[pygame.K_RIGHT] or keys[pygame.K_d]:
            dx = move
        if keys[pygame.K_UP] or keys[pygame.K_w]:
            dy = -move
        if keys[pygame.K_DOWN] or keys[pygame.K_s]:
            dy = move
        return dx, dy

    # =========================================================================
    # EVENTS
    # =========================================================================

    def handle_event(self, event) -> bool:
        """Handle one event, returns True if it was consumed"""
        if event.type == pygame.QUIT:
            self.running = False

        elif event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                self.running = False
            elif event.key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
                self.zoom(-1)
            elif event.key in (pygame.K_MINUS, pygame.K_KP_MINUS):
                self.zoom(1)
            elif event.key == pygame.K_g:
                self.renderer.show_grid = not self.renderer.show_grid
            else:
                return False

        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 3:
            self.dragging = True
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 3:
            self.dragging = False
        elif event.type == pygame.MOUSEMOTION and self.dragging:
            # The map follows the pointer
            self.viewport.pan((-event.rel[0], -event.rel[1]))
        else:
            return False

        return True

    def handle_events(self, dt: float):
        for event in pygame.event.get():
            self.handle_event(event)

        # Held keys (Ctrl is reserved for shortcuts)
        if not pygame.key.get_mods() & pygame.KMOD_CTRL:
            dx, dy = self.pan_from_keys(pygame.key.get_pressed(), dt)
            if dx or dy:
                self.viewport.pan((dx, dy))

    # =========================================================================
    # DRAWING
    # =========================================================================

    def draw(self):
        self.screen.fill(BLACK)
        self.renderer.draw(self.screen)
        pygame.display.flip()

    def run(self):
        """Main loop"""
        while self.running:
            dt = self.clock.tick(60) / 1000.0
            self.handle_events(dt)
            self.draw()

        pygame.quit()


class MapEditor(MapViewer):
    """Map window that paints tiles and saves the result"""

    caption = "Retroland Editor"

    def __init__(self, tile_map: TileMap, textures: Dict[int, Image.Image],
                 save_path: Optional[Union[str, Path]] = None,
                 screen: Optional[pygame.Surface] = None):
        super().__init__(tile_map, textures, screen)
        self.save_path = Path(save_path) if save_path else None

        self.inventory = Inventory(self.screen.get_size(), textures)
        self.show_inventory = False

        self.current_tile = GROUND_TILE_ID
        self.active_layer = 0
        self.font = None

    # =========================================================================
    # EDITING
    # =========================================================================

    def paint_at(self, position: Tuple[float, float]) -> bool:
        """
        Paint the current tile in the cell under position.

        Returns True if a cell was changed.
        """
        cell = self.viewport.world_to_cell(position)
        if cell is None:
            return False

        self.tile_map.set_tile(cell, self.active_layer, self.current_tile)
        # Targeted cache update, no full retile
        self.viewport.set_tile(cell, self.active_layer, self.current_tile)
        return True

    def click(self, position: Tuple[float, float]):
        """Left click: pick from the inventory when it's open, else paint"""
        if self.show_inventory:
            tile_id = self.inventory.item_at(position)
            if tile_id is not None:
                self.current_tile = tile_id
                # Hide the inventory once an item is picked
                self.show_inventory = False
                print(f"Selected tile {tile_id}")
        else:
            self.paint_at(position)

    def change_layer(self, step: int):
        layer = max(0, min(self.tile_map.layer_count() - 1, self.active_layer + step))
        if layer != self.active_layer:
            self.active_layer = layer
            print(f"Active layer: {self.active_layer}")

    def clear_layer(self):
        """Reset the active layer to its seed value"""
        tile_id = GROUND_TILE_ID if self.active_layer == 0 else EMPTY_TILE_ID
        self.tile_map.fill(self.active_layer, tile_id)
        self.viewport.recompute(self.tile_map, self.screen.get_size(),
                                self.viewport.desired_visible_tile_count)

    def save(self) -> bool:
        """
        Save to save_path.

        A failed save is reported and the session keeps going.
        """
        if self.save_path is None:
            print("Warning: no save file given, map not saved")
            return False
        try:
            self.tile_map.save(self.save_path)
        except RetrolandError as e:
            print(f"Error: {e}")
            return False
        print(f"Saved map to {self.save_path}")
        return True

    # =========================================================================
    # EVENTS
    # =========================================================================

    def handle_event(self, event) -> bool:
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_s and event.mod & pygame.KMOD_CTRL:
                self.save()
                return True
            if event.key == pygame.K_e:
                self.show_inventory = not self.show_inventory
                return True
            if event.key == pygame.K_PAGEUP:
                self.change_layer(1)
                return True
            if event.key == pygame.K_PAGEDOWN:
                self.change_layer(-1)
                return True
            if event.key == pygame.K_c:
                self.clear_layer()
                return True

        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self.click(event.pos)
            return True

        elif event.type == pygame.MOUSEMOTION and event.buttons[0]:
            if not self.show_inventory:
                self.paint_at(event.pos)
            return True

        return super().handle_event(event)

    # =========================================================================
    # DRAWING
    # =========================================================================

    def draw(self):
        self.screen.fill(BLACK)
        self.renderer.draw(self.screen)

        if self.font is None:
            self.font = pygame.font.Font(None, 24)
        status = (f"Tile: {self.current_tile} | Layer: {self.active_layer}"
                  f"/{self.tile_map.layer_count() - 1}")
        self.screen.blit(self.font.render(status, True, WHITE), (10, 10))

        if self.show_inventory:
            self.inventory.draw(self.screen)

        pygame.display.flip()
