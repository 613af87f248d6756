"""
Shared fixtures for Retroland tests.

pygame runs headless: the dummy SDL drivers are selected before it is
imported anywhere.
"""
import os
import sys

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

# Ensure the package root is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest
from PIL import Image

from retroland.map.tilemap import TileMap


# ── Screen / viewport constants ─────────────────────────────────────────

FULL_HD = (1920, 1080)


@pytest.fixture
def small_map():
    """6x5 map with two layers"""
    return TileMap((6, 5), 2)


@pytest.fixture
def square_map():
    """5x5 single layer map"""
    return TileMap((5, 5), 1)


@pytest.fixture
def painted_map():
    """4x3 map, two layers, with a few non-default cells"""
    tile_map = TileMap((4, 3), 2)
    tile_map.set_tile((0, 0), 0, 7)
    tile_map.set_tile((3, 2), 0, 4_000_000_000)
    tile_map.set_tile((1, 1), 1, 50)
    return tile_map


@pytest.fixture
def pygame_init():
    """Initialised (headless) pygame"""
    import pygame
    pygame.init()
    yield pygame
    pygame.quit()


@pytest.fixture
def textures():
    """Solid color 16x16 tiles for ids 0-4 and 50"""
    colors = {
        0: (0, 0, 0, 255),
        1: (10, 10, 10, 255),
        2: (0, 200, 0, 255),
        3: (30, 30, 30, 255),
        4: (40, 40, 40, 255),
        50: (0, 0, 255, 255),
    }
    return {tile_id: Image.new('RGBA', (16, 16), color)
            for tile_id, color in colors.items()}


@pytest.fixture
def assets_dir(tmp_path):
    """Assets directory with a 5-tile grass sheet (tile i has red = i*10)"""
    sheet = Image.new('RGBA', (80, 16))
    for i in range(5):
        tile = Image.new('RGBA', (16, 16), (i * 10, 100, 0, 255))
        sheet.paste(tile, (i * 16, 0))
    sheet.save(tmp_path / "grass.png")
    return tmp_path
