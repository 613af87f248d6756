"""
Texture table: tile id -> image

Tile graphics come from 16x16 sprite sheets. A SheetRegion names a sheet
and the grid cells to cut from it; consecutive cells get consecutive ids
starting at first_id.

    grass.png (80x16)
    +----+----+----+----+----+
    | 0  | 1  | 2  | 3  | 4  |   SheetRegion("grass.png", 0, row(0, 5))
    +----+----+----+----+----+

The table is a plain dict handed to whoever draws tiles (renderer,
inventory); nothing here is global.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from PIL import Image

# Edge length of a tile in the sprite sheets
SHEET_TILE_SIZE = 16

# Placeholder color for tiles whose sheet could not be read
PLACEHOLDER_COLOR = (128, 128, 128, 255)


def row(y: int, count: int, start: int = 0) -> List[Tuple[int, int]]:
    """Cells (x, y) of one sheet row, `count` cells from column `start`."""
    return [(x, y) for x in range(start, start + count)]


def column(x: int, count: int, start: int = 0) -> List[Tuple[int, int]]:
    """Cells (x, y) of one sheet column, `count` cells from row `start`."""
    return [(x, y) for y in range(start, start + count)]


@dataclass
class SheetRegion:
    """A run of tiles cut from one sprite sheet."""
    filename: str                     # Sheet file, relative to assets dir
    first_id: int                     # Id of the first cell
    cells: Sequence[Tuple[int, int]]  # (column, row) of each cell, in id order

    def ids(self) -> range:
        return range(self.first_id, self.first_id + len(self.cells))


# Ground tiles used by the editor palette (ids 0-4)
GROUND_REGIONS = [
    SheetRegion("grass.png", 0, row(0, 5)),
]

# Building tiles, starting at id 50
BUILDING_REGIONS = [
    SheetRegion("houses.png", 50, row(2, 3) + row(3, 3)),
    SheetRegion("markets.png", 56, row(2, 3)),
    SheetRegion("resources.png", 59, column(0, 4)),
    SheetRegion("towers.png", 63, column(0, 2, start=1) + column(1, 2, start=1)),
    SheetRegion("wheatfields.png", 67, row(0, 4)),
    SheetRegion("trees.png", 71, row(0, 3, start=1)),
]

DEFAULT_REGIONS = GROUND_REGIONS + BUILDING_REGIONS


def _placeholder(tile_size: int) -> Image.Image:
    return Image.new('RGBA', (tile_size, tile_size), PLACEHOLDER_COLOR)


def load_textures(assets_dir: Union[str, Path],
                  regions: Sequence[SheetRegion] = DEFAULT_REGIONS,
                  tile_size: int = SHEET_TILE_SIZE) -> Dict[int, Image.Image]:
    """
    Cut every region out of its sprite sheet.

    Parameters:
    -----------
    assets_dir : str or Path
        Directory holding the sheet files
    regions : sequence of SheetRegion
        What to cut, and which ids to give it
    tile_size : int
        Cell edge length in the sheets

    Returns:
    --------
    dict : tile id -> RGBA PIL image

    A sheet that is missing or unreadable doesn't abort loading: its ids
    get flat gray placeholders and a warning is printed.
    """
    assets_dir = Path(assets_dir)
    textures: Dict[int, Image.Image] = {}
    sheets: Dict[str, Optional[Image.Image]] = {}

    for region in regions:
        if region.filename not in sheets:
            sheet_path = assets_dir / region.filename
            try:
                with Image.open(sheet_path) as sheet:
                    sheets[region.filename] = sheet.convert('RGBA')
                print(f"Loaded sheet: {sheet_path}")
            except OSError as e:
                # PIL raises OSError subclasses for missing and corrupt files
                print(f"Warning: Could not load sheet {sheet_path}: {e}")
                sheets[region.filename] = None

        sheet = sheets[region.filename]
        for tile_id, (cx, cy) in zip(region.ids(), region.cells):
            box = (cx * tile_size, cy * tile_size,
                   (cx + 1) * tile_size, (cy + 1) * tile_size)
            if sheet is None or box[2] > sheet.width or box[3] > sheet.height:
                textures[tile_id] = _placeholder(tile_size)
            else:
                textures[tile_id] = sheet.crop(box)

    return textures
