#!/usr/bin/env python3

"""
Retroland - multiplayer tile map toy

Usage:
    python -m retroland server <save_file> [port]
    python -m retroland client [host[:port]]
    python -m retroland editor [save_file] [width] [height] [layers]

server  Serve the map in save_file to every client that connects
        (default port 4567).
client  Download the map from a server (default 127.0.0.1:4567) and
        show it.
editor  Edit save_file, creating a width x height map with the given
        number of layers when the file doesn't exist yet
        (default 30 x 20, 1 layer).

Tile graphics are read from ./assets.
"""

import sys
from pathlib import Path

from .errors import RetrolandError
from .map.tilemap import TileMap
from .net import DEFAULT_HOST, DEFAULT_PORT, fetch, serve

ASSETS_DIR = "assets"
DEFAULT_SERVER = f"127.0.0.1:{DEFAULT_PORT}"
DEFAULT_MAP_SIZE = (30, 20)
DEFAULT_LAYERS = 1


def run_server(args) -> int:
    if not args:
        print(__doc__)
        print("Error: missing required save file")
        return 1

    save_file = args[0]
    port = int(args[1]) if len(args) > 1 else DEFAULT_PORT

    print(f"serving map `{save_file}`")
    tile_map = TileMap.load(save_file)
    serve(tile_map, DEFAULT_HOST, port)
    return 0


def run_client(args) -> int:
    address = args[0] if args else DEFAULT_SERVER

    tile_map = fetch(address)
    width, height = tile_map.size()
    print(f"size x: {width}, y: {height}")

    # pygame is only needed once there is a window to open
    from .app import MapViewer
    from .textures import load_textures

    MapViewer(tile_map, load_textures(ASSETS_DIR)).run()
    return 0


def run_editor(args) -> int:
    save_file = args[0] if args else None
    width = int(args[1]) if len(args) > 1 else DEFAULT_MAP_SIZE[0]
    height = int(args[2]) if len(args) > 2 else DEFAULT_MAP_SIZE[1]
    layers = int(args[3]) if len(args) > 3 else DEFAULT_LAYERS

    if save_file and Path(save_file).exists():
        print(f"Loading map: {save_file}")
        tile_map = TileMap.load(save_file)
    else:
        tile_map = TileMap((width, height), layers)
    size = tile_map.size()
    print(f"Map size: {size.width}x{size.height}, {tile_map.layer_count()} layers")

    from .app import MapEditor
    from .textures import load_textures

    MapEditor(tile_map, load_textures(ASSETS_DIR), save_file).run()
    return 0


COMMANDS = {
    "server": run_server,
    "client": run_client,
    "editor": run_editor,
}


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    if not argv or argv[0] not in COMMANDS:
        print(__doc__)
        return 1

    try:
        return COMMANDS[argv[0]](argv[1:])
    except (RetrolandError, OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
