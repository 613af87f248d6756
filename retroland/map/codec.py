"""
Binary encoding of tile maps (save files and network payloads)

=============================================================================
LAYOUT
=============================================================================

Every integer is little-endian and fixed width. Sequences carry an explicit
u64 length, the map metadata comes last:

    +------------------+
    | u64 layer count  |  N
    +------------------+
    | u64 cell count   |  L = width * height      \
    | u32 x L          |  tile ids, row-major      |  repeated N times
    +------------------+                          /
    | u32 width        |
    | u32 height       |
    | u32 layer_count  |  must equal N
    +------------------+

The same bytes are used on disk and on the wire; the socket
carries no extra framing, a reader knows where the map ends from the
lengths alone.

Example, a 2x1 map with one layer of grass (id 2):

    01 00 00 00 00 00 00 00    N = 1
    02 00 00 00 00 00 00 00    L = 2
    02 00 00 00 02 00 00 00    tiles
    02 00 00 00 01 00 00 00    width = 2, height = 1
    01 00 00 00                layer_count = 1

=============================================================================
"""

import io
import struct
from typing import BinaryIO, Tuple

import numpy as np

from ..errors import MapReadError, MapWriteError

# Wire dtype of a tile id
TILE_DTYPE = np.dtype('<u4')

U32_MAX = 2 ** 32 - 1

_LENGTH = struct.Struct('<Q')
_TRAILER = struct.Struct('<III')

# Upper bound of a single read() while pulling a layer off a stream
_CHUNK_SIZE = 1 << 20


def encode_map(tiles: np.ndarray) -> bytes:
    """
    Encode a (layers, height, width) tile array.

    Raises MapWriteError if the array cannot be represented (wrong rank,
    dimensions beyond u32, ids beyond u32).
    """
    if tiles.ndim != 3:
        raise MapWriteError(f"expected a 3-D tile array, got {tiles.ndim}-D")

    layer_count, height, width = tiles.shape
    cells = width * height

    try:
        if tiles.size and (tiles.min() < 0 or tiles.max() > U32_MAX):
            raise MapWriteError("tile id out of u32 range")

        parts = [_LENGTH.pack(layer_count)]
        for layer in tiles:
            parts.append(_LENGTH.pack(cells))
            # C order of a (height, width) slice is row-major: x + y * width
            parts.append(np.ascontiguousarray(layer, dtype=TILE_DTYPE).tobytes())
        parts.append(_TRAILER.pack(width, height, layer_count))
    except struct.error as exc:
        raise MapWriteError(f"cannot encode map: {exc}") from exc

    return b''.join(parts)


def _read_exact(stream: BinaryIO, count: int) -> bytes:
    """Read exactly `count` bytes or raise MapReadError on a short stream."""
    chunks = []
    remaining = count
    while remaining > 0:
        try:
            chunk = stream.read(min(remaining, _CHUNK_SIZE))
        except OSError as exc:
            raise MapReadError(f"read failed: {exc}") from exc
        if not chunk:
            raise MapReadError(
                f"unexpected end of data ({count - remaining} of {count} bytes)")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b''.join(chunks)


def read_map(stream: BinaryIO) -> Tuple[np.ndarray, int, int]:
    """
    Decode one map from a binary stream.

    Consumes exactly the bytes of one encoded map and nothing after it.

    Returns:
    --------
    tuple : (tiles, width, height) with tiles a writable uint32 array of
            shape (layer_count, height, width)
    """
    (layer_count,) = _LENGTH.unpack(_read_exact(stream, _LENGTH.size))
    if layer_count > U32_MAX:
        raise MapReadError(f"layer count {layer_count} exceeds u32")

    layers = []
    cells = None
    for index in range(layer_count):
        (length,) = _LENGTH.unpack(_read_exact(stream, _LENGTH.size))
        if cells is None:
            cells = length
        elif length != cells:
            raise MapReadError(
                f"layer {index} holds {length} cells, expected {cells}")
        raw = _read_exact(stream, length * TILE_DTYPE.itemsize)
        layers.append(np.frombuffer(raw, dtype=TILE_DTYPE))

    width, height, declared_layers = _TRAILER.unpack(
        _read_exact(stream, _TRAILER.size))

    # -------------------------------------------------------------------------
    # CONSISTENCY CHECKS
    # -------------------------------------------------------------------------
    # The trailer must describe exactly what was read above
    if declared_layers == 0:
        raise MapReadError("map declares no layers")
    if declared_layers != layer_count:
        raise MapReadError(
            f"map declares {declared_layers} layers but holds {layer_count}")
    if width * height != cells:
        raise MapReadError(
            f"map declares {width}x{height} but layers hold {cells} cells")

    tiles = np.stack(layers).astype(np.uint32).reshape(layer_count, height, width)
    return tiles, width, height


def decode_map(data: bytes) -> Tuple[np.ndarray, int, int]:
    """Decode a whole buffer; trailing bytes are an error."""
    stream = io.BytesIO(data)
    result = read_map(stream)
    if stream.read(1):
        raise MapReadError(
            f"{len(data) - stream.tell() + 1} trailing bytes after map data")
    return result
