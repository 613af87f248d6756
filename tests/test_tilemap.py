"""
Tests for TileMap: construction, bounds-checked access, persistence.
"""
import io

import numpy as np
import pytest

from retroland.errors import (
    InvalidLayerError, InvalidPositionError, MapReadError, MapWriteError
)
from retroland.map.tilemap import EMPTY_TILE_ID, GROUND_TILE_ID, MapSize, TileMap


# ══════════════════════════════════════════════════════════════════════════
# Construction
# ══════════════════════════════════════════════════════════════════════════

class TestConstruction:

    def test_new_seeds_layers(self):
        tile_map = TileMap((20, 10), 2)
        layers = tile_map.layers()

        assert layers.shape == (2, 10, 20)
        assert tile_map.layer_count() == 2
        assert layers[0].size == 20 * 10
        assert layers[1].size == 20 * 10
        # Ground layer is grass, the rest is empty
        assert np.all(layers[0] == GROUND_TILE_ID)
        assert np.all(layers[1] == EMPTY_TILE_ID)

    def test_size(self):
        size = TileMap((20, 10), 2).size()
        assert size == MapSize(20, 10)
        assert size.width == 20
        assert size.height == 10

    def test_single_layer(self):
        tile_map = TileMap((3, 3), 1)
        assert tile_map.layer_count() == 1
        assert tile_map.get_tile((2, 2), 0) == GROUND_TILE_ID

    def test_zero_area_map_is_valid(self):
        tile_map = TileMap((0, 0), 3)
        assert tile_map.size() == (0, 0)
        assert tile_map.layer_count() == 3
        assert tile_map.get_tile((0, 0), 0) is None

    def test_zero_layers_rejected(self):
        with pytest.raises(ValueError):
            TileMap((4, 4), 0)

    def test_negative_size_rejected(self):
        with pytest.raises(ValueError):
            TileMap((-1, 4), 1)

    def test_layers_view_is_read_only(self, small_map):
        with pytest.raises(ValueError):
            small_map.layers()[0, 0, 0] = 9


# ══════════════════════════════════════════════════════════════════════════
# Reading and writing cells
# ══════════════════════════════════════════════════════════════════════════

class TestTileAccess:

    def test_get_tile_everywhere(self):
        tile_map = TileMap((20, 10), 2)
        for layer in range(2):
            expected = GROUND_TILE_ID if layer == 0 else EMPTY_TILE_ID
            for y in range(10):
                for x in range(20):
                    assert tile_map.get_tile((x, y), layer) == expected

    def test_get_tile_out_of_bounds(self):
        tile_map = TileMap((20, 10), 2)
        assert tile_map.get_tile((30, 5), 0) is None    # x too large
        assert tile_map.get_tile((5, 10), 0) is None    # y too large
        assert tile_map.get_tile((0, 0), 22) is None    # layer doesn't exist
        assert tile_map.get_tile((-1, 0), 0) is None    # negative never wraps

    def test_set_tile_lands_at_row_major_index(self, small_map):
        small_map.set_tile((0, 0), 0, 12)
        small_map.set_tile((1, 1), 1, 12)
        small_map.set_tile((5, 4), 0, 12)

        flat0 = small_map.layers()[0].reshape(-1)
        flat1 = small_map.layers()[1].reshape(-1)
        assert flat0[0] == 12
        assert flat1[7] == 12
        assert flat0[29] == 12
        # Neighbours untouched
        assert flat0[1] == GROUND_TILE_ID
        assert flat1[0] == EMPTY_TILE_ID

    def test_set_then_get(self, small_map):
        for layer in range(2):
            for y in range(5):
                for x in range(6):
                    value = 1000 * layer + 10 * y + x
                    small_map.set_tile((x, y), layer, value)
                    assert small_map.get_tile((x, y), layer) == value

    def test_set_tile_invalid_layer(self, small_map):
        with pytest.raises(InvalidLayerError):
            small_map.set_tile((0, 0), 10, 12)

    def test_set_tile_invalid_position(self, small_map):
        with pytest.raises(InvalidPositionError):
            small_map.set_tile((70, 0), 1, 12)
        with pytest.raises(InvalidPositionError):
            small_map.set_tile((0, 5), 1, 12)

    def test_position_checked_before_layer(self, small_map):
        with pytest.raises(InvalidPositionError):
            small_map.set_tile((70, 70), 99, 12)

    def test_failed_set_leaves_map_unchanged(self, small_map):
        before = np.array(small_map.layers())
        with pytest.raises(InvalidLayerError):
            small_map.set_tile((1, 1), 2, 12)
        assert np.array_equal(small_map.layers(), before)

    def test_full_u32_range_accepted(self, small_map):
        small_map.set_tile((2, 2), 0, 2 ** 32 - 1)
        assert small_map.get_tile((2, 2), 0) == 2 ** 32 - 1

    def test_tile_id_beyond_u32_rejected(self, small_map):
        with pytest.raises(ValueError):
            small_map.set_tile((2, 2), 0, 2 ** 32)
        with pytest.raises(ValueError):
            small_map.set_tile((2, 2), 0, -1)

    def test_fill(self, small_map):
        small_map.fill(1, 50)
        assert np.all(small_map.layers()[1] == 50)
        assert np.all(small_map.layers()[0] == GROUND_TILE_ID)
        with pytest.raises(InvalidLayerError):
            small_map.fill(2, 50)


class TestComputeIndex:

    def test_known_positions(self, small_map):
        assert small_map._compute_index((0, 0)) == 0
        assert small_map._compute_index((1, 1)) == 7
        assert small_map._compute_index((5, 4)) == 29
        assert small_map._compute_index((70, 0)) is None
        assert small_map._compute_index((0, 5)) is None

    def test_bijection(self, small_map):
        indices = [small_map._compute_index((x, y))
                   for y in range(5) for x in range(6)]
        assert indices == list(range(30))


# ══════════════════════════════════════════════════════════════════════════
# Persistence
# ══════════════════════════════════════════════════════════════════════════

class TestPersistence:

    def test_bytes_round_trip(self, painted_map):
        data = painted_map.to_bytes()
        decoded = TileMap.from_bytes(data)

        assert decoded == painted_map
        assert decoded.size() == (4, 3)
        assert decoded.layer_count() == 2
        assert decoded.get_tile((3, 2), 0) == 4_000_000_000
        # Re-encoding gives the very same bytes
        assert decoded.to_bytes() == data

    def test_decoded_map_is_editable(self, painted_map):
        decoded = TileMap.from_bytes(painted_map.to_bytes())
        decoded.set_tile((2, 2), 1, 60)
        assert decoded.get_tile((2, 2), 1) == 60
        assert painted_map.get_tile((2, 2), 1) == EMPTY_TILE_ID

    def test_write_then_read_stream(self, painted_map):
        buffer = io.BytesIO()
        painted_map.write(buffer)
        buffer.write(b"next message")
        buffer.seek(0)

        assert TileMap.read(buffer) == painted_map
        # Nothing past the map was consumed
        assert buffer.read() == b"next message"

    def test_write_uses_single_call(self, painted_map):
        class Sink:
            def __init__(self):
                self.calls = []

            def write(self, data):
                self.calls.append(data)

        sink = Sink()
        painted_map.write(sink)
        assert sink.calls == [painted_map.to_bytes()]

    def test_write_failure(self, painted_map):
        class BrokenSink:
            def write(self, data):
                raise OSError("disk full")

        with pytest.raises(MapWriteError):
            painted_map.write(BrokenSink())

    def test_write_to_closed_file(self, painted_map):
        buffer = io.BytesIO()
        buffer.close()
        with pytest.raises(MapWriteError):
            painted_map.write(buffer)

    def test_save_and_load(self, painted_map, tmp_path):
        path = tmp_path / "world.map"
        painted_map.save(path)

        assert path.read_bytes() == painted_map.to_bytes()
        assert TileMap.load(path) == painted_map
        # No temporary file left behind
        assert sorted(p.name for p in tmp_path.iterdir()) == ["world.map"]

    def test_save_overwrites(self, painted_map, tmp_path):
        path = tmp_path / "world.map"
        TileMap((2, 2), 1).save(path)
        painted_map.save(path)
        assert TileMap.load(path) == painted_map

    def test_save_into_missing_directory(self, painted_map, tmp_path):
        with pytest.raises(MapWriteError):
            painted_map.save(tmp_path / "missing" / "world.map")

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            TileMap.load(tmp_path / "nope.map")

    def test_load_garbage(self, tmp_path):
        path = tmp_path / "garbage.map"
        path.write_bytes(b"\x01\x02\x03")
        with pytest.raises(MapReadError):
            TileMap.load(path)

    def test_zero_area_round_trip(self):
        tile_map = TileMap((0, 7), 2)
        assert TileMap.from_bytes(tile_map.to_bytes()) == tile_map


class TestEquality:

    def test_equal_maps(self):
        assert TileMap((3, 2), 2) == TileMap((3, 2), 2)

    def test_different_tiles(self):
        a = TileMap((3, 2), 2)
        b = TileMap((3, 2), 2)
        b.set_tile((1, 1), 1, 5)
        assert a != b

    def test_different_shape(self):
        assert TileMap((3, 2), 1) != TileMap((2, 3), 1)
        assert TileMap((3, 2), 1) != TileMap((3, 2), 2)

    def test_not_a_map(self):
        assert TileMap((1, 1), 1) != "map"
