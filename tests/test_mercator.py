import pytest

from tilewalk.mercator import (
    AdjustedPosition,
    project,
    tile_id,
    total_pixels,
    unproject,
)
from tilewalk.position import Pixels, Position, Vec2, lat_lon, lon_lat
from tilewalk.tiles import TileId


CITADEL = lon_lat(21.00027, 52.26470)


def test_projecting_position_and_tile():
    zoom = 20
    assert tile_id(CITADEL, zoom, 256) == TileId(x=585455, y=345104, zoom=zoom)
    assert tile_id(CITADEL, zoom, 512) == TileId(x=292727, y=172552, zoom=zoom - 1)
    assert tile_id(CITADEL, zoom, 256).project(256.0) == Pixels(
        585455.0 * 256.0, 345104.0 * 256.0
    )

    calculated = project(CITADEL, float(zoom))
    expected = Pixels(585455.0 * 256.0 + 184.0, 345104.0 * 256.0 + 116.5)
    assert calculated.x == pytest.approx(expected.x, rel=0.5)
    assert calculated.y == pytest.approx(expected.y, rel=0.5)


def test_project_there_and_back():
    citadel = lat_lon(21.00027, 52.26470)
    zoom = 16.0
    calculated = unproject(project(citadel, zoom), zoom)
    assert calculated.x == pytest.approx(citadel.x, rel=1.0)
    assert calculated.y == pytest.approx(citadel.y, rel=1.0)


@pytest.mark.parametrize("zoom", [0.0, 5.5, 16.0, 20.0])
def test_round_trip_is_precise(zoom):
    calculated = unproject(project(CITADEL, zoom), zoom)
    assert calculated.x == pytest.approx(CITADEL.x, abs=1e-9)
    assert calculated.y == pytest.approx(CITADEL.y, abs=1e-9)


def test_projected_point_lies_within_its_tile():
    zoom = 20
    tile = tile_id(CITADEL, zoom, 256)
    corner = tile.project(256.0)
    projected = project(CITADEL, float(zoom))
    assert corner.x <= projected.x < corner.x + 256.0
    assert corner.y <= projected.y < corner.y + 256.0


def test_total_pixels_doubles_with_zoom():
    assert total_pixels(0.0) == 256.0
    assert total_pixels(3.0) == 2 * total_pixels(2.0)


def test_tile_id_zoom_too_low_for_large_tiles():
    with pytest.raises(ValueError):
        tile_id(CITADEL, 0, 512)


def test_adjusted_position_without_offset():
    adjusted = AdjustedPosition(CITADEL)
    assert adjusted.offset == Pixels(0.0, 0.0)
    real = adjusted.position_at(16.0)
    assert real.x == pytest.approx(CITADEL.x, abs=1e-9)
    assert real.y == pytest.approx(CITADEL.y, abs=1e-9)


def test_shift_accumulates_offset():
    adjusted = AdjustedPosition(CITADEL).shift(Vec2(10.0, -5.0)).shift(Vec2(1.0, 2.0))
    assert adjusted.position == CITADEL
    assert adjusted.offset == Position(11.0, -3.0)


def test_shift_moves_opposite_to_offset():
    zoom = 16.0
    adjusted = AdjustedPosition(CITADEL).shift(Vec2(100.0, 100.0))
    real = adjusted.position_at(zoom)
    # Dragging content right and down reveals positions to the west and north.
    assert real.x < CITADEL.x
    assert real.y > CITADEL.y


def test_zero_offset_preserves_real_position():
    zoom = 16.0
    adjusted = AdjustedPosition(CITADEL).shift(Vec2(37.0, -12.0))
    zeroed = adjusted.zero_offset(zoom)
    assert zeroed.offset == Pixels(0.0, 0.0)
    assert zeroed.position_at(zoom).x == pytest.approx(adjusted.position_at(zoom).x)
    assert zeroed.position_at(zoom).y == pytest.approx(adjusted.position_at(zoom).y)