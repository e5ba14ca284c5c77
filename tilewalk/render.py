"""Finding the tiles that cover the map viewport."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

from .mercator import project, tile_id as _tile_id
from .position import Pixels, Position
from .tiles import Rect, Texture, TileId, Tiles, tile_rect
from .zoom import Zoom


@dataclass(frozen=True)
class PlacedTile:
    """A tile texture placed on the screen."""

    tile_id: TileId
    rect: Rect
    texture: Texture
    uv: Rect
    transparency: float


def flood_fill_tiles(
    viewport: Rect,
    tile_id: TileId,
    map_center_projected: Pixels,
    zoom: float,
    tiles: Tiles,
    transparency: float,
) -> list[PlacedTile]:
    """Flood fill the viewport with tiles, starting at `tile_id`."""
    # Make up the difference between integer and fractional zoom levels.
    corrected_tile_size = tiles.tile_size() * 2.0 ** (zoom - math.floor(zoom + 0.5))
    viewport_center = viewport.center()

    placed: list[PlacedTile] = []
    visited: set[TileId] = set()
    stack = [tile_id]

    while stack:
        current = stack.pop()
        if current in visited:
            continue
        tile_projected = current.project(corrected_tile_size)
        screen_position = viewport_center + (tile_projected - map_center_projected).to_vec2()
        rect = tile_rect(screen_position, corrected_tile_size)
        if not viewport.intersects(rect):
            continue

        # Even a missing tile marks the spot for the filling algorithm.
        visited.add(current)
        found = tiles.at(current)
        if found is not None:
            placed.append(PlacedTile(current, rect, found.texture, found.uv, transparency))

        neighbours = (current.north(), current.east(), current.south(), current.west())
        stack.extend(n for n in reversed(neighbours) if n is not None)

    return placed


def visible_tiles(
    viewport: Rect,
    map_center: Position,
    zoom: Union[Zoom, float],
    tiles: Tiles,
    transparency: float,
) -> list[PlacedTile]:
    """All available tiles that cover the viewport around `map_center`."""
    if not isinstance(zoom, Zoom):
        zoom = Zoom(zoom)
    return flood_fill_tiles(
        viewport,
        _tile_id(map_center, zoom.round(), tiles.tile_size()),
        project(map_center, float(zoom)),
        float(zoom),
        tiles,
        transparency,
    )