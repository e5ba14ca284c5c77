"""Web Mercator projection between geographical positions and world pixels."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .position import Pixels, Position, Vec2, lon_lat
from .tiles import TileId

# Size of a single tile in pixels, as used by most tile sources.
TILE_SIZE = 256


def total_pixels(zoom: float) -> float:
    """Width of the whole world bitmap, in pixels, at the given zoom."""
    return 2.0**zoom * TILE_SIZE


def _mercator_normalized(position: Position) -> tuple[float, float]:
    x = math.radians(position.x)
    y = math.asinh(math.tan(math.radians(position.y)))
    return (1.0 + x / math.pi) / 2.0, (1.0 - y / math.pi) / 2.0


def tile_id(position: Position, zoom: int, source_tile_size: int) -> TileId:
    """Tile containing the position, adjusted for sources with larger tiles."""
    x, y = _mercator_normalized(position)

    # Larger tiles bundle several 256px tiles, so the zoom level drops accordingly.
    zoom -= int(math.log2(source_tile_size / TILE_SIZE))
    if zoom < 0:
        raise ValueError("zoom level too low for the source tile size")

    number_of_tiles = float(2**zoom)
    return TileId(
        x=max(0, math.floor(x * number_of_tiles)),
        y=max(0, math.floor(y * number_of_tiles)),
        zoom=zoom,
    )


def project(position: Position, zoom: float) -> Pixels:
    """Project a geographical position onto the world bitmap."""
    pixels = total_pixels(zoom)
    x, y = _mercator_normalized(position)
    return Pixels(x * pixels, y * pixels)


def unproject(pixels: Pixels, zoom: float) -> Position:
    """Turn world-bitmap pixels back into a geographical position."""
    number_of_pixels = total_pixels(zoom)
    lon = math.degrees((pixels.x / number_of_pixels * 2.0 - 1.0) * math.pi)
    lat_rad = (-pixels.y / number_of_pixels * 2.0 + 1.0) * math.pi
    lat = math.degrees(math.atan(math.sinh(lat_rad)))
    return lon_lat(lon, lat)


@dataclass(frozen=True)
class AdjustedPosition:
    """A base position plus a pixel offset, precise enough for a dragged map."""

    position: Position
    offset: Pixels = field(default_factory=Pixels)

    def position_at(self, zoom: float) -> Position:
        """Real position, including the offset, at the given zoom."""
        return unproject(project(self.position, zoom) - self.offset, zoom)

    def zero_offset(self, zoom: float) -> AdjustedPosition:
        """Fold the offset into the base position."""
        return AdjustedPosition(self.position_at(zoom))

    def shift(self, offset: Vec2) -> AdjustedPosition:
        return AdjustedPosition(self.position, self.offset + Pixels(offset.x, offset.y))