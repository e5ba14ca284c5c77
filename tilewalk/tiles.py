"""Tile identifiers, screen rectangles, textures and the tile provider interface."""

from __future__ import annotations

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from PIL import Image

from .position import Pixels, Vec2

if TYPE_CHECKING:
    from .sources import Attribution


def total_tiles(zoom: int) -> int:
    """Number of tiles along one axis at the given integer zoom."""
    return 2**zoom


@dataclass(frozen=True)
class TileId:
    """Identifies a tile in the tile grid."""

    x: int
    y: int
    zoom: int

    def project(self, tile_size: float) -> Pixels:
        """Tile position, in pixels, on the world bitmap."""
        return Pixels(self.x * tile_size, self.y * tile_size)

    def east(self) -> TileId | None:
        if self.x < total_tiles(self.zoom) - 1:
            return TileId(self.x + 1, self.y, self.zoom)
        return None

    def west(self) -> TileId | None:
        if self.x > 0:
            return TileId(self.x - 1, self.y, self.zoom)
        return None

    def north(self) -> TileId | None:
        if self.y > 0:
            return TileId(self.x, self.y - 1, self.zoom)
        return None

    def south(self) -> TileId | None:
        if self.y < total_tiles(self.zoom) - 1:
            return TileId(self.x, self.y + 1, self.zoom)
        return None

    def valid(self) -> bool:
        count = total_tiles(self.zoom)
        return 0 <= self.x < count and 0 <= self.y < count


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in screen space."""

    min: Vec2
    max: Vec2

    @classmethod
    def from_min_max(cls, min_corner: Vec2, max_corner: Vec2) -> Rect:
        return cls(min_corner, max_corner)

    @classmethod
    def from_min_size(cls, min_corner: Vec2, size: Vec2) -> Rect:
        return cls(min_corner, min_corner + size)

    @classmethod
    def from_center_size(cls, center: Vec2, size: Vec2) -> Rect:
        half = size / 2.0
        return cls(center - half, center + half)

    @property
    def width(self) -> float:
        return self.max.x - self.min.x

    @property
    def height(self) -> float:
        return self.max.y - self.min.y

    @property
    def size(self) -> Vec2:
        return self.max - self.min

    def center(self) -> Vec2:
        return Vec2((self.min.x + self.max.x) / 2.0, (self.min.y + self.max.y) / 2.0)

    def intersects(self, other: Rect) -> bool:
        """Whether the rectangles overlap or touch."""
        return (
            self.min.x <= other.max.x
            and other.min.x <= self.max.x
            and self.min.y <= other.max.y
            and other.min.y <= self.max.y
        )

    def translate(self, offset: Vec2) -> Rect:
        return Rect(self.min + offset, self.max + offset)


def tile_rect(screen_position: Vec2, tile_size: float) -> Rect:
    """Screen rectangle covered by a tile drawn at the given position."""
    return Rect.from_min_size(screen_position, Vec2(tile_size, tile_size))


@dataclass(eq=False)
class Texture:
    """A decoded RGBA image ready to be drawn."""

    image: Image.Image

    def size(self) -> Vec2:
        width, height = self.image.size
        return Vec2(float(width), float(height))


def decode_texture(data: bytes) -> Texture:
    """Decode PNG or JPEG bytes into a texture; raise ValueError on bad data."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            rgba = image.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as error:
        raise ValueError(f"could not decode image: {error}") from error
    return Texture(rgba)


@dataclass
class TextureWithUv:
    """A texture together with the part of it to be drawn."""

    texture: Texture
    uv: Rect


class Tiles(ABC):
    """Source of tiles put together to render the map."""

    @abstractmethod
    def at(self, tile_id: TileId) -> TextureWithUv | None:
        """Return the tile, or None if it is not available (yet)."""

    @abstractmethod
    def attribution(self) -> Attribution:
        """Attribution to be shown with the map."""

    @abstractmethod
    def tile_size(self) -> int:
        """Size of a tile in pixels."""