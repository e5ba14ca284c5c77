"""Geographical positions, projected pixels and screen vectors."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Vec2:
    """A two-dimensional vector in screen space."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def __neg__(self) -> Vec2:
        return Vec2(-self.x, -self.y)

    def __mul__(self, other: float | Vec2) -> Vec2:
        if isinstance(other, Vec2):
            return Vec2(self.x * other.x, self.y * other.y)
        return Vec2(self.x * other, self.y * other)

    __rmul__ = __mul__

    def __truediv__(self, factor: float) -> Vec2:
        return Vec2(self.x / factor, self.y / factor)

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def normalized(self) -> Vec2:
        """Unit vector in the same direction; the zero vector stays zero."""
        length = self.length()
        if length <= 0.0:
            return self
        return self / length


@dataclass(frozen=True)
class Position:
    """A point: longitude as x and latitude as y, or projected pixels."""

    x: float = 0.0
    y: float = 0.0

    @property
    def lon(self) -> float:
        return self.x

    @property
    def lat(self) -> float:
        return self.y

    def __add__(self, other: Position) -> Position:
        return Position(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Position) -> Position:
        return Position(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> Position:
        return Position(self.x * factor, self.y * factor)

    __rmul__ = __mul__

    def __truediv__(self, factor: float) -> Position:
        return Position(self.x / factor, self.y / factor)

    def to_vec2(self) -> Vec2:
        return Vec2(self.x, self.y)


# Location projected on the screen or on an abstract bitmap.
Pixels = Position


def lat_lon(lat: float, lon: float) -> Position:
    """Build a position from latitude and longitude."""
    return Position(lon, lat)


def lon_lat(lon: float, lat: float) -> Position:
    """Build a position from longitude and latitude."""
    return Position(lon, lat)