"""Projection of geographical positions onto the map viewport."""

from __future__ import annotations

import math

from . import center as _center
from . import mercator
from .memory import MapMemory
from .position import Pixels, Position, Vec2
from .tiles import Rect

EARTH_CIRCUMFERENCE = 40_075_016.686


class Projector:
    """Projects positions into viewport pixels and back."""

    def __init__(self, clip_rect: Rect, map_memory: MapMemory, my_position: Position) -> None:
        self.clip_rect = clip_rect
        self.memory = map_memory.copy()
        self.my_position = my_position

    def _center_projected(self) -> Pixels:
        zoom = self.memory.zoom
        center = _center.position(self.memory.center_mode, self.my_position, zoom)
        return mercator.project(center, zoom)

    def project(self, position: Position) -> Vec2:
        """Project `position` into pixels on the viewport."""
        projected = mercator.project(position, self.memory.zoom)
        return self.clip_rect.center() + (projected - self._center_projected()).to_vec2()

    def unproject(self, position: Vec2) -> Position:
        """Geographical position at the given viewport pixel."""
        center_projected = self._center_projected()
        clip_center = self.clip_rect.center()
        x = center_projected.x + position.x - clip_center.x
        y = center_projected.y + position.y - clip_center.y
        return mercator.unproject(Pixels(x, y), self.memory.zoom)

    def scale_pixel_per_meter(self, position: Position) -> float:
        """Local map scale at the position for the current zoom."""
        return calculate_meters_per_pixel(position.y, self.memory.zoom)


def calculate_meters_per_pixel(latitude: float, zoom: float) -> float:
    """Pixels per meter at the given latitude and zoom."""
    pixel_per_meter_equator = mercator.total_pixels(zoom) / EARTH_CIRCUMFERENCE
    return pixel_per_meter_equator / math.cos(math.radians(abs(latitude)))