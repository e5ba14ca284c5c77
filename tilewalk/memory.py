"""State of the map widget that persists between frames."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from . import center as _center
from .center import Center, Exact, MyPosition
from .mercator import AdjustedPosition
from .position import Position
from .zoom import Zoom


@dataclass
class MapMemory:
    """Center mode and zoom level of a map."""

    center_mode: Center = field(default_factory=MyPosition)
    zoom_level: Zoom = field(default_factory=Zoom)

    @property
    def zoom(self) -> float:
        """Current zoom level."""
        return float(self.zoom_level)

    def _fold_offset(self) -> None:
        self.center_mode = _center.zero_offset(self.center_mode, self.zoom)

    def zoom_in(self) -> None:
        """Zoom in one level, raising InvalidZoom at the maximum."""
        self._fold_offset()
        self.zoom_level.zoom_in()

    def zoom_out(self) -> None:
        """Zoom out one level, raising InvalidZoom at the minimum."""
        self._fold_offset()
        self.zoom_level.zoom_out()

    def set_zoom(self, zoom: float) -> None:
        """Set an exact zoom level, raising InvalidZoom if out of range."""
        self._fold_offset()
        self.zoom_level = Zoom(zoom)

    def detached(self) -> Optional[Position]:
        """Exact position if the map does not follow `my_position`, otherwise None."""
        return _center.detached(self.center_mode, self.zoom)

    def center_at(self, position: Position) -> None:
        """Center exactly at the given position."""
        self.center_mode = Exact(AdjustedPosition(position))

    def follow_my_position(self) -> None:
        self.center_mode = MyPosition()

    def copy(self) -> MapMemory:
        return MapMemory(self.center_mode, Zoom(self.zoom))