"""The map: gesture handling, tile layout and plugins for one frame."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from . import center as _center
from .center import DragInput, Exact
from .memory import MapMemory
from .mercator import AdjustedPosition
from .position import Position, Vec2
from .projector import Projector
from .render import PlacedTile, visible_tiles
from .tiles import Rect, Tiles

# Zoom deltas closer to 1.0 than this are treated as "no zoom".
_ZOOM_DEAD_ZONE = 0.01

# Scroll distance that corresponds to doubling the zoom delta.
_SCROLL_PER_ZOOM = 200.0


@dataclass(frozen=True)
class MapInput:
    """User input that reached the map during one frame.

    `pointer_inside` tells whether the pointer is over the map, `hover_pos` and
    `touch_center` are screen positions of the mouse and of a multi-touch
    gesture, `dragged` and `drag_stopped` describe a primary-button drag.
    """

    zoom_delta: float = 1.0
    pointer_inside: bool = False
    hover_pos: Optional[Vec2] = None
    touch_center: Optional[Vec2] = None
    any_touches: bool = False
    smooth_scroll_delta: Vec2 = field(default_factory=Vec2)
    dragged: bool = False
    drag_stopped: bool = False
    drag_delta: Vec2 = field(default_factory=Vec2)
    double_clicked_primary: bool = False
    double_clicked_secondary: bool = False
    stable_dt: float = 1.0 / 60.0


class Plugin(ABC):
    """Draws custom things on the map each frame."""

    @abstractmethod
    def run(self, painter: Any, input: MapInput, projector: Projector) -> None:
        """Called once per frame with the painter, the frame's input and a projector."""


@dataclass
class _Layer:
    tiles: Tiles
    transparency: float


def _input_offset(viewport: Rect, input: MapInput) -> Optional[Vec2]:
    """Offset of the pointer or touch relative to the viewport's center."""
    # On touch devices both are reported, so touch takes priority.
    pos = input.touch_center if input.touch_center is not None else input.hover_pos
    if pos is None:
        return None
    return pos - viewport.center()


class Map:
    """The map widget for one frame; persistent state lives in MapMemory and Tiles."""

    def __init__(
        self, tiles: Optional[Tiles], memory: MapMemory, my_position: Position
    ) -> None:
        self.tiles = tiles
        self.memory = memory
        self.my_position = my_position
        self._layers: list[_Layer] = []
        self._plugins: list[Plugin] = []
        self._zoom_gesture_enabled = True
        self._drag_gesture_enabled = True
        self._zoom_speed = 2.0
        self._double_click_to_zoom = False
        self._double_click_to_zoom_out = False
        self._zoom_with_ctrl = True
        self._panning = True

    def with_plugin(self, plugin: Plugin) -> Map:
        """Add a plugin to the drawing pipeline."""
        self._plugins.append(plugin)
        return self

    def with_layer(self, tiles: Tiles, transparency: float) -> Map:
        """Add a tile layer drawn on top of the previous ones."""
        self._layers.append(_Layer(tiles, transparency))
        return self

    def zoom_gesture(self, enabled: bool) -> Map:
        self._zoom_gesture_enabled = enabled
        return self

    def drag_gesture(self, enabled: bool) -> Map:
        self._drag_gesture_enabled = enabled
        return self

    def zoom_speed(self, speed: float) -> Map:
        """How far to zoom per gesture; 2.0 by default."""
        self._zoom_speed = speed
        return self

    def double_click_to_zoom(self, enabled: bool) -> Map:
        self._double_click_to_zoom = enabled
        return self

    def double_click_to_zoom_out(self, enabled: bool) -> Map:
        self._double_click_to_zoom_out = enabled
        return self

    def zoom_with_ctrl(self, enabled: bool) -> Map:
        """Zoom only with ctrl held; when disabled, plain scrolling zooms and does not pan."""
        self._zoom_with_ctrl = enabled
        return self

    def panning(self, enabled: bool) -> Map:
        """Whether scrolling may pan the map."""
        self._panning = enabled
        return self

    def _position(self) -> Position:
        return _center.position(self.memory.center_mode, self.my_position, self.memory.zoom)

    def _zoom_delta(self, input: MapInput) -> float:
        zoom_delta = input.zoom_delta
        if self._double_click_to_zoom and input.pointer_inside and input.double_clicked_primary:
            zoom_delta = 2.0
        if (
            self._double_click_to_zoom_out
            and input.pointer_inside
            and input.double_clicked_secondary
        ):
            zoom_delta = 0.0
        if not self._zoom_with_ctrl and zoom_delta == 1.0:
            zoom_delta = 1.0 + input.smooth_scroll_delta.y / _SCROLL_PER_ZOOM
        return zoom_delta

    def _handle_gestures(self, viewport: Rect, input: MapInput) -> bool:
        zoom_delta = self._zoom_delta(input)
        changed = False

        # Zooming and dragging are exclusive, so a pinch does not drag the map.
        if (
            abs(zoom_delta - 1.0) > _ZOOM_DEAD_ZONE
            and input.pointer_inside
            and self._zoom_gesture_enabled
        ):
            offset = _input_offset(viewport, input)

            # Keep the location under the pointer fixed: move it to the center,
            # zoom, then move it back.
            if offset is not None:
                self.memory.center_mode = Exact(
                    AdjustedPosition(self._position())
                    .shift(-offset)
                    .zero_offset(self.memory.zoom)
                )

            self.memory.zoom_level.zoom_by((zoom_delta - 1.0) * self._zoom_speed)

            # Zooming invalidates the pixel offset.
            self.memory.center_mode = _center.zero_offset(
                self.memory.center_mode, self.memory.zoom
            )

            if offset is not None:
                self.memory.center_mode = _center.shift(self.memory.center_mode, offset)

            changed = True
        elif self._drag_gesture_enabled:
            drag = DragInput(
                dragged=input.dragged,
                drag_stopped=input.drag_stopped,
                delta=input.drag_delta,
            )
            self.memory.center_mode, changed = _center.handle_gestures(
                self.memory.center_mode, drag, self.my_position
            )

        # Scroll panning only when zooming needs ctrl; touch devices may always pan.
        panning_enabled = self._panning and (input.any_touches or self._zoom_with_ctrl)
        if input.pointer_inside and panning_enabled:
            scroll = input.smooth_scroll_delta
            if scroll != Vec2():
                self.memory.center_mode = Exact(AdjustedPosition(self._position()).shift(scroll))

        return changed

    def show(
        self, viewport: Rect, input: MapInput, painter: Any = None
    ) -> tuple[bool, list[PlacedTile]]:
        """Process one frame.

        Handles the input, lays out the tiles of every layer and runs the
        plugins with `painter`. Returns whether the map changed and the tiles
        to draw, bottom layer first.
        """
        changed = self._handle_gestures(viewport, input)
        self.memory.center_mode, moved = _center.update_movement(
            self.memory.center_mode, input.stable_dt
        )
        changed = changed or moved

        zoom = self.memory.zoom_level
        map_center = self._position()

        placed: list[PlacedTile] = []
        if self.tiles is not None:
            placed.extend(visible_tiles(viewport, map_center, zoom, self.tiles, 1.0))
        for layer in self._layers:
            placed.extend(
                visible_tiles(viewport, map_center, zoom, layer.tiles, layer.transparency)
            )

        projector = Projector(viewport, self.memory, self.my_position)
        for plugin in self._plugins:
            plugin.run(painter, input, projector)

        return changed, placed