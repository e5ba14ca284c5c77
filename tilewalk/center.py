"""Where the map is centred, and how that changes while it is dragged."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Union

from .mercator import AdjustedPosition
from .position import Pixels, Position, Vec2

# Time constant of the inertia stopping filter.
INERTIA_TAU = 0.2

# Threshold for pulling the map back to `my_position` after dragging.
PULL_TO_MY_POSITION_THRESHOLD = 20.0

# Inertia below this amount stops the map.
_INERTIA_STOP = 0.1


@dataclass(frozen=True)
class MyPosition:
    """Centred at the `my_position` given to the map."""


@dataclass(frozen=True)
class Exact:
    """Centred at an exact position."""

    position: AdjustedPosition


@dataclass(frozen=True)
class Moving:
    """The map is being dragged by mouse or finger."""

    position: AdjustedPosition
    direction: Vec2
    from_detached: bool


@dataclass(frozen=True)
class Inertia:
    """The map keeps moving after a drag and slows down until it stops."""

    position: AdjustedPosition
    direction: Vec2
    amount: float


@dataclass(frozen=True)
class PulledToMyPosition:
    """The map is pulled back to `my_position` after a short drag."""

    position: AdjustedPosition


Center = Union[MyPosition, Exact, Moving, Inertia, PulledToMyPosition]


@dataclass(frozen=True)
class DragInput:
    """Drag state of the pointer during one frame."""

    dragged: bool = False
    drag_stopped: bool = False
    delta: Vec2 = field(default_factory=Vec2)


def _adjusted_position(center: Center) -> Optional[AdjustedPosition]:
    if isinstance(center, MyPosition):
        return None
    return center.position


def _dragged(center: Center, my_position: Position, delta: Vec2) -> Center:
    if isinstance(center, Moving):
        from_detached = center.from_detached
    else:
        # Only `MyPosition` has no adjusted position.
        from_detached = _adjusted_position(center) is not None

    position = _adjusted_position(center) or AdjustedPosition(my_position)
    return Moving(position=position, direction=delta, from_detached=from_detached)


def _drag_stopped(center: Center) -> Center:
    if not isinstance(center, Moving):
        return center
    offset_length = center.position.offset.to_vec2().length()
    if center.from_detached or offset_length > PULL_TO_MY_POSITION_THRESHOLD:
        return Inertia(
            position=center.position,
            direction=center.direction.normalized(),
            amount=center.direction.length(),
        )
    return PulledToMyPosition(center.position)


def handle_gestures(
    center: Center, drag: DragInput, my_position: Position
) -> tuple[Center, bool]:
    """Apply a drag gesture; return the new center and whether anything changed."""
    if drag.dragged:
        return _dragged(center, my_position, drag.delta), True
    if drag.drag_stopped:
        return _drag_stopped(center), True
    return center, False


def _moved(position: AdjustedPosition, delta: Vec2) -> AdjustedPosition:
    return AdjustedPosition(position.position, position.offset + Pixels(delta.x, delta.y))


def update_movement(center: Center, delta_time: float) -> tuple[Center, bool]:
    """Advance an ongoing movement by one frame; return the new center and whether it moved."""
    match center:
        case Moving(position=position, direction=direction):
            return replace(center, position=_moved(position, direction)), True
        case Inertia(position=position, direction=direction, amount=amount):
            if amount < _INERTIA_STOP:
                return Exact(position), True
            # Exponentially drive the amount towards zero.
            lp_factor = INERTIA_TAU / (delta_time + INERTIA_TAU)
            return (
                Inertia(
                    position=_moved(position, direction * amount),
                    direction=direction,
                    amount=amount * lp_factor,
                ),
                True,
            )
        case PulledToMyPosition(position=position):
            offset = position.offset / 2.0
            if offset.to_vec2().length() < 1.0:
                return MyPosition(), True
            return PulledToMyPosition(AdjustedPosition(position.position, offset)), True
        case _:
            return center, False


def detached(center: Center, zoom: float) -> Optional[Position]:
    """Exact position if the map does not follow `my_position`, otherwise None."""
    adjusted = _adjusted_position(center)
    return None if adjusted is None else adjusted.position_at(zoom)


def position(center: Center, my_position: Position, zoom: float) -> Position:
    """Real position at the map's center."""
    found = detached(center, zoom)
    return my_position if found is None else found


def zero_offset(center: Center, zoom: float) -> Center:
    """Fold any pixel offset into the base position."""
    if isinstance(center, (MyPosition, PulledToMyPosition)):
        return MyPosition()
    return replace(center, position=center.position.zero_offset(zoom))


def shift(center: Center, offset: Vec2) -> Center:
    """Shift the position by a number of pixels, if detached."""
    if isinstance(center, MyPosition):
        return center
    return replace(center, position=center.position.shift(offset))