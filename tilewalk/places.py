"""Places drawn on the map, optionally grouped when they are close together."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Collection, Iterable, Sequence
from typing import Any

from .position import Position
from .projector import Projector

# Places closer than this, in screen pixels, end up in one group.
GROUPING_DISTANCE = 50.0

GroupDrawer = Callable[[Sequence["Place"], Position, Any, Projector], None]


class Place(ABC):
    """Something with a geographical position that can draw itself."""

    @abstractmethod
    def position(self) -> Position:
        """Geographical position of the place."""

    @abstractmethod
    def draw(self, painter: Any, projector: Projector) -> None:
        """Draw the place with the painter."""


class Places:
    """Plugin drawing every place individually."""

    def __init__(self, places: Iterable[Place]) -> None:
        self.places = list(places)

    def run(self, painter: Any, projector: Projector) -> None:
        for place in self.places:
            place.draw(painter, projector)


class GroupedPlaces:
    """Plugin that draws places close together as a single group.

    `draw_group` is called with the places of a group, their center, the painter
    and the projector. Groups whose index is in `expanded` are drawn place by place.
    """

    def __init__(self, places: Iterable[Place], draw_group: GroupDrawer) -> None:
        self.places = list(places)
        self.draw_group = draw_group

    def run(
        self, painter: Any, projector: Projector, expanded: Collection[int] = ()
    ) -> None:
        for index, group in enumerate(groups(self.places, projector)):
            if len(group) >= 2 and index not in expanded:
                position = center([place.position() for place in group])
                self.draw_group(group, position, painter, projector)
            else:
                for place in group:
                    place.draw(painter, projector)


def groups(places: Iterable[Place], projector: Projector) -> list[list[Place]]:
    """Put each place into the first group whose members are all close to it."""
    result: list[list[Place]] = []
    for place in places:
        target = next(
            (
                group
                for group in result
                if all(
                    distance_projected(place.position(), member.position(), projector)
                    < GROUPING_DISTANCE
                    for member in group
                )
            ),
            None,
        )
        if target is None:
            result.append([place])
        else:
            target.append(place)
    return result


def distance_projected(p1: Position, p2: Position, projector: Projector) -> float:
    """Distance between two positions after projecting them onto the screen."""
    return (projector.project(p1) - projector.project(p2)).length()


def center(positions: Sequence[Position]) -> Position:
    """Arithmetic mean of the positions; the origin for none."""
    if not positions:
        return Position()
    total = sum(positions, Position())
    return total / len(positions)