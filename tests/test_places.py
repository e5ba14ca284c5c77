from dataclasses import dataclass

import pytest

from tilewalk.memory import MapMemory
from tilewalk.places import (
    GroupedPlaces,
    Place,
    Places,
    center,
    distance_projected,
    groups,
)
from tilewalk.position import Position, Vec2, lon_lat
from tilewalk.projector import Projector
from tilewalk.tiles import Rect

ORIGIN = lon_lat(17.03664, 51.09916)


@dataclass
class Marker(Place):
    name: str
    where: Position

    def position(self):
        return self.where

    def draw(self, painter, projector):
        painter.append(("place", self.name))


@pytest.fixture
def projector():
    return Projector(Rect.from_min_size(Vec2(0.0, 0.0), Vec2(100.0, 100.0)), MapMemory(), ORIGIN)


def _shifted(dlon):
    return lon_lat(ORIGIN.x + dlon, ORIGIN.y)


def test_calculating_center():
    assert center(
        [Position(0.0, 0.0), Position(10.0, 10.0), Position(20.0, 20.0)]
    ) == Position(10.0, 10.0)
    assert center(
        [Position(0.0, 0.0), Position(10.0, 0.0), Position(0.0, 10.0), Position(10.0, 10.0)]
    ) == Position(5.0, 5.0)
    assert center(
        [
            Position(10.0, 10.0),
            Position(-10.0, -10.0),
            Position(-10.0, 10.0),
            Position(10.0, -10.0),
        ]
    ) == Position(0.0, 0.0)


def test_center_of_nothing_is_origin():
    assert center([]) == Position(0.0, 0.0)


def test_distance_projected_is_zero_for_same_position(projector):
    assert distance_projected(ORIGIN, ORIGIN, projector) == 0.0


def test_distance_projected_is_symmetric(projector):
    a, b = ORIGIN, _shifted(0.001)
    assert distance_projected(a, b, projector) == pytest.approx(distance_projected(b, a, projector))
    assert distance_projected(a, b, projector) > 0.0


def test_distance_grows_with_separation(projector):
    near = distance_projected(ORIGIN, _shifted(0.0005), projector)
    far = distance_projected(ORIGIN, _shifted(0.002), projector)
    assert far > near


def test_close_places_are_grouped(projector):
    a = Marker("a", ORIGIN)
    b = Marker("b", _shifted(0.0001))
    c = Marker("c", _shifted(0.01))
    assert groups([a, b, c], projector) == [[a, b], [c]]


def test_group_requires_all_members_to_be_close(projector):
    # B is close to A, C is close to B but not to A.
    a = Marker("a", ORIGIN)
    b = Marker("b", _shifted(0.0008))
    c = Marker("c", _shifted(0.0016))
    assert groups([a, b, c], projector) == [[a, b], [c]]


def test_places_draws_every_place(projector):
    painter = []
    Places([Marker("a", ORIGIN), Marker("b", _shifted(0.0001))]).run(painter, projector)
    assert painter == [("place", "a"), ("place", "b")]


def test_grouped_places_draws_group(projector):
    painter = []
    calls = []

    def draw_group(places, position, painter_, projector_):
        calls.append(([p.name for p in places], position))
        painter_.append(("group", len(places)))

    a = Marker("a", ORIGIN)
    b = Marker("b", ORIGIN)
    c = Marker("c", _shifted(0.01))
    GroupedPlaces([a, b, c], draw_group).run(painter, projector)

    assert painter == [("group", 2), ("place", "c")]
    assert calls == [(["a", "b"], ORIGIN)]


def test_expanded_group_draws_places(projector):
    painter = []
    a = Marker("a", ORIGIN)
    b = Marker("b", ORIGIN)

    def draw_group(places, position, painter_, projector_):
        painter_.append(("group", len(places)))

    GroupedPlaces([a, b], draw_group).run(painter, projector, expanded={0})
    assert painter == [("place", "a"), ("place", "b")]


def test_single_place_is_never_drawn_as_group(projector):
    painter = []

    def draw_group(places, position, painter_, projector_):
        painter_.append(("group", len(places)))

    GroupedPlaces([Marker("solo", ORIGIN)], draw_group).run(painter, projector)
    assert painter == [("place", "solo")]