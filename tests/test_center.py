import pytest

from tilewalk.center import (
    DragInput,
    Exact,
    Inertia,
    Moving,
    MyPosition,
    PulledToMyPosition,
    detached,
    handle_gestures,
    position,
    shift,
    update_movement,
    zero_offset,
)
from tilewalk.mercator import AdjustedPosition
from tilewalk.position import Pixels, Vec2, lon_lat

HOME = lon_lat(17.03664, 51.09916)
ZOOM = 16.0


def run_until_settled(center, limit=1000):
    for _ in range(limit):
        center, changed = update_movement(center, 0.1)
        if not changed or isinstance(center, (MyPosition, Exact)):
            return center
    return center


def test_no_gesture_keeps_center():
    center = MyPosition()
    new, changed = handle_gestures(center, DragInput(), HOME)
    assert new == center
    assert changed is False


def test_drag_from_my_position_is_not_detached():
    delta = Vec2(3.0, 4.0)
    new, changed = handle_gestures(MyPosition(), DragInput(dragged=True, delta=delta), HOME)
    assert changed is True
    assert isinstance(new, Moving)
    assert new.from_detached is False
    assert new.direction == delta
    assert new.position.position == HOME


def test_drag_from_exact_is_detached():
    exact = Exact(AdjustedPosition(HOME))
    new, _ = handle_gestures(exact, DragInput(dragged=True, delta=Vec2(1.0, 0.0)), HOME)
    assert isinstance(new, Moving)
    assert new.from_detached is True


def test_drag_while_moving_keeps_flag():
    moving = Moving(AdjustedPosition(HOME), Vec2(1.0, 1.0), False)
    new, _ = handle_gestures(moving, DragInput(dragged=True, delta=Vec2(5.0, 5.0)), HOME)
    assert new.from_detached is False
    assert new.direction == Vec2(5.0, 5.0)


def test_moving_accumulates_offset():
    direction = Vec2(2.0, -3.0)
    moving = Moving(AdjustedPosition(HOME), direction, False)
    new, changed = update_movement(moving, 0.016)
    assert changed is True
    assert new.position.offset == Pixels(direction.x, direction.y)
    new, _ = update_movement(new, 0.016)
    assert new.position.offset == Pixels(direction.x * 2, direction.y * 2)


def test_short_drag_pulls_back_to_my_position():
    moving = Moving(AdjustedPosition(HOME, Pixels(5.0, 5.0)), Vec2(1.0, 0.0), False)
    stopped, changed = handle_gestures(moving, DragInput(drag_stopped=True), HOME)
    assert changed is True
    assert isinstance(stopped, PulledToMyPosition)
    assert isinstance(run_until_settled(stopped), MyPosition)


def test_long_drag_continues_with_inertia():
    direction = Vec2(30.0, 40.0)
    moving = Moving(AdjustedPosition(HOME, Pixels(100.0, 0.0)), direction, False)
    stopped, _ = handle_gestures(moving, DragInput(drag_stopped=True), HOME)
    assert isinstance(stopped, Inertia)
    assert stopped.amount == pytest.approx(direction.length())
    assert stopped.direction.length() == pytest.approx(1.0)
    settled = run_until_settled(stopped)
    assert isinstance(settled, Exact)


def test_detached_drag_always_gets_inertia():
    moving = Moving(AdjustedPosition(HOME), Vec2(1.0, 0.0), True)
    stopped, changed = handle_gestures(moving, DragInput(drag_stopped=True), HOME)
    assert changed is True
    assert isinstance(stopped, Inertia)
    assert stopped.amount == pytest.approx(1.0)
    assert stopped.direction.x == pytest.approx(1.0)
    assert stopped.direction.y == pytest.approx(0.0)
    assert stopped.position.position == HOME


def test_inertia_amount_decreases():
    inertia = Inertia(AdjustedPosition(HOME), Vec2(1.0, 0.0), 10.0)
    new, _ = update_movement(inertia, 0.1)
    assert new.amount < inertia.amount
    assert new.position.offset.x > inertia.position.offset.x


def test_resting_states_do_not_move():
    for center in (MyPosition(), Exact(AdjustedPosition(HOME))):
        new, changed = update_movement(center, 0.1)
        assert new == center
        assert changed is False


def test_detached_and_position():
    assert detached(MyPosition(), ZOOM) is None
    assert position(MyPosition(), HOME, ZOOM) == HOME
    other = lon_lat(21.0, 52.0)
    found = position(Exact(AdjustedPosition(other)), HOME, ZOOM)
    assert found.x == pytest.approx(other.x)
    assert found.y == pytest.approx(other.y)


def test_zero_offset():
    assert zero_offset(PulledToMyPosition(AdjustedPosition(HOME)), ZOOM) == MyPosition()
    assert zero_offset(MyPosition(), ZOOM) == MyPosition()
    exact = Exact(AdjustedPosition(HOME, Pixels(10.0, 10.0)))
    folded = zero_offset(exact, ZOOM)
    assert folded.position.offset == Pixels()
    before = detached(exact, ZOOM)
    after = detached(folded, ZOOM)
    assert after.x == pytest.approx(before.x)
    assert after.y == pytest.approx(before.y)


def test_shift():
    assert shift(MyPosition(), Vec2(5.0, 5.0)) == MyPosition()
    shifted = shift(Exact(AdjustedPosition(HOME)), Vec2(50.0, 0.0))
    assert detached(shifted, ZOOM).x < HOME.x