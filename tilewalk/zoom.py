"""Zoom level of the map, limited to a fixed range."""

from __future__ import annotations

import math

MIN_ZOOM = 0.0
MAX_ZOOM = 26.0
DEFAULT_ZOOM = 16.0


class InvalidZoom(ValueError):
    """Raised when a zoom level falls outside the supported range."""

    def __init__(self, message: str = "invalid zoom level") -> None:
        super().__init__(message)


class Zoom:
    """A zoom level between 0 and 26, inclusive."""

    __slots__ = ("_value",)

    def __init__(self, value: float = DEFAULT_ZOOM) -> None:
        self._value = self._checked(value)

    @staticmethod
    def _checked(value: float) -> float:
        value = float(value)
        # The upper limit is artificial, kept for parity with tile providers.
        if not MIN_ZOOM <= value <= MAX_ZOOM:
            raise InvalidZoom()
        return value

    @property
    def value(self) -> float:
        return self._value

    def __float__(self) -> float:
        return self._value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Zoom):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return f"Zoom({self._value!r})"

    def round(self) -> int:
        """Nearest integer zoom level, halves rounded up."""
        return int(math.floor(self._value + 0.5))

    def zoom_in(self) -> None:
        """Increase zoom by one level, raising InvalidZoom at the maximum."""
        self._value = self._checked(self._value + 1.0)

    def zoom_out(self) -> None:
        """Decrease zoom by one level, raising InvalidZoom at the minimum."""
        self._value = self._checked(self._value - 1.0)

    def zoom_by(self, value: float) -> None:
        """Zoom by a relative amount; out-of-range results are ignored."""
        try:
            self._value = self._checked(self._value + value)
        except InvalidZoom:
            pass