"""Analytical intersections of circles and straight lines in a plane.

A helix projects onto a circle perpendicular to the magnetic field, so these
solutions are the basis of helix-surface intersections.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

Point = tuple[float, float]

_TOLERANCE = 1e-9


@dataclass(frozen=True)
class Circle:
    """Circle given by its centre (c0, c1) and a non-negative radius."""

    c0: float
    c1: float
    radius: float

    def __post_init__(self) -> None:
        if self.radius < 0.0:
            raise ValueError("radius must be >= 0 when creating a circle")

    def r2(self) -> float:
        return self.radius * self.radius

    def center(self) -> Point:
        return (self.c0, self.c1)

    def __str__(self) -> str:
        return f" [circle: center = ({self.c0} , {self.c1}) ; radius = {self.radius} )"


class StraightLine:
    """Straight line n0*x + n1*y = distance in Hesse-like form."""

    __slots__ = ("n0", "n1", "distance")

    def __init__(self, n0: float, n1: float, distance: float) -> None:
        if distance < 0.0:
            raise ValueError("distance must be >= 0 when creating a straight line")
        if abs(n0) < 1e-12 and abs(n1) < 1e-12:
            raise ValueError("normal vector must be non-zero")
        self.n0 = float(n0)
        self.n1 = float(n1)
        self.distance = float(distance)

    @classmethod
    def _unchecked(cls, n0: float, n1: float, distance: float) -> "StraightLine":
        line = cls.__new__(cls)
        line.n0 = n0
        line.n1 = n1
        line.distance = distance
        return line

    def d2(self) -> float:
        return self.distance * self.distance

    def normal(self) -> Point:
        return (self.n0, self.n1)

    def normal_square(self) -> float:
        return self.n0 * self.n0 + self.n1 * self.n1

    def moved(self, d1: float, d2: float) -> "StraightLine":
        """Return the line expressed in coordinates shifted by (d1, d2)."""
        return StraightLine._unchecked(
            self.n0, self.n1, self.distance - (self.n0 * d1 + self.n1 * d2)
        )

    def __repr__(self) -> str:
        return f"StraightLine({self.n0!r}, {self.n1!r}, {self.distance!r})"

    def __str__(self) -> str:
        return (
            f" [straightLine: normal = ({self.n0} , {self.n1}) , "
            f"distance = {self.distance} )"
        )


def intersect_circle_circle(circle1: Circle, circle2: Circle) -> list[Point]:
    """Intersection points of two circles."""
    x1, y1 = circle1.center()
    r1 = circle1.radius
    x2, y2 = circle2.center()
    r2 = circle2.radius

    # the radical line of the two circles
    nx = 2 * (x2 - x1)
    ny = 2 * (y2 - y1)
    dist = r1 * r1 - r2 * r2 - x1 * x1 + x2 * x2 - y1 * y1 + y2 * y2
    return intersect_circle_straight_line(circle1, StraightLine(nx, ny, dist))


def intersect_circle_straight_line(circle: Circle, line: StraightLine) -> list[Point]:
    """Intersection points of a circle and a straight line.

    A touching line yields a single point.
    """
    x0, y0 = circle.center()
    shifted = line.moved(x0, y0)

    norm_square = shifted.normal_square()
    discriminant = circle.r2() * norm_square - shifted.d2()
    if discriminant < 0.0 and abs(discriminant) > _TOLERANCE:
        return []

    nx, ny = shifted.normal()
    d = shifted.distance
    root = math.sqrt(max(discriminant, 0.0))
    inv = 1.0 / norm_square

    first = (x0 + (nx * d + ny * root) * inv, y0 + (ny * d - nx * root) * inv)
    if abs(discriminant) <= _TOLERANCE:
        return [first]
    second = (x0 + (nx * d - ny * root) * inv, y0 + (ny * d + nx * root) * inv)
    return [first, second]


def intersect_straight_line_straight_line(
    line1: StraightLine, line2: StraightLine
) -> list[Point]:
    """Intersection point of two lines; empty when they are not independent."""
    nx1, ny1 = line1.normal()
    nx2, ny2 = line2.normal()
    d1 = line1.distance
    d2 = line2.distance

    discriminant = nx1 * ny2 - nx2 * ny1
    if discriminant < _TOLERANCE:
        return []

    x = (d1 * ny2 - ny1 * d2) / discriminant
    y = (d2 * nx1 - d1 * nx2) / discriminant
    return [(x, y)]