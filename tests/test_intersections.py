import math

import pytest

from aidatt.intersections import (
    Circle,
    StraightLine,
    intersect_circle_circle,
    intersect_circle_straight_line,
    intersect_straight_line_straight_line,
)


@pytest.fixture
def c1():
    return Circle(0.0, 0.0, 1.0)


@pytest.fixture
def c2():
    return Circle(1.0, 1.0, 1.0)


@pytest.fixture
def sl1():
    return StraightLine(0.0, 1.0, 0.5)


@pytest.fixture
def sl2():
    return StraightLine(1.0, 1.0, 0.0)


def test_circle_circle(c1, c2):
    points = intersect_circle_circle(c1, c2)
    assert len(points) == 2
    assert points[0] == pytest.approx((1.0, 0.0), abs=1e-9)
    assert points[1] == pytest.approx((0.0, 1.0), abs=1e-9)


def test_circle_line(c1, sl1):
    points = intersect_circle_straight_line(c1, sl1)
    assert len(points) == 2
    assert points[0] == pytest.approx((math.sqrt(0.75), 0.5), abs=1e-9)
    assert points[1] == pytest.approx((-math.sqrt(0.75), 0.5), abs=1e-9)


def test_line_line(sl2, sl1):
    points = intersect_straight_line_straight_line(sl2, sl1)
    assert len(points) == 1
    assert points[0] == pytest.approx((-0.5, 0.5), abs=1e-9)


def test_negative_radius_rejected():
    with pytest.raises(ValueError):
        Circle(0.0, 0.0, -1.0)


def test_negative_distance_rejected():
    with pytest.raises(ValueError):
        StraightLine(0.0, -1.0, -1.0)


def test_zero_normal_rejected():
    with pytest.raises(ValueError):
        StraightLine(0.0, 0.0, 12.0)


def test_tangent_line_gives_single_point(c1):
    points = intersect_circle_straight_line(c1, StraightLine(0.0, 1.0, 1.0))
    assert points == [pytest.approx((0.0, 1.0), abs=1e-9)]


def test_missing_line_gives_nothing(c1):
    assert intersect_circle_straight_line(c1, StraightLine(0.0, 1.0, 2.0)) == []


def test_parallel_lines_give_nothing():
    assert intersect_straight_line_straight_line(
        StraightLine(0.0, 1.0, 1.0), StraightLine(0.0, 1.0, 2.0)
    ) == []


def test_shifted_circle_points_lie_on_both(c2):
    line = StraightLine(1.0, 0.0, 1.5)
    points = intersect_circle_straight_line(c2, line)
    assert len(points) == 2
    for x, y in points:
        assert (x - 1.0) ** 2 + (y - 1.0) ** 2 == pytest.approx(1.0)
        assert x == pytest.approx(1.5)


def test_moved_line_may_get_negative_distance():
    line = StraightLine(1.0, 0.0, 1.0)
    assert line.moved(0.5, 0.0).distance == pytest.approx(0.5)
    assert line.moved(3.0, 0.0).distance == pytest.approx(-2.0)
    assert line.distance == 1.0


def test_circle_accessors():
    c = Circle(1.0, 2.0, 3.0)
    assert c.center() == (1.0, 2.0)
    assert c.r2() == 9.0


def test_line_accessors():
    line = StraightLine(3.0, 4.0, 2.0)
    assert line.normal() == (3.0, 4.0)
    assert line.normal_square() == 25.0
    assert line.d2() == 4.0