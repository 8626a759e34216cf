"""Measurement surfaces and their intersections with helices.

A :class:`Surface` is one of a few simple shapes (cylinders and cones along z,
planes parallel to z, disks perpendicular to z, or arbitrary planes).
Intersections are returned as :class:`Intersection` objects, or ``None`` when
the helix does not cross the surface under the requested conditions.

The ``mode`` argument selects the solution: negative (-1), positive (+1) or
the one with the shortest path length (0).
"""

from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

from aidatt.helix import (
    calculate_radius,
    calculate_s_from_xy,
    calculate_tangent,
    calculate_x_center,
    calculate_x_from_s,
    calculate_y_center,
    calculate_y_from_s,
    calculate_z_from_s,
    point_at,
)
from aidatt.intersections import Circle, StraightLine, intersect_circle_straight_line
from aidatt.track import TrackParameters, calculate_d0, calculate_omega, calculate_phi0
from aidatt.track import calculate_tan_lambda, calculate_z0

logger = logging.getLogger(__name__)

#: one millimetre in the package's length unit (cm)
MM = 0.1

_NEWTON_EPSILON = 1.0e-3 * MM
_NEWTON_MAX_COUNT = 100
_ALPHA_INCREASE = 10.0
_ALPHA_DECREASE = 1.0 / _ALPHA_INCREASE

_CYLINDER_TIE = 1e-4
_EZ = np.array([0.0, 0.0, 1.0])

_unsupported_warnings = itertools.count()


class SurfaceType(Enum):
    """The shapes a surface can have."""

    Z_CYLINDER = "z_cylinder"
    CONE = "cone"
    Z_PLANE = "z_plane"
    Z_DISK = "z_disk"
    PLANE = "plane"

    @property
    def is_z_cylinder(self) -> bool:
        return self is SurfaceType.Z_CYLINDER

    @property
    def is_cone(self) -> bool:
        return self is SurfaceType.CONE

    @property
    def is_z_plane(self) -> bool:
        return self is SurfaceType.Z_PLANE

    @property
    def is_z_disk(self) -> bool:
        return self is SurfaceType.Z_DISK

    @property
    def is_cylinder(self) -> bool:
        """True for shapes described by a radius around a z-parallel axis."""
        return self in (SurfaceType.Z_CYLINDER, SurfaceType.CONE)

    @property
    def is_planar(self) -> bool:
        return self in (SurfaceType.Z_PLANE, SurfaceType.Z_DISK, SurfaceType.PLANE)

    @property
    def is_parallel_to_z(self) -> bool:
        return self in (SurfaceType.Z_CYLINDER, SurfaceType.CONE, SurfaceType.Z_PLANE)


def _unit(values, what: str) -> np.ndarray:
    vec = np.array(values, dtype=float).reshape(3)
    norm = float(np.linalg.norm(vec))
    if norm == 0.0:
        raise ValueError(f"{what} must be non-zero")
    return vec / norm


@dataclass(eq=False)
class Surface:
    """A bounded surface with optional material layers on both sides.

    For cylinders and cones ``origin`` is the centre on the axis, ``radius``
    the (middle) radius and ``half_length`` the half extent in z. For planes
    ``half_width`` and ``half_length`` bound the local u and v coordinates;
    for disks ``inner_radius`` and ``radius`` bound the distance from the
    origin in the xy-plane.
    """

    type: SurfaceType
    origin: np.ndarray
    normal_direction: np.ndarray = field(default_factory=lambda: _EZ.copy())
    u_direction: np.ndarray = field(default_factory=lambda: np.array([1.0, 0.0, 0.0]))
    v_direction: np.ndarray = field(default_factory=lambda: np.array([0.0, 1.0, 0.0]))
    radius: float = 0.0
    inner_radius: float = 0.0
    half_width: float = math.inf
    half_length: float = math.inf
    opening_angle: float = 0.0
    inner_thickness: float = 0.0
    outer_thickness: float = 0.0
    inner_material: Any = None
    outer_material: Any = None
    tolerance: float = 1e-4

    def __post_init__(self) -> None:
        self.origin = np.array(self.origin, dtype=float).reshape(3)
        self.normal_direction = _unit(self.normal_direction, "normal")
        self.u_direction = _unit(self.u_direction, "u direction")
        self.v_direction = _unit(self.v_direction, "v direction")
        if self.type.is_cylinder and self.radius <= 0.0:
            raise ValueError("a cylindrical surface needs a positive radius")

    # ----------------------------------------------------------- factories

    @classmethod
    def z_cylinder(cls, radius, center=(0.0, 0.0, 0.0), half_length=math.inf, **layer):
        """Cylinder with its axis parallel to z through ``center``."""
        return cls(SurfaceType.Z_CYLINDER, center, radius=radius, half_length=half_length, **layer)

    @classmethod
    def cone(
        cls, radius, opening_angle, center=(0.0, 0.0, 0.0), half_length=math.inf, **layer
    ):
        """Cone along z with radius ``radius`` at the z of ``center``.

        The radius grows with z at the half-angle ``opening_angle``.
        """
        return cls(
            SurfaceType.CONE,
            center,
            radius=radius,
            opening_angle=opening_angle,
            half_length=half_length,
            **layer,
        )

    @classmethod
    def z_plane(cls, origin, normal, half_width=math.inf, half_length=math.inf, **layer):
        """Plane parallel to z; ``normal`` must lie in the xy-plane."""
        n = _unit(normal, "normal")
        if abs(n[2]) > 1e-12:
            raise ValueError("the normal of a plane parallel to z must have no z component")
        u = np.cross(_EZ, n)
        return cls(
            SurfaceType.Z_PLANE,
            origin,
            normal_direction=n,
            u_direction=u,
            v_direction=_EZ.copy(),
            half_width=half_width,
            half_length=half_length,
            **layer,
        )

    @classmethod
    def z_disk(cls, origin, inner_radius=0.0, outer_radius=math.inf, **layer):
        """Disk perpendicular to z, centred at ``origin``."""
        if inner_radius < 0.0 or outer_radius < inner_radius:
            raise ValueError("disk radii must satisfy 0 <= inner <= outer")
        return cls(
            SurfaceType.Z_DISK,
            origin,
            radius=outer_radius,
            inner_radius=inner_radius,
            **layer,
        )

    @classmethod
    def plane(
        cls, origin, normal, u_direction, half_width=math.inf, half_length=math.inf, **layer
    ):
        """Arbitrarily oriented plane; ``u_direction`` is made orthogonal to ``normal``."""
        n = _unit(normal, "normal")
        u = np.array(u_direction, dtype=float).reshape(3)
        u = _unit(u - np.dot(u, n) * n, "u direction")
        return cls(
            SurfaceType.PLANE,
            origin,
            normal_direction=n,
            u_direction=u,
            v_direction=np.cross(n, u),
            half_width=half_width,
            half_length=half_length,
            **layer,
        )

    # ------------------------------------------------------------ geometry

    @property
    def center(self) -> np.ndarray:
        return self.origin

    def _cone_radius(self, z: float) -> float:
        return self.radius + (z - self.origin[2]) * math.tan(self.opening_angle)

    def normal(self, point=None) -> np.ndarray:
        """Unit normal, at ``point`` for curved surfaces."""
        if self.type.is_planar:
            return self.normal_direction.copy()
        if point is None:
            p = self.origin + np.array([self.radius, 0.0, 0.0])
        else:
            p = np.array(point, dtype=float).reshape(3)
        dx = p[0] - self.origin[0]
        dy = p[1] - self.origin[1]
        rho = math.hypot(dx, dy)
        rx, ry = (1.0, 0.0) if rho == 0.0 else (dx / rho, dy / rho)
        if self.type.is_cone:
            c = math.cos(self.opening_angle)
            return np.array([c * rx, c * ry, -math.sin(self.opening_angle)])
        return np.array([rx, ry, 0.0])

    def distance(self, point) -> float:
        """Signed distance of ``point`` from the surface."""
        p = np.array(point, dtype=float).reshape(3)
        if self.type.is_planar:
            return float(np.dot(p - self.origin, self.normal_direction))
        rho = math.hypot(p[0] - self.origin[0], p[1] - self.origin[1])
        if self.type.is_cone:
            return (rho - self._cone_radius(p[2])) * math.cos(self.opening_angle)
        return rho - self.radius

    def inside_bounds(self, point) -> bool:
        """True if ``point`` lies on the surface and within its bounds."""
        p = np.array(point, dtype=float).reshape(3)
        if abs(self.distance(p)) > self.tolerance:
            return False
        if self.type.is_z_disk:
            rho = math.hypot(p[0] - self.origin[0], p[1] - self.origin[1])
            return self.inner_radius <= rho <= self.radius
        if self.type.is_planar:
            u, v = self.global_to_local(p)
            return abs(u) <= self.half_width and abs(v) <= self.half_length
        return abs(p[2] - self.origin[2]) <= self.half_length

    def global_to_local(self, point) -> tuple[float, float]:
        """Local (u, v) coordinates of a point on the surface."""
        d = np.array(point, dtype=float).reshape(3) - self.origin
        if self.type.is_planar:
            return float(np.dot(d, self.u_direction)), float(np.dot(d, self.v_direction))
        return self.radius * math.atan2(d[1], d[0]), float(d[2])

    def local_to_global(self, uv) -> np.ndarray:
        """Global point for the local coordinates (u, v)."""
        u, v = (float(c) for c in uv)
        if self.type.is_planar:
            return self.origin + u * self.u_direction + v * self.v_direction
        phi = u / self.radius
        r = self._cone_radius(self.origin[2] + v) if self.type.is_cone else self.radius
        return self.origin + np.array([r * math.cos(phi), r * math.sin(phi), v])

    def __str__(self) -> str:
        return (
            f"Surface({self.type.value}, origin={self.origin.tolist()}, "
            f"normal={self.normal_direction.tolist()}, radius={self.radius})"
        )


@dataclass(frozen=True, eq=False)
class Intersection:
    """A crossing of a helix with a surface at path length ``s``."""

    s: float
    point: np.ndarray


def _reference_point(params, reference_point) -> np.ndarray:
    if reference_point is not None:
        return np.array(reference_point, dtype=float).reshape(3)
    if isinstance(params, TrackParameters):
        return params.reference_point
    return np.zeros(3)


def _accept(surface: Surface, found: Intersection, check_bounds: bool) -> Intersection | None:
    if check_bounds and not surface.inside_bounds(found.point):
        return None
    return found


def _accept_single(
    surface: Surface, found: Intersection, mode: int, check_bounds: bool
) -> Intersection | None:
    if mode * found.s > 0 or mode == 0:
        return _accept(surface, found, check_bounds)
    return None


def _choose(first: Intersection, second: Intersection, mode: int, tie: float):
    """Select one of two solutions according to ``mode`` and the signs of s."""
    s0, s1 = first.s, second.s
    if s0 < 0.0 and s1 < 0.0:
        if mode < 1:  # closest negative solution
            return first if s1 < s0 else second
        return None
    if s0 < 0.0 <= s1:
        if mode < 0:
            return first
        if mode > 0:
            return second
        # give preference to the positive solution if almost equal
        return first if abs(s0) + tie < abs(s1) else second
    if s1 < 0.0 <= s0:
        if mode > 0:
            return first
        if mode < 0:
            return second
        return first if abs(s0) < abs(s1) + tie else second
    if mode > -1:  # closest positive solution
        return first if s0 < s1 else second
    return None


def _from_xy(x: float, y: float, params, rp: np.ndarray) -> Intersection:
    s = calculate_s_from_xy(x, y, params, rp)
    return Intersection(s, np.array([x, y, calculate_z_from_s(s, params, rp)]))


def intersect_with_z_cylinder(
    surface: Surface, params, reference_point=None, mode=0, check_bounds=True
) -> Intersection | None:
    """Intersection with a cylinder (or cone's middle cylinder) parallel to z."""
    if not (surface.type.is_parallel_to_z and surface.type.is_cylinder):
        raise ValueError(f"surface is not a cylinder parallel to z : {surface}")

    rp = _reference_point(params, reference_point)
    omega = calculate_omega(params)
    phi0 = calculate_phi0(params)
    d0 = calculate_d0(params)

    sinph = math.sin(phi0)
    cosph = math.cos(phi0)
    x0 = rp[0] - d0 * sinph
    y0 = rp[1] + d0 * cosph

    rho = surface.radius
    xrho, yrho = float(surface.center[0]), float(surface.center[1])

    dx = xrho - x0
    dy = yrho - y0
    sox = sinph - omega * dx
    coy = cosph + omega * dy

    gamma = 2 * dx * sinph - 2 * dy * cosph - omega * rho * rho - omega * (dx * dx + dy * dy)
    gamma /= 2 * rho * math.sqrt(sox * sox + coy * coy)
    if abs(gamma) > 1.0:
        return None

    phirho = math.atan2(sox, coy)
    asing = math.asin(gamma)
    phic0 = asing + phirho
    phic1 = (math.pi - asing if asing > 0.0 else -math.pi - asing) + phirho

    first = _from_xy(xrho + rho * math.cos(phic0), yrho + rho * math.sin(phic0), params, rp)
    second = _from_xy(xrho + rho * math.cos(phic1), yrho + rho * math.sin(phic1), params, rp)

    found = _choose(first, second, mode, _CYLINDER_TIE)
    if found is None:
        return None
    return _accept(surface, found, check_bounds)


def intersect_with_z_plane(
    surface: Surface, params, reference_point=None, mode=0, check_bounds=True
) -> Intersection | None:
    """Intersection with a plane parallel to z."""
    rp = _reference_point(params, reference_point)
    normal = surface.normal()
    dist = abs(float(np.dot(surface.origin, normal)))
    line = StraightLine(normal[0], normal[1], dist)
    circle = Circle(
        calculate_x_center(params, rp), calculate_y_center(params, rp), calculate_radius(params)
    )

    candidates = intersect_circle_straight_line(circle, line)
    if not candidates:
        return None
    if len(candidates) == 1:
        return _accept_single(surface, _from_xy(*candidates[0], params, rp), mode, check_bounds)

    first = _from_xy(*candidates[0], params, rp)
    second = _from_xy(*candidates[1], params, rp)
    found = _choose(first, second, mode, 0.0)
    if found is None:
        return None

    logger.debug(
        " --- intersect_with_z_plane - found intersection - s : %s at : %s "
        "[ inside bounds : %s ] distance : %s surf : %s",
        found.s,
        found.point.tolist(),
        surface.inside_bounds(found.point),
        surface.distance(found.point),
        surface,
    )
    return _accept(surface, found, check_bounds)


def intersect_with_z_disk(
    surface: Surface, params, reference_point=None, mode=0, check_bounds=True
) -> Intersection | None:
    """Intersection with a disk perpendicular to z; none for tracks with tan(lambda) = 0."""
    rp = _reference_point(params, reference_point)
    plane_z = float(surface.origin[2])
    helix_z = rp[2] + calculate_z0(params)
    tanl = calculate_tan_lambda(params)
    if tanl == 0.0:
        return None

    s = (plane_z - helix_z) / tanl
    point = np.array(
        [calculate_x_from_s(s, params, rp), calculate_y_from_s(s, params, rp), plane_z]
    )
    return _accept_single(surface, Intersection(float(s), point), mode, check_bounds)


def intersect_with_z_cone(
    surface: Surface, params, reference_point=None, mode=0, check_bounds=True, start=None
) -> Intersection | None:
    """Intersection with a cone along z.

    Without ``start`` the crossing with the cone's middle cylinder seeds the
    Newton iteration; a given ``start`` path length is used as seed instead.
    """
    if start is None:
        seed = intersect_with_z_cylinder(surface, params, reference_point, mode, False)
        if seed is None:
            return None
        logger.debug(
            " --- intersect_with_z_cone - found intersection with cylinder : s : %s at : %s",
            seed.s,
            seed.point.tolist(),
        )
        start = seed.s
    return intersect_with_surface_newton(
        surface, params, reference_point, start, mode, check_bounds
    )


def intersect_with_surface_newton(
    surface: Surface, params, reference_point=None, start=0.0, mode=0, check_bounds=True
) -> Intersection | None:
    """Intersection with an arbitrary surface by a damped Newton iteration from ``start``."""
    rp = _reference_point(params, reference_point)
    s = float(start)
    xx = point_at(s, params, rp)

    prev_xx = xx
    prev_s = s
    prev_dist = 1.0e10
    alpha = 1.0e-10

    logger.debug(" --- intersect_with_surface_newton(): surface %s", surface)

    for _ in range(_NEWTON_MAX_COUNT + 1):
        dist = surface.distance(xx)
        if abs(dist) < _NEWTON_EPSILON:
            break

        # keep the best point so far; enlarge the damping when the distance grows
        if abs(dist) < abs(prev_dist):
            prev_dist, prev_s, prev_xx = dist, s, xx
            alpha *= _ALPHA_DECREASE
        else:
            dist, s, xx = prev_dist, prev_s, prev_xx
            alpha *= _ALPHA_INCREASE

        d_dist_ds = float(np.dot(surface.normal(xx), calculate_tangent(s, params)))
        denom = (1.0 + alpha) * d_dist_ds
        if denom == 0.0:
            return None
        s -= dist / denom
        xx = point_at(s, params, rp)
    else:
        logger.debug(
            " --- intersect_with_surface_newton() : max count %s reached before "
            "intersection found !! distance %s s : %s xx : %s",
            _NEWTON_MAX_COUNT,
            prev_dist,
            prev_s,
            prev_xx.tolist(),
        )
        return None

    return _accept_single(surface, Intersection(s, xx), mode, check_bounds)


def intersect_with_surface(
    surface: Surface, params, reference_point=None, mode=0, check_bounds=True
) -> Intersection | None:
    """Intersection with any supported surface, dispatched on its type."""
    kind = surface.type
    if kind.is_z_cylinder:
        return intersect_with_z_cylinder(surface, params, reference_point, mode, check_bounds)
    if kind.is_z_plane:
        return intersect_with_z_plane(surface, params, reference_point, mode, check_bounds)
    if kind.is_z_disk:
        return intersect_with_z_disk(surface, params, reference_point, mode, check_bounds)
    if kind.is_cone:
        return intersect_with_z_cone(surface, params, reference_point, mode, check_bounds)
    if next(_unsupported_warnings) < 3:
        logger.warning(
            "intersect_with_surface: intersection with this type of surface not yet "
            "implemented ! : %s (message will be suppressed after 3 times )",
            surface,
        )
    return None