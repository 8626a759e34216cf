"""Helix properties in the L3 convention.

Every function takes either a :class:`~aidatt.track.TrackParameters` or the
five helix parameters (omega, tan(lambda), phi0, d0, z0). Where a reference
point is needed and none is given, the track's own reference point is used,
or the origin for bare parameter vectors.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from aidatt.track import (
    HelixParameter,
    TrackParameters,
    calculate_curvature,
    calculate_d0,
    calculate_lambda,
    calculate_omega,
    calculate_phi0,
    calculate_tan_lambda,
    calculate_z0,
    helix_vector,
)

logger = logging.getLogger(__name__)

#: transverse momentum [GeV] per unit of field [T] times radius [cm]
CONVERT_BR_TO_P_CM = 2.99792458e-3

_TWO_PI = 2.0 * math.pi


def _reference(params, reference_point) -> np.ndarray:
    if reference_point is not None:
        rp = np.array(reference_point, dtype=float).reshape(-1)
        if rp.shape != (3,):
            raise ValueError(f"reference point needs 3 values, got {rp.size}")
        return rp
    if isinstance(params, TrackParameters):
        return params.reference_point
    return np.zeros(3)


def calculate_radius(params) -> float:
    """Unsigned radius in the xy-plane; zero for a straight track."""
    curvature = calculate_curvature(params)
    if curvature != 0.0:
        return abs(1.0 / curvature)
    return 0.0


def calculate_x_center(params, reference_point=None) -> float:
    """x-position of the circle centre in the xy-plane."""
    omega = calculate_omega(params)
    if omega == 0.0:
        return 0.0
    rp = _reference(params, reference_point)
    radius = 1.0 / omega  # signed radius
    return float(rp[0] + (radius - calculate_d0(params)) * math.sin(calculate_phi0(params)))


def calculate_y_center(params, reference_point=None) -> float:
    """y-position of the circle centre in the xy-plane."""
    omega = calculate_omega(params)
    if omega == 0.0:
        return 0.0
    rp = _reference(params, reference_point)
    radius = 1.0 / omega
    return float(rp[1] - (radius - calculate_d0(params)) * math.cos(calculate_phi0(params)))


def calculate_x0(params, reference_point=None) -> float:
    """x-position of the point of closest approach in the xy-plane."""
    rp = _reference(params, reference_point)
    return float(math.sin(-calculate_phi0(params)) * calculate_d0(params) + rp[0])


def calculate_y0(params, reference_point=None) -> float:
    """y-position of the point of closest approach in the xy-plane."""
    rp = _reference(params, reference_point)
    return float(math.cos(calculate_phi0(params)) * calculate_d0(params) + rp[1])


def calculate_phi_from_xy(x, y, params, reference_point=None) -> float:
    """Azimuth of the track direction at the point (x, y) on the track."""
    x0 = calculate_x0(params, reference_point)
    y0 = calculate_y0(params, reference_point)
    phi0 = calculate_phi0(params)
    curvature = calculate_curvature(params)
    return math.atan2(
        math.sin(phi0) - curvature * (x - x0), math.cos(phi0) + curvature * (y - y0)
    )


def calculate_s_from_xy(x, y, params, reference_point=None) -> float:
    """Path length in the xy-plane at the point (x, y) on the track."""
    rp = _reference(params, reference_point)
    phi0 = calculate_phi0(params)
    d0 = calculate_d0(params)
    curvature = calculate_curvature(params)

    sin_phi0 = math.sin(phi0)
    cos_phi0 = math.cos(phi0)
    dx = x - (rp[0] - sin_phi0 * d0)
    dy = y - (rp[1] + cos_phi0 * d0)

    phi = math.atan2(sin_phi0 - curvature * dx, cos_phi0 + curvature * dy)
    dphi = phi - phi0
    if dphi < -math.pi:
        dphi += _TWO_PI
    elif dphi > math.pi:
        dphi -= _TWO_PI

    if dphi == 0.0:
        return 0.0
    return float((dx * cos_phi0 + dy * sin_phi0) * dphi / math.sin(dphi))


def calculate_x_from_s(s, params, reference_point=None) -> float:
    """x-position at path length ``s``."""
    x0 = calculate_x0(params, reference_point)
    phi0 = calculate_phi0(params)
    curvature = calculate_curvature(params)
    if curvature != 0.0:
        half = curvature * s / 2.0
        return x0 + 2.0 / curvature * math.sin(half) * math.cos(phi0 - half)
    return x0 + s * math.cos(phi0)


def calculate_y_from_s(s, params, reference_point=None) -> float:
    """y-position at path length ``s``."""
    y0 = calculate_y0(params, reference_point)
    phi0 = calculate_phi0(params)
    curvature = calculate_curvature(params)
    if curvature != 0.0:
        half = curvature * s / 2.0
        return y0 + 2.0 / curvature * math.sin(half) * math.sin(phi0 - half)
    return y0 + s * math.cos(phi0)


def calculate_z_from_s(s, params, reference_point=None) -> float:
    """z-position at path length ``s``."""
    rp = _reference(params, reference_point)
    return float(calculate_z0(params) + rp[2] + s * calculate_tan_lambda(params))


def point_at(s, params, reference_point=None) -> np.ndarray:
    """Point on the helix at arc length ``s``."""
    rp = _reference(params, reference_point)
    omega = calculate_omega(params)
    phi0 = calculate_phi0(params)
    tanl = calculate_tan_lambda(params)
    d0 = calculate_d0(params)
    z0 = calculate_z0(params)

    sinphi = math.sin(phi0)
    cosphi = math.cos(phi0)
    inv = 1.0 / omega
    return np.array(
        [
            rp[0] - d0 * sinphi + inv * (sinphi - math.sin(phi0 - s * omega)),
            rp[1] + d0 * cosphi - inv * (cosphi - math.cos(phi0 - s * omega)),
            rp[2] + z0 + s * tanl,
        ]
    )


def calculate_tangent(s, params) -> np.ndarray:
    """Unit tangent to the track at path length ``s``."""
    omega = calculate_curvature(params)
    phi0 = calculate_phi0(params)
    lam = calculate_lambda(params)
    phi = phi0 - omega * s
    return np.array(
        [math.cos(phi) * math.cos(lam), math.sin(phi) * math.cos(lam), math.sin(lam)]
    )


def _transverse_momentum(params, bz) -> float:
    return abs(1.0 / calculate_omega(params)) * bz * CONVERT_BR_TO_P_CM


def momentum_at(s, params, reference_point, bz) -> np.ndarray:
    """Momentum vector at arc length ``s`` for the field ``bz`` at the reference point."""
    omega = calculate_omega(params)
    phi0 = calculate_phi0(params)
    tanl = calculate_tan_lambda(params)
    pt = _transverse_momentum(params, bz)
    return np.array(
        [pt * math.cos(phi0 - s * omega), pt * math.sin(phi0 - s * omega), pt * tanl]
    )


def momentum_at_pca(params, reference_point, bz) -> np.ndarray:
    """Momentum vector at the point of closest approach."""
    phi = calculate_phi0(params)
    tanl = calculate_tan_lambda(params)
    pt = _transverse_momentum(params, bz)
    if pt < 1e-6:
        logger.error(
            "momentum_at_pca(): pt too small : %s hp : %s rp : %s",
            pt,
            helix_vector(params).tolist(),
            _reference(params, reference_point).tolist(),
        )
    return np.array([pt * math.cos(phi), pt * math.sin(phi), pt * tanl])


def calculate_start_helix(x1, x2, x3, backward=False) -> TrackParameters:
    """Helix through three points (e.g. first, middle and last hit).

    The reference point of the returned parameters is ``x1``.
    """
    p1 = np.array(x1, dtype=float)
    p2 = np.array(x2, dtype=float)
    p3 = np.array(x3, dtype=float)

    def _flat(vec: np.ndarray) -> tuple[np.ndarray, float]:
        flat = np.array([vec[0], vec[1], 0.0])
        mag = float(np.linalg.norm(flat))
        return flat / mag, mag

    x12, x12mag = _flat(p2 - p1)
    x13, x13mag = _flat(p3 - p1)
    x23, x23mag = _flat(p3 - p2)

    sin_half_phi23 = float(np.cross(x12, x13)[2])
    cos_half_phi23 = 0.5 * (
        x13mag / x12mag + (1.0 - x23mag / x12mag) * (x12mag + x23mag) / x13mag
    )
    half_phi23 = math.atan2(sin_half_phi23, cos_half_phi23)

    r = -0.5 * x23mag / sin_half_phi23
    xc = 0.5 * (p2 + p3) + r * cos_half_phi23 * np.cross(x23, np.array([0.0, 0.0, 1.0]))

    if backward:
        r = -r

    parameters = np.zeros(5)
    parameters[HelixParameter.OMEGA] = 1.0 / r
    parameters[HelixParameter.TANL] = (p2[2] - p3[2]) / (r * 2 * half_phi23)
    parameters[HelixParameter.PHI0] = (
        math.atan2(r * (xc[1] - p1[1]), r * (xc[0] - p1[0])) + math.pi / 2.0
    )
    return TrackParameters(parameters, None, p1)


def move_helix_to(track: TrackParameters, reference_point, update_covariance=False) -> float:
    """Move the helix of ``track`` in place to a new reference point.

    Returns the change of the turning angle. The covariance matrix is
    transported as well when ``update_covariance`` is true.
    """
    ref_new = np.array(reference_point, dtype=float).reshape(3)

    dr = -track[HelixParameter.D0]
    fi0 = track[HelixParameter.PHI0] - math.pi / 2.0
    while fi0 < 0.0:
        fi0 += _TWO_PI
    while fi0 > _TWO_PI:
        fi0 -= _TWO_PI

    cpa = track[HelixParameter.OMEGA]
    dz = track[HelixParameter.Z0]
    tnl = track[HelixParameter.TANL]

    x0, y0, z0 = (float(v) for v in track.reference_point)
    xv, yv, zv = (float(v) for v in ref_new)

    r = 1.0 / cpa
    rdr = r + dr
    csf0 = math.cos(fi0)
    snf0 = math.sqrt(max(0.0, (1.0 - csf0) * (1.0 + csf0)))
    if fi0 > math.pi:
        snf0 = -snf0

    xc = x0 + rdr * csf0
    yc = y0 + rdr * snf0

    fi0p = 0.0
    if cpa > 0.0:
        fi0p = math.atan2(yc - yv, xc - xv)
    if cpa < 0.0:
        fi0p = math.atan2(yv - yc, xv - xc)
    while fi0p < 0.0:
        fi0p += _TWO_PI
    while fi0p > _TWO_PI:
        fi0p -= _TWO_PI

    csf = math.cos(fi0p)
    snf = math.sqrt(max(0.0, (1.0 - csf) * (1.0 + csf)))
    if fi0p > math.pi:
        snf = -snf

    anrm = 1.0 / math.sqrt(csf * csf + snf * snf)
    csf *= anrm
    snf *= anrm
    csfd = csf * csf0 + snf * snf0
    snfd = snf * csf0 - csf * snf0

    fid = fi0p - fi0
    while fid < 0:
        fid += _TWO_PI
    while fid > _TWO_PI:
        fid -= _TWO_PI
    if fid > math.pi:
        fid -= _TWO_PI

    drp = (xc - xv) * csf + (yc - yv) * snf - r
    dzp = z0 - zv + dz - r * tnl * fid

    fi0p += math.pi / 2.0
    while fi0p < -math.pi:
        fi0p += _TWO_PI
    while fi0p > math.pi:
        fi0p -= _TWO_PI

    track[HelixParameter.D0] = -drp
    track[HelixParameter.PHI0] = fi0p
    track[HelixParameter.OMEGA] = cpa
    track[HelixParameter.Z0] = dzp
    track[HelixParameter.TANL] = tnl
    track.set_reference_point(ref_new)

    if update_covariance:
        rdrpr = 1.0 / (r + drp)
        rcpar = r / cpa

        jac = np.zeros((5, 5))
        # d(drho')/da
        jac[3, 3] = csfd
        jac[3, 2] = rdr * snfd
        jac[3, 0] = rcpar * (1.0 - csfd)
        # d(phi0')/da
        jac[2, 3] = -rdrpr * snfd
        jac[2, 2] = rdr * rdrpr * csfd
        jac[2, 0] = rcpar * rdrpr * snfd
        # d(kappa')/da
        jac[0, 0] = 1.0
        # d(dz')/da
        jac[4, 3] = r * rdrpr * tnl * snfd
        jac[4, 2] = r * tnl * (1.0 - rdr * rdrpr * csfd)
        jac[4, 0] = rcpar * tnl * (fid - r * rdrpr * snfd)
        jac[4, 4] = 1.0
        jac[4, 1] = -r * fid
        # d(tanl')/da
        jac[1, 1] = 1.0

        track.set_covariance_matrix(jac @ track.covariance @ jac.T)

    return fid