"""Conversions between the curvilinear, perigee and L3 track parametrisations.

Outside the package tracks are expressed in the L3 convention
(omega, tan(lambda), phi0, d0, z0). Fits work in curvilinear parameters
(q/p, lambda, phi, x_t, y_t). The perigee parametrisation
(kappa, theta, phi, epsilon, z_p) sits in between.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from aidatt.helix import CONVERT_BR_TO_P_CM
from aidatt.track import (
    HelixParameter,
    PerigeeParameter,
    calculate_curvature,
    calculate_lambda,
    calculate_phi0,
    calculate_tan_lambda,
)


def _vector3(values, what: str) -> np.ndarray:
    vec = np.array(values, dtype=float).reshape(-1)
    if vec.shape != (3,):
        raise ValueError(f"{what} needs 3 values, got {vec.size}")
    return vec


def _unit_or_zero(vec: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(vec))
    return vec / norm if norm != 0.0 else np.zeros(3)


def calculate_q_over_p(track, bfield: float) -> float:
    """Signed inverse momentum q/p for the field ``bfield`` along z; zero without field."""
    if bfield != 0.0:
        return (
            math.cos(calculate_lambda(track))
            * calculate_curvature(track)
            / (bfield * CONVERT_BR_TO_P_CM)
        )
    return 0.0


def curvilinear_to_perigee_jacobian(track, bfield) -> np.ndarray:
    """Jacobian from curvilinear corrections to the perigee parametrisation.

    ``track`` holds the reference parameters; ``bfield`` is the field vector.
    """
    b = _vector3(bfield, "magnetic field")
    lam = calculate_lambda(track)
    phi0 = calculate_phi0(track)
    omega = calculate_curvature(track)

    cos_phi = math.cos(phi0)
    sin_phi = math.sin(phi0)
    tan_lambda = math.tan(lam)
    cos_lambda = 1.0 / math.sqrt(1.0 + tan_lambda * tan_lambda)
    sin_lambda = math.sin(lam)

    # local curvilinear system: U = Z x T / |Z x T|, V = T x U
    t = np.array([cos_phi * cos_lambda, sin_phi * cos_lambda, sin_lambda])
    u = np.array([-sin_phi, cos_phi, 0.0])
    v = np.array([-cos_phi * sin_lambda, -sin_phi * sin_lambda, cos_lambda])

    # perigee system: J = -U, K = Z, I = J x K
    j = np.array([sin_phi, -cos_phi, 0.0])
    k = np.array([0.0, 0.0, 1.0])
    i = np.cross(j, k)

    # H is the field direction, a*N = H x T
    h = _unit_or_zero(b)
    an = np.cross(h, t)

    ui = float(u @ i)
    anv = float(an @ v)
    ti = float(t @ i)
    vi = float(v @ i)
    anu = float(an @ u)
    vk = float(v @ k)

    q = cos_lambda * omega
    qbar = -q

    jac = np.eye(5)
    jac[0, 0] = -b[2] * CONVERT_BR_TO_P_CM / cos_lambda
    jac[0, 1] = -qbar * tan_lambda / cos_lambda
    jac[0, 3] = qbar * q * tan_lambda * ui * anv / cos_lambda / ti
    jac[0, 4] = qbar * q * tan_lambda * vi * anv / cos_lambda / ti

    jac[1, 1] = -1.0
    jac[1, 3] = q * ui * anv / ti
    jac[1, 4] = q * vi * anv / ti

    jac[2, 3] = -q * ui * anu / cos_lambda / ti
    jac[2, 4] = -q * vi * anu / cos_lambda / ti

    jac[3, 3] = vk / ti

    jac[4, 4] = -1.0 / ti
    return jac


def perigee_to_l3_jacobian(track) -> np.ndarray:
    """Jacobian from (kappa, theta, phi, epsilon, z_p) to the L3 parameters."""
    tan_lambda = calculate_tan_lambda(track)
    jac = np.zeros((5, 5))
    jac[HelixParameter.OMEGA, PerigeeParameter.KAPPA] = -1.0
    jac[HelixParameter.TANL, PerigeeParameter.THETA] = -(1.0 + tan_lambda * tan_lambda)
    jac[HelixParameter.PHI0, PerigeeParameter.PHI] = 1.0
    jac[HelixParameter.D0, PerigeeParameter.EPSILON] = -1.0
    jac[HelixParameter.Z0, PerigeeParameter.ZP] = 1.0
    return jac


def l3_to_perigee_jacobian(track) -> np.ndarray:
    """Jacobian from the L3 parameters to the perigee parametrisation."""
    tan_lambda = calculate_tan_lambda(track)
    jac = np.zeros((5, 5))
    jac[0, 0] = -1.0  # kappa = -omega
    jac[4, 1] = -1.0 / (1.0 + tan_lambda * tan_lambda)  # theta = pi/2 - lambda
    jac[1, 2] = 1.0  # phi = phi0
    jac[2, 3] = -1.0  # epsilon = -d0
    jac[3, 4] = 1.0  # z_p = z0
    return jac


def curvilinear_to_l3_jacobian(track, bfield) -> np.ndarray:
    """Jacobian from curvilinear to L3 parameters, via the perigee system."""
    return perigee_to_l3_jacobian(track) @ curvilinear_to_perigee_jacobian(track, bfield)


def local_curvilinear_system(s: float, track) -> tuple[np.ndarray, np.ndarray]:
    """The curvilinear unit vectors (U, V) at path length ``s``."""
    omega = calculate_curvature(track)
    phi = calculate_phi0(track) - omega * s
    lam = calculate_lambda(track)
    u = np.array([-math.sin(phi), math.cos(phi), 0.0])
    v = np.array(
        [-math.cos(phi) * math.sin(lam), -math.sin(phi) * math.sin(lam), math.cos(lam)]
    )
    return u, v


def local_to_measurement_projection(u, v, measurement_directions: Sequence) -> np.ndarray:
    """2x2 projection from the local curvilinear system (U, V) to the measurement system.

    One-dimensional measurements are completed by an arbitrary orthogonal
    direction, which carries no weight. More than two directions are not
    supported.
    """
    cl_u = _vector3(u, "U direction")
    cl_v = _vector3(v, "V direction")
    directions = [_vector3(d, "measurement direction") for d in measurement_directions]

    if len(directions) == 1:
        measured = directions[0]
        mdir = _unit_or_zero(measured)
        ortho = np.array([mdir[2], mdir[2], -mdir[0] - mdir[1]])
        if float(np.linalg.norm(ortho)) < 1e-6:
            ortho = np.array([-mdir[1] - mdir[2], mdir[0], mdir[0]])
        a, b = float(measured @ cl_u), float(measured @ cl_v)
        c, d = float(ortho @ cl_u), float(ortho @ cl_v)
    elif len(directions) == 2:
        first, second = directions
        a, b = float(first @ cl_u), float(first @ cl_v)
        c, d = float(second @ cl_u), float(second @ cl_v)
    else:
        raise ValueError("measurement dimensions > 2 are not yet implemented")

    determinant = a * d - b * c
    if determinant == 0.0:
        raise ValueError("projection matrix can't be inverted")
    return np.array([[d, -b], [-c, a]]) / determinant