"""Jacobians for transporting curvilinear track parameters along a helix.

The curvilinear parameters are (q/p, lambda, phi, x_t, y_t). A propagation
computes the 5x5 matrix that carries small changes of these parameters from
one point on the trajectory to another, given the track direction at both
ends and the magnetic field.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod

import numpy as np

from aidatt.helix import CONVERT_BR_TO_P_CM

logger = logging.getLogger(__name__)


def _vector3(values, what: str) -> np.ndarray:
    vec = np.array(values, dtype=float).reshape(-1)
    if vec.shape != (3,):
        raise ValueError(f"{what} needs 3 values, got {vec.size}")
    return vec


class Propagation(ABC):
    """Computes the propagation Jacobian between two points of a track."""

    @abstractmethod
    def jacobian(self, dw, qop, t_start, t_end, bfield, energy_loss=0.0) -> np.ndarray:
        """The 5x5 Jacobian for the 3D arc length ``dw``.

        ``qop`` is the signed inverse momentum, ``t_start`` and ``t_end`` the
        track directions at both ends, ``bfield`` the field vector and
        ``energy_loss`` the relative correction applied to q/p.
        """


class AnalyticalPropagation(Propagation):
    """Exact helix propagation in a constant magnetic field."""

    def jacobian(self, dw, qop, t_start, t_end, bfield, energy_loss=0.0) -> np.ndarray:
        t0 = _vector3(t_start, "start direction")
        t1 = _vector3(t_end, "end direction")
        b = _vector3(bfield, "magnetic field")
        dw = float(dw)
        qop = float(qop)

        b_norm = float(np.linalg.norm(b))
        qp = -b_norm * CONVERT_BR_TO_P_CM  # -|B*c|
        q = qp * qop

        jac = np.eye(5)
        if q == 0.0:
            # straight line
            jac[3, 2] = dw * math.hypot(t0[0], t0[1])
            jac[4, 1] = dw
            return jac

        cos_lambda_start = math.hypot(t0[0], t0[1])
        cos_lambda_end_inv = 1.0 / math.hypot(t1[0], t1[1])
        hn = b / b_norm
        pav = 1.0 / qop

        theta = q * dw
        sint = math.sin(theta)
        cost = math.cos(theta)
        gamma = float(hn @ t1)
        an1 = np.cross(hn, t0)
        an2 = np.cross(hn, t1)

        au1 = 1.0 / math.hypot(t0[0], t0[1])
        u1 = np.array([-au1 * t0[1], au1 * t0[0], 0.0])
        v1 = np.array([-t0[2] * u1[1], t0[2] * u1[0], t0[0] * u1[1] - t0[1] * u1[0]])

        au2 = 1.0 / math.hypot(t1[0], t1[1])
        u2 = np.array([-au2 * t1[1], au2 * t1[0], 0.0])
        v2 = np.array([-t1[2] * u2[1], t1[2] * u2[0], t1[0] * u2[1] - t1[1] * u2[0]])

        anv = -float(hn @ u2)  # N*V = -H*U
        anu = float(hn @ v2)  # N*U = H*V
        omcost = 1.0 - cost
        tmsint = theta - sint

        # M0 - M
        dx = -(gamma * tmsint * hn + sint * t0 + omcost * an1) / q

        hu1 = np.cross(hn, u1)
        hv1 = np.cross(hn, v1)

        u1u2, u1v2 = float(u1 @ u2), float(u1 @ v2)
        v1u2, v1v2 = float(v1 @ u2), float(v1 @ v2)
        hu1u2, hu1v2 = float(hu1 @ u2), float(hu1 @ v2)
        hv1u2, hv1v2 = float(hv1 @ u2), float(hv1 @ v2)
        hnu1, hnv1 = float(hn @ u1), float(hn @ v1)
        hnu2, hnv2 = float(hn @ u2), float(hn @ v2)
        t_end_u1, t_end_v1 = float(t1 @ u1), float(t1 @ v1)
        t_end_dx, u2dx, v2dx = float(t1 @ dx), float(u2 @ dx), float(v2 @ dx)
        an2u1, an2v1 = float(an2 @ u1), float(an2 @ v1)

        # 1/P
        jac[0, 0] = 1.0 + energy_loss
        # lambda
        jac[1, 0] = -qp * anv * t_end_dx
        jac[1, 1] = (
            cost * v1v2
            + sint * hv1v2
            + omcost * hnv1 * hnv2
            + anv * (-sint * t_end_v1 + omcost * an2v1 - gamma * tmsint * hnv1)
        )
        jac[1, 2] = cos_lambda_start * (
            cost * u1v2
            + sint * hu1v2
            + omcost * hnu1 * hnv2
            + anv * (-sint * t_end_u1 + omcost * an2u1 - gamma * tmsint * hnu1)
        )
        jac[1, 3] = -q * anv * t_end_u1
        jac[1, 4] = -q * anv * t_end_v1
        # phi
        jac[2, 0] = -qp * anu * t_end_dx * cos_lambda_end_inv
        jac[2, 1] = cos_lambda_end_inv * (
            cost * v1u2
            + sint * hv1u2
            + omcost * hnv1 * hnu2
            + anu * (-sint * t_end_v1 + omcost * an2v1 - gamma * tmsint * hnv1)
        )
        jac[2, 2] = (
            cos_lambda_end_inv
            * cos_lambda_start
            * (
                cost * u1u2
                + sint * hu1u2
                + omcost * hnu1 * hnu2
                + anu * (-sint * t_end_u1 + omcost * an2u1 - gamma * tmsint * hnu1)
            )
        )
        jac[2, 3] = -q * anu * t_end_u1 * cos_lambda_end_inv
        jac[2, 4] = -q * anu * t_end_v1 * cos_lambda_end_inv
        # x_t
        jac[3, 0] = pav * u2dx
        jac[3, 1] = (sint * v1u2 + omcost * hv1u2 + tmsint * hnu2 * hnv1) / q
        jac[3, 2] = (
            (sint * u1u2 + omcost * hu1u2 + tmsint * hnu2 * hnu1) * cos_lambda_start / q
        )
        jac[3, 3] = u1u2
        jac[3, 4] = v1u2
        # y_t
        jac[4, 0] = pav * v2dx
        jac[4, 1] = (sint * v1v2 + omcost * hv1v2 + tmsint * hnv2 * hnv1) / q
        jac[4, 2] = (
            (sint * u1v2 + omcost * hu1v2 + tmsint * hnv2 * hnu1) * cos_lambda_start / q
        )
        jac[4, 3] = u1v2
        jac[4, 4] = v1v2
        return jac


class SimplifiedPropagation(Propagation):
    """Helix propagation quadratic in the arc length, for a solenoidal field.

    Only the field along z and the track directions are used; ``qop`` and
    ``energy_loss`` are ignored.
    """

    def jacobian(self, dw, qop, t_start, t_end, bfield, energy_loss=0.0) -> np.ndarray:
        t0 = _vector3(t_start, "start direction")
        t1 = _vector3(t_end, "end direction")
        b = _vector3(bfield, "magnetic field")
        dw = float(dw)
        logger.debug("simplified propagation used for dw = %s", dw)

        jac = np.eye(5)
        dz = t0[2] - t1[2]
        cos_lambda = 1.0 / math.sqrt(1.0 + dz * dz)
        jac[2, 0] = -b[2] * dw
        jac[3, 0] = -0.5 * b[2] * dw * dw * cos_lambda
        jac[3, 2] = dw * cos_lambda
        jac[4, 1] = dw
        return jac