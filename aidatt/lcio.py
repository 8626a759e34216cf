"""Conversion between track parameters and LCIO-style track states.

An LCIO track state holds (d0, phi, omega, z0, tan(lambda)) in millimetres,
a reference point and the lower triangle of the covariance matrix in the
order d0, phi, omega, z0, tan(lambda). Track parameters use centimetres.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from aidatt.surfaces import MM
from aidatt.track import (
    HelixParameter,
    TrackParameters,
    calculate_d0,
    calculate_omega,
    calculate_phi0,
    calculate_tan_lambda,
    calculate_z0,
)

_COVARIANCE_SIZE = 15

# position of each helix parameter in the LCIO ordering
_LCIO_INDEX = {
    HelixParameter.OMEGA: 2,
    HelixParameter.TANL: 4,
    HelixParameter.PHI0: 1,
    HelixParameter.D0: 0,
    HelixParameter.Z0: 3,
}

# power of the length unit carried by each helix parameter
_LENGTH_POWER = {
    HelixParameter.OMEGA: -1,
    HelixParameter.TANL: 0,
    HelixParameter.PHI0: 0,
    HelixParameter.D0: 1,
    HelixParameter.Z0: 1,
}

# for writing: LCIO covariance slot -> matrix element it is taken from
_WRITE_ORDER = (
    (3, 3),
    (3, 2),
    (2, 2),
    (3, 0),
    (0, 2),
    (0, 0),
    (3, 4),
    (2, 4),
    (4, 0),
    (4, 4),
    (1, 3),
    (1, 2),
    (0, 1),
    (1, 4),
    (1, 1),
)


def _lower_index(a: int, b: int) -> int:
    high, low = max(a, b), min(a, b)
    return high * (high + 1) // 2 + low


def _power(i: int, j: int) -> int:
    return _LENGTH_POWER[HelixParameter(i)] + _LENGTH_POWER[HelixParameter(j)]


@dataclass
class TrackState:
    """A track state in LCIO units and conventions."""

    omega: float = 0.0
    tan_lambda: float = 0.0
    phi: float = 0.0
    d0: float = 0.0
    z0: float = 0.0
    reference_point: tuple[float, float, float] = (0.0, 0.0, 0.0)
    covariance: tuple[float, ...] = field(default_factory=lambda: (0.0,) * _COVARIANCE_SIZE)
    location: int = 0

    def __post_init__(self) -> None:
        rp = tuple(float(v) for v in self.reference_point)
        if len(rp) != 3:
            raise ValueError(f"reference point needs 3 values, got {len(rp)}")
        cov = tuple(float(v) for v in self.covariance)
        if len(cov) != _COVARIANCE_SIZE:
            raise ValueError(
                f"covariance needs {_COVARIANCE_SIZE} values, got {len(cov)}"
            )
        self.reference_point = rp
        self.covariance = cov


def read_track_state(state: TrackState) -> TrackParameters:
    """Track parameters with covariance and reference point from a track state."""
    params = np.zeros(5)
    params[HelixParameter.OMEGA] = state.omega / MM
    params[HelixParameter.TANL] = state.tan_lambda
    params[HelixParameter.PHI0] = state.phi
    params[HelixParameter.D0] = state.d0 * MM
    params[HelixParameter.Z0] = state.z0 * MM

    covariance = np.zeros((5, 5))
    for i in HelixParameter:
        for j in HelixParameter:
            slot = _lower_index(_LCIO_INDEX[i], _LCIO_INDEX[j])
            covariance[i, j] = state.covariance[slot] * MM ** _power(i, j)

    reference = np.array(state.reference_point) * MM
    return TrackParameters(params, covariance, reference)


def create_track_state(track: TrackParameters) -> TrackState:
    """A track state in LCIO units from track parameters."""
    cov = track.covariance
    lcio_index_to_helix = {index: param for param, index in _LCIO_INDEX.items()}
    values = [0.0] * _COVARIANCE_SIZE
    for slot, (i, j) in enumerate(_WRITE_ORDER):
        values[slot] = float(cov[i, j]) * MM ** (-_power(i, j))

    # sanity: every slot matches the helix pair it stands for
    assert all(
        _lower_index(_LCIO_INDEX[HelixParameter(i)], _LCIO_INDEX[HelixParameter(j)]) == slot
        for slot, (i, j) in enumerate(_WRITE_ORDER)
    ), lcio_index_to_helix

    return TrackState(
        omega=calculate_omega(track) * MM,
        tan_lambda=calculate_tan_lambda(track),
        phi=calculate_phi0(track),
        d0=calculate_d0(track) / MM,
        z0=calculate_z0(track) / MM,
        reference_point=tuple(float(v) / MM for v in track.reference_point),
        covariance=tuple(values),
        location=0,
    )