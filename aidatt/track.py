"""Track parameters in the L3 helix convention and fit results.

The helix parameters are (omega, tan(lambda), phi0, d0, z0) with respect to a
reference point, together with a 5x5 covariance matrix.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np


class HelixParameter(IntEnum):
    """Indices of the L3 helix parameters."""

    OMEGA = 0
    TANL = 1
    PHI0 = 2
    D0 = 3
    Z0 = 4


class PerigeeParameter(IntEnum):
    """Indices of the intermediate perigee parametrisation."""

    KAPPA = 0
    THETA = 1
    PHI = 2
    EPSILON = 3
    ZP = 4


def _as_vector(values, size: int, what: str) -> np.ndarray:
    vec = np.array(values, dtype=float).reshape(-1)
    if vec.shape != (size,):
        raise ValueError(f"{what} needs {size} values, got {vec.size}")
    return vec


def _as_covariance(values) -> np.ndarray:
    mat = np.array(values, dtype=float)
    if mat.size != 25:
        raise ValueError(f"covariance matrix needs 25 values, got {mat.size}")
    return mat.reshape(5, 5)


class TrackParameters:
    """Helix parameters, their covariance and the reference point."""

    def __init__(self, parameters=None, covariance=None, reference_point=None) -> None:
        self.parameters = (
            np.zeros(5) if parameters is None else _as_vector(parameters, 5, "parameters")
        )
        self.covariance = (
            np.zeros((5, 5)) if covariance is None else _as_covariance(covariance)
        )
        self.reference_point = (
            np.zeros(3)
            if reference_point is None
            else _as_vector(reference_point, 3, "reference point")
        )

    def set_track_parameters(self, parameters, covariance=None, reference_point=None) -> None:
        """Replace the parameters and, when given, covariance and reference point."""
        self.parameters = _as_vector(parameters, 5, "parameters")
        if covariance is not None:
            self.set_covariance_matrix(covariance)
        if reference_point is not None:
            self.set_reference_point(reference_point)

    def set_covariance_matrix(self, covariance) -> None:
        """Set the covariance from a 5x5 matrix or 25 row-major values."""
        self.covariance = _as_covariance(covariance)

    def set_reference_point(self, reference_point) -> None:
        self.reference_point = _as_vector(reference_point, 3, "reference point")

    def __getitem__(self, index) -> float:
        return float(self.parameters[index])

    def __setitem__(self, index, value) -> None:
        self.parameters[index] = value

    def copy(self) -> "TrackParameters":
        return TrackParameters(
            self.parameters.copy(), self.covariance.copy(), self.reference_point.copy()
        )

    def __repr__(self) -> str:
        return (
            f"TrackParameters(parameters={self.parameters.tolist()!r}, "
            f"covariance={self.covariance.tolist()!r}, "
            f"reference_point={self.reference_point.tolist()!r})"
        )

    def __str__(self) -> str:
        return (
            f"[trackParameters: parameters = {self.parameters.tolist()} ; "
            f"reference point = {self.reference_point.tolist()} ]"
        )


@dataclass
class FitResults:
    """Outcome of a track fit."""

    valid: bool = False
    chi_square: float = 0.0
    ndf: int = 0
    weight_lost: float = 0.0
    estimated_parameters: TrackParameters = field(default_factory=TrackParameters)

    def set_results(self, valid, chi_square, ndf, weight_lost, estimated_parameters) -> None:
        self.valid = bool(valid)
        self.chi_square = float(chi_square)
        self.ndf = int(ndf)
        self.weight_lost = float(weight_lost)
        self.estimated_parameters = estimated_parameters.copy()

    def __str__(self) -> str:
        return (
            f" [fitResults]: {{ results are valid? {int(self.valid)}}} , "
            f"{{ chi^2/ndf : {self.chi_square}/{self.ndf} }} , "
            f"( lost weight : {self.weight_lost} with the track parameters: "
            f"{self.estimated_parameters}"
        )


def helix_vector(params) -> np.ndarray:
    """The five helix parameters of a TrackParameters or a plain sequence."""
    if isinstance(params, TrackParameters):
        return params.parameters
    return _as_vector(params, 5, "parameters")


def calculate_omega(params) -> float:
    return float(helix_vector(params)[HelixParameter.OMEGA])


def calculate_curvature(params) -> float:
    """Signed curvature; identical to omega in this convention."""
    return calculate_omega(params)


def calculate_tan_lambda(params) -> float:
    return float(helix_vector(params)[HelixParameter.TANL])


def calculate_lambda(params) -> float:
    return math.atan(calculate_tan_lambda(params))


def calculate_phi0(params) -> float:
    return float(helix_vector(params)[HelixParameter.PHI0])


def calculate_d0(params) -> float:
    return float(helix_vector(params)[HelixParameter.D0])


def calculate_z0(params) -> float:
    return float(helix_vector(params)[HelixParameter.Z0])