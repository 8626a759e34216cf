"""Magnetic field descriptions."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class ConstantSolenoidBField:
    """A homogeneous solenoidal field: constant value, only Bz is non-zero."""

    _bz: float

    def __init__(self, bz: float) -> None:
        object.__setattr__(self, "_bz", float(bz))

    def field(self, point) -> np.ndarray:
        """Field vector at ``point``; the same everywhere."""
        return np.array([0.0, 0.0, self._bz])

    def field_at(self, x: float, y: float, z: float) -> np.ndarray:
        """Field vector at the coordinates ``x``, ``y``, ``z``."""
        return self.field((x, y, z))

    def bx(self, point) -> float:
        """The x component of the field at ``point``."""
        return float(self.field(point)[0])

    def by(self, point) -> float:
        """The y component of the field at ``point``."""
        return float(self.field(point)[1])

    def bz(self, point) -> float:
        """The z component of the field at ``point``."""
        return float(self.field(point)[2])