"""Material effects on tracks: multiple scattering and ionisation energy loss.

Lengths are in cm, densities in g/cm^3, momenta, energies and masses in GeV.
When no mass is given the particle is taken to be a pion.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from aidatt.helix import CONVERT_BR_TO_P_CM, calculate_phi_from_xy
from aidatt.surfaces import Surface, intersect_with_surface
from aidatt.track import TrackParameters, calculate_omega, calculate_tan_lambda

logger = logging.getLogger(__name__)

#: charged pion mass [GeV]
PION_MASS = 0.13957018

_K = 0.307075e-3  # [GeV cm^2]
_ELECTRON_MASS = 0.510998902e-3  # [GeV]


@dataclass(frozen=True)
class Material:
    """A material described by density, atomic mass, atomic number and radiation length."""

    density: float
    atomic_mass: float
    atomic_number: float
    radiation_length: float

    def __post_init__(self) -> None:
        if self.atomic_mass <= 0.0:
            raise ValueError("atomic mass must be positive")
        if self.radiation_length <= 0.0:
            raise ValueError("radiation length must be positive")
        if self.density < 0.0:
            raise ValueError("density must not be negative")


@dataclass(frozen=True)
class EnergyLoss:
    """Expected energy loss in a surface with the particle's total energy and beta."""

    delta_e: float
    energy: float
    beta: float


def _materials(surface: Surface) -> tuple[Material, Material]:
    inner, outer = surface.inner_material, surface.outer_material
    if inner is None or outer is None:
        raise ValueError(f"surface has no material on both sides : {surface}")
    return inner, outer


def _cos_track(surface: Surface, crossing_point, momentum: np.ndarray) -> tuple[float, np.ndarray, np.ndarray]:
    direction = momentum / float(np.linalg.norm(momentum))
    position = surface.local_to_global(crossing_point)
    normal = surface.normal(position)
    return abs(float(direction @ normal)), position, normal


def compute_qms(surface: Surface, crossing_point, momentum, mass=PION_MASS) -> float:
    """Multiple scattering angle for a track crossing ``surface`` at local ``crossing_point``.

    Simple approximation (PDG 2012, 27.15) with the path through the
    material taken as the straight-line projection onto the surface normal.
    """
    inner, outer = _materials(surface)
    p = np.array(momentum, dtype=float).reshape(3)

    r_i = surface.inner_thickness
    r_o = surface.outer_thickness
    r_tot = r_i + r_o

    # effective inverse radiation length per cm of the surface
    x0_eff = (r_i / inner.radiation_length + r_o / outer.radiation_length) / r_tot

    cos_trk, position, normal = _cos_track(surface, crossing_point, p)
    path = r_tot / cos_trk
    x_x0 = path * x0_eff

    mom = float(np.linalg.norm(p))
    beta = mom / math.sqrt(mom * mom + mass * mass)
    qms = 0.0136 / (mom * beta) * math.sqrt(x_x0) * (1 + 0.038 * math.log(x_x0))

    level = logging.ERROR if math.isnan(qms) else logging.DEBUG
    logger.log(
        level,
        " **QMS: surface : %s crossingPoint : %s position = %s normal = %s "
        "QMS = %s path length = %s X0_eff : %s",
        surface,
        tuple(crossing_point),
        position.tolist(),
        normal.tolist(),
        qms,
        path,
        x0_eff,
    )
    return qms


def _momentum_at_crossing(params, reference_point, point: np.ndarray, bz: float) -> np.ndarray:
    phi = calculate_phi_from_xy(point[0], point[1], params, reference_point)
    omega = calculate_omega(params)
    tanl = calculate_tan_lambda(params)
    pt = abs(1.0 / omega) * bz * CONVERT_BR_TO_P_CM
    return np.array([pt * math.cos(phi), pt * math.sin(phi), pt * tanl])


def compute_qms_for_helix(
    surface: Surface, params, reference_point=None, bz=0.0, mass=PION_MASS
) -> float:
    """Multiple scattering angle where the helix crosses ``surface``; zero if it does not.

    ``bz`` is the field along z at the crossing point.
    """
    found = intersect_with_surface(surface, params, reference_point, 0, True)
    if found is None:
        return 0.0
    uv = surface.global_to_local(found.point)
    momentum = _momentum_at_crossing(params, reference_point, found.point, bz)
    return compute_qms(surface, uv, momentum, mass)


def compute_bethe_bloch(material: Material, momentum: float, mass=PION_MASS) -> float:
    """Bethe-Bloch energy loss per unit density and path length [GeV cm^2/g]."""
    density = material.density
    a = material.atomic_mass
    z = material.atomic_number

    # mean excitation energy [GeV]
    excitation = (9.76 * z + 58.8 * z ** -0.19) * 1.0e-9
    plasma = 28.816 * math.sqrt(density * z / a) * 1.0e-9
    bg2 = (momentum * momentum) / (mass * mass)
    gm2 = 1.0 + bg2
    me_m = _ELECTRON_MASS / mass
    x = math.log10(math.sqrt(bg2))
    c0 = -(2.0 * math.log(excitation / plasma) + 1.0)
    coeff = -c0 / 27.0
    if x >= 3.0:
        delta = 4.606 * x + c0
    elif 0.0 <= x < 3.0:
        delta = 4.606 * x + c0 + coeff * (3.0 - x) ** 3
    else:
        delta = 0.0
    tmax = 2.0 * _ELECTRON_MASS * bg2 / (1.0 + me_m * (2.0 * math.sqrt(gm2) + me_m))
    return (
        _K
        * z
        / a
        * gm2
        / bg2
        * (
            0.5 * math.log(2.0 * _ELECTRON_MASS * bg2 * tmax / (excitation * excitation))
            - bg2 / gm2
            - delta
        )
    )


def compute_energy_loss(surface: Surface, crossing_point, momentum, mass=PION_MASS) -> EnergyLoss:
    """Expected energy loss [GeV] for a particle crossing ``surface`` at local ``crossing_point``."""
    inner, outer = _materials(surface)
    p = np.array(momentum, dtype=float).reshape(3)

    cos_trk, _, normal = _cos_track(surface, crossing_point, p)
    path_i = surface.inner_thickness / cos_trk
    path_o = surface.outer_thickness / cos_trk

    mom = float(np.linalg.norm(p))
    energy = math.sqrt(mom * mom + mass * mass)
    beta = mom / energy

    delta_e = compute_bethe_bloch(inner, mom, mass) * inner.density * path_i
    delta_e += compute_bethe_bloch(outer, mom, mass) * outer.density * path_o

    if math.isnan(delta_e):
        logger.error(
            " **computeEnergyLoss : %s normal = %s deltaE : %s path length = %s momentum : %s",
            tuple(crossing_point),
            normal.tolist(),
            delta_e,
            path_i + path_o,
            p.tolist(),
        )
    return EnergyLoss(delta_e, energy, beta)


def compute_energy_loss_for_track(
    surface: Surface, track: TrackParameters, bz=0.0, mass=PION_MASS
) -> EnergyLoss | None:
    """Expected energy loss where the track crosses ``surface``; None if it does not."""
    found = intersect_with_surface(surface, track, track.reference_point, 0, True)
    if found is None:
        return None
    uv = surface.global_to_local(found.point)
    momentum = _momentum_at_crossing(track, track.reference_point, found.point, bz)
    return compute_energy_loss(surface, uv, momentum, mass)