import math

import numpy as np
import pytest

from aidatt.materials import (
    PION_MASS,
    EnergyLoss,
    Material,
    compute_bethe_bloch,
    compute_energy_loss,
    compute_energy_loss_for_track,
    compute_qms,
    compute_qms_for_helix,
)
from aidatt.surfaces import Surface
from aidatt.track import TrackParameters

SILICON = Material(density=2.33, atomic_mass=28.0855, atomic_number=14.0, radiation_length=9.37)


def _plane(inner=0.05, outer=0.05, material=SILICON):
    return Surface.plane(
        (0.0, 0.0, 0.0),
        (0.0, 0.0, 1.0),
        (1.0, 0.0, 0.0),
        inner_thickness=inner,
        outer_thickness=outer,
        inner_material=material,
        outer_material=material,
    )


def _cylinder(radius=10.0):
    return Surface.z_cylinder(
        radius,
        inner_thickness=0.05,
        outer_thickness=0.05,
        inner_material=SILICON,
        outer_material=SILICON,
    )


def _track(omega=1e-4):
    return TrackParameters([omega, 0.0, 0.0, 0.0, 0.0])


def test_qms_one_radiation_length_massless():
    surface = _plane(inner=SILICON.radiation_length, outer=0.0)
    qms = compute_qms(surface, (0.0, 0.0), (0.0, 0.0, 2.0), mass=0.0)
    assert qms == pytest.approx(0.0136 / 2.0)


def test_qms_scales_inversely_with_momentum_when_massless():
    surface = _plane()
    low = compute_qms(surface, (0.0, 0.0), (0.0, 0.0, 1.0), mass=0.0)
    high = compute_qms(surface, (0.0, 0.0), (0.0, 0.0, 2.0), mass=0.0)
    assert low / high == pytest.approx(2.0)


def test_qms_larger_for_massive_particle():
    surface = _plane()
    massless = compute_qms(surface, (0.0, 0.0), (0.0, 0.0, 0.3), mass=0.0)
    pion = compute_qms(surface, (0.0, 0.0), (0.0, 0.0, 0.3), mass=PION_MASS)
    assert pion > massless


def test_qms_requires_material():
    surface = Surface.plane((0, 0, 0), (0, 0, 1), (1, 0, 0), inner_thickness=0.1)
    with pytest.raises(ValueError):
        compute_qms(surface, (0.0, 0.0), (0.0, 0.0, 1.0))


def test_bethe_bloch_silicon_near_minimum():
    dedx = compute_bethe_bloch(SILICON, 0.5, PION_MASS)
    assert 1.0e-3 < dedx < 3.0e-3


def test_bethe_bloch_rises_at_low_momentum():
    assert compute_bethe_bloch(SILICON, 0.1) > compute_bethe_bloch(SILICON, 0.5)


def test_energy_loss_perpendicular_matches_bethe_bloch():
    surface = _plane()
    loss = compute_energy_loss(surface, (0.0, 0.0), (0.0, 0.0, 1.0))
    expected = compute_bethe_bloch(SILICON, 1.0) * SILICON.density * 0.1
    assert isinstance(loss, EnergyLoss)
    assert loss.delta_e == pytest.approx(expected)


def test_energy_loss_doubles_at_sixty_degrees():
    surface = _plane()
    straight = compute_energy_loss(surface, (0.0, 0.0), (0.0, 0.0, 1.0))
    angle = math.radians(60.0)
    tilted = compute_energy_loss(
        surface, (0.0, 0.0), (math.sin(angle), 0.0, math.cos(angle))
    )
    assert tilted.delta_e == pytest.approx(2.0 * straight.delta_e)


def test_energy_loss_energy_and_beta():
    loss = compute_energy_loss(_plane(), (0.0, 0.0), (0.0, 0.0, 3.0), mass=4.0)
    assert loss.energy == pytest.approx(5.0)
    assert loss.beta == pytest.approx(0.6)


def test_qms_for_helix_without_intersection_is_zero():
    assert compute_qms_for_helix(_cylinder(100.0), _track(1.0), None, 3.5) == 0.0


def test_qms_for_helix_scales_with_field():
    surface = _cylinder()
    weak = compute_qms_for_helix(surface, _track(), None, 2.0, mass=0.0)
    strong = compute_qms_for_helix(surface, _track(), None, 4.0, mass=0.0)
    assert weak > 0.0
    assert weak / strong == pytest.approx(2.0)


def test_energy_loss_for_track_without_intersection():
    assert compute_energy_loss_for_track(_cylinder(100.0), _track(1.0), 3.5) is None


def test_energy_loss_for_track_positive_and_consistent():
    loss = compute_energy_loss_for_track(_cylinder(), _track(), 3.5)
    assert loss.delta_e > 0.0
    assert loss.beta == pytest.approx(
        math.sqrt(loss.energy**2 - PION_MASS**2) / loss.energy
    )
    assert 0.0 < loss.beta < 1.0


def test_material_rejects_bad_values():
    with pytest.raises(ValueError):
        Material(density=1.0, atomic_mass=0.0, atomic_number=1.0, radiation_length=1.0)
    with pytest.raises(ValueError):
        Material(density=1.0, atomic_mass=1.0, atomic_number=1.0, radiation_length=0.0)


def test_helix_momentum_uses_tangent_direction():
    # a massless particle perpendicular to a plane with one radiation length
    surface = _plane(inner=SILICON.radiation_length, outer=0.0)
    qms = compute_qms(surface, (1.0, 2.0), np.array([0.0, 0.0, 1.0]), mass=0.0)
    assert qms == pytest.approx(0.0136)