import math

import numpy as np
import pytest

from aidatt.helix import CONVERT_BR_TO_P_CM
from aidatt.propagation import AnalyticalPropagation, Propagation, SimplifiedPropagation


def _direction(phi, lam):
    return np.array(
        [math.cos(phi) * math.cos(lam), math.sin(phi) * math.cos(lam), math.sin(lam)]
    )


def _end_direction(t0, bfield, qop, dw):
    b = np.array(bfield, dtype=float)
    h = b / np.linalg.norm(b)
    q = -np.linalg.norm(b) * CONVERT_BR_TO_P_CM * qop
    theta = q * dw
    gamma = float(h @ t0)
    return (
        gamma * (1.0 - math.cos(theta)) * h
        + math.cos(theta) * t0
        + math.sin(theta) * np.cross(h, t0)
    )


def test_base_class_is_abstract():
    with pytest.raises(TypeError):
        Propagation()


def test_straight_line_without_field():
    t = np.array([1.0, 0.0, 0.0])
    jac = AnalyticalPropagation().jacobian(2.0, 0.5, t, t, [0.0, 0.0, 0.0], 0.0)
    expected = np.eye(5)
    expected[3, 2] = 2.0
    expected[4, 1] = 2.0
    np.testing.assert_allclose(jac, expected)


def test_straight_line_without_charge():
    t = _direction(0.3, 0.4)
    jac = AnalyticalPropagation().jacobian(5.0, 0.0, t, t, [0.0, 0.0, 3.5], 0.0)
    assert jac[4, 1] == pytest.approx(5.0)
    assert jac[3, 2] == pytest.approx(5.0 * math.cos(0.4))
    assert jac[0, 0] == 1.0


def test_zero_step_is_identity():
    t = _direction(0.7, 0.2)
    jac = AnalyticalPropagation().jacobian(0.0, 0.8, t, t, [0.0, 0.0, 3.5], 0.0)
    np.testing.assert_allclose(jac, np.eye(5), atol=1e-12)


def test_energy_loss_enters_first_element():
    t = _direction(0.7, 0.2)
    jac = AnalyticalPropagation().jacobian(0.0, 0.8, t, t, [0.0, 0.0, 3.5], 0.25)
    assert jac[0, 0] == pytest.approx(1.25)


def test_forward_then_backward_is_identity():
    bfield = [0.0, 0.0, 3.5]
    qop = 2.0
    dw = 40.0
    t0 = _direction(0.4, 0.3)
    t1 = _end_direction(t0, bfield, qop, dw)
    prop = AnalyticalPropagation()
    forward = prop.jacobian(dw, qop, t0, t1, bfield, 0.0)
    backward = prop.jacobian(-dw, qop, t1, t0, bfield, 0.0)
    np.testing.assert_allclose(backward @ forward, np.eye(5), atol=1e-8)


def test_helix_step_with_unit_end_direction():
    bfield = [0.0, 0.0, 3.5]
    t0 = _direction(1.1, -0.5)
    t1 = _end_direction(t0, bfield, 1.5, 25.0)
    assert np.linalg.norm(t1) == pytest.approx(1.0)
    assert t1[2] == pytest.approx(t0[2])
    jac = AnalyticalPropagation().jacobian(25.0, 1.5, t0, t1, bfield, 0.1)
    assert jac[0, 0] == pytest.approx(1.1)
    assert np.all(np.isfinite(jac))
    assert jac[0, 1:] == pytest.approx([0.0, 0.0, 0.0, 0.0])


def test_small_charge_approaches_straight_line():
    bfield = [0.0, 0.0, 3.5]
    t0 = _direction(0.2, 0.6)
    dw = 3.0
    prop = AnalyticalPropagation()
    line = prop.jacobian(dw, 0.0, t0, t0, bfield, 0.0)
    qop = 1e-7
    t1 = _end_direction(t0, bfield, qop, dw)
    helix = prop.jacobian(dw, qop, t0, t1, bfield, 0.0)
    np.testing.assert_allclose(helix[:, 1:], line[:, 1:], atol=1e-6)


def test_vertical_direction_is_rejected_in_field():
    t = np.array([0.0, 0.0, 1.0])
    with pytest.raises(ZeroDivisionError):
        AnalyticalPropagation().jacobian(1.0, 1.0, t, t, [0.0, 0.0, 3.5], 0.0)


def test_wrong_vector_size_is_rejected():
    with pytest.raises(ValueError):
        AnalyticalPropagation().jacobian(1.0, 1.0, [1.0, 0.0], [1.0, 0.0, 0.0], [0, 0, 1], 0.0)


def test_simplified_same_slope():
    t = _direction(0.5, 0.3)
    jac = SimplifiedPropagation().jacobian(3.0, 0.9, t, t, [0.0, 0.0, 2.0], 0.0)
    assert jac[3, 2] == pytest.approx(3.0)
    assert jac[4, 1] == pytest.approx(3.0)
    assert jac[2, 0] == pytest.approx(-6.0)
    assert jac[3, 0] == pytest.approx(-9.0)
    assert jac[0, 0] == 1.0 and jac[1, 1] == 1.0


def test_simplified_slope_difference_shrinks_step():
    t0 = np.array([0.0, 0.0, 1.0])
    t1 = np.array([0.0, 0.0, 0.0])
    jac = SimplifiedPropagation().jacobian(2.0, 0.0, t0, t1, [0.0, 0.0, 0.0], 0.0)
    assert jac[3, 2] == pytest.approx(2.0 / math.sqrt(2.0))
    assert jac[2, 0] == 0.0