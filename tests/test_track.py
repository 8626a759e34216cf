import math

import numpy as np
import pytest

from aidatt.track import (
    FitResults,
    HelixParameter,
    PerigeeParameter,
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

COV = [
    1., 0., 0., 0., 0.,
    0., 1., 0., 0., 0.,
    0., 0., 1., 0., 0.,
    0., 0., 0., 1., 0.,
    0., 0., 0., 0., 1.,
]
REF = [2., 3., 5.]
HELIX = [1., 0.02, 1.2, .2, .3]


def test_default_is_zero():
    one = TrackParameters()
    for i in range(5):
        assert one[i] == pytest.approx(0.0, abs=1e-9)
    assert np.allclose(one.reference_point, 0.0)
    assert np.allclose(one.covariance, 0.0)


def test_single_setters_leave_rest_untouched():
    two = TrackParameters()
    three = TrackParameters()
    four = TrackParameters()
    two.set_reference_point(REF)
    three.set_track_parameters(HELIX)
    four.set_covariance_matrix(COV)

    assert np.allclose(two.parameters, 0.0)
    assert np.allclose(four.parameters, 0.0)
    assert np.allclose(three.reference_point, 0.0)
    assert np.allclose(four.reference_point, 0.0)
    assert np.allclose(two.covariance, 0.0)
    assert np.allclose(three.covariance, 0.0)

    assert list(three.parameters) == pytest.approx(HELIX)
    assert list(two.reference_point) == pytest.approx(REF)
    assert np.allclose(four.covariance, np.eye(5))


def test_full_setter():
    one = TrackParameters()
    one.set_track_parameters(HELIX, COV, REF)
    assert list(one.parameters) == pytest.approx(HELIX)
    assert list(one.reference_point) == pytest.approx(REF)
    assert np.allclose(one.covariance, np.eye(5))
    for i in range(5):
        assert one[i] == pytest.approx(one.parameters[i])


def test_item_assignment_and_enum_index():
    tp = TrackParameters(HELIX)
    tp[HelixParameter.D0] = 7.5
    assert tp.parameters[3] == 7.5
    assert tp[HelixParameter.PHI0] == pytest.approx(1.2)


def test_copy_is_independent():
    tp = TrackParameters(HELIX, COV, REF)
    other = tp.copy()
    other[0] = 42.0
    other.reference_point[0] = -1.0
    assert tp[0] == 1.0
    assert tp.reference_point[0] == 2.0


def test_wrong_sizes_rejected():
    with pytest.raises(ValueError):
        TrackParameters([1.0, 2.0])
    with pytest.raises(ValueError):
        TrackParameters().set_covariance_matrix([1.0] * 24)
    with pytest.raises(ValueError):
        TrackParameters().set_reference_point([1.0, 2.0])


def test_fit_results_default():
    fr = FitResults()
    assert fr.valid is False
    assert fr.ndf == 0
    assert fr.chi_square == pytest.approx(0.0, abs=1e-9)
    assert fr.weight_lost == pytest.approx(0.0, abs=1e-9)
    assert np.allclose(fr.estimated_parameters.parameters, 0.0)


def test_fit_results_set():
    fr = FitResults()
    tp = TrackParameters()
    tp.set_track_parameters(HELIX, COV, REF)
    fr.set_results(True, 225.256, 64, 12.34, tp)
    assert fr.valid is True
    assert fr.ndf == 64
    assert fr.chi_square == pytest.approx(225.256)
    assert fr.weight_lost == pytest.approx(12.34)
    assert list(fr.estimated_parameters.parameters) == pytest.approx(HELIX)


def test_fit_results_str():
    fr = FitResults()
    fr.set_results(True, 2.5, 3, 0.5, TrackParameters())
    text = str(fr)
    assert "results are valid? 1" in text
    assert "chi^2/ndf : 2.5/3" in text
    assert "lost weight : 0.5" in text


def test_parameter_accessors():
    tp = TrackParameters(HELIX)
    assert calculate_omega(tp) == 1.0
    assert calculate_curvature(tp) == 1.0
    assert calculate_tan_lambda(tp) == 0.02
    assert calculate_lambda(tp) == pytest.approx(math.atan(0.02))
    assert calculate_phi0(tp) == 1.2
    assert calculate_d0(tp) == 0.2
    assert calculate_z0(tp) == 0.3


def test_accessors_accept_plain_sequence():
    assert calculate_phi0(HELIX) == 1.2
    assert list(helix_vector(HELIX)) == HELIX
    with pytest.raises(ValueError):
        helix_vector([1.0, 2.0, 3.0])


def test_enum_indexing_follows_parameter_order():
    tp = TrackParameters(HELIX)
    assert [tp[p] for p in HelixParameter] == pytest.approx(HELIX)
    assert [p.name for p in HelixParameter] == ["OMEGA", "TANL", "PHI0", "D0", "Z0"]
    assert tp[PerigeeParameter.EPSILON] == pytest.approx(tp[HelixParameter.D0])