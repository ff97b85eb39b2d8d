"""
Platt スケーリングのテスト
"""

import numpy as np
import pytest

from sentiment_gbdt.errors import TrainingError
from sentiment_gbdt.models.calibrator import (
    CalibrationParams,
    PlattCalibrator,
    apply_calibration,
    fit_calibration
)


def test_two_point_fit_matches_prior_corrected_targets():
    params = fit_calibration([0.1, -0.1], [True, False])

    # Platt targets for one positive and one negative are 2/3 and 1/3
    assert apply_calibration(0.1, params) == pytest.approx(2.0 / 3.0, abs=1e-3)
    assert apply_calibration(-0.1, params) == pytest.approx(1.0 / 3.0, abs=1e-3)
    assert params.slope > 0


def test_calibration_is_monotonic():
    rng = np.random.RandomState(0)
    scores = rng.normal(size=200)
    labels = rng.rand(200) < 1.0 / (1.0 + np.exp(-2.0 * scores))

    params = fit_calibration(scores, labels)
    grid = np.linspace(-5, 5, 101)
    probabilities = apply_calibration(grid, params)

    assert params.slope > 0
    assert np.all(np.diff(probabilities) >= 0)
    assert np.all((probabilities >= 0) & (probabilities <= 1))


def test_anti_correlated_scores_keep_slope_non_negative():
    params = fit_calibration([1.0, 2.0, 3.0, 4.0], [True, True, False, False])

    assert params.slope == 0.0
    probabilities = apply_calibration(np.array([1.0, 4.0]), params)
    assert probabilities[0] == pytest.approx(probabilities[1])


def test_single_class_labels():
    params = fit_calibration([0.5, 1.0, 1.5], [True, True, True])
    assert apply_calibration(1.0, params) > 0.5


def test_apply_calibration_scalar_and_array():
    params = CalibrationParams(slope=1.0, intercept=0.0)

    assert isinstance(apply_calibration(0.0, params), float)
    assert apply_calibration(0.0, params) == pytest.approx(0.5)
    assert apply_calibration(np.zeros(3), params).shape == (3,)


def test_invalid_inputs():
    with pytest.raises(TrainingError):
        fit_calibration([], [])
    with pytest.raises(TrainingError):
        fit_calibration([np.nan, 1.0], [True, False])
    with pytest.raises(TrainingError):
        fit_calibration([1.0, 2.0], [True])


def test_platt_calibrator_stage():
    calibrator = PlattCalibrator()
    with pytest.raises(ValueError):
        calibrator.transform([0.0])

    calibrator.fit(np.array([0.1, -0.1]), np.array([True, False]))
    assert calibrator.transform(np.array([0.1, -0.1])).shape == (2,)

    with pytest.raises(TrainingError):
        calibrator.fit(np.array([0.1, -0.1]), np.array([True, False]))


def test_platt_calibrator_from_params():
    params = CalibrationParams(slope=2.0, intercept=-1.0)
    calibrator = PlattCalibrator.from_params(params)

    assert calibrator.is_fitted
    assert calibrator.transform(0.5)[0] == pytest.approx(0.5)
