"""
Probability Calibrator

Platt scaling: ``p = sigmoid(slope * score + intercept)``. Slope and
intercept minimize the logistic loss against Platt's prior-corrected
targets, found with Newton steps and a backtracking line search. The slope
is kept non-negative so probabilities never decrease with the score.
"""

from dataclasses import dataclass
from typing import Any, Dict, Union

import numpy as np

from .base import PipelineStage
from .tree_components.data_transforms import sigmoid, validate_labels
from ..errors import TrainingError


MAX_ITERATIONS = 100
MIN_STEP = 1e-10
HESSIAN_RIDGE = 1e-12
GRADIENT_TOLERANCE = 1e-5


@dataclass(frozen=True)
class CalibrationParams:
    slope: float = 1.0
    intercept: float = 0.0


def _platt_loss(slope: float, intercept: float, scores: np.ndarray, targets: np.ndarray) -> float:
    z = slope * scores + intercept
    return float(np.sum(np.logaddexp(0.0, z) - targets * z))


def fit_calibration(scores, labels) -> CalibrationParams:
    """
    Fit Platt scaling parameters

    Parameters:
    -----------
    scores : array-like, shape=(n_samples,)
        Raw ensemble scores
    labels : array-like, shape=(n_samples,)
        Binary labels

    Returns:
    --------
    params : CalibrationParams
        Fitted slope (>= 0) and intercept
    """
    scores = np.asarray(scores, dtype=np.float64).ravel()
    if scores.shape[0] == 0:
        raise TrainingError("Cannot fit calibration on an empty score set")
    if not np.all(np.isfinite(scores)):
        raise TrainingError("Scores contain inf or NaN values")
    y = validate_labels(labels, scores.shape[0])

    n_positive = float(np.sum(y))
    n_negative = float(len(y) - n_positive)
    hi_target = (n_positive + 1.0) / (n_positive + 2.0)
    lo_target = 1.0 / (n_negative + 2.0)
    targets = np.where(y > 0.5, hi_target, lo_target)

    slope = 0.0
    intercept = float(np.log((n_positive + 1.0) / (n_negative + 1.0)))
    loss = _platt_loss(slope, intercept, scores, targets)

    for _ in range(MAX_ITERATIONS):
        probs = sigmoid(slope * scores + intercept)
        residual = probs - targets
        g_slope = float(np.dot(residual, scores))
        g_intercept = float(np.sum(residual))
        if abs(g_slope) < GRADIENT_TOLERANCE and abs(g_intercept) < GRADIENT_TOLERANCE:
            break

        weights = probs * (1.0 - probs)
        h11 = float(np.dot(weights, scores * scores)) + HESSIAN_RIDGE
        h22 = float(np.sum(weights)) + HESSIAN_RIDGE
        h21 = float(np.dot(weights, scores))
        det = h11 * h22 - h21 * h21

        d_slope = -(h22 * g_slope - h21 * g_intercept) / det
        d_intercept = -(-h21 * g_slope + h11 * g_intercept) / det
        directional = g_slope * d_slope + g_intercept * d_intercept

        step = 1.0
        while step >= MIN_STEP:
            new_slope = slope + step * d_slope
            new_intercept = intercept + step * d_intercept
            new_loss = _platt_loss(new_slope, new_intercept, scores, targets)
            if new_loss < loss + 1e-4 * step * directional:
                slope, intercept, loss = new_slope, new_intercept, new_loss
                break
            step /= 2.0
        else:
            break

    if slope < 0.0:
        # a decreasing fit carries no ranking signal; fall back to the prior
        slope = 0.0
        mean_target = float(np.mean(targets))
        intercept = float(np.log(mean_target / (1.0 - mean_target)))

    return CalibrationParams(slope=float(slope), intercept=float(intercept))


def apply_calibration(score: Union[float, np.ndarray], params: CalibrationParams):
    """
    Map raw scores to probabilities

    Parameters:
    -----------
    score : float or array-like
        Raw ensemble score(s)
    params : CalibrationParams
        Fitted parameters

    Returns:
    --------
    probability : float or array-like
        Calibrated probability in [0, 1]
    """
    probability = sigmoid(params.slope * np.asarray(score, dtype=np.float64) + params.intercept)
    if np.ndim(probability) == 0:
        return float(probability)
    return probability


class PlattCalibrator(PipelineStage):
    """
    Calibration stage mapping raw scores to probabilities

    Attributes:
    -----------
    params_ : CalibrationParams
        Fitted slope and intercept
    """

    def __init__(self):
        self.params_ = None
        self.is_fitted = False

    def fit(self, X, y=None, **kwargs) -> 'PlattCalibrator':
        if self.is_fitted:
            raise TrainingError("PlattCalibrator is already fitted")
        self.params_ = fit_calibration(X, y)
        self.is_fitted = True
        return self

    def transform(self, X) -> np.ndarray:
        if not self.is_fitted:
            raise ValueError("Calibrator has not been fitted yet")
        return np.atleast_1d(apply_calibration(X, self.params_))

    def get_params(self) -> Dict[str, Any]:
        return {}

    @classmethod
    def from_params(cls, params: CalibrationParams) -> 'PlattCalibrator':
        calibrator = cls()
        calibrator.params_ = params
        calibrator.is_fitted = True
        return calibrator

    def __repr__(self) -> str:
        if not self.is_fitted:
            return "PlattCalibrator(not fitted)"
        return f"PlattCalibrator(slope={self.params_.slope:.4f}, intercept={self.params_.intercept:.4f})"
