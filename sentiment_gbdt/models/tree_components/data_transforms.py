"""
Data Transform Utilities

This module contains input validation and small numeric helpers shared by
the gradient computer, the tree builder and the calibrator.
"""

from typing import Optional

import numpy as np
import scipy.sparse as sp

from ...errors import TrainingError


def sigmoid(x: np.ndarray) -> np.ndarray:
    """
    Logistic function, clipped to avoid overflow in exp
    """
    return 1.0 / (1.0 + np.exp(-np.clip(x, -500, 500)))


def _clip_probabilities(probs: np.ndarray, epsilon: float = 1e-7) -> np.ndarray:
    """
    Clip probabilities to avoid numerical issues

    Parameters:
    -----------
    probs : np.ndarray
        Probabilities to clip
    epsilon : float
        Minimum and maximum values for clipping

    Returns:
    --------
    clipped : np.ndarray
        Clipped probabilities
    """
    return np.clip(probs, epsilon, 1 - epsilon)


def validate_features(X, expected_width: Optional[int] = None) -> sp.csr_matrix:
    """
    Validate a feature matrix and convert it to CSR

    Parameters:
    -----------
    X : array-like, sparse matrix or sequence of vectors, shape=(n_samples, n_features)
        Feature vectors
    expected_width : int, optional
        Required number of features

    Returns:
    --------
    X_validated : sparse matrix, shape=(n_samples, n_features)
        Float64 CSR matrix without stored zeros
    """
    if X is None:
        raise TrainingError("Features are missing")

    if sp.issparse(X):
        X = sp.csr_matrix(X, dtype=np.float64, copy=True)
    else:
        if not isinstance(X, np.ndarray):
            rows = list(X)
            if not rows:
                raise TrainingError("Cannot train on an empty feature set")
            widths = {len(row) for row in rows}
            if len(widths) > 1:
                raise TrainingError(f"Feature vectors have inconsistent widths: {sorted(widths)}")
            X = rows
        X = np.asarray(X, dtype=np.float64)
        if X.ndim != 2:
            raise TrainingError(f"Features must be a 2D array, got {X.ndim}D")
        X = sp.csr_matrix(X)

    n_samples, n_features = X.shape
    if n_samples == 0:
        raise TrainingError("Cannot train on an empty feature set")
    if n_features == 0:
        raise TrainingError("Feature vectors must have at least one entry")
    if expected_width is not None and n_features != expected_width:
        raise TrainingError(f"Expected {expected_width} features, got {n_features}")
    if not np.all(np.isfinite(X.data)):
        raise TrainingError("Features contain inf or NaN values")

    X.sum_duplicates()
    X.eliminate_zeros()
    return X


def validate_labels(y, n_samples: int) -> np.ndarray:
    """
    Validate binary labels

    Parameters:
    -----------
    y : array-like, shape=(n_samples,)
        Labels as bool or 0/1
    n_samples : int
        Number of feature vectors

    Returns:
    --------
    y_validated : array-like, shape=(n_samples,)
        Labels as float64 zeros and ones
    """
    if y is None:
        raise TrainingError("Labels are missing")
    y = np.asarray(y)
    if y.ndim != 1:
        raise TrainingError(f"Labels must be 1D, got {y.ndim}D")
    if y.shape[0] != n_samples:
        raise TrainingError(f"Got {n_samples} feature vectors but {y.shape[0]} labels")
    try:
        y = y.astype(np.float64)
    except (TypeError, ValueError) as exc:
        raise TrainingError("Labels must be boolean or 0/1") from exc
    if not np.all(np.isin(y, (0.0, 1.0))):
        raise TrainingError("Labels must be boolean or 0/1")
    return y
