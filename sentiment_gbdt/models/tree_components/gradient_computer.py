"""
Gradient Computer

This module handles the initial score and the pseudo-residuals of the
logistic loss used to fit every boosting round.
"""

import numpy as np

from .data_transforms import sigmoid, _clip_probabilities


class GradientComputer:
    """
    Logistic-loss statistics for binary boosting

    Attributes:
    -----------
    loss : str
        Loss function; only "logloss" is supported
    """

    def __init__(self, loss: str = "logloss"):
        if loss != "logloss":
            raise ValueError(f"Unsupported loss function: {loss}")
        self.loss = loss

    def compute_initial_prediction(self, y: np.ndarray) -> float:
        """
        Log-odds of the positive base rate

        Parameters:
        -----------
        y : array-like, shape=(n_samples,)
            Binary targets

        Returns:
        --------
        initial_score : float
            Constant starting score for every example
        """
        base_rate = float(np.clip(np.mean(y), 1e-7, 1 - 1e-7))
        return float(np.log(base_rate / (1 - base_rate)))

    def compute_residuals(self, y: np.ndarray, scores: np.ndarray) -> np.ndarray:
        """
        Pseudo-residuals (negative gradient of the logistic loss)

        Parameters:
        -----------
        y : array-like, shape=(n_samples,)
            Binary targets
        scores : array-like, shape=(n_samples,)
            Current running scores

        Returns:
        --------
        residuals : array-like, shape=(n_samples,)
            label - sigmoid(score)
        """
        return y - sigmoid(scores)

    def compute_loss(self, y: np.ndarray, scores: np.ndarray) -> float:
        """
        Mean logistic loss of the current scores
        """
        probs = _clip_probabilities(sigmoid(scores))
        return float(-np.mean(y * np.log(probs) + (1 - y) * np.log(1 - probs)))
