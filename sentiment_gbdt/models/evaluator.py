"""
Model Evaluator

Binary classification quality of a trained model on a labelled test set.
Accuracy and F1 use the predicted labels (probability >= 0.5); AUC ranks the
raw scores, with tied scores counting one half.
"""

from dataclasses import dataclass, field
from typing import Sequence, Tuple

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    confusion_matrix,
    f1_score,
    log_loss,
    precision_score,
    recall_score,
    roc_auc_score,
)


@dataclass(frozen=True)
class Metrics:
    """
    Read-only snapshot of test-set quality

    Attributes:
    -----------
    accuracy : float
        Fraction of correctly predicted labels
    auc : float
        Area under the ROC curve of the raw scores (nan with a single class)
    f1 : float
        Harmonic mean of precision and recall at the 0.5 threshold
    precision : float
    recall : float
    log_loss : float
        Mean logistic loss of the calibrated probabilities
    confusion_matrix : tuple
        ((true negatives, false positives), (false negatives, true positives))
    n_examples : int
    """
    accuracy: float
    auc: float
    f1: float
    precision: float = 0.0
    recall: float = 0.0
    log_loss: float = float('nan')
    confusion_matrix: Tuple[Tuple[int, int], Tuple[int, int]] = field(default=((0, 0), (0, 0)))
    n_examples: int = 0

    def to_dict(self):
        return {
            'accuracy': self.accuracy,
            'auc': self.auc,
            'f1': self.f1,
            'precision': self.precision,
            'recall': self.recall,
            'log_loss': self.log_loss,
            'confusion_matrix': [list(row) for row in self.confusion_matrix],
            'n_examples': self.n_examples,
        }


def compute_metrics(
    labels: Sequence[bool],
    scores: Sequence[float],
    probabilities: Sequence[float],
    predicted_labels: Sequence[bool]
) -> Metrics:
    """
    Compute metrics from aligned predictions

    Parameters:
    -----------
    labels : sequence of bool
        True labels
    scores : sequence of float
        Raw ensemble scores
    probabilities : sequence of float
        Calibrated probabilities
    predicted_labels : sequence of bool
        Predicted labels

    Returns:
    --------
    metrics : Metrics
    """
    y_true = np.asarray(labels, dtype=bool)
    y_pred = np.asarray(predicted_labels, dtype=bool)
    scores = np.asarray(scores, dtype=np.float64)
    probabilities = np.asarray(probabilities, dtype=np.float64)

    n_examples = y_true.shape[0]
    if n_examples == 0:
        raise ValueError("Cannot evaluate on an empty test set")
    if not (y_pred.shape[0] == scores.shape[0] == probabilities.shape[0] == n_examples):
        raise ValueError("Labels and predictions must have the same length")

    if np.unique(y_true).shape[0] < 2:
        auc = float('nan')
    else:
        auc = float(roc_auc_score(y_true, scores))

    matrix = confusion_matrix(y_true, y_pred, labels=[False, True])

    return Metrics(
        accuracy=float(accuracy_score(y_true, y_pred)),
        auc=auc,
        f1=float(f1_score(y_true, y_pred, zero_division=0)),
        precision=float(precision_score(y_true, y_pred, zero_division=0)),
        recall=float(recall_score(y_true, y_pred, zero_division=0)),
        log_loss=float(log_loss(y_true, probabilities, labels=[False, True])),
        confusion_matrix=tuple(tuple(int(v) for v in row) for row in matrix),
        n_examples=int(n_examples),
    )


def evaluate(model, test_examples) -> Metrics:
    """
    Evaluate a trained model on labelled examples

    Parameters:
    -----------
    model : SentimentModel
        Trained model; not modified
    test_examples : sequence of SentimentExample
        Examples with labels; not modified

    Returns:
    --------
    metrics : Metrics
    """
    test_examples = list(test_examples)
    if not test_examples:
        raise ValueError("Cannot evaluate on an empty test set")
    for position, example in enumerate(test_examples):
        if example.label is None:
            raise ValueError(f"Test example at position {position} has no label")

    predictions = model.predict_batch(test_examples)
    return compute_metrics(
        labels=[example.label for example in test_examples],
        scores=[p.score for p in predictions],
        probabilities=[p.probability for p in predictions],
        predicted_labels=[p.label for p in predictions],
    )
