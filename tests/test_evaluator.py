"""
評価指標のテスト
"""

import math

import pytest

from sentiment_gbdt.data.dataset import SentimentExample
from sentiment_gbdt.models.evaluator import compute_metrics, evaluate
from sentiment_gbdt.models.pipeline import SentimentPipeline
from sentiment_gbdt.models.tree_components.ensemble_core import TrainerConfig


def test_perfect_predictions():
    metrics = compute_metrics(
        labels=[True, False, True],
        scores=[2.0, -1.0, 1.0],
        probabilities=[0.9, 0.2, 0.8],
        predicted_labels=[True, False, True],
    )

    assert metrics.accuracy == 1.0
    assert metrics.f1 == 1.0
    assert metrics.auc == 1.0
    assert metrics.confusion_matrix == ((1, 0), (0, 2))
    assert metrics.n_examples == 3


def test_tied_scores_count_half():
    metrics = compute_metrics([True, False], [0.5, 0.5], [0.6, 0.6], [True, True])

    assert metrics.auc == pytest.approx(0.5)
    assert metrics.accuracy == pytest.approx(0.5)


def test_auc_uses_raw_scores():
    # probabilities disagree with the score order; AUC follows the scores
    metrics = compute_metrics([True, False], [1.0, -1.0], [0.4, 0.6], [False, True])

    assert metrics.auc == 1.0
    assert metrics.accuracy == 0.0


def test_single_class_auc_is_nan():
    metrics = compute_metrics([True, True], [1.0, 2.0], [0.7, 0.8], [True, True])

    assert math.isnan(metrics.auc)
    assert metrics.accuracy == 1.0


def test_no_positive_predictions_gives_zero_f1():
    metrics = compute_metrics([True, False], [0.1, -0.1], [0.4, 0.3], [False, False])
    assert metrics.f1 == 0.0


def test_compute_metrics_validates_lengths():
    with pytest.raises(ValueError):
        compute_metrics([], [], [], [])
    with pytest.raises(ValueError):
        compute_metrics([True, False], [1.0], [0.5], [True])


def test_metrics_to_dict():
    metrics = compute_metrics([True, False], [1.0, -1.0], [0.9, 0.1], [True, False])
    as_dict = metrics.to_dict()

    assert as_dict['accuracy'] == 1.0
    assert as_dict['confusion_matrix'] == [[1, 0], [0, 1]]


def test_evaluate_trained_model_on_training_set(tiny_examples):
    """訓練データを全て正しく予測するモデルは accuracy == f1 == 1"""
    model = SentimentPipeline(trainer_config=TrainerConfig(num_trees=1, num_leaves=2)).fit(tiny_examples)
    metrics = evaluate(model, tiny_examples)

    assert metrics.accuracy == 1.0
    assert metrics.f1 == 1.0
    assert metrics.auc == 1.0


def test_evaluate_requires_labelled_examples(trained_model):
    with pytest.raises(ValueError):
        evaluate(trained_model, [])
    with pytest.raises(ValueError):
        evaluate(trained_model, [SentimentExample("great food")])
