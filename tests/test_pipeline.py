"""
学習パイプライン全体のテスト
"""

import pytest

from sentiment_gbdt.data.dataset import SentimentExample
from sentiment_gbdt.errors import TrainingError
from sentiment_gbdt.models.pipeline import SentimentPipeline
from sentiment_gbdt.models.tree_components.ensemble_core import TrainerConfig
from sentiment_gbdt.utils.model_interface import generate_simple_corpus, run_model_interface


def test_trivially_separable_examples(tiny_examples):
    """2件の自明に分離可能なデータを学習できる"""
    model = SentimentPipeline(trainer_config=TrainerConfig(num_trees=1, num_leaves=2)).fit(tiny_examples)

    assert model.predict("great food").label is True
    assert model.predict("terrible service").label is False
    assert model.ensemble.n_trees == 1
    assert model.ensemble.trees[0].n_leaves == 2


def test_batch_prediction_in_input_order(tiny_examples):
    model = SentimentPipeline(trainer_config=TrainerConfig(num_trees=1, num_leaves=2)).fit(tiny_examples)
    predictions = model.predict_batch(["I loved it", "I hated it"])

    assert len(predictions) == 2
    assert [p.score for p in predictions] == list(model.score(["I loved it", "I hated it"]))


def test_training_is_deterministic(corpus):
    config = TrainerConfig(num_trees=5, num_leaves=4)
    first = SentimentPipeline(n_features=128, trainer_config=config).fit(corpus)
    second = SentimentPipeline(n_features=128, trainer_config=config).fit(corpus)

    assert first.ensemble == second.ensemble
    assert first.calibration == second.calibration


def test_verbose_training_prints_progress(tiny_examples, capsys):
    SentimentPipeline(trainer_config=TrainerConfig(num_trees=2, num_leaves=2), verbose=True).fit(tiny_examples)

    output = capsys.readouterr().out
    assert "Iteration 1/2" in output
    assert "LogLoss" in output


def test_training_errors(tiny_examples):
    with pytest.raises(TrainingError):
        SentimentPipeline().fit([])
    with pytest.raises(TrainingError):
        SentimentPipeline().fit([SentimentExample("great food", True), SentimentExample("meh")])
    with pytest.raises(TrainingError):
        SentimentPipeline(trainer_config=TrainerConfig(num_trees=0)).fit(tiny_examples)


def test_synthetic_corpus_is_learned():
    examples = generate_simple_corpus(n_samples=300, random_state=0)
    results = run_model_interface(
        examples,
        trainer_config=TrainerConfig(num_trees=20, num_leaves=8),
        n_features=512,
    )

    assert results['n_train'] + results['n_test'] == 300
    assert len(results['predictions']) == results['n_test']
    assert results['evaluation']['accuracy'] >= 0.8
