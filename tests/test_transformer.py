"""
学習済みモデル（予測・保存・読み込み）のテスト
"""

import io
import json
import zipfile

import numpy as np
import pytest

from sentiment_gbdt.data.dataset import SentimentExample
from sentiment_gbdt.errors import DimensionMismatchError, FeaturizationError, ModelLoadError
from sentiment_gbdt.models.transformer import (
    DECISION_THRESHOLD,
    SentimentModel,
    load_model,
    load_model_from_file,
    save_model_to_file
)


TEXTS = ["great food", "terrible service", "", "The staff was friendly but the steak was cold."]


def _rewrite_manifest(data, **changes):
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        manifest = json.loads(archive.read("manifest.json"))
        arrays = archive.read("arrays.npz")
    manifest.update(changes)

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w') as archive:
        archive.writestr("manifest.json", json.dumps(manifest))
        archive.writestr("arrays.npz", arrays)
    return buffer.getvalue()


def test_predict_batch_preserves_order(trained_model):
    predictions = trained_model.predict_batch(["I loved it", "I hated it"])

    assert len(predictions) == 2
    assert predictions[0] == trained_model.predict("I loved it")
    assert predictions[1] == trained_model.predict("I hated it")


def test_label_follows_probability_threshold(trained_model):
    """ラベルは確率 >= 0.5 と一致する"""
    for prediction in trained_model.predict_batch(TEXTS):
        assert prediction.label == (prediction.probability >= DECISION_THRESHOLD)
        assert 0.0 <= prediction.probability <= 1.0


def test_probability_increases_with_score(trained_model):
    predictions = sorted(trained_model.predict_batch(TEXTS), key=lambda p: p.score)
    probabilities = [p.probability for p in predictions]
    assert probabilities == sorted(probabilities)


def test_accepts_examples_and_strings(trained_model):
    assert trained_model.predict(SentimentExample("great food", True)) == trained_model.predict("great food")


def test_empty_batch(trained_model):
    assert trained_model.predict_batch([]) == []


def test_batch_fails_fast_on_invalid_item(trained_model):
    with pytest.raises(FeaturizationError):
        trained_model.predict_batch(["great food", None])
    with pytest.raises(FeaturizationError):
        trained_model.predict(None)
    with pytest.raises(FeaturizationError):
        trained_model.predict_batch(["great food", 42])


def test_predict_features_width_mismatch(trained_model):
    with pytest.raises(DimensionMismatchError):
        trained_model.predict_features(np.zeros((1, trained_model.n_features + 1)))


def test_predict_features_matches_text_prediction(trained_model):
    features = trained_model.featurizer.transform(TEXTS)
    assert trained_model.predict_features(features) == trained_model.predict_batch(TEXTS)


def test_save_load_round_trip(trained_model):
    """保存して読み込んだモデルは同じ予測を返す"""
    loaded = SentimentModel.load(trained_model.save())

    assert loaded.ensemble == trained_model.ensemble
    assert loaded.calibration == trained_model.calibration
    assert loaded.trainer_config == trained_model.trainer_config
    assert loaded.predict_batch(TEXTS) == trained_model.predict_batch(TEXTS)
    assert load_model(trained_model.save()).predict_batch(TEXTS) == trained_model.predict_batch(TEXTS)


def test_truncated_model_raises(trained_model):
    data = trained_model.save()
    with pytest.raises(ModelLoadError):
        SentimentModel.load(data[:len(data) // 2])


def test_corrupted_model_raises(trained_model):
    data = bytearray(trained_model.save())
    # overwrite part of the compressed manifest
    data[50:70] = b"\x00" * 20
    with pytest.raises(ModelLoadError):
        SentimentModel.load(bytes(data))


@pytest.mark.parametrize("data", [b"", b"not a model", b"PK\x03\x04garbage"])
def test_garbage_bytes_raise(data):
    with pytest.raises(ModelLoadError):
        SentimentModel.load(data)


def test_non_bytes_raise():
    with pytest.raises(ModelLoadError):
        SentimentModel.load("model.zip")


def test_unsupported_version_raises(trained_model):
    with pytest.raises(ModelLoadError):
        SentimentModel.load(_rewrite_manifest(trained_model.save(), format_version=99))


def test_foreign_archive_raises(trained_model):
    with pytest.raises(ModelLoadError):
        SentimentModel.load(_rewrite_manifest(trained_model.save(), format="something-else"))


def test_inconsistent_contents_raise(trained_model):
    data = _rewrite_manifest(trained_model.save(), ensemble={'base_score': 0.0, 'n_features': 7, 'n_trees': 1})
    with pytest.raises(ModelLoadError):
        SentimentModel.load(data)


def test_tree_count_must_match_stored_trees(trained_model):
    """マニフェストの木の数とアーカイブ内の木が一致しない場合は読み込まない"""
    ensemble = {'base_score': trained_model.ensemble.base_score, 'n_features': trained_model.n_features}
    n_trees = trained_model.ensemble.n_trees

    for claimed in (0, -1, n_trees - 1, n_trees + 1):
        data = _rewrite_manifest(trained_model.save(), ensemble={**ensemble, 'n_trees': claimed})
        with pytest.raises(ModelLoadError):
            SentimentModel.load(data)


def test_file_round_trip(trained_model, tmp_path):
    path = save_model_to_file(trained_model, tmp_path / "nested" / "Model.zip")

    assert path.exists()
    assert load_model_from_file(path).predict_batch(TEXTS) == trained_model.predict_batch(TEXTS)


def test_missing_file_raises(tmp_path):
    with pytest.raises(ModelLoadError):
        load_model_from_file(tmp_path / "missing.zip")


def test_model_requires_fitted_featurizer(trained_model):
    from sentiment_gbdt.models.text_featurizer import TextFeaturizer

    with pytest.raises(ValueError):
        SentimentModel(TextFeaturizer(n_features=256), trained_model.ensemble, trained_model.calibration)


def test_model_load_error_is_value_error():
    assert issubclass(ModelLoadError, ValueError)
