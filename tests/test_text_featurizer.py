"""
テキスト特徴量化のテスト
"""

import numpy as np
import pytest

from sentiment_gbdt.errors import FeaturizationError
from sentiment_gbdt.models.text_featurizer import TextFeaturizer, tokenize


CORPUS = ["great food", "terrible service", "the food was great", "service was slow"]


def test_tokenize_lowercases_and_strips_punctuation():
    assert tokenize("Great food!") == ["great", "food"]
    assert tokenize("Great food!", ngram_range=(1, 2)) == ["great", "food", "great food"]


def test_fixed_width():
    """全ての出力が同じ幅Fを持つ"""
    featurizer = TextFeaturizer(n_features=64).fit(CORPUS)

    features = featurizer.transform(["", "an unseen sentence", "great food"])
    assert features.shape == (3, 64)
    assert featurizer.featurize("anything").shape == (64,)

    sparse = featurizer.transform(["great food"], sparse=True)
    assert sparse.shape == (1, 64)
    np.testing.assert_array_equal(sparse.toarray(), features[2:3])


def test_empty_text_gives_zero_vector():
    featurizer = TextFeaturizer(n_features=64).fit(CORPUS)
    assert not np.any(featurizer.featurize(""))


def test_rows_are_l2_normalized():
    featurizer = TextFeaturizer(n_features=64).fit(CORPUS)
    features = featurizer.transform(CORPUS)
    np.testing.assert_allclose(np.linalg.norm(features, axis=1), 1.0)


def test_deterministic_across_instances():
    first = TextFeaturizer(n_features=128).fit(CORPUS)
    second = TextFeaturizer(n_features=128).fit(list(CORPUS))

    np.testing.assert_array_equal(first.idf_, second.idf_)
    np.testing.assert_array_equal(first.transform(CORPUS), second.transform(CORPUS))


def test_case_insensitive():
    featurizer = TextFeaturizer(n_features=128).fit(CORPUS)
    np.testing.assert_array_equal(featurizer.featurize("GREAT Food"), featurizer.featurize("great food"))


def test_term_counts_without_idf():
    featurizer = TextFeaturizer(n_features=2 ** 20, ngram_range=(1, 1), use_idf=False).fit(CORPUS)
    vector = featurizer.featurize("food food great")

    values = np.sort(vector[vector > 0])
    np.testing.assert_allclose(values, np.array([1.0, 2.0]) / np.sqrt(5.0))


def test_idf_of_term_in_every_document_is_one():
    featurizer = TextFeaturizer(n_features=2 ** 20, ngram_range=(1, 1)).fit(["food a", "food b", "food c"])
    counts = featurizer._counts(["food"])

    assert featurizer.idf_[counts.indices[0]] == pytest.approx(1.0)
    assert featurizer.n_documents_ == 3


def test_none_text_raises():
    featurizer = TextFeaturizer(n_features=32).fit(CORPUS)

    with pytest.raises(FeaturizationError):
        featurizer.featurize(None)
    with pytest.raises(FeaturizationError):
        featurizer.transform(["fine", None])
    with pytest.raises(FeaturizationError):
        TextFeaturizer(n_features=32).fit(["fine", None])


def test_bare_string_is_not_a_corpus():
    with pytest.raises(FeaturizationError):
        TextFeaturizer(n_features=32).fit("great food")


def test_unfitted_transform_raises():
    with pytest.raises(FeaturizationError):
        TextFeaturizer(n_features=32).transform(["great food"])


def test_fitted_featurizer_is_immutable():
    featurizer = TextFeaturizer(n_features=32).fit(CORPUS)

    with pytest.raises(FeaturizationError):
        featurizer.fit(["other corpus"])
    with pytest.raises(ValueError):
        featurizer.set_params(n_features=64)


def test_empty_corpus_raises():
    with pytest.raises(FeaturizationError):
        TextFeaturizer(n_features=32).fit([])


def test_invalid_params_raise():
    with pytest.raises(FeaturizationError):
        TextFeaturizer(n_features=0).fit(CORPUS)
    with pytest.raises(FeaturizationError):
        TextFeaturizer(ngram_range=(2, 1)).fit(CORPUS)


def test_from_state_reproduces_transform():
    featurizer = TextFeaturizer(n_features=64).fit(CORPUS)
    restored = TextFeaturizer.from_state(featurizer.get_params(), featurizer.idf_, featurizer.n_documents_)

    assert restored.is_fitted
    np.testing.assert_array_equal(restored.transform(CORPUS), featurizer.transform(CORPUS))


def test_from_state_rejects_wrong_idf_width():
    featurizer = TextFeaturizer(n_features=64).fit(CORPUS)
    with pytest.raises(FeaturizationError):
        TextFeaturizer.from_state(featurizer.get_params(), featurizer.idf_[:10])


def test_featurization_error_is_value_error():
    assert issubclass(FeaturizationError, ValueError)
