"""
データ読み込みと分割のテスト
"""

import dataclasses

import pytest

from sentiment_gbdt.data.dataset import SentimentExample, load_examples, train_test_split
from sentiment_gbdt.utils.model_interface import generate_simple_corpus


def test_load_examples(tmp_path):
    path = tmp_path / "reviews.txt"
    path.write_text('Wow... Loved this place.\t1\nCrust is not "good".\t0\nNot tasty\ttrue\n', encoding="utf-8")

    examples = load_examples(path)

    assert examples == [
        SentimentExample('Wow... Loved this place.', True),
        SentimentExample('Crust is not "good".', False),
        SentimentExample('Not tasty', True),
    ]


def test_load_examples_rejects_invalid_label(tmp_path):
    path = tmp_path / "reviews.txt"
    path.write_text("Great\t1\nBad\tmaybe\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_examples(path)


def test_examples_are_immutable():
    example = SentimentExample("great food", True)
    with pytest.raises(dataclasses.FrozenInstanceError):
        example.label = False


def test_split_is_content_stable():
    """分割は入力順序に依存しない"""
    examples = generate_simple_corpus(n_samples=300, random_state=1)

    train, test = train_test_split(examples, test_fraction=0.2, seed=7)
    train_rev, test_rev = train_test_split(list(reversed(examples)), test_fraction=0.2, seed=7)

    assert set(test) == set(test_rev)
    assert set(train) == set(train_rev)
    assert len(train) + len(test) == len(examples)


def test_split_depends_on_seed():
    examples = [SentimentExample(f"review number {i}", i % 2 == 0) for i in range(500)]

    _, test_a = train_test_split(examples, seed=0)
    _, test_b = train_test_split(examples, seed=1)

    assert test_a != test_b
    assert 50 < len(test_a) < 150


def test_split_preserves_input_order():
    examples = [SentimentExample(f"review number {i}", True) for i in range(100)]
    train, test = train_test_split(examples)

    assert train == [e for e in examples if e in set(train)]
    assert test == [e for e in examples if e in set(test)]


@pytest.mark.parametrize("fraction", [0.0, 1.0, -0.1, 1.5])
def test_split_rejects_invalid_fraction(fraction):
    with pytest.raises(ValueError):
        train_test_split([SentimentExample("a", True)], test_fraction=fraction)
