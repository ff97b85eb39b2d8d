"""
共通フィクスチャ
"""

import os
import sys

# プロジェクトのルートディレクトリをパスに追加
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from sentiment_gbdt.data.dataset import SentimentExample
from sentiment_gbdt.models.pipeline import SentimentPipeline
from sentiment_gbdt.models.tree_components.ensemble_core import TrainerConfig
from sentiment_gbdt.utils.model_interface import generate_simple_corpus


@pytest.fixture
def tiny_examples():
    return [
        SentimentExample("great food", True),
        SentimentExample("terrible service", False),
    ]


@pytest.fixture(scope="session")
def corpus():
    return generate_simple_corpus(n_samples=120, random_state=0)


@pytest.fixture(scope="session")
def trained_model(corpus):
    pipeline = SentimentPipeline(
        n_features=256,
        trainer_config=TrainerConfig(num_trees=10, num_leaves=4, min_examples_per_leaf=2),
    )
    return pipeline.fit(corpus)
