"""
比較実験と可視化ユーティリティのテスト
"""

import json
import os

import numpy as np

from sentiment_gbdt.data.dataset import train_test_split
from sentiment_gbdt.experiments.compare_models import run_model_comparison, summarize
from sentiment_gbdt.models.tree_components.ensemble_core import TrainerConfig
from sentiment_gbdt.utils.model_interface import generate_simple_corpus
from sentiment_gbdt.utils.visualization import (
    create_results_directory,
    plot_feature_importance,
    plot_performance_comparison,
    save_experiment_config
)


def test_results_directory_and_config(tmp_path):
    results_dir = create_results_directory(str(tmp_path))

    assert os.path.isdir(os.path.join(results_dir, "figures"))
    path = save_experiment_config({'seed': 0}, results_dir)
    with open(path) as f:
        assert json.load(f) == {'seed': 0}


def test_performance_table(tmp_path):
    results = {
        'A': {'evaluation': {'accuracy': 0.9, 'auc': 0.95, 'f1': 0.9}},
        'B': {'evaluation': {'accuracy': 0.8, 'auc': 0.85, 'f1': 0.7}},
    }
    save_path = str(tmp_path / "performance.png")
    df = plot_performance_comparison(results, save_path=save_path)

    assert list(df.index) == ['A', 'B']
    assert df.loc['B', 'f1'] == 0.7
    assert os.path.exists(save_path)


def test_feature_importance_plot_skips_empty(tmp_path):
    save_path = str(tmp_path / "importance.png")
    plot_feature_importance(np.zeros(4), save_path=save_path)
    assert not os.path.exists(save_path)


def test_model_comparison(tmp_path):
    """3つの実装を同じ特徴量で比較"""
    examples = generate_simple_corpus(n_samples=200, random_state=0)
    train_set, test_set = train_test_split(examples)

    results = run_model_comparison(
        train_set, test_set,
        trainer_config=TrainerConfig(num_trees=10, num_leaves=4, min_examples_per_leaf=2),
        n_features=256,
        output_dir=str(tmp_path),
    )

    assert set(results) == {'FastTree', 'XGBoost', 'LightGBM'}
    assert results['FastTree']['evaluation']['accuracy'] >= 0.8
    assert os.path.exists(tmp_path / "comparison.json")

    table = summarize(results)
    assert list(table.index) == ['FastTree', 'XGBoost', 'LightGBM']
