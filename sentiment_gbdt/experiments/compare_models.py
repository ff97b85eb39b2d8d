"""
ブースティング実装の性能比較実験モジュール

このモジュールは、スクラッチ実装の FastTreeTrainer と XGBoost、LightGBM を
同じハッシュ特徴量で学習し、Accuracy / AUC / F1 と学習時間を比較します。

Usage:
    python -m sentiment_gbdt.experiments.compare_models --data Data/yelp_labelled.txt
"""

import argparse
import json
import os
import time
from typing import Dict, List, Optional

import lightgbm as lgb
import numpy as np
import pandas as pd
import xgboost as xgb

from .. import config
from ..data.dataset import SentimentExample, load_examples, train_test_split
from ..models.calibrator import PlattCalibrator
from ..models.evaluator import compute_metrics
from ..models.text_featurizer import TextFeaturizer
from ..models.tree_components.ensemble_core import FastTreeTrainer, TrainerConfig
from ..utils.model_interface import generate_simple_corpus, split_features_labels
from ..utils.visualization import (
    create_results_directory,
    plot_feature_importance,
    plot_performance_comparison,
    plot_roc_curve,
    plot_score_distribution,
    plot_training_time_comparison,
    save_experiment_config
)


def _fit_fasttree(X_train, y_train, trainer_config: TrainerConfig):
    trainer = FastTreeTrainer(config=trainer_config).fit(X_train, y_train)
    calibrator = PlattCalibrator().fit(trainer.transform(X_train), y_train)

    def predict(X):
        scores = trainer.transform(X)
        return scores, calibrator.transform(scores)

    return predict, trainer.ensemble_.get_feature_importance()


def _fit_xgboost(X_train, y_train, trainer_config: TrainerConfig, random_state: int):
    model = xgb.XGBClassifier(
        n_estimators=trainer_config.num_trees,
        max_leaves=trainer_config.num_leaves,
        max_depth=0,
        grow_policy='lossguide',
        tree_method='hist',
        learning_rate=trainer_config.learning_rate,
        random_state=random_state,
    )
    model.fit(X_train, y_train)

    def predict(X):
        return model.predict(X, output_margin=True), model.predict_proba(X)[:, 1]

    return predict, model.feature_importances_


def _fit_lightgbm(X_train, y_train, trainer_config: TrainerConfig, random_state: int):
    model = lgb.LGBMClassifier(
        n_estimators=trainer_config.num_trees,
        num_leaves=trainer_config.num_leaves,
        min_child_samples=trainer_config.min_examples_per_leaf,
        learning_rate=trainer_config.learning_rate,
        random_state=random_state,
        verbose=-1,
    )
    model.fit(X_train, y_train)

    def predict(X):
        return model.predict(X, raw_score=True), model.predict_proba(X)[:, 1]

    return predict, np.asarray(model.feature_importances_, dtype=float)


def run_model_comparison(train_set: List[SentimentExample],
                         test_set: List[SentimentExample],
                         trainer_config: Optional[TrainerConfig] = None,
                         n_features: int = 2 ** 12,
                         random_state: int = 0,
                         output_dir: Optional[str] = None) -> Dict:
    """
    3種類のブースティング実装を比較

    Parameters:
    -----------
    train_set : list of SentimentExample
        訓練データ
    test_set : list of SentimentExample
        テストデータ
    trainer_config : TrainerConfig, optional
        共通の学習パラメータ
    n_features : int, default=4096
        特徴量の次元数
    random_state : int, default=0
        乱数シード
    output_dir : str, optional
        結果の出力ディレクトリ（省略時は保存しない）

    Returns:
    --------
    results : dict
        モデル名ごとの評価結果と時間
    """
    if trainer_config is None:
        trainer_config = TrainerConfig()

    if output_dir:
        os.makedirs(os.path.join(output_dir, "figures"), exist_ok=True)

    train_texts, y_train = split_features_labels(train_set)
    test_texts, y_test = split_features_labels(test_set)

    featurizer = TextFeaturizer(n_features=n_features)
    X_train = featurizer.fit(train_texts).transform(train_texts, sparse=True)
    X_test = featurizer.transform(test_texts, sparse=True)

    fitters = {
        'FastTree': lambda: _fit_fasttree(X_train, y_train, trainer_config),
        'XGBoost': lambda: _fit_xgboost(X_train, y_train.astype(int), trainer_config, random_state),
        'LightGBM': lambda: _fit_lightgbm(X_train, y_train.astype(int), trainer_config, random_state),
    }

    results = {}
    for model_name, fit in fitters.items():
        print(f"\nEvaluating {model_name}...")

        # 学習時間を計測
        start_time = time.time()
        predict, importance = fit()
        train_time = time.time() - start_time

        # 予測時間を計測
        start_time = time.time()
        scores, probabilities = predict(X_test)
        predict_time = time.time() - start_time

        metrics = compute_metrics(y_test, scores, probabilities, probabilities >= 0.5)
        results[model_name] = {
            'train_time': train_time,
            'predict_time': predict_time,
            'evaluation': metrics.to_dict(),
        }

        print(f"  Train time: {train_time:.4f}s")
        print(f"  Predict time: {predict_time:.4f}s")
        print(f"  Accuracy: {metrics.accuracy:.4f}")
        print(f"  AUC: {metrics.auc:.4f}")
        print(f"  F1: {metrics.f1:.4f}")

        if output_dir:
            plot_roc_curve(y_test, scores, auc=metrics.auc, title=f"ROC Curve ({model_name})",
                           save_path=os.path.join(output_dir, "figures", f"roc_{model_name}.png"))
            plot_score_distribution(y_test, probabilities, title=f"Probability by Label ({model_name})",
                                    save_path=os.path.join(output_dir, "figures", f"scores_{model_name}.png"))
            plot_feature_importance(importance, title=f"Feature Importance ({model_name})",
                                    save_path=os.path.join(output_dir, "figures", f"importance_{model_name}.png"))

    if output_dir:
        with open(os.path.join(output_dir, "comparison.json"), 'w') as f:
            json.dump(results, f, indent=2)
        table = plot_performance_comparison(
            results, save_path=os.path.join(output_dir, "figures", "performance.png")
        )
        table.to_csv(os.path.join(output_dir, "comparison.csv"))
        plot_training_time_comparison(
            results, save_path=os.path.join(output_dir, "figures", "training_time.png")
        )

    return results


def summarize(results: Dict) -> pd.DataFrame:
    rows = {
        name: {**result['evaluation'], 'train_time': result['train_time'], 'predict_time': result['predict_time']}
        for name, result in results.items()
    }
    return pd.DataFrame(rows).T[['accuracy', 'auc', 'f1', 'log_loss', 'train_time', 'predict_time']]


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Compare FastTree with XGBoost and LightGBM")
    parser.add_argument("--data", type=str, default=None,
                        help="Labelled tab separated file; a synthetic corpus is used when omitted")
    parser.add_argument("--output-dir", type=str, default=str(config.RESULTS_DIR))
    parser.add_argument("--seed", type=int, default=config.RANDOM_SEED)
    args = parser.parse_args(argv)

    if args.data:
        examples = load_examples(args.data)
    else:
        examples = generate_simple_corpus(n_samples=1000, noise=0.05, random_state=args.seed)
    train_set, test_set = train_test_split(examples, test_fraction=config.TEST_FRACTION, seed=args.seed)

    trainer_config = TrainerConfig(
        num_trees=config.NUM_TREES,
        num_leaves=config.NUM_LEAVES,
        min_examples_per_leaf=config.MIN_EXAMPLES_PER_LEAF,
        learning_rate=config.LEARNING_RATE,
        max_bins=config.MAX_BINS,
    )

    results_dir = create_results_directory(args.output_dir)
    save_experiment_config({
        'data': args.data or 'synthetic',
        'n_train': len(train_set),
        'n_test': len(test_set),
        'n_features': config.N_FEATURES,
        'trainer_config': trainer_config.to_dict(),
        'seed': args.seed,
    }, results_dir)

    results = run_model_comparison(
        train_set, test_set,
        trainer_config=trainer_config,
        n_features=config.N_FEATURES,
        random_state=args.seed,
        output_dir=results_dir,
    )

    print()
    print(summarize(results).to_string(float_format=lambda v: f"{v:.4f}"))
    print(f"\nResults saved to {results_dir}")


if __name__ == "__main__":
    main()
