"""
実験結果の保存・可視化ユーティリティモジュール

このモジュールは、感情分析モデルの評価結果（ROC曲線、スコア分布、
特徴量重要度、モデル比較）を保存・可視化するための関数を提供します。
"""

import datetime
import json
import os
from typing import Dict, List, Optional, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from sklearn.metrics import roc_curve


def create_results_directory(base_dir: str = "results") -> str:
    """
    実験結果を保存するディレクトリを作成

    Parameters:
    -----------
    base_dir : str, default="results"
        基本ディレクトリ名

    Returns:
    --------
    results_dir : str
        作成された結果ディレクトリのパス
    """
    # タイムスタンプを含むディレクトリ名を生成
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    results_dir = os.path.join(base_dir, f"experiment_{timestamp}")

    os.makedirs(os.path.join(results_dir, "figures"), exist_ok=True)
    return results_dir


def save_experiment_config(config: Dict, results_dir: str) -> str:
    """
    実験設定をJSONで保存

    Parameters:
    -----------
    config : dict
        実験設定
    results_dir : str
        結果ディレクトリのパス

    Returns:
    --------
    path : str
        保存したファイルのパス
    """
    path = os.path.join(results_dir, "experiment_config.json")
    with open(path, 'w') as f:
        json.dump(config, f, indent=2, default=str)
    return path


def plot_roc_curve(labels: Sequence[bool], scores: Sequence[float], auc: Optional[float] = None,
                   title: str = "ROC Curve", save_path: Optional[str] = None) -> None:
    """
    ROC曲線をプロット

    Parameters:
    -----------
    labels : sequence of bool
        真のラベル
    scores : sequence of float
        モデルの生スコア
    auc : float, optional
        凡例に表示するAUC
    title : str, default="ROC Curve"
        プロットのタイトル
    save_path : str, optional
        保存先のパス
    """
    fpr, tpr, _ = roc_curve(np.asarray(labels, dtype=bool), np.asarray(scores, dtype=float))

    plt.figure(figsize=(8, 8))
    label = f"AUC = {auc:.4f}" if auc is not None else "model"
    plt.plot(fpr, tpr, label=label)
    plt.plot([0, 1], [0, 1], linestyle='--', color='gray')
    plt.xlabel('False Positive Rate')
    plt.ylabel('True Positive Rate')
    plt.title(title)
    plt.legend(loc='lower right')
    plt.grid(True, linestyle='--', alpha=0.7)

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    plt.close()


def plot_score_distribution(labels: Sequence[bool], probabilities: Sequence[float],
                            title: str = "Calibrated Probability by Label",
                            save_path: Optional[str] = None) -> None:
    """
    ラベルごとの予測確率の分布をプロット

    Parameters:
    -----------
    labels : sequence of bool
        真のラベル
    probabilities : sequence of float
        校正後の確率
    title : str
        プロットのタイトル
    save_path : str, optional
        保存先のパス
    """
    df = pd.DataFrame({
        'probability': np.asarray(probabilities, dtype=float),
        'label': np.where(np.asarray(labels, dtype=bool), 'Positive', 'Negative'),
    })

    plt.figure(figsize=(10, 6))
    sns.histplot(data=df, x='probability', hue='label', bins=20, binrange=(0, 1), element='step')
    plt.axvline(0.5, linestyle='--', color='gray')
    plt.title(title)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    plt.close()


def plot_feature_importance(importance: np.ndarray, top_k: int = 20,
                            feature_names: Optional[List[str]] = None,
                            title: str = "Feature Importance (split gain)",
                            save_path: Optional[str] = None) -> None:
    """
    特徴量重要度の上位をプロット

    Parameters:
    -----------
    importance : array-like, shape=(n_features,)
        特徴量重要度
    top_k : int, default=20
        表示する特徴量の数
    feature_names : list of str, optional
        特徴量名（省略時はハッシュスロット番号）
    title : str
        プロットのタイトル
    save_path : str, optional
        保存先のパス
    """
    importance = np.asarray(importance, dtype=float)
    order = np.argsort(-importance, kind='stable')[:top_k]
    order = order[importance[order] > 0]
    if len(order) == 0:
        return

    names = [feature_names[i] if feature_names else f"slot {i}" for i in order]
    df = pd.DataFrame({'feature': names, 'importance': importance[order]})

    plt.figure(figsize=(10, max(4, 0.4 * len(df))))
    sns.barplot(data=df, x='importance', y='feature', color='steelblue')
    plt.title(title)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    plt.close()


def plot_performance_comparison(results: Dict, metrics: Sequence[str] = ('accuracy', 'auc', 'f1'),
                                title: str = "Model Performance Comparison",
                                save_path: Optional[str] = None) -> pd.DataFrame:
    """
    モデル性能比較をヒートマップでプロット

    Parameters:
    -----------
    results : dict
        モデル名 -> {'evaluation': {...}, 'train_time': ...}
    metrics : sequence of str
        比較する評価指標
    title : str
        プロットのタイトル
    save_path : str, optional
        保存先のパス

    Returns:
    --------
    df : DataFrame
        モデル×評価指標の表
    """
    df = pd.DataFrame(
        {metric: [results[name]['evaluation'][metric] for name in results] for metric in metrics},
        index=list(results.keys()),
    )

    plt.figure(figsize=(10, 6))
    sns.heatmap(df, annot=True, fmt=".4f", cmap="YlGnBu")
    plt.title(title)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    plt.close()
    return df


def plot_training_time_comparison(results: Dict, title: str = "Model Training Time Comparison",
                                  save_path: Optional[str] = None) -> None:
    """
    モデル訓練時間比較をプロット

    Parameters:
    -----------
    results : dict
        モデル名 -> {'train_time': ..., 'predict_time': ...}
    title : str
        プロットのタイトル
    save_path : str, optional
        保存先のパス
    """
    model_names = list(results.keys())
    train_times = [results[name]['train_time'] for name in model_names]
    predict_times = [results[name]['predict_time'] for name in model_names]

    fig, axes = plt.subplots(1, 2, figsize=(12, 5))

    axes[0].bar(model_names, train_times)
    axes[0].set_title('Training Time (s)')
    axes[0].set_ylabel('Time (s)')

    axes[1].bar(model_names, predict_times)
    axes[1].set_title('Prediction Time (s)')
    axes[1].set_ylabel('Time (s)')

    fig.suptitle(title)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    plt.close()
