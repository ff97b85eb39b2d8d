"""
モデルインターフェース統一テスト用モジュール

このモジュールは、感情分析パイプラインの学習・予測・評価を
共通の手順で実行し、時間と評価指標を計測するユーティリティを提供します。
"""

import time
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..data.dataset import SentimentExample, train_test_split
from ..models.evaluator import evaluate
from ..models.pipeline import SentimentPipeline
from ..models.tree_components.ensemble_core import TrainerConfig


POSITIVE_WORDS = ["great", "love", "delicious", "friendly", "amazing", "excellent", "tasty", "perfect"]
NEGATIVE_WORDS = ["terrible", "hate", "bland", "rude", "awful", "horrible", "cold", "disappointing"]
NEUTRAL_WORDS = ["food", "service", "place", "the", "was", "staff", "meal", "steak", "we", "it"]


def generate_simple_corpus(n_samples: int = 200, noise: float = 0.0,
                           random_state: Optional[int] = None) -> List[SentimentExample]:
    """
    簡単な二値感情分析コーパスを生成

    Parameters:
    -----------
    n_samples : int, default=200
        サンプル数
    noise : float, default=0.0
        ラベルを反転させる割合
    random_state : int, optional
        乱数シード

    Returns:
    --------
    examples : list of SentimentExample
        ラベル付きの文
    """
    rng = np.random.RandomState(random_state)
    examples = []

    for _ in range(n_samples):
        label = bool(rng.rand() < 0.5)
        sentiment_words = POSITIVE_WORDS if label else NEGATIVE_WORDS

        # 感情語1〜2個と中立語2〜4個を組み合わせる
        words = list(rng.choice(sentiment_words, size=rng.randint(1, 3)))
        words += list(rng.choice(NEUTRAL_WORDS, size=rng.randint(2, 5)))
        rng.shuffle(words)

        if rng.rand() < noise:
            label = not label
        examples.append(SentimentExample(text=" ".join(words).capitalize() + ".", label=label))

    return examples


def run_model_interface(examples: List[SentimentExample],
                        trainer_config: Optional[TrainerConfig] = None,
                        n_features: int = 2 ** 10,
                        test_fraction: float = 0.2,
                        random_state: int = 0) -> Dict:
    """
    パイプラインの学習・予測・評価を実行

    Parameters:
    -----------
    examples : list of SentimentExample
        ラベル付きデータ
    trainer_config : TrainerConfig, optional
        学習パラメータ
    n_features : int, default=1024
        特徴量の次元数
    test_fraction : float, default=0.2
        テストデータの割合
    random_state : int, default=0
        分割のシード

    Returns:
    --------
    results : dict
        学習時間・予測時間・評価結果
    """
    train_set, test_set = train_test_split(examples, test_fraction=test_fraction, seed=random_state)

    pipeline = SentimentPipeline(n_features=n_features, trainer_config=trainer_config)

    # 学習時間を計測
    start_time = time.time()
    model = pipeline.fit(train_set)
    train_time = time.time() - start_time

    # 予測時間を計測
    start_time = time.time()
    predictions = model.predict_batch(test_set)
    predict_time = time.time() - start_time

    metrics = evaluate(model, test_set)

    return {
        'model': model,
        'n_train': len(train_set),
        'n_test': len(test_set),
        'train_time': train_time,
        'predict_time': predict_time,
        'predictions': predictions,
        'evaluation': metrics.to_dict(),
    }


def split_features_labels(examples: List[SentimentExample]) -> Tuple[List[str], np.ndarray]:
    """
    テキストとラベルに分解

    Parameters:
    -----------
    examples : list of SentimentExample
        ラベル付きデータ

    Returns:
    --------
    texts : list of str
    labels : array-like, shape=(n_samples,)
    """
    texts = [example.text for example in examples]
    labels = np.array([bool(example.label) for example in examples])
    return texts, labels
