"""
Sentiment Pipeline

The estimator chain: text featurization followed by the boosted tree
trainer and Platt calibration. ``fit`` runs the stages left to right on the
training examples and returns a trained ``SentimentModel``.
"""

import time
from typing import Iterable, Optional, Tuple

import numpy as np

from .calibrator import PlattCalibrator
from .text_featurizer import TextFeaturizer
from .transformer import SentimentModel
from .tree_components.ensemble_core import FastTreeTrainer, TrainerConfig
from ..data.dataset import SentimentExample
from ..errors import TrainingError


class SentimentPipeline:
    """
    Featurize -> boosted trees -> calibration

    Attributes:
    -----------
    n_features : int
        Featurizer width
    ngram_range : tuple of int
        Word n-gram sizes hashed by the featurizer
    use_idf : bool
        Whether the featurizer weights counts by IDF
    trainer_config : TrainerConfig
        Boosting hyperparameters
    verbose : bool
        Print progress while fitting
    """

    def __init__(
        self,
        n_features: int = 2 ** 12,
        ngram_range: Tuple[int, int] = (1, 2),
        use_idf: bool = True,
        trainer_config: Optional[TrainerConfig] = None,
        verbose: bool = False
    ):
        self.n_features = n_features
        self.ngram_range = ngram_range
        self.use_idf = use_idf
        self.trainer_config = trainer_config if trainer_config is not None else TrainerConfig()
        self.verbose = verbose

    def fit(self, examples: Iterable[SentimentExample]) -> SentimentModel:
        """
        Train a model on labelled examples

        Parameters:
        -----------
        examples : iterable of SentimentExample
            Training examples; every label must be set

        Returns:
        --------
        model : SentimentModel
            Trained model
        """
        examples = list(examples)
        if not examples:
            raise TrainingError("Cannot train on an empty example set")
        for position, example in enumerate(examples):
            if example.label is None:
                raise TrainingError(f"Training example at position {position} has no label")
        self.trainer_config.validate()

        texts = [example.text for example in examples]
        labels = np.array([bool(example.label) for example in examples])

        start_time = time.time()
        featurizer = TextFeaturizer(
            n_features=self.n_features,
            ngram_range=self.ngram_range,
            use_idf=self.use_idf,
        )
        features = featurizer.fit(texts).transform(texts, sparse=True)
        if self.verbose:
            print(f"Featurized {len(texts)} examples into {self.n_features} features "
                  f"({features.nnz} non-zero entries)")

        trainer = FastTreeTrainer(config=self.trainer_config, verbose=self.verbose).fit(features, labels)
        calibrator = PlattCalibrator().fit(trainer.transform(features), labels)

        if self.verbose:
            print(f"Trained {trainer.ensemble_.n_trees} trees in {time.time() - start_time:.2f}s, "
                  f"calibration slope={calibrator.params_.slope:.4f}, "
                  f"intercept={calibrator.params_.intercept:.4f}")

        return SentimentModel(featurizer, trainer.ensemble_, calibrator.params_, self.trainer_config)
