"""
Tree Ensemble Core

This module contains the boosted tree ensemble and the trainer that builds
it: gradient boosting of regression trees against the logistic loss, with
best-first tree growth under a leaf budget. Training is deterministic; there
is no row or column subsampling.
"""

import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import scipy.sparse as sp

from ..base import PipelineStage
from ...errors import DimensionMismatchError, TrainingError
from .data_transforms import validate_features, validate_labels
from .feature_binner import FeatureBinner
from .gradient_computer import GradientComputer
from .tree_builder import TreeBuilder
from .tree_node import LEAF, RegressionTree


@dataclass(frozen=True)
class TrainerConfig:
    """
    Hyperparameters of the boosted tree trainer

    Attributes:
    -----------
    num_trees : int
        Number of boosting rounds
    num_leaves : int
        Maximum number of leaves per tree
    min_examples_per_leaf : int
        A split leaving fewer examples than this in a child is rejected
    learning_rate : float
        Shrinkage applied to every leaf output
    max_bins : int
        Maximum number of distinct values considered per feature
    """
    num_trees: int = 100
    num_leaves: int = 20
    min_examples_per_leaf: int = 1
    learning_rate: float = 0.2
    max_bins: int = 255

    def validate(self) -> 'TrainerConfig':
        if self.num_trees <= 0:
            raise TrainingError(f"num_trees must be greater than 0, got {self.num_trees}")
        if self.num_leaves < 2:
            raise TrainingError(f"num_leaves must be at least 2, got {self.num_leaves}")
        if self.min_examples_per_leaf < 1:
            raise TrainingError(f"min_examples_per_leaf must be at least 1, got {self.min_examples_per_leaf}")
        if not self.learning_rate > 0:
            raise TrainingError(f"learning_rate must be greater than 0, got {self.learning_rate}")
        if self.max_bins < 2:
            raise TrainingError(f"max_bins must be at least 2, got {self.max_bins}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class TreeEnsemble:
    """
    Additive ensemble of regression trees

    ``score(x) = base_score + sum(tree.predict(x) for tree in trees)``; the
    learning rate is already folded into every leaf output.

    Attributes:
    -----------
    base_score : float
        Log-odds of the training base rate
    trees : tuple of RegressionTree
        Trees in boosting order
    n_features : int
        Feature width the ensemble was trained on
    """

    def __init__(self, base_score: float, trees: Sequence[RegressionTree], n_features: int):
        self.base_score = float(base_score)
        self.trees: Tuple[RegressionTree, ...] = tuple(trees)
        self.n_features = int(n_features)
        for tree in self.trees:
            if tree.max_feature_index >= self.n_features:
                raise ValueError(
                    f"Tree splits on feature {tree.max_feature_index}, but ensemble has {self.n_features} features"
                )

    @property
    def n_trees(self) -> int:
        return len(self.trees)

    def _check_width(self, X):
        if sp.issparse(X):
            X = sp.csr_matrix(X, dtype=np.float64)
        else:
            X = np.asarray(X, dtype=np.float64)
            if X.ndim == 1:
                X = X.reshape(1, -1)
            if X.ndim != 2:
                raise ValueError(f"X must be 2D array, got {X.ndim}D")
        if X.shape[1] != self.n_features:
            raise DimensionMismatchError(self.n_features, X.shape[1])
        return X

    def score(self, X) -> np.ndarray:
        """
        Raw ensemble scores

        Parameters:
        -----------
        X : array-like or sparse matrix, shape=(n_samples, n_features)
            Feature vectors

        Returns:
        --------
        scores : array-like, shape=(n_samples,)
            Sum of routed leaf outputs plus the base score
        """
        X = self._check_width(X)
        scores = np.full(X.shape[0], self.base_score, dtype=np.float64)
        for tree in self.trees:
            scores += tree.predict(X)
        return scores

    def get_feature_importance(self) -> np.ndarray:
        """
        Split gain accumulated per feature, normalized to sum to one

        Returns:
        --------
        feature_importance : array-like, shape=(n_features,)
        """
        importance = np.zeros(self.n_features)
        for tree in self.trees:
            internal = tree.feature != LEAF
            np.add.at(importance, tree.feature[internal], tree.gain[internal])
        if np.sum(importance) > 0:
            importance = importance / np.sum(importance)
        return importance

    def __eq__(self, other) -> bool:
        if not isinstance(other, TreeEnsemble):
            return NotImplemented
        return (
            self.base_score == other.base_score
            and self.n_features == other.n_features
            and self.trees == other.trees
        )

    def __repr__(self) -> str:
        return f"TreeEnsemble(trees={self.n_trees}, n_features={self.n_features}, base_score={self.base_score:.4f})"


class FastTreeTrainer(PipelineStage):
    """
    Gradient boosted regression trees for binary classification

    The trainer is the supervised stage of the pipeline: ``fit`` builds a
    ``TreeEnsemble`` and ``transform`` maps features to raw scores.
    """

    def __init__(self, config: Optional[TrainerConfig] = None, verbose: bool = False):
        self.config = config if config is not None else TrainerConfig()
        self.verbose = verbose
        self.gradient_computer = GradientComputer(loss="logloss")
        self.ensemble_ = None
        self.train_loss_history: List[float] = []
        self.is_fitted = False

    def fit(self, X, y=None, **kwargs) -> 'FastTreeTrainer':
        """
        Fit the boosted ensemble

        Parameters:
        -----------
        X : array-like or sparse matrix, shape=(n_samples, n_features)
            Training feature vectors
        y : array-like, shape=(n_samples,)
            Binary labels

        Returns:
        --------
        self : FastTreeTrainer
            Fitted trainer
        """
        config = self.config.validate()
        X = validate_features(X)
        y = validate_labels(y, X.shape[0])
        n_samples, n_features = X.shape

        binner = FeatureBinner(max_bins=config.max_bins).fit(X)
        binned = binner.transform(X)
        builder = TreeBuilder(
            num_leaves=config.num_leaves,
            min_examples_per_leaf=config.min_examples_per_leaf,
            learning_rate=config.learning_rate,
        )

        base_score = self.gradient_computer.compute_initial_prediction(y)
        current_scores = np.full(n_samples, base_score, dtype=np.float64)
        trees = []
        loss_history = []

        start_time = time.time()
        for iteration in range(config.num_trees):
            residuals = self.gradient_computer.compute_residuals(y, current_scores)
            tree = builder.build_tree(X, binned, binner, residuals)
            trees.append(tree)

            current_scores += tree.predict(X)
            loss_history.append(self.gradient_computer.compute_loss(y, current_scores))

            if self.verbose and ((iteration + 1) % 10 == 0 or iteration == 0 or iteration == config.num_trees - 1):
                elapsed_time = time.time() - start_time
                print(f"Iteration {iteration + 1}/{config.num_trees}, LogLoss: {loss_history[-1]:.6f}, "
                      f"Leaves: {tree.n_leaves}, Time: {elapsed_time:.2f}s")

        # assigned only after every round succeeded
        self.ensemble_ = TreeEnsemble(base_score, trees, n_features)
        self.train_loss_history = loss_history
        self.is_fitted = True
        return self

    def transform(self, X) -> np.ndarray:
        if not self.is_fitted:
            raise ValueError("Model has not been fitted yet")
        return self.ensemble_.score(X)

    def get_params(self) -> Dict[str, Any]:
        return self.config.to_dict()

    def set_params(self, **params) -> 'FastTreeTrainer':
        if self.is_fitted:
            raise ValueError("FastTreeTrainer is fitted and can no longer be modified")
        unknown = set(params) - set(self.config.to_dict())
        if unknown:
            raise ValueError(f"Invalid parameter: {sorted(unknown)[0]}")
        self.config = TrainerConfig(**{**self.config.to_dict(), **params})
        return self


def train(features, labels, config: Optional[TrainerConfig] = None, verbose: bool = False) -> TreeEnsemble:
    """
    Train a boosted tree ensemble

    Parameters:
    -----------
    features : array-like, sparse matrix or sequence of vectors, shape=(n_samples, n_features)
        Feature vectors of one common width
    labels : array-like, shape=(n_samples,)
        Binary labels
    config : TrainerConfig, optional
        Hyperparameters; defaults to ``TrainerConfig()``
    verbose : bool, default=False
        Print progress every ten rounds

    Returns:
    --------
    ensemble : TreeEnsemble
        Trained, immutable ensemble
    """
    return FastTreeTrainer(config=config, verbose=verbose).fit(features, labels).ensemble_
