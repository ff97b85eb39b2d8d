"""
Tree Components Package

This package contains the modular components of the boosted tree trainer:
the arena tree representation, feature binning, logistic-loss residuals,
best-first tree growth and the boosting loop.
"""

from .tree_node import RegressionTree, LEAF
from .data_transforms import (
    sigmoid,
    validate_features,
    validate_labels,
    _clip_probabilities
)
from .feature_binner import FeatureBinner
from .gradient_computer import GradientComputer
from .tree_builder import TreeBuilder
from .ensemble_core import TrainerConfig, TreeEnsemble, FastTreeTrainer, train

__all__ = [
    'RegressionTree',
    'LEAF',
    'sigmoid',
    'validate_features',
    'validate_labels',
    '_clip_probabilities',
    'FeatureBinner',
    'GradientComputer',
    'TreeBuilder',
    'TrainerConfig',
    'TreeEnsemble',
    'FastTreeTrainer',
    'train'
]
