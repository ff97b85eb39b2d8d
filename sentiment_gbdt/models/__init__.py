"""
Sentiment model stages: featurizer, boosted trees, calibration, evaluation
and the composed model.
"""

from .base import PipelineStage
from .text_featurizer import TextFeaturizer, tokenize
from .tree_components import FastTreeTrainer, RegressionTree, TrainerConfig, TreeEnsemble, train
from .calibrator import CalibrationParams, PlattCalibrator, apply_calibration, fit_calibration
from .transformer import (
    Prediction,
    SentimentModel,
    load_model,
    load_model_from_file,
    save_model_to_file
)
from .evaluator import Metrics, compute_metrics, evaluate
from .pipeline import SentimentPipeline

__all__ = [
    'PipelineStage',
    'TextFeaturizer',
    'tokenize',
    'FastTreeTrainer',
    'RegressionTree',
    'TrainerConfig',
    'TreeEnsemble',
    'train',
    'CalibrationParams',
    'PlattCalibrator',
    'apply_calibration',
    'fit_calibration',
    'Prediction',
    'SentimentModel',
    'load_model',
    'load_model_from_file',
    'save_model_to_file',
    'Metrics',
    'compute_metrics',
    'evaluate',
    'SentimentPipeline'
]
