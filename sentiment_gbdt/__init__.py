"""
Binary text sentiment classification with boosted regression trees.

Raw text is hashed into fixed-width features, a gradient boosted tree
ensemble is trained against the logistic loss, and Platt scaling turns raw
scores into probabilities.
"""

from .errors import (
    SentimentError,
    FeaturizationError,
    TrainingError,
    ModelLoadError,
    DimensionMismatchError
)
from .data import SentimentExample, load_examples, train_test_split
from .models import (
    TextFeaturizer,
    TrainerConfig,
    TreeEnsemble,
    train,
    PlattCalibrator,
    Prediction,
    SentimentModel,
    SentimentPipeline,
    Metrics,
    evaluate,
    load_model,
    load_model_from_file,
    save_model_to_file
)

__version__ = "0.1.0"

__all__ = [
    'SentimentError',
    'FeaturizationError',
    'TrainingError',
    'ModelLoadError',
    'DimensionMismatchError',
    'SentimentExample',
    'load_examples',
    'train_test_split',
    'TextFeaturizer',
    'TrainerConfig',
    'TreeEnsemble',
    'train',
    'PlattCalibrator',
    'Prediction',
    'SentimentModel',
    'SentimentPipeline',
    'Metrics',
    'evaluate',
    'load_model',
    'load_model_from_file',
    'save_model_to_file'
]
