"""
Data loading utilities for labelled sentiment text.
"""

from .dataset import SentimentExample, load_examples, train_test_split

__all__ = [
    'SentimentExample',
    'load_examples',
    'train_test_split',
]
