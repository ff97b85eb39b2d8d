"""
Labelled Sentiment Dataset

Loading of headerless ``text<TAB>label`` files and a content-stable
train/test split keyed by a seed.
"""

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import pandas as pd
from sklearn.utils import murmurhash3_32


_LABEL_VALUES = {
    '1': True,
    '0': False,
    'true': True,
    'false': False,
}


@dataclass(frozen=True)
class SentimentExample:
    """
    One labelled (or unlabelled) piece of text

    Attributes:
    -----------
    text : str
        Raw text
    label : bool or None
        True for positive sentiment; None at inference time
    """
    text: str
    label: Optional[bool] = None


def _parse_label(raw: str, row: int) -> bool:
    key = raw.strip().lower()
    if key not in _LABEL_VALUES:
        raise ValueError(f"Row {row}: invalid label {raw!r}, expected 0/1 or true/false")
    return _LABEL_VALUES[key]


def load_examples(path: Union[str, Path]) -> List[SentimentExample]:
    """
    Read labelled examples from a tab separated file without header

    Parameters:
    -----------
    path : str or Path
        File whose first column is the text and second column the label

    Returns:
    --------
    examples : list of SentimentExample
        Examples in file order
    """
    df = pd.read_csv(
        path,
        sep='\t',
        header=None,
        names=['text', 'label'],
        usecols=[0, 1],
        dtype=str,
        quoting=csv.QUOTE_NONE,
        keep_default_na=False,
    )

    examples = []
    for row, (text, label) in enumerate(zip(df['text'], df['label']), start=1):
        examples.append(SentimentExample(text=text, label=_parse_label(label, row)))

    return examples


def _split_key(example: SentimentExample) -> str:
    return f"{example.text}\t{int(bool(example.label))}"


def train_test_split(
    examples: Iterable[SentimentExample],
    test_fraction: float = 0.2,
    seed: int = 0
) -> Tuple[List[SentimentExample], List[SentimentExample]]:
    """
    Split examples into train and test sets

    Membership depends only on the example content and the seed, so the
    same example lands in the same partition regardless of input order.

    Parameters:
    -----------
    examples : iterable of SentimentExample
        Examples to partition
    test_fraction : float, default=0.2
        Expected fraction held out for testing
    seed : int, default=0
        Hash seed

    Returns:
    --------
    train : list of SentimentExample
    test : list of SentimentExample
    """
    if not 0.0 < test_fraction < 1.0:
        raise ValueError(f"test_fraction must be in (0, 1), got {test_fraction}")

    train, test = [], []
    for example in examples:
        bucket = murmurhash3_32(_split_key(example), seed=seed, positive=True) / 2.0 ** 32
        if bucket < test_fraction:
            test.append(example)
        else:
            train.append(example)

    return train, test
