"""
Text Featurizer

Deterministic transform from raw text to a fixed-width numeric vector:
case-normalized word tokens (and optionally word n-grams) are hashed into
``n_features`` slots with MurmurHash3, counted, weighted by a smooth IDF
estimated over the training corpus, and L2 normalized.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
import scipy.sparse as sp
from sklearn.feature_extraction.text import HashingVectorizer
from sklearn.preprocessing import normalize

from .base import PipelineStage
from ..errors import FeaturizationError


TOKEN_PATTERN = r"(?u)\b\w+\b"


def _build_vectorizer(n_features: int, ngram_range: Tuple[int, int]) -> HashingVectorizer:
    return HashingVectorizer(
        n_features=n_features,
        lowercase=True,
        token_pattern=TOKEN_PATTERN,
        ngram_range=tuple(ngram_range),
        alternate_sign=False,
        norm=None,
        dtype=np.float64,
    )


def tokenize(text: str, ngram_range: Tuple[int, int] = (1, 1)) -> List[str]:
    """
    Split text into the lower-cased terms that get hashed

    Parameters:
    -----------
    text : str
        Raw text
    ngram_range : tuple of int, default=(1, 1)
        Smallest and largest word n-gram size

    Returns:
    --------
    terms : list of str
        Terms in text order
    """
    _check_text(text, 0)
    analyzer = _build_vectorizer(2, ngram_range).build_analyzer()
    return analyzer(text)


def _check_text(text, position: int) -> None:
    if text is None:
        raise FeaturizationError(
            f"Text at position {position} is None; pass an empty string for empty input"
        )
    if not isinstance(text, str):
        raise FeaturizationError(
            f"Text at position {position} must be str, got {type(text).__name__}"
        )


def _check_texts(texts: Iterable[str]) -> List[str]:
    if texts is None or isinstance(texts, (str, bytes)):
        raise FeaturizationError("Expected a sequence of texts")
    texts = list(texts)
    for position, text in enumerate(texts):
        _check_text(text, position)
    return texts


class TextFeaturizer(PipelineStage):
    """
    Hashed bag-of-words featurizer with corpus IDF weighting

    Attributes:
    -----------
    n_features : int
        Width F of every produced feature vector
    ngram_range : tuple of int
        Smallest and largest word n-gram size
    use_idf : bool
        Whether counts are weighted by the fitted IDF
    norm : str or None
        Row normalization ('l2', 'l1' or None)
    idf_ : array-like, shape=(n_features,)
        Fitted IDF weights (ones when ``use_idf`` is False)
    n_documents_ : int
        Number of training texts seen by ``fit``
    """

    def __init__(
        self,
        n_features: int = 2 ** 12,
        ngram_range: Tuple[int, int] = (1, 2),
        use_idf: bool = True,
        norm: Optional[str] = 'l2'
    ):
        self.n_features = n_features
        self.ngram_range = tuple(ngram_range)
        self.use_idf = use_idf
        self.norm = norm
        self.idf_ = None
        self.n_documents_ = 0
        self.is_fitted = False

    def _validate_params(self) -> None:
        if not isinstance(self.n_features, (int, np.integer)) or self.n_features < 1:
            raise FeaturizationError(f"n_features must be a positive integer, got {self.n_features}")
        low, high = self.ngram_range
        if low < 1 or high < low:
            raise FeaturizationError(f"Invalid ngram_range: {self.ngram_range}")
        if self.norm not in ('l1', 'l2', None):
            raise FeaturizationError(f"Invalid norm: {self.norm}")

    def _counts(self, texts: List[str]) -> sp.csr_matrix:
        vectorizer = _build_vectorizer(self.n_features, self.ngram_range)
        return vectorizer.transform(texts).tocsr()

    def fit(self, X: Iterable[str], y=None, **kwargs) -> 'TextFeaturizer':
        """
        Estimate IDF weights over the training corpus

        Parameters:
        -----------
        X : iterable of str
            Training texts
        y : ignored

        Returns:
        --------
        self : TextFeaturizer
            Fitted featurizer
        """
        if self.is_fitted:
            raise FeaturizationError("TextFeaturizer is already fitted")
        self._validate_params()
        texts = _check_texts(X)
        if not texts:
            raise FeaturizationError("Cannot fit featurizer on an empty corpus")

        n_documents = len(texts)
        if self.use_idf:
            counts = self._counts(texts)
            # document frequency per slot
            df = np.bincount(counts.indices, minlength=self.n_features).astype(np.float64)
            idf = np.log((1.0 + n_documents) / (1.0 + df)) + 1.0
        else:
            idf = np.ones(self.n_features, dtype=np.float64)

        self.idf_ = idf
        self.n_documents_ = n_documents
        self.is_fitted = True
        return self

    def transform(self, X: Iterable[str], sparse: bool = False):
        """
        Featurize texts with the fitted statistics

        Parameters:
        -----------
        X : iterable of str
            Texts to featurize
        sparse : bool, default=False
            Return a scipy CSR matrix instead of a dense array

        Returns:
        --------
        features : array-like, shape=(n_texts, n_features)
            Feature matrix
        """
        if not self.is_fitted:
            raise FeaturizationError("TextFeaturizer must be fitted before transform")
        texts = _check_texts(X)

        counts = self._counts(texts)
        if self.use_idf:
            counts = counts @ sp.diags(self.idf_, format='csr')
        if self.norm is not None:
            counts = normalize(counts, norm=self.norm, copy=False)

        features = sp.csr_matrix(counts, dtype=np.float64)
        return features if sparse else features.toarray()

    def fit_transform(self, X: Iterable[str], y=None, sparse: bool = False):
        texts = _check_texts(X)
        return self.fit(texts).transform(texts, sparse=sparse)

    def featurize(self, text: str) -> np.ndarray:
        """
        Featurize a single text

        Parameters:
        -----------
        text : str
            Raw text; None is rejected

        Returns:
        --------
        vector : array-like, shape=(n_features,)
            Feature vector
        """
        _check_text(text, 0)
        return self.transform([text])[0]

    def get_params(self) -> Dict[str, Any]:
        return {
            'n_features': int(self.n_features),
            'ngram_range': list(self.ngram_range),
            'use_idf': bool(self.use_idf),
            'norm': self.norm,
        }

    @classmethod
    def from_state(cls, params: Dict[str, Any], idf: np.ndarray, n_documents: int = 0) -> 'TextFeaturizer':
        """
        Rebuild a fitted featurizer from saved parameters

        Parameters:
        -----------
        params : dict
            Output of ``get_params``
        idf : array-like, shape=(n_features,)
            Saved IDF weights
        n_documents : int, default=0
            Size of the original training corpus

        Returns:
        --------
        featurizer : TextFeaturizer
            Fitted featurizer
        """
        featurizer = cls(
            n_features=int(params['n_features']),
            ngram_range=tuple(params['ngram_range']),
            use_idf=bool(params['use_idf']),
            norm=params['norm'],
        )
        featurizer._validate_params()
        idf = np.asarray(idf, dtype=np.float64)
        if idf.shape != (featurizer.n_features,):
            raise FeaturizationError(
                f"IDF has shape {idf.shape}, expected ({featurizer.n_features},)"
            )
        featurizer.idf_ = idf
        featurizer.n_documents_ = int(n_documents)
        featurizer.is_fitted = True
        return featurizer

    def __repr__(self) -> str:
        state = 'fitted' if self.is_fitted else 'not fitted'
        return f"TextFeaturizer(n_features={self.n_features}, ngram_range={self.ngram_range}, {state})"
