"""
Feature Binner

Pre-computes the candidate split thresholds of every feature and maps each
stored (non-zero) feature value to a global histogram bin, so that split
search at a node costs one histogram pass over the node's non-zero entries.

Feature ``f`` with thresholds ``t_0 < ... < t_{k-1}`` owns ``k + 1`` bins;
value ``v`` falls into local bin ``#{t_i < v}``, hence ``v <= t_j`` exactly
when its local bin is ``<= j``.
"""

import numpy as np
import scipy.sparse as sp


class FeatureBinner:
    """
    Candidate thresholds and histogram bins of a training matrix

    Attributes:
    -----------
    max_bins : int
        Maximum number of distinct values considered per feature
    thresholds : array-like, shape=(n_thresholds,)
        Candidate thresholds of all features, concatenated in feature order
    threshold_offsets : array-like, shape=(n_features + 1,)
        Feature ``f`` owns ``thresholds[threshold_offsets[f]:threshold_offsets[f + 1]]``
    bin_offsets : array-like, shape=(n_features + 1,)
        Feature ``f`` owns global bins ``bin_offsets[f]`` to ``bin_offsets[f + 1] - 1``
    zero_bins : array-like, shape=(n_features,)
        Global bin of the value 0 for every feature
    bin_feature : array-like, shape=(n_bins,)
        Feature owning each global bin
    """

    def __init__(self, max_bins: int = 255):
        self.max_bins = max_bins
        self.thresholds = None
        self.threshold_offsets = None
        self.bin_offsets = None
        self.zero_bins = None
        self.bin_feature = None

    @property
    def n_bins(self) -> int:
        return int(self.bin_offsets[-1])

    @property
    def n_features(self) -> int:
        return int(self.zero_bins.shape[0])

    def _candidate_values(self, values: np.ndarray, n_zeros: int) -> np.ndarray:
        distinct = np.unique(values)
        if n_zeros > 0:
            distinct = np.union1d(distinct, [0.0])
        if len(distinct) <= self.max_bins:
            return distinct
        # keep actual data values at evenly spaced quantiles of the column
        column = np.concatenate([values, np.zeros(n_zeros)])
        quantiles = np.quantile(column, np.linspace(0.0, 1.0, self.max_bins), method='lower')
        return np.unique(quantiles)

    def fit(self, X: sp.csr_matrix) -> 'FeatureBinner':
        """
        Compute candidate thresholds from the training matrix

        Parameters:
        -----------
        X : sparse matrix, shape=(n_samples, n_features)
            Validated training features (CSR without stored zeros)

        Returns:
        --------
        self : FeatureBinner
        """
        n_samples, n_features = X.shape
        X_csc = X.tocsc()

        per_feature = []
        for feature_idx in range(n_features):
            start, end = X_csc.indptr[feature_idx], X_csc.indptr[feature_idx + 1]
            values = X_csc.data[start:end]
            candidates = self._candidate_values(values, n_samples - (end - start))
            per_feature.append((candidates[:-1] + candidates[1:]) / 2.0)

        counts = np.array([len(t) for t in per_feature], dtype=np.int64)
        self.threshold_offsets = np.concatenate([[0], np.cumsum(counts)]).astype(np.int64)
        self.thresholds = np.concatenate(per_feature) if n_features else np.zeros(0)
        self.bin_offsets = self.threshold_offsets + np.arange(n_features + 1, dtype=np.int64)
        self.bin_feature = np.repeat(np.arange(n_features, dtype=np.int64), counts + 1)
        self.zero_bins = np.array([
            self.bin_offsets[f] + np.searchsorted(self.feature_thresholds(f), 0.0, side='left')
            for f in range(n_features)
        ], dtype=np.int64)
        return self

    def feature_thresholds(self, feature_idx: int) -> np.ndarray:
        return self.thresholds[self.threshold_offsets[feature_idx]:self.threshold_offsets[feature_idx + 1]]

    def transform(self, X: sp.csr_matrix) -> sp.csr_matrix:
        """
        Map every stored value to its global bin

        Parameters:
        -----------
        X : sparse matrix, shape=(n_samples, n_features)
            Matrix the binner was fitted on

        Returns:
        --------
        binned : sparse matrix, shape=(n_samples, n_features)
            CSR matrix with the structure of ``X``; each stored value is its
            global bin plus one
        """
        X_csc = X.tocsc()
        bins = np.empty_like(X_csc.data)
        for feature_idx in range(X_csc.shape[1]):
            start, end = X_csc.indptr[feature_idx], X_csc.indptr[feature_idx + 1]
            local = np.searchsorted(self.feature_thresholds(feature_idx), X_csc.data[start:end], side='left')
            bins[start:end] = self.bin_offsets[feature_idx] + local + 1

        binned = sp.csc_matrix((bins, X_csc.indices, X_csc.indptr), shape=X_csc.shape)
        return binned.tocsr()

    def split_positions(self) -> np.ndarray:
        """
        Mask of global bins that can end the left side of a split

        Returns:
        --------
        mask : array-like, shape=(n_bins,)
            False for the last bin of every feature
        """
        mask = np.ones(self.n_bins, dtype=bool)
        mask[self.bin_offsets[1:] - 1] = False
        return mask

    def threshold_of_bin(self, global_bin: int) -> float:
        feature_idx = int(self.bin_feature[global_bin])
        local = int(global_bin - self.bin_offsets[feature_idx])
        return float(self.thresholds[self.threshold_offsets[feature_idx] + local])
