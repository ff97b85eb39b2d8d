"""
Tree Builder

This module grows one regression tree on the pseudo-residuals of a boosting
round. Growth is best-first: the leaf whose best split removes the most
squared error is split next, until the leaf budget is used up or no leaf
has an admissible split.
"""

import heapq
from typing import List, Optional, Tuple

import numpy as np
import scipy.sparse as sp

from .feature_binner import FeatureBinner
from .tree_node import LEAF, RegressionTree


# gains at or below this are numerical noise, not a split
MIN_SPLIT_GAIN = 1e-12


class TreeBuilder:
    """
    決定木構築を担当するクラス

    Attributes:
    -----------
    num_leaves : int
        1本の木の最大リーフ数
    min_examples_per_leaf : int
        リーフノードに必要な最小サンプル数
    learning_rate : float
        リーフ出力に掛ける学習率
    """

    def __init__(
        self,
        num_leaves: int = 20,
        min_examples_per_leaf: int = 1,
        learning_rate: float = 0.2
    ):
        self.num_leaves = num_leaves
        self.min_examples_per_leaf = min_examples_per_leaf
        self.learning_rate = learning_rate

    def build_tree(
        self,
        X: sp.csr_matrix,
        binned: sp.csr_matrix,
        binner: FeatureBinner,
        residuals: np.ndarray
    ) -> RegressionTree:
        """
        決定木を構築

        Parameters:
        -----------
        X : sparse matrix, shape=(n_samples, n_features)
            入力特徴量
        binned : sparse matrix, shape=(n_samples, n_features)
            ``binner.transform(X)`` の結果
        binner : FeatureBinner
            分割候補の閾値
        residuals : array-like, shape=(n_samples,)
            擬似残差

        Returns:
        --------
        tree : RegressionTree
            構築された決定木
        """
        split_positions = binner.split_positions()

        feature: List[int] = [LEAF]
        threshold: List[float] = [0.0]
        left: List[int] = [LEAF]
        right: List[int] = [LEAF]
        gain: List[float] = [0.0]
        node_rows: List[np.ndarray] = [np.arange(X.shape[0], dtype=np.int64)]

        heap = []
        self._push_candidate(heap, 0, node_rows[0], binned, binner, split_positions, residuals)
        n_leaves = 1

        while heap and n_leaves < self.num_leaves:
            neg_gain, feature_idx, split_threshold, node_id = heapq.heappop(heap)
            rows = node_rows[node_id]

            values = X[rows][:, [feature_idx]].toarray().ravel()
            go_left = values <= split_threshold

            for child_rows in (rows[go_left], rows[~go_left]):
                feature.append(LEAF)
                threshold.append(0.0)
                left.append(LEAF)
                right.append(LEAF)
                gain.append(0.0)
                node_rows.append(child_rows)

            feature[node_id] = feature_idx
            threshold[node_id] = split_threshold
            gain[node_id] = -neg_gain
            left[node_id] = len(feature) - 2
            right[node_id] = len(feature) - 1
            node_rows[node_id] = None
            n_leaves += 1

            for child_id in (left[node_id], right[node_id]):
                self._push_candidate(
                    heap, child_id, node_rows[child_id], binned, binner, split_positions, residuals
                )

        value = np.zeros(len(feature))
        n_samples = np.zeros(len(feature), dtype=np.int64)
        self._fill_counts(feature, left, right, node_rows, n_samples)
        for node_id, rows in enumerate(node_rows):
            if rows is not None:
                # leaf output: learning-rate-scaled mean residual
                value[node_id] = self.learning_rate * float(np.mean(residuals[rows]))

        return RegressionTree(
            feature=np.array(feature),
            threshold=np.array(threshold),
            left=np.array(left),
            right=np.array(right),
            value=value,
            n_samples=n_samples,
            gain=np.array(gain),
        )

    @staticmethod
    def _fill_counts(feature, left, right, node_rows, n_samples) -> None:
        # children always have larger ids than their parent
        for node_id in range(len(feature) - 1, -1, -1):
            if feature[node_id] == LEAF:
                n_samples[node_id] = len(node_rows[node_id])
            else:
                n_samples[node_id] = n_samples[left[node_id]] + n_samples[right[node_id]]

    def _push_candidate(self, heap, node_id, rows, binned, binner, split_positions, residuals) -> None:
        best_split = self._search_best_split(rows, binned, binner, split_positions, residuals)
        if best_split is not None:
            split_gain, feature_idx, split_threshold = best_split
            # ties: larger gain first, then lower feature index, then lower threshold
            heapq.heappush(heap, (-split_gain, feature_idx, split_threshold, node_id))

    def _search_best_split(
        self,
        rows: np.ndarray,
        binned: sp.csr_matrix,
        binner: FeatureBinner,
        split_positions: np.ndarray,
        residuals: np.ndarray
    ) -> Optional[Tuple[float, int, float]]:
        """
        最適な分割を探索

        Parameters:
        -----------
        rows : array-like
            このノードのサンプルのインデックス
        binned : sparse matrix
            ビン化された特徴量
        binner : FeatureBinner
            分割候補の閾値
        split_positions : array-like, shape=(n_bins,)
            左側の終端になれるビンのマスク
        residuals : array-like, shape=(n_samples,)
            擬似残差

        Returns:
        --------
        best_split : tuple or None
            最適な分割 (gain, feature_idx, threshold)
        """
        n_node = len(rows)
        if n_node < 2 * self.min_examples_per_leaf:
            return None

        node_residuals = residuals[rows]
        total_sum = float(np.sum(node_residuals))

        sub = binned[rows]
        entry_rows = np.repeat(np.arange(n_node), np.diff(sub.indptr))
        entry_bins = sub.data.astype(np.int64) - 1
        entry_residuals = node_residuals[entry_rows]

        n_bins = binner.n_bins
        n_features = binner.n_features
        hist_sum = np.bincount(entry_bins, weights=entry_residuals, minlength=n_bins)
        hist_count = np.bincount(entry_bins, minlength=n_bins)

        # rows without a stored value for a feature sit in that feature's zero bin
        nonzero_count = np.bincount(sub.indices, minlength=n_features)
        nonzero_sum = np.bincount(sub.indices, weights=entry_residuals, minlength=n_features)
        hist_count[binner.zero_bins] += n_node - nonzero_count
        hist_sum[binner.zero_bins] += total_sum - nonzero_sum

        cum_sum = np.concatenate([[0.0], np.cumsum(hist_sum)])
        cum_count = np.concatenate([[0], np.cumsum(hist_count)])
        feature_start = binner.bin_offsets[binner.bin_feature]
        left_sum = cum_sum[1:] - cum_sum[feature_start]
        left_count = cum_count[1:] - cum_count[feature_start]
        right_sum = total_sum - left_sum
        right_count = n_node - left_count

        valid = (
            split_positions
            & (left_count >= self.min_examples_per_leaf)
            & (right_count >= self.min_examples_per_leaf)
        )
        if not np.any(valid):
            return None

        gains = np.full(n_bins, -np.inf)
        gains[valid] = (
            left_sum[valid] ** 2 / left_count[valid]
            + right_sum[valid] ** 2 / right_count[valid]
            - total_sum ** 2 / n_node
        )

        # argmax keeps the first maximum: lowest feature, then lowest threshold
        best_bin = int(np.argmax(gains))
        best_gain = float(gains[best_bin])
        if best_gain <= MIN_SPLIT_GAIN:
            return None

        feature_idx = int(binner.bin_feature[best_bin])
        return best_gain, feature_idx, binner.threshold_of_bin(best_bin)
