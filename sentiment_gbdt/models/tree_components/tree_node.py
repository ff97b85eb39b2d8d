"""
Regression Tree Arena

A trained regression tree stored as parallel node arrays with integer child
indices. Node 0 is the root; leaves have ``feature == -1``. Internal nodes
route a row to ``left`` when ``x[feature] <= threshold``.
"""

from typing import Dict

import numpy as np
import scipy.sparse as sp


LEAF = -1


class RegressionTree:
    """
    決定木（アリーナ表現）

    Attributes:
    -----------
    feature : array-like, shape=(n_nodes,)
        分割に使用する特徴のインデックス（リーフノードの場合は-1）
    threshold : array-like, shape=(n_nodes,)
        分割の閾値（リーフノードの場合は0）
    left : array-like, shape=(n_nodes,)
        左の子ノードのインデックス（リーフノードの場合は-1）
    right : array-like, shape=(n_nodes,)
        右の子ノードのインデックス（リーフノードの場合は-1）
    value : array-like, shape=(n_nodes,)
        学習率を掛けたリーフ出力値（内部ノードの場合は0）
    n_samples : array-like, shape=(n_nodes,)
        各ノードの学習サンプル数
    gain : array-like, shape=(n_nodes,)
        分割による二乗誤差の減少量（リーフノードの場合は0）
    """

    ARRAY_FIELDS = ('feature', 'threshold', 'left', 'right', 'value', 'n_samples', 'gain')

    def __init__(
        self,
        feature: np.ndarray,
        threshold: np.ndarray,
        left: np.ndarray,
        right: np.ndarray,
        value: np.ndarray,
        n_samples: np.ndarray,
        gain: np.ndarray
    ):
        self.feature = np.asarray(feature, dtype=np.int64)
        self.threshold = np.asarray(threshold, dtype=np.float64)
        self.left = np.asarray(left, dtype=np.int64)
        self.right = np.asarray(right, dtype=np.int64)
        self.value = np.asarray(value, dtype=np.float64)
        self.n_samples = np.asarray(n_samples, dtype=np.int64)
        self.gain = np.asarray(gain, dtype=np.float64)
        self._check_structure()
        for name in self.ARRAY_FIELDS:
            getattr(self, name).flags.writeable = False

    def _check_structure(self) -> None:
        n_nodes = self.feature.shape[0]
        if n_nodes == 0:
            raise ValueError("A tree needs at least one node")
        for name in self.ARRAY_FIELDS:
            array = getattr(self, name)
            if array.shape != (n_nodes,):
                raise ValueError(f"Node array '{name}' has shape {array.shape}, expected ({n_nodes},)")

        is_leaf = self.feature == LEAF
        internal = ~is_leaf
        if np.any(self.feature < LEAF):
            raise ValueError("Negative feature index in internal node")
        if np.any((self.left[is_leaf] != LEAF) | (self.right[is_leaf] != LEAF)):
            raise ValueError("Leaf node has children")

        children = np.concatenate([self.left[internal], self.right[internal]])
        # every non-root node is the child of exactly one earlier node
        if np.any(children <= 0) or np.any(children >= n_nodes):
            raise ValueError("Child index out of range")
        if np.any(self.left[internal] <= np.flatnonzero(internal)) or \
                np.any(self.right[internal] <= np.flatnonzero(internal)):
            raise ValueError("Child index must follow its parent")
        if len(np.unique(children)) != len(children) or len(children) != n_nodes - 1:
            raise ValueError("Tree nodes do not form a single binary tree")
        if not np.all(np.isfinite(self.threshold)) or not np.all(np.isfinite(self.value)):
            raise ValueError("Tree contains non-finite thresholds or values")

    @property
    def n_nodes(self) -> int:
        return int(self.feature.shape[0])

    @property
    def n_leaves(self) -> int:
        return int(np.sum(self.feature == LEAF))

    @property
    def max_feature_index(self) -> int:
        internal = self.feature != LEAF
        return int(self.feature[internal].max()) if np.any(internal) else -1

    def apply(self, X) -> np.ndarray:
        """
        各サンプルが到達するリーフのインデックスを計算

        Parameters:
        -----------
        X : array-like or sparse matrix, shape=(n_samples, n_features)
            入力特徴量

        Returns:
        --------
        leaves : array-like, shape=(n_samples,)
            リーフノードのインデックス
        """
        n_rows = X.shape[0]
        nodes = np.zeros(n_rows, dtype=np.int64)
        active = np.flatnonzero(self.feature[nodes] != LEAF)

        while active.size > 0:
            current = nodes[active]
            features = self.feature[current]
            if sp.issparse(X):
                values = np.asarray(X[active, features]).ravel()
            else:
                values = X[active, features]
            go_left = values <= self.threshold[current]
            nodes[active] = np.where(go_left, self.left[current], self.right[current])
            active = active[self.feature[nodes[active]] != LEAF]

        return nodes

    def predict(self, X) -> np.ndarray:
        """
        リーフ出力値で予測

        Parameters:
        -----------
        X : array-like or sparse matrix, shape=(n_samples, n_features)
            入力特徴量

        Returns:
        --------
        predictions : array-like, shape=(n_samples,)
            到達したリーフの出力値
        """
        return self.value[self.apply(X)]

    def get_depth(self) -> int:
        """
        木の深さを計算

        Returns:
        --------
        depth : int
            ルートから最も深いリーフまでの分割数
        """
        depth = np.zeros(self.n_nodes, dtype=np.int64)
        for node in range(self.n_nodes):
            if self.feature[node] != LEAF:
                depth[self.left[node]] = depth[node] + 1
                depth[self.right[node]] = depth[node] + 1
        return int(depth.max())

    def count_nodes(self) -> int:
        return self.n_nodes

    def to_arrays(self) -> Dict[str, np.ndarray]:
        return {name: getattr(self, name) for name in self.ARRAY_FIELDS}

    @classmethod
    def from_arrays(cls, arrays: Dict[str, np.ndarray]) -> 'RegressionTree':
        return cls(**{name: arrays[name] for name in cls.ARRAY_FIELDS})

    def __eq__(self, other) -> bool:
        if not isinstance(other, RegressionTree):
            return NotImplemented
        return all(
            np.array_equal(getattr(self, name), getattr(other, name))
            for name in self.ARRAY_FIELDS
        )

    def __str__(self) -> str:
        return f"RegressionTree(nodes={self.n_nodes}, leaves={self.n_leaves}, depth={self.get_depth()})"

    def __repr__(self) -> str:
        return self.__str__()
