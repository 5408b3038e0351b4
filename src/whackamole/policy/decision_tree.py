"""
Decision tree policy (CART, Gini impurity).

Trained once at startup from the demonstration datasets. Features are
treated as continuous; the position ordinals split cleanly on the
midpoints 0.5 and 1.5.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from whackamole.errors import PolicyConstructionFailure
from whackamole.policy.base import FEATURE_COUNT, FEATURE_ORDER, PolicyEngine

logger = logging.getLogger(__name__)


@dataclass
class TreeNode:
    """Split node (feature/threshold/children) or leaf (label)."""

    samples: int
    label: float | None = None
    feature: int | None = None
    threshold: float | None = None
    left: TreeNode | None = None  # feature <= threshold
    right: TreeNode | None = None

    @property
    def is_leaf(self) -> bool:
        return self.label is not None


def _gini(counts: np.ndarray, totals: np.ndarray) -> np.ndarray:
    """Gini impurity per row of class counts."""
    with np.errstate(divide="ignore", invalid="ignore"):
        p = counts / totals[:, None]
    return 1.0 - np.sum(np.nan_to_num(p) ** 2, axis=1)


class DecisionTreePolicy(PolicyEngine):
    """
    Classification tree over the FEATURE_ORDER vector.

    Usage:
        policy = DecisionTreePolicy()
        policy.train(features, labels)
        action = policy.predict(features_row)
    """

    def __init__(self, max_depth: int | None = None, min_samples_split: int = 2):
        self.max_depth = max_depth
        self.min_samples_split = min_samples_split
        self.root: TreeNode | None = None
        self._classes: np.ndarray | None = None

    @property
    def is_trained(self) -> bool:
        return self.root is not None

    def train(self, features: np.ndarray, labels: np.ndarray) -> DecisionTreePolicy:
        features = np.asarray(features, dtype=float)
        labels = np.asarray(labels)
        if features.ndim != 2 or features.shape[1] != FEATURE_COUNT:
            raise PolicyConstructionFailure(f"Expected (N, {FEATURE_COUNT}) features, got {features.shape}")
        if len(features) == 0 or len(features) != len(labels):
            raise PolicyConstructionFailure(
                f"Need matching non-empty features/labels, got {len(features)}/{len(labels)}"
            )

        self._classes, encoded = np.unique(labels, return_inverse=True)
        self.root = self._grow(features, encoded, depth=0)
        logger.info(
            f"Decision tree trained: {len(features)} rows, {len(self._classes)} classes, "
            f"depth={self.depth()}, leaves={self.leaf_count()}"
        )
        return self

    def predict(self, features: np.ndarray) -> float:
        if self.root is None:
            raise RuntimeError("Decision tree not trained")
        node = self.root
        while not node.is_leaf:
            node = node.left if features[node.feature] <= node.threshold else node.right
        return node.label

    def depth(self, node: TreeNode | None = None) -> int:
        node = node or self.root
        if node is None or node.is_leaf:
            return 0
        return 1 + max(self.depth(node.left), self.depth(node.right))

    def leaf_count(self, node: TreeNode | None = None) -> int:
        node = node or self.root
        if node is None:
            return 0
        if node.is_leaf:
            return 1
        return self.leaf_count(node.left) + self.leaf_count(node.right)

    def describe(self) -> str:
        if self.root is None:
            return "<untrained decision tree>"
        lines: list[str] = []
        self._describe(self.root, "", lines)
        return "\n".join(lines)

    def _describe(self, node: TreeNode, indent: str, lines: list[str]) -> None:
        if node.is_leaf:
            lines.append(f"{indent}action={node.label:g} ({node.samples} samples)")
            return
        name = FEATURE_ORDER[node.feature]
        lines.append(f"{indent}if {name} <= {node.threshold:g}:")
        self._describe(node.left, indent + "  ", lines)
        lines.append(f"{indent}else:  # {name} > {node.threshold:g}")
        self._describe(node.right, indent + "  ", lines)

    def _leaf(self, encoded: np.ndarray) -> TreeNode:
        counts = np.bincount(encoded, minlength=len(self._classes))
        return TreeNode(samples=len(encoded), label=float(self._classes[int(np.argmax(counts))]))

    def _grow(self, x: np.ndarray, y: np.ndarray, depth: int) -> TreeNode:
        if (
            len(np.unique(y)) == 1
            or len(y) < self.min_samples_split
            or (self.max_depth is not None and depth >= self.max_depth)
        ):
            return self._leaf(y)

        split = self._best_split(x, y)
        if split is None:
            return self._leaf(y)

        feature, threshold = split
        mask = x[:, feature] <= threshold
        return TreeNode(
            samples=len(y),
            feature=feature,
            threshold=threshold,
            left=self._grow(x[mask], y[mask], depth + 1),
            right=self._grow(x[~mask], y[~mask], depth + 1),
        )

    def _best_split(self, x: np.ndarray, y: np.ndarray) -> tuple[int, float] | None:
        """Lowest weighted Gini split over all features, or None if all rows are identical."""
        n = len(y)
        onehot = np.eye(len(self._classes), dtype=float)[y]
        total = onehot.sum(axis=0)
        best_score = np.inf
        best: tuple[int, float] | None = None

        for feature in range(x.shape[1]):
            order = np.argsort(x[:, feature], kind="stable")
            values = x[order, feature]
            left = np.cumsum(onehot[order], axis=0)[:-1]
            right = total - left
            n_left = np.arange(1, n, dtype=float)
            n_right = n - n_left

            # Only split between distinct values
            valid = values[:-1] < values[1:]
            if not np.any(valid):
                continue

            score = (n_left * _gini(left, n_left) + n_right * _gini(right, n_right)) / n
            score[~valid] = np.inf
            i = int(np.argmin(score))
            if score[i] < best_score:
                best_score = score[i]
                best = (feature, float((values[i] + values[i + 1]) / 2.0))

        return best
