"""
Policy Layer - Which action to take.

Contains:
- PolicyEngine: predict() contract
- DecisionTreePolicy: CART classifier trained from demonstration data
- build_policy(): load datasets and train, raising PolicyConstructionFailure
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .base import FEATURE_COUNT, FEATURE_ORDER, PolicyEngine, build_features
from .dataset import load_training_data
from .decision_tree import DecisionTreePolicy, TreeNode

logger = logging.getLogger(__name__)


def build_policy(
    states_csv,
    actions_csv,
    on_built: Optional[Callable[[PolicyEngine], None]] = None,
) -> PolicyEngine:
    """
    Train the decision tree policy from the two CSV tables.

    Args:
        states_csv: Feature rows, FEATURE_ORDER columns.
        actions_csv: Single-column action labels.
        on_built: Optional diagnostic hook called with the trained policy.
            Errors raised by the hook are logged and do not fail construction.

    Raises:
        PolicyConstructionFailure: Data missing or malformed.
    """
    features, labels = load_training_data(states_csv, actions_csv)
    policy = DecisionTreePolicy().train(features, labels)

    if on_built is not None:
        try:
            on_built(policy)
        except Exception as e:
            logger.warning(f"Policy diagnostic hook failed: {e}", exc_info=True)

    return policy


def log_policy(policy: PolicyEngine) -> None:
    """Diagnostic hook: dump the model at DEBUG level."""
    logger.debug("Policy model:\n%s", policy.describe())


__all__ = [
    "FEATURE_COUNT",
    "FEATURE_ORDER",
    "PolicyEngine",
    "build_features",
    "load_training_data",
    "DecisionTreePolicy",
    "TreeNode",
    "build_policy",
    "log_policy",
]
