"""
Training data loading.

Two CSV tables: feature rows (7 mole values + robot and arm position
ordinals, in FEATURE_ORDER) and single-column action labels (0-5).
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from whackamole.config import ACTION_COUNT, POSITION_COUNT
from whackamole.errors import PolicyConstructionFailure
from whackamole.policy.base import FEATURE_COUNT, FEATURE_ORDER

logger = logging.getLogger(__name__)


def _load_csv(path: Path) -> np.ndarray:
    if not path.exists():
        raise PolicyConstructionFailure(f"Training data not found: {path}", details={"path": str(path)})
    try:
        return np.loadtxt(path, delimiter=",", ndmin=2, dtype=float)
    except ValueError as e:
        raise PolicyConstructionFailure(f"Malformed training data in {path}: {e}", details={"path": str(path)}) from e


def load_training_data(states_csv, actions_csv) -> tuple[np.ndarray, np.ndarray]:
    """
    Load and validate the training tables.

    Returns:
        (features, labels): features is (N, FEATURE_COUNT), labels is (N,) ints.

    Raises:
        PolicyConstructionFailure: missing file, bad shape or label out of range.
    """
    states_path = Path(states_csv)
    actions_path = Path(actions_csv)

    features = _load_csv(states_path)
    labels = _load_csv(actions_path)

    if features.shape[0] == 0:
        raise PolicyConstructionFailure(f"No training rows in {states_path}")
    if features.shape[1] != FEATURE_COUNT:
        raise PolicyConstructionFailure(
            f"{states_path}: expected {FEATURE_COUNT} columns ({','.join(FEATURE_ORDER)}), "
            f"got {features.shape[1]}"
        )
    if labels.shape[1] != 1:
        raise PolicyConstructionFailure(f"{actions_path}: expected 1 column, got {labels.shape[1]}")
    if labels.shape[0] != features.shape[0]:
        raise PolicyConstructionFailure(
            f"Row count mismatch: {features.shape[0]} states vs {labels.shape[0]} actions"
        )

    labels = labels[:, 0]
    if not np.all(np.mod(labels, 1) == 0) or labels.min() < 0 or labels.max() >= ACTION_COUNT:
        raise PolicyConstructionFailure(f"{actions_path}: labels must be integers in [0, {ACTION_COUNT})")

    positions = features[:, -2:]
    if positions.min() < 0 or positions.max() >= POSITION_COUNT:
        logger.warning(f"{states_path}: position ordinals outside 0..{POSITION_COUNT - 1}")

    logger.info(f"Loaded {features.shape[0]} training rows from {states_path.name}/{actions_path.name}")
    return features, labels.astype(int)
