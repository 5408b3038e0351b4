"""
Policy engine contract.

The controller only needs predict(); how a policy is trained or
represented is up to the implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from whackamole.config import MOLE_COUNT
from whackamole.session.state import SensorSnapshot

# Column order of the training features table. Robot position comes
# before arm position.
FEATURE_ORDER = tuple(f"mole{i}" for i in range(MOLE_COUNT)) + ("robotPos", "armPos")
FEATURE_COUNT = len(FEATURE_ORDER)


def build_features(snapshot: SensorSnapshot) -> np.ndarray:
    """Feature vector for predict(), laid out as FEATURE_ORDER."""
    features = np.zeros(FEATURE_COUNT, dtype=float)
    features[:MOLE_COUNT] = snapshot.mole_states
    features[FEATURE_ORDER.index("robotPos")] = int(snapshot.robot_pos)
    features[FEATURE_ORDER.index("armPos")] = int(snapshot.arm_pos)
    return features


class PolicyEngine(ABC):
    """Base class for action-selection policies."""

    @abstractmethod
    def predict(self, features: np.ndarray) -> float:
        """
        Choose an action for the given state.

        Args:
            features: Vector of FEATURE_COUNT values laid out as FEATURE_ORDER.

        Returns:
            Action id (0-2 = arm position, 3-5 = robot position) as a float.
        """
        ...

    def describe(self) -> str:
        """Human-readable dump of the model, for diagnostics."""
        return repr(self)
