"""
Runtime tunable parameters with JSON persistence.

The controller and the web interface share one Parameters instance.
Dataset paths are read once at startup; the loop rate and acknowledgment
timeout take effect on the next tick. Single-threaded asyncio means no
locks needed.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass
from pathlib import Path

from whackamole.config import (
    ACTIONS_CSV,
    APPARATUS_BAUDRATE,
    APPARATUS_PORT,
    CONTROL_LOOP_HZ,
    STATES_CSV,
)

logger = logging.getLogger(__name__)

PARAMS_FILE = Path(__file__).parent / "params.json"

# Per-field range checks applied by update(); failing values keep the old value
VALIDATORS = {
    "loop_hz": lambda v: math.isfinite(v) and v > 0,
    "ack_timeout_s": lambda v: math.isfinite(v) and v >= 0,
    "serial_baudrate": lambda v: v > 0,
}


@dataclass
class Parameters:
    """Runtime tunable parameters."""

    # Policy training data
    states_csv: str = str(STATES_CSV)
    actions_csv: str = str(ACTIONS_CSV)

    # Apparatus link
    serial_port: str = APPARATUS_PORT
    serial_baudrate: int = APPARATUS_BAUDRATE

    # Control loop
    loop_hz: float = float(CONTROL_LOOP_HZ)
    ack_timeout_s: float = 0.0  # 0 = wait forever for acknowledgment

    def update(self, **kwargs):
        """Update parameters from dict (e.g., from web API)."""
        for key, value in kwargs.items():
            if hasattr(self, key):
                expected_type = type(getattr(self, key))
                try:
                    new_value = expected_type(value)
                except (TypeError, ValueError):
                    logger.warning(f"Invalid value for {key}: {value}")
                    continue
                check = VALIDATORS.get(key)
                if check and not check(new_value):
                    logger.warning(f"Out of range value for {key}: {value}")
                    continue
                setattr(self, key, new_value)
            else:
                logger.warning(f"Unknown parameter: {key}")

    def save(self, path: Path | None = None):
        """Persist to JSON file."""
        path = path or PARAMS_FILE
        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)
        logger.info(f"Parameters saved to {path}")

    @classmethod
    def load(cls, path: Path | None = None) -> Parameters:
        """Load from JSON file, or return defaults."""
        path = path or PARAMS_FILE
        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                params = cls()
                params.update(**data)
                logger.info(f"Parameters loaded from {path}")
                return params
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load {path}: {e}, using defaults")
        return cls()

    def to_dict(self) -> dict:
        """Convert to dict for JSON API."""
        return asdict(self)
