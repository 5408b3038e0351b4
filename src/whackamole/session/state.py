"""
Session state - what the controller currently knows.

SessionState, SensorSnapshot and GateFlags are owned by the Controller
and only mutated while applying events on the control loop.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from whackamole.config import MOLE_COUNT


class Position(IntEnum):
    """Base/arm position. Value is the ordinal used in feature vectors."""

    LEFT = 0
    MID = 1
    RIGHT = 2

    @classmethod
    def decode(cls, ordinal: int) -> Position:
        """Ordinal (0-2) to Position. Raises ValueError if out of range."""
        return cls(ordinal)

    @classmethod
    def from_wire(cls, value: int) -> Position:
        """Command/arrival encoding (1-3) to Position."""
        return cls(value - 1)

    @property
    def wire(self) -> int:
        """Command channel encoding (1-3)."""
        return int(self) + 1


@dataclass
class SessionState:
    """Game session flags."""

    active: bool = False
    autonomous_enabled: bool = False
    time_left: int | None = None  # Last reported seconds remaining


@dataclass
class SensorSnapshot:
    """Latest mole states and robot/arm positions."""

    mole_states: tuple[int, ...] = (0,) * MOLE_COUNT
    robot_pos: Position = Position.MID
    arm_pos: Position = Position.MID

    def reset_positions(self):
        self.robot_pos = Position.MID
        self.arm_pos = Position.MID


@dataclass
class GateFlags:
    """
    Single-flight action gate flags.

    action_in_flight is true for at most one dispatched command between
    dispatch and its acknowledgment.
    """

    new_state_available: bool = False
    action_in_flight: bool = False
    in_flight_since: float | None = None  # Monotonic time of dispatch
    pending: object | None = field(default=None)  # ActionCommand awaiting ack

    @property
    def action_allowed(self) -> bool:
        return not self.action_in_flight

    def release(self):
        """Reopen the gate."""
        self.action_in_flight = False
        self.in_flight_since = None
        self.pending = None
