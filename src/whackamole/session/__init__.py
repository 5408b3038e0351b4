"""
Session Layer - What the controller knows.

Contains:
- SessionState / SensorSnapshot / GateFlags: owned state
- Typed inbound events and decode_event()
"""

from .state import GateFlags, Position, SensorSnapshot, SessionState
from .events import (
    ACKNOWLEDGMENTS,
    AutonomousModeSet,
    Event,
    GameStarted,
    RobotArrived,
    StateUpdate,
    TimeLeft,
    WhackComplete,
    decode_event,
)

__all__ = [
    "GateFlags",
    "Position",
    "SensorSnapshot",
    "SessionState",
    "ACKNOWLEDGMENTS",
    "AutonomousModeSet",
    "Event",
    "GameStarted",
    "RobotArrived",
    "StateUpdate",
    "TimeLeft",
    "WhackComplete",
    "decode_event",
]
