"""
Typed inbound events.

Transports deliver (channel, payload) pairs; decode_event() normalizes
them into one of the event types below. Payloads may arrive as Python
values (web API JSON) or as text (serial line protocol).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from whackamole.config import (
    CH_AUTONOMOUS_MODE,
    CH_GAME_STARTED,
    CH_ROBOT_ARRIVE,
    CH_STATE_DATA,
    CH_TIME_LEFT,
    CH_WHACK_COMPLETE,
    MOLE_COUNT,
)
from whackamole.errors import MalformedEvent, MalformedStateUpdate


@dataclass(frozen=True)
class WhackComplete:
    """Arm finished striking. Acknowledges an arm command."""

    slot: int  # Zero-indexed slot struck


@dataclass(frozen=True)
class RobotArrived:
    """Base finished moving. Acknowledges a robot command."""

    pos: int  # 1-indexed position reached


@dataclass(frozen=True)
class StateUpdate:
    moles: tuple[int, ...]


@dataclass(frozen=True)
class AutonomousModeSet:
    enabled: bool


@dataclass(frozen=True)
class GameStarted:
    pass


@dataclass(frozen=True)
class TimeLeft:
    seconds: int


Event = Union[WhackComplete, RobotArrived, StateUpdate, AutonomousModeSet, GameStarted, TimeLeft]

ACKNOWLEDGMENTS = (WhackComplete, RobotArrived)


def _parse_int(channel: str, value) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise MalformedEvent(
        f"{channel}: expected integer payload, got {value!r}",
        details={"channel": channel, "payload": repr(value)},
    )


def _parse_moles(value) -> tuple[int, ...]:
    if isinstance(value, str):
        value = [v for v in value.replace(" ", ",").split(",") if v]
    if not isinstance(value, (list, tuple)):
        raise MalformedStateUpdate(
            f"{CH_STATE_DATA}: expected sequence, got {value!r}",
            details={"payload": repr(value)},
        )
    if len(value) != MOLE_COUNT:
        raise MalformedStateUpdate(
            f"{CH_STATE_DATA}: expected {MOLE_COUNT} values, got {len(value)}",
            details={"count": len(value)},
        )
    try:
        return tuple(_parse_int(CH_STATE_DATA, v) for v in value)
    except MalformedEvent as e:
        raise MalformedStateUpdate(str(e), details=e.details) from e


def decode_event(channel: str, payload=None) -> Event:
    """
    Convert a raw (channel, payload) pair into a typed event.

    Raises:
        MalformedStateUpdate: state_data without exactly 7 integers.
        MalformedEvent: unknown channel or non-integer payload.
    """
    if channel == CH_WHACK_COMPLETE:
        return WhackComplete(slot=_parse_int(channel, payload))
    if channel == CH_ROBOT_ARRIVE:
        return RobotArrived(pos=_parse_int(channel, payload))
    if channel == CH_STATE_DATA:
        return StateUpdate(moles=_parse_moles(payload))
    if channel == CH_AUTONOMOUS_MODE:
        return AutonomousModeSet(enabled=_parse_int(channel, payload) != 0)
    if channel == CH_GAME_STARTED:
        return GameStarted()
    if channel == CH_TIME_LEFT:
        return TimeLeft(seconds=_parse_int(channel, payload))
    raise MalformedEvent(f"Unknown channel: {channel!r}", details={"channel": channel})
