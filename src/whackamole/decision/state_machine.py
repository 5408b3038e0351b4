"""
Session state machine.

Applies inbound events to the owned session state and tracks the
session-level mode. The mode is derived from the flags so that the
flags stay the single source of truth; every mode change is logged.
"""

from __future__ import annotations

import logging
import time
from enum import Enum, auto
from typing import Callable

from whackamole.decision.gate import ActionGate
from whackamole.session.events import (
    AutonomousModeSet,
    Event,
    GameStarted,
    RobotArrived,
    StateUpdate,
    TimeLeft,
    WhackComplete,
)
from whackamole.session.state import GateFlags, Position, SensorSnapshot, SessionState

logger = logging.getLogger(__name__)


class SessionMode(Enum):
    """Session mode enumeration."""

    IDLE = auto()
    SESSION_ACTIVE = auto()
    AUTONOMOUS_ACTIVE = auto()
    ACTION_PENDING = auto()


class SessionStateMachine:
    """
    Session-level state machine for the whack-a-mole controller.

    States:
    - IDLE: No game running (initial, and after time runs out)
    - SESSION_ACTIVE: Game running, manual control only
    - AUTONOMOUS_ACTIVE: Game running, gate evaluated each tick
    - ACTION_PENDING: Command dispatched, waiting for acknowledgment

    Usage:
        sm = SessionStateMachine()

        # For each inbound event:
        sm.apply(event)

        # In control loop:
        if sm.gate.try_acquire(policy_ready):
            ...
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.session = SessionState()
        self.snapshot = SensorSnapshot()
        self.flags = GateFlags()
        self.gate = ActionGate(self.session, self.flags, clock=clock)

        self.games_started = 0
        self.stale_acks = 0
        self._mode = SessionMode.IDLE

    @property
    def mode(self) -> SessionMode:
        if not self.session.active:
            return SessionMode.IDLE
        if not self.session.autonomous_enabled:
            return SessionMode.SESSION_ACTIVE
        if self.flags.action_in_flight:
            return SessionMode.ACTION_PENDING
        return SessionMode.AUTONOMOUS_ACTIVE

    def apply(self, event: Event) -> None:
        """Apply one inbound event to the owned state."""
        if isinstance(event, WhackComplete):
            self._on_whack_complete(event)
        elif isinstance(event, RobotArrived):
            self._on_robot_arrived(event)
        elif isinstance(event, StateUpdate):
            self.snapshot.mole_states = tuple(event.moles)
            self.flags.new_state_available = True
        elif isinstance(event, AutonomousModeSet):
            self.session.autonomous_enabled = event.enabled
            logger.info(f"Autonomous mode {'enabled' if event.enabled else 'disabled'}")
        elif isinstance(event, GameStarted):
            if not self.session.active:
                self.games_started += 1
                logger.info(f"Game {self.games_started} started")
            self.session.active = True
        elif isinstance(event, TimeLeft):
            self._on_time_left(event)
        else:
            raise TypeError(f"Unsupported event: {event!r}")

        self.sync_mode()

    def sync_mode(self) -> SessionMode:
        """Log a transition if the derived mode changed since the last call."""
        mode = self.mode
        if mode != self._mode:
            logger.info(f"Transition: {self._mode.name} -> {mode.name}")
            self._mode = mode
        return mode

    def _on_whack_complete(self, event: WhackComplete) -> None:
        # Slot numbering spans the board; each base position shifts the
        # arm's reachable slots by two.
        ordinal = event.slot - 2 * int(self.snapshot.robot_pos)
        try:
            self.snapshot.arm_pos = Position.decode(ordinal)
        except ValueError:
            logger.warning(
                f"Whack at slot {event.slot} unreachable from robot {self.snapshot.robot_pos.name}, "
                f"arm position unchanged"
            )
        self._acknowledge(event)

    def _on_robot_arrived(self, event: RobotArrived) -> None:
        try:
            self.snapshot.robot_pos = Position.from_wire(event.pos)
        except ValueError:
            logger.warning(f"Robot arrived at invalid position {event.pos}, robot position unchanged")
        self._acknowledge(event)

    def _acknowledge(self, event: Event) -> None:
        if not self.flags.action_in_flight:
            # Manual moves produce acknowledgments too; only worth a warning
            # when the policy could have been waiting for one.
            self.stale_acks += 1
            level = logging.WARNING if self.session.autonomous_enabled else logging.DEBUG
            logger.log(level, f"Stale acknowledgment ignored: {event}")
            return
        logger.info(f"Action complete: {self.flags.pending} ({event})")
        self.flags.release()

    def _on_time_left(self, event: TimeLeft) -> None:
        self.session.time_left = event.seconds
        if event.seconds > 0:
            return
        if self.flags.action_in_flight:
            logger.warning(f"Time up with {self.flags.pending} in flight, command not recalled")
        self.session.active = False
        self.session.autonomous_enabled = False
        self.flags.new_state_available = False
        self.flags.release()
        self.snapshot.reset_positions()
        if self._mode != SessionMode.IDLE:
            logger.info("Game over")
