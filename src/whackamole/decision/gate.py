"""
Single-flight action gate.

Decides, once per tick, whether a new autonomous decision may be made.
The check is level-triggered: a condition that turns false before the
next tick without being observed true never fires.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from whackamole.session.state import GateFlags, SessionState

logger = logging.getLogger(__name__)


def gate_open(session: SessionState, flags: GateFlags, policy_ready: bool) -> bool:
    """True iff a new action may be dispatched right now."""
    return (
        session.autonomous_enabled
        and policy_ready
        and session.active
        and flags.new_state_available
        and not flags.action_in_flight
    )


class ActionGate:
    """
    Wraps the gate predicate with acquire/release over the shared flags.

    Usage:
        gate = ActionGate(session, flags)

        # In control loop:
        if gate.try_acquire(policy_ready):
            ...  # predict + dispatch
            gate.mark_dispatched(command)   # or gate.reopen(reason)
    """

    def __init__(self, session: SessionState, flags: GateFlags, clock: Callable[[], float] = time.monotonic):
        self.session = session
        self.flags = flags
        self._clock = clock

    def is_open(self, policy_ready: bool) -> bool:
        return gate_open(self.session, self.flags, policy_ready)

    def try_acquire(self, policy_ready: bool) -> bool:
        """
        Evaluate the gate and, if open, close it before any decision is made.

        Consumes new_state_available and sets action_in_flight, so a slow
        predict cannot let the next tick dispatch again.
        """
        if not self.is_open(policy_ready):
            return False
        self.flags.new_state_available = False
        self.flags.action_in_flight = True
        self.flags.in_flight_since = self._clock()
        return True

    def mark_dispatched(self, command):
        """Record the command now awaiting acknowledgment."""
        self.flags.pending = command

    def reopen(self, reason: str):
        """Release the gate without an acknowledgment."""
        if self.flags.action_in_flight:
            logger.info(f"Gate reopened: {reason}")
        self.flags.release()

    def expire(self, timeout_s: float) -> bool:
        """
        Abandon the in-flight action if it has waited longer than timeout_s.

        A timeout of 0, a negative value or NaN disables expiry.

        Returns:
            True if the in-flight action was abandoned.
        """
        if not timeout_s > 0 or not self.flags.action_in_flight or self.flags.in_flight_since is None:
            return False
        waited = self._clock() - self.flags.in_flight_since
        if waited < timeout_s:
            return False
        logger.warning(
            f"No acknowledgment for {self.flags.pending} after {waited:.1f}s, abandoning"
        )
        self.flags.release()
        return True
