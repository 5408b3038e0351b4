"""
Main controller - Coordinates all layers.

This is the fixed-rate control loop that, each tick:
1. Polls the apparatus link for new events
2. Applies all pending events to the session state, in arrival order
3. Expires a stale in-flight action (if a timeout is configured)
4. Evaluates the action gate once
5. If open: predicts an action and dispatches the command
"""

from __future__ import annotations

import asyncio
import logging
import signal
import time
from collections import deque
from typing import Callable, Optional

from whackamole.comm import ApparatusLink
from whackamole.config import (
    CH_CMD_ARM_POS,
    OUTBOUND_CHANNELS,
    POSITION_COUNT,
    STATS_INTERVAL_S,
)
from whackamole.control.dispatcher import ActionCommand, ActionDispatcher, ArmPosition, RobotPosition
from whackamole.decision import SessionMode, SessionStateMachine
from whackamole.errors import MalformedEvent, OutOfRangeAction, PolicyConstructionFailure
from whackamole.params import Parameters
from whackamole.policy import PolicyEngine, build_features, build_policy
from whackamole.session import Event, Position, decode_event

logger = logging.getLogger(__name__)


class Controller:
    """
    Whack-a-mole learning controller.

    Coordinates:
    - Apparatus link (events in, commands out)
    - Session layer (SessionStateMachine, ActionGate)
    - Policy layer (PolicyEngine)
    - ActionDispatcher

    All state is owned here and only touched on the event loop.

    Usage:
        controller = Controller()
        asyncio.run(controller.run())
    """

    def __init__(
        self,
        params: Optional[Parameters] = None,
        link=None,
        policy: Optional[PolicyEngine] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        # Runtime parameters (shared, tunable via web)
        self.params = params or Parameters.load()

        # Apparatus
        self.link = link or ApparatusLink(self.params.serial_port, self.params.serial_baudrate)

        # Session + gate
        self.state_machine = SessionStateMachine(clock=clock)

        # Policy; an injected policy counts as ready
        self.policy = policy
        self.policy_ready = policy is not None
        self.policy_error: str | None = None
        self._policy_attempted = policy is not None

        # Dispatch
        self.dispatcher = ActionDispatcher(self.link)

        # Events waiting for the next tick
        self._pending: deque[Event] = deque()
        self._loop: asyncio.AbstractEventLoop | None = None

        # Control state
        self._running = False
        self._loop_count = 0
        self.events_applied = 0
        self.events_rejected = 0
        self.actions_rejected = 0
        self.last_command: ActionCommand | None = None

    @property
    def mode(self) -> SessionMode:
        return self.state_machine.mode

    @property
    def is_running(self) -> bool:
        return self._running

    def init_policy(self, on_built=None) -> bool:
        """
        Build the policy from the configured datasets. Attempted once per process.

        Returns:
            True if a policy is ready.
        """
        if self._policy_attempted:
            return self.policy_ready
        self._policy_attempted = True

        logger.info("Building policy...")
        try:
            self.policy = build_policy(self.params.states_csv, self.params.actions_csv, on_built=on_built)
        except PolicyConstructionFailure as e:
            self.policy_error = str(e)
            logger.error(f"Policy unavailable, autonomous mode disabled: {e}")
            return False

        self.policy_ready = True
        logger.info("Policy ready")
        return True

    # --- Event ingest ---

    def submit(self, channel: str, payload=None) -> Event:
        """
        Queue a raw event for the next tick.

        Raises:
            MalformedEvent: Payload rejected; nothing queued.
        """
        event = decode_event(channel, payload)
        self._pending.append(event)
        return event

    def submit_event(self, event: Event) -> None:
        self._pending.append(event)

    def submit_threadsafe(self, channel: str, payload=None) -> None:
        """Queue a raw event from a thread other than the event loop's."""
        if self._loop is None:
            raise RuntimeError("Controller loop not running")
        self._loop.call_soon_threadsafe(self._submit_logged, channel, payload)

    def _submit_logged(self, channel: str, payload) -> None:
        try:
            self.submit(channel, payload)
        except MalformedEvent as e:
            self.events_rejected += 1
            logger.warning(f"Rejected event: {e}")

    def _drain(self) -> None:
        for channel, payload in self.link.poll():
            self._submit_logged(channel, payload)

        while self._pending:
            self.state_machine.apply(self._pending.popleft())
            self.events_applied += 1

    # --- Tick ---

    def tick(self) -> ActionCommand | None:
        """
        Run one control cycle.

        Returns:
            The command dispatched this tick, if any.
        """
        self._drain()

        gate = self.state_machine.gate
        if gate.expire(self.params.ack_timeout_s):
            self.state_machine.sync_mode()

        command = None
        if gate.try_acquire(self.policy_ready):
            command = self._decide()

        self.state_machine.sync_mode()
        self._loop_count += 1
        return command

    def _decide(self) -> ActionCommand | None:
        """Predict and dispatch; the gate is already closed."""
        gate = self.state_machine.gate
        features = build_features(self.state_machine.snapshot)

        try:
            raw_action = self.policy.predict(features)
            command = self.dispatcher.dispatch(raw_action)
        except OutOfRangeAction as e:
            self.actions_rejected += 1
            logger.error(f"Policy action rejected: {e}")
            gate.reopen("action out of range")
            return None
        except Exception as e:
            self.actions_rejected += 1
            logger.error(f"Policy predict failed: {e}", exc_info=True)
            gate.reopen("predict failed")
            return None

        if command is None:
            gate.reopen("publish failed")
            return None

        gate.mark_dispatched(command)
        self.last_command = command
        return command

    # --- Manual control ---

    def publish_manual(self, channel: str, value: int) -> ActionCommand:
        """
        Send an operator command directly, bypassing the gate.

        Raises:
            ValueError: Unknown channel or position outside 1..3.
        """
        if channel not in OUTBOUND_CHANNELS:
            raise ValueError(f"Unknown command channel: {channel}")
        value = int(value)
        if not 1 <= value <= POSITION_COUNT:
            raise ValueError(f"Position must be 1..{POSITION_COUNT}, got {value}")

        pos = Position.from_wire(value)
        command = ArmPosition(pos) if channel == CH_CMD_ARM_POS else RobotPosition(pos)
        if not self.dispatcher.publish(command):
            raise ConnectionError("Apparatus link refused command")
        logger.info(f"Manual command: {command}")
        return command

    # --- Status ---

    def status(self) -> dict:
        """Snapshot of controller state for the web API."""
        sm = self.state_machine
        pending = sm.flags.pending
        return {
            "mode": sm.mode.name,
            "session": {
                "active": sm.session.active,
                "autonomous_enabled": sm.session.autonomous_enabled,
                "time_left": sm.session.time_left,
                "games_started": sm.games_started,
            },
            "snapshot": {
                "mole_states": list(sm.snapshot.mole_states),
                "robot_pos": sm.snapshot.robot_pos.name,
                "arm_pos": sm.snapshot.arm_pos.name,
            },
            "gate": {
                "new_state_available": sm.flags.new_state_available,
                "action_in_flight": sm.flags.action_in_flight,
                "pending": str(pending) if pending is not None else None,
            },
            "policy": {
                "ready": self.policy_ready,
                "error": self.policy_error,
            },
            "counters": {
                "ticks": self._loop_count,
                "events_applied": self.events_applied,
                "events_rejected": self.events_rejected,
                "actions_dispatched": self.dispatcher.dispatched,
                "actions_rejected": self.actions_rejected,
                "stale_acks": sm.stale_acks,
            },
            "link_connected": self.link.is_connected,
        }

    # --- Lifecycle ---

    async def run(self, on_policy_built=None):
        """Run the main control loop."""
        logger.info("Controller starting...")

        # Setup signal handlers for graceful shutdown
        self._loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self._loop.add_signal_handler(sig, self.stop)
            except (NotImplementedError, RuntimeError):
                pass  # Not on the main thread / platform without signals

        try:
            if not self.link.connect():
                logger.error(
                    f"Failed to connect to apparatus on {self.params.serial_port}, controller exiting"
                )
                return

            self.init_policy(on_built=on_policy_built)

            self._running = True
            logger.info("Entering main control loop")
            await self._control_loop()
        finally:
            self._cleanup()

    def stop(self):
        """Handle shutdown signal."""
        logger.info("Shutdown requested")
        self._running = False

    def _cleanup(self):
        """Cleanup on shutdown."""
        logger.info("Cleaning up...")
        self._running = False
        if self.state_machine.flags.action_in_flight:
            logger.warning(f"Shutting down with {self.state_machine.flags.pending} unacknowledged")
        self.link.disconnect()
        logger.info("Cleanup complete")

    async def _control_loop(self):
        """Main control loop."""
        while self._running:
            period = 1.0 / self.params.loop_hz
            loop_start = self._loop.time()

            self.tick()

            # Maintain loop rate
            elapsed = self._loop.time() - loop_start
            await asyncio.sleep(max(0, period - elapsed))

            # Log stats periodically
            if self._loop_count % max(1, int(self.params.loop_hz * STATS_INTERVAL_S)) == 0:
                self._log_stats()

    def _log_stats(self):
        """Log periodic statistics."""
        sm = self.state_machine
        logger.info(
            f"Loop {self._loop_count}: "
            f"Mode={sm.mode.name}, "
            f"Robot={sm.snapshot.robot_pos.name}, Arm={sm.snapshot.arm_pos.name}, "
            f"Dispatched={self.dispatcher.dispatched}, Rejected={self.events_rejected}"
        )
