"""
Action dispatcher - policy output to actuator command.

Action ids:
    0-2  ArmPosition(id + 1)    on cmd_arm_pos
    3-5  RobotPosition(id - 2)  on cmd_robot_pos
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Protocol, Union

from whackamole.config import ACTION_COUNT, CH_CMD_ARM_POS, CH_CMD_ROBOT_POS, POSITION_COUNT
from whackamole.errors import OutOfRangeAction
from whackamole.session.state import Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArmPosition:
    pos: Position
    channel = CH_CMD_ARM_POS

    @property
    def value(self) -> int:
        return self.pos.wire

    def __str__(self) -> str:
        return f"ArmPosition({self.pos.name})"


@dataclass(frozen=True)
class RobotPosition:
    pos: Position
    channel = CH_CMD_ROBOT_POS

    @property
    def value(self) -> int:
        return self.pos.wire

    def __str__(self) -> str:
        return f"RobotPosition({self.pos.name})"


ActionCommand = Union[ArmPosition, RobotPosition]


class CommandSink(Protocol):
    """Anything that can publish an integer on an outbound channel."""

    def publish(self, channel: str, value: int) -> bool:
        ...


def to_action_id(raw: float) -> int:
    """Round a raw policy output to an action id. Raises OutOfRangeAction."""
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise OutOfRangeAction(f"Non-numeric action {raw!r}", details={"action": repr(raw)}) from e
    if not math.isfinite(value):
        raise OutOfRangeAction(f"Non-finite action {value}", details={"action": repr(raw)})
    action = int(round(value))
    if not 0 <= action < ACTION_COUNT:
        raise OutOfRangeAction(f"Action {action} outside [0, {ACTION_COUNT})", details={"action": action})
    return action


def command_for(action: int) -> ActionCommand:
    """Map an action id to its command. Raises OutOfRangeAction."""
    if 0 <= action < POSITION_COUNT:
        return ArmPosition(Position(action))
    if POSITION_COUNT <= action < ACTION_COUNT:
        return RobotPosition(Position(action - POSITION_COUNT))
    raise OutOfRangeAction(f"Action {action} outside [0, {ACTION_COUNT})", details={"action": action})


class ActionDispatcher:
    """
    Turns policy decisions into published commands.

    Usage:
        dispatcher = ActionDispatcher(link)
        command = dispatcher.dispatch(policy.predict(features))
    """

    def __init__(self, sink: CommandSink):
        self.sink = sink
        self.dispatched = 0

    def dispatch(self, raw_action: float) -> ActionCommand | None:
        """
        Publish the command for a raw policy output.

        Returns:
            The published command, or None if the sink refused it.

        Raises:
            OutOfRangeAction: Nothing was published.
        """
        command = command_for(to_action_id(raw_action))
        if not self.publish(command):
            logger.warning(f"Failed to publish {command}")
            return None
        self.dispatched += 1
        logger.info(f"Dispatched {command} (action={float(raw_action):g})")
        return command

    def publish(self, command: ActionCommand) -> bool:
        return self.sink.publish(command.channel, command.value)
