"""
Control Layer - Execution.

Main control loop that coordinates all other layers, and the
dispatcher that turns policy decisions into actuator commands.
"""

from .dispatcher import (
    ActionCommand,
    ActionDispatcher,
    ArmPosition,
    CommandSink,
    RobotPosition,
    command_for,
    to_action_id,
)
from .controller import Controller

__all__ = [
    "ActionCommand",
    "ActionDispatcher",
    "ArmPosition",
    "CommandSink",
    "RobotPosition",
    "command_for",
    "to_action_id",
    "Controller",
]
