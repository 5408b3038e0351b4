"""
Whack-a-mole learning controller.

Turns apparatus events into single-outstanding arm/robot position
commands, choosing actions with a trained policy in autonomous mode.
"""

__version__ = "0.1.0"
