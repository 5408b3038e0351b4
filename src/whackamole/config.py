"""
Configuration constants for the whack-a-mole learning controller.

All fixed values in one place. Runtime-tunable values live in params.py.
"""

from pathlib import Path

# =============================================================================
# CHANNELS (inbound events)
# =============================================================================

CH_WHACK_COMPLETE = "whack_complete"  # int, zero-indexed slot struck
CH_ROBOT_ARRIVE = "robot_position_arrive"  # int, 1-indexed position
CH_STATE_DATA = "state_data"  # 7 ints
CH_AUTONOMOUS_MODE = "autonomous_mode"  # 0 or 1
CH_GAME_STARTED = "game_started"  # empty
CH_TIME_LEFT = "time_left"  # int seconds

INBOUND_CHANNELS = (
    CH_WHACK_COMPLETE,
    CH_ROBOT_ARRIVE,
    CH_STATE_DATA,
    CH_AUTONOMOUS_MODE,
    CH_GAME_STARTED,
    CH_TIME_LEFT,
)

# =============================================================================
# CHANNELS (outbound commands)
# =============================================================================

CH_CMD_ARM_POS = "cmd_arm_pos"  # 1..3
CH_CMD_ROBOT_POS = "cmd_robot_pos"  # 1..3

OUTBOUND_CHANNELS = (CH_CMD_ARM_POS, CH_CMD_ROBOT_POS)

# =============================================================================
# APPARATUS
# =============================================================================

MOLE_COUNT = 7
POSITION_COUNT = 3  # Left, Mid, Right
ACTION_COUNT = 6  # 0-2 = arm position, 3-5 = robot position

# Apparatus microcontroller (serial line protocol)
APPARATUS_PORT = "/dev/ttyUSB0"
APPARATUS_BAUDRATE = 115200

# =============================================================================
# CONTROL PARAMETERS
# =============================================================================

CONTROL_LOOP_HZ = 10
STATS_INTERVAL_S = 5  # Periodic loop stats log

# =============================================================================
# POLICY DATASETS
# =============================================================================

DATA_DIR = Path(__file__).parent / "data"
STATES_CSV = DATA_DIR / "states.csv"
ACTIONS_CSV = DATA_DIR / "actions.csv"

# =============================================================================
# WEB INTERFACE
# =============================================================================

WEB_HOST = "0.0.0.0"
WEB_PORT = 8080
STATUS_PUSH_HZ = 10
