import logging

import pytest

from whackamole.decision import SessionMode, SessionStateMachine
from whackamole.session import (
    AutonomousModeSet,
    GameStarted,
    Position,
    RobotArrived,
    StateUpdate,
    TimeLeft,
    WhackComplete,
)

MOLES = (0, 1, 0, 0, 2, 0, 1)


@pytest.fixture
def sm():
    return SessionStateMachine()


def test_initial_state(sm):
    assert sm.mode == SessionMode.IDLE
    assert sm.session.active is False
    assert sm.session.autonomous_enabled is False
    assert sm.snapshot.robot_pos == Position.MID
    assert sm.snapshot.arm_pos == Position.MID
    assert sm.snapshot.mole_states == (0,) * 7
    assert sm.flags.new_state_available is False
    assert sm.flags.action_in_flight is False


def test_whack_complete_arm_position_depends_on_robot_position(sm):
    # Robot at Mid (ordinal 1): slot 2 -> 2 - 2*1 = 0 -> Left
    sm.apply(WhackComplete(slot=2))
    assert sm.snapshot.arm_pos == Position.LEFT

    sm.snapshot.robot_pos = Position.RIGHT
    sm.apply(WhackComplete(slot=6))
    assert sm.snapshot.arm_pos == Position.RIGHT

    sm.snapshot.robot_pos = Position.LEFT
    sm.apply(WhackComplete(slot=1))
    assert sm.snapshot.arm_pos == Position.MID


def test_whack_at_unreachable_slot_keeps_arm_position(sm):
    sm.snapshot.arm_pos = Position.RIGHT
    sm.apply(WhackComplete(slot=0))  # 0 - 2*1 = -2
    assert sm.snapshot.arm_pos == Position.RIGHT


def test_robot_arrived_is_one_indexed(sm):
    sm.apply(RobotArrived(pos=2))
    assert sm.snapshot.robot_pos == Position.MID
    sm.apply(RobotArrived(pos=1))
    assert sm.snapshot.robot_pos == Position.LEFT
    sm.apply(RobotArrived(pos=3))
    assert sm.snapshot.robot_pos == Position.RIGHT


def test_robot_arrived_at_invalid_position_ignored(sm):
    sm.apply(RobotArrived(pos=4))
    assert sm.snapshot.robot_pos == Position.MID


def test_state_update_replaces_moles_and_flags_new_state(sm):
    sm.apply(StateUpdate(moles=MOLES))
    assert sm.snapshot.mole_states == MOLES
    assert sm.flags.new_state_available is True


def test_session_mode_transitions(sm):
    sm.apply(GameStarted())
    assert sm.mode == SessionMode.SESSION_ACTIVE

    sm.apply(AutonomousModeSet(enabled=True))
    assert sm.mode == SessionMode.AUTONOMOUS_ACTIVE

    sm.apply(StateUpdate(moles=MOLES))
    assert sm.gate.try_acquire(policy_ready=True)
    assert sm.mode == SessionMode.ACTION_PENDING

    sm.apply(WhackComplete(slot=3))
    assert sm.mode == SessionMode.AUTONOMOUS_ACTIVE

    sm.apply(AutonomousModeSet(enabled=False))
    assert sm.mode == SessionMode.SESSION_ACTIVE

    sm.apply(TimeLeft(seconds=0))
    assert sm.mode == SessionMode.IDLE


def test_transitions_are_logged(sm, caplog):
    with caplog.at_level(logging.INFO, logger="whackamole.decision.state_machine"):
        sm.apply(GameStarted())
        sm.apply(AutonomousModeSet(enabled=True))
    assert "Transition: IDLE -> SESSION_ACTIVE" in caplog.text
    assert "Transition: SESSION_ACTIVE -> AUTONOMOUS_ACTIVE" in caplog.text


@pytest.mark.parametrize("seconds", [0, -3])
def test_time_up_resets_from_action_pending(sm, seconds):
    sm.apply(GameStarted())
    sm.apply(AutonomousModeSet(enabled=True))
    sm.apply(RobotArrived(pos=3))
    sm.apply(WhackComplete(slot=4))
    sm.apply(StateUpdate(moles=MOLES))
    assert sm.gate.try_acquire(policy_ready=True)
    sm.apply(StateUpdate(moles=MOLES))

    sm.apply(TimeLeft(seconds=seconds))

    assert sm.mode == SessionMode.IDLE
    assert sm.session.active is False
    assert sm.session.autonomous_enabled is False
    assert sm.flags.new_state_available is False
    assert sm.flags.action_in_flight is False
    assert sm.flags.pending is None
    assert sm.snapshot.robot_pos == Position.MID
    assert sm.snapshot.arm_pos == Position.MID


def test_time_left_positive_only_records_seconds(sm):
    sm.apply(GameStarted())
    sm.apply(AutonomousModeSet(enabled=True))
    sm.apply(TimeLeft(seconds=12))
    assert sm.session.time_left == 12
    assert sm.mode == SessionMode.AUTONOMOUS_ACTIVE


def test_new_game_restarts_cycle(sm):
    sm.apply(GameStarted())
    sm.apply(TimeLeft(seconds=0))
    sm.apply(GameStarted())
    assert sm.mode == SessionMode.SESSION_ACTIVE
    assert sm.games_started == 2


def test_autonomous_flag_set_before_game_start(sm):
    sm.apply(AutonomousModeSet(enabled=True))
    assert sm.mode == SessionMode.IDLE
    sm.apply(GameStarted())
    assert sm.mode == SessionMode.AUTONOMOUS_ACTIVE


def test_stale_acknowledgment_ignored_but_position_tracked(sm):
    sm.apply(GameStarted())
    sm.apply(StateUpdate(moles=MOLES))

    sm.apply(RobotArrived(pos=1))

    assert sm.stale_acks == 1
    assert sm.flags.action_in_flight is False
    assert sm.flags.new_state_available is True
    assert sm.snapshot.robot_pos == Position.LEFT


def test_stale_acknowledgment_warns_in_autonomous_mode(sm, caplog):
    sm.apply(GameStarted())
    sm.apply(AutonomousModeSet(enabled=True))
    with caplog.at_level(logging.WARNING):
        sm.apply(WhackComplete(slot=2))
    assert "Stale acknowledgment" in caplog.text


def test_unsupported_event_rejected(sm):
    with pytest.raises(TypeError):
        sm.apply("game_started")
