import pytest

from whackamole.errors import ErrorCode, MalformedEvent, MalformedStateUpdate
from whackamole.session import (
    AutonomousModeSet,
    GameStarted,
    RobotArrived,
    StateUpdate,
    TimeLeft,
    WhackComplete,
    decode_event,
)


def test_decode_integer_channels_from_text_and_values():
    assert decode_event("whack_complete", "3") == WhackComplete(slot=3)
    assert decode_event("whack_complete", 3) == WhackComplete(slot=3)
    assert decode_event("robot_position_arrive", " 2 ") == RobotArrived(pos=2)
    assert decode_event("time_left", "-1") == TimeLeft(seconds=-1)
    assert decode_event("time_left", 30.0) == TimeLeft(seconds=30)


def test_decode_autonomous_mode_flag():
    assert decode_event("autonomous_mode", "1") == AutonomousModeSet(enabled=True)
    assert decode_event("autonomous_mode", 0) == AutonomousModeSet(enabled=False)
    assert decode_event("autonomous_mode", True) == AutonomousModeSet(enabled=True)


def test_game_started_ignores_payload():
    assert decode_event("game_started") == GameStarted()
    assert decode_event("game_started", "") == GameStarted()


def test_decode_state_data_from_list_and_text():
    expected = StateUpdate(moles=(0, 1, 0, 0, 2, 0, 1))
    assert decode_event("state_data", [0, 1, 0, 0, 2, 0, 1]) == expected
    assert decode_event("state_data", "0,1,0,0,2,0,1") == expected
    assert decode_event("state_data", "0, 1, 0, 0, 2, 0, 1") == expected


@pytest.mark.parametrize(
    "payload",
    [
        [0, 1, 0, 0, 2, 0],
        [0, 1, 0, 0, 2, 0, 1, 1],
        "0,1,0",
        [0, 1, 0, "x", 2, 0, 1],
        None,
        5,
    ],
)
def test_state_data_must_hold_exactly_seven_integers(payload):
    with pytest.raises(MalformedStateUpdate) as exc:
        decode_event("state_data", payload)
    assert exc.value.code == ErrorCode.ERR_MALFORMED_STATE


def test_malformed_state_update_is_a_malformed_event():
    with pytest.raises(MalformedEvent):
        decode_event("state_data", [1, 2])


def test_non_integer_payload_rejected():
    with pytest.raises(MalformedEvent):
        decode_event("whack_complete", "left")
    with pytest.raises(MalformedEvent):
        decode_event("time_left", 1.5)
    with pytest.raises(MalformedEvent):
        decode_event("robot_position_arrive", None)


def test_unknown_channel_rejected():
    with pytest.raises(MalformedEvent) as exc:
        decode_event("cmd_arm_pos", 1)
    assert exc.value.to_dict()["code"] == "ERR_MALFORMED_EVENT"
