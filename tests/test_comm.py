import pytest
import serial

from whackamole.comm import ApparatusLink, DryRunLink, format_command, parse_line
from whackamole.errors import MalformedEvent


class FakeSerial:
    def __init__(self, lines=()):
        self.lines = list(lines)
        self.written: list[bytes] = []
        self.closed = False

    @property
    def in_waiting(self) -> int:
        return sum(len(line) for line in self.lines)

    def readline(self) -> bytes:
        return self.lines.pop(0)

    def write(self, data: bytes) -> int:
        self.written.append(data)
        return len(data)

    def reset_input_buffer(self):
        self.lines.clear()

    def close(self):
        self.closed = True


def _link_with(lines) -> ApparatusLink:
    link = ApparatusLink(port="/dev/null")
    link._serial = FakeSerial(lines)
    link._connected = True
    return link


def test_parse_line():
    assert parse_line("whack_complete:3\n") == ("whack_complete", "3")
    assert parse_line("state_data:0,1,0,0,2,0,1") == ("state_data", "0,1,0,0,2,0,1")
    assert parse_line("game_started") == ("game_started", "")
    assert parse_line(" time_left : 12 ") == ("time_left", "12")


@pytest.mark.parametrize("line", ["", "   ", "bogus:1", "cmd_arm_pos:2"])
def test_parse_line_rejects_unknown(line):
    with pytest.raises(MalformedEvent):
        parse_line(line)


def test_format_command():
    assert format_command("cmd_arm_pos", 2) == b"cmd_arm_pos:2\n"
    assert format_command("cmd_robot_pos", 3) == b"cmd_robot_pos:3\n"


def test_poll_returns_events_in_order_and_drops_garbage():
    link = _link_with([
        b"game_started\n",
        b"garbage\n",
        b"\n",
        b"state_data:0,1,0,0,2,0,1\n",
        b"whack_complete:4\n",
    ])
    assert link.poll() == [
        ("game_started", ""),
        ("state_data", "0,1,0,0,2,0,1"),
        ("whack_complete", "4"),
    ]
    assert link.lines_received == 4
    assert link.lines_dropped == 1


def test_poll_keeps_partial_line_for_next_poll():
    link = _link_with([b"time_le"])
    assert link.poll() == []
    link._serial.lines.append(b"ft:5\n")
    assert link.poll() == [("time_left", "5")]


def test_poll_without_connection():
    assert ApparatusLink(port="/dev/null").poll() == []


def test_publish_writes_line():
    link = _link_with([])
    assert link.publish("cmd_robot_pos", 1) is True
    assert link._serial.written == [b"cmd_robot_pos:1\n"]
    assert link.commands_sent == 1


def test_publish_without_connection_fails():
    assert ApparatusLink(port="/dev/null").publish("cmd_arm_pos", 1) is False


def test_connect_failure(monkeypatch):
    def refuse(**kwargs):
        raise serial.SerialException("no such port")

    monkeypatch.setattr(serial, "Serial", refuse)
    link = ApparatusLink(port="/dev/does-not-exist")
    assert link.connect() is False
    assert link.is_connected is False


def test_disconnect_closes_port():
    link = _link_with([])
    port = link._serial
    link.disconnect()
    assert port.closed
    assert link.is_connected is False


def test_dry_run_link_accepts_commands():
    link = DryRunLink()
    assert link.connect()
    assert link.publish("cmd_arm_pos", 3)
    assert link.poll() == []
    assert link.commands_sent == 1
