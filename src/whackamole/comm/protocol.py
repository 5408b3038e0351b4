"""
Line protocol with the apparatus microcontroller.

    Events (apparatus -> Pi):
        <channel>:<payload>\\n   e.g. whack_complete:3
                                     state_data:0,1,0,0,2,0,1
                                     game_started
    Commands (Pi -> apparatus):
        <channel>:<value>\\n     e.g. cmd_arm_pos:2
"""

from __future__ import annotations

from whackamole.config import INBOUND_CHANNELS
from whackamole.errors import MalformedEvent


def parse_line(line: str) -> tuple[str, str]:
    """
    Split an event line into (channel, payload).

    The payload is left as text; decode_event() parses it per channel.
    """
    line = line.strip()
    if not line:
        raise MalformedEvent("Empty line")
    channel, _, payload = line.partition(":")
    channel = channel.strip()
    if channel not in INBOUND_CHANNELS:
        raise MalformedEvent(f"Unknown channel in line {line!r}", details={"line": line})
    return channel, payload.strip()


def format_command(channel: str, value: int) -> bytes:
    return f"{channel}:{int(value)}\n".encode()
