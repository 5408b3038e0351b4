"""
Serial communication with the apparatus microcontroller.

Publishes position commands and receives game/sensor events.
"""

from __future__ import annotations

import logging

import serial

from whackamole.comm.protocol import format_command, parse_line
from whackamole.config import APPARATUS_BAUDRATE, APPARATUS_PORT
from whackamole.errors import MalformedEvent

logger = logging.getLogger(__name__)


class ApparatusLink:
    """
    Serial link to the whack-a-mole apparatus.

    Usage:
        link = ApparatusLink("/dev/ttyUSB0")
        link.connect()

        # In control loop:
        for channel, payload in link.poll():
            ...
        link.publish("cmd_arm_pos", 2)
    """

    def __init__(self, port: str = APPARATUS_PORT, baudrate: int = APPARATUS_BAUDRATE, max_lines: int = 100):
        self.port = port
        self.baudrate = baudrate
        self.max_lines = max_lines  # Per poll, so a chatty link cannot stall a tick

        self._serial: serial.Serial | None = None
        self._connected = False
        self._partial = b""  # Incomplete line carried to the next poll
        self.lines_received = 0
        self.lines_dropped = 0
        self.commands_sent = 0

    @property
    def is_connected(self) -> bool:
        return self._connected

    def connect(self) -> bool:
        """Open serial connection to the apparatus."""
        try:
            self._serial = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                timeout=0.005
            )
            self._connected = True
            logger.info(f"Connected to apparatus on {self.port}")
            return True
        except serial.SerialException as e:
            logger.error(f"Failed to connect to apparatus: {e}")
            self._connected = False
            return False

    def disconnect(self):
        """Close serial connection."""
        if self._serial:
            self._serial.close()
            self._serial = None
        self._connected = False
        logger.info("Disconnected from apparatus")

    def poll(self) -> list[tuple[str, str]]:
        """
        Read all complete event lines waiting on the port (non-blocking).

        Returns:
            (channel, payload) pairs in arrival order.
        """
        events: list[tuple[str, str]] = []
        if not self._serial:
            return events

        try:
            while self._serial.in_waiting and len(events) < self.max_lines:
                raw = self._serial.readline()
                if not raw.endswith(b"\n"):
                    self._partial += raw
                    break
                raw = self._partial + raw
                self._partial = b""
                line = raw.decode(errors="ignore").strip()
                if not line:
                    continue
                self.lines_received += 1
                try:
                    events.append(parse_line(line))
                except MalformedEvent as e:
                    self.lines_dropped += 1
                    logger.warning(f"Dropped line from apparatus: {e}")
        except serial.SerialException as e:
            logger.error(f"Error reading apparatus: {e}")
            # Flush the input buffer to avoid getting stuck in a read loop
            try:
                self._serial.reset_input_buffer()
            except serial.SerialException:
                pass

        return events

    def publish(self, channel: str, value: int) -> bool:
        """Send a command line. Returns False if not connected or write failed."""
        if not self._serial:
            logger.warning("Not connected to apparatus")
            return False
        command = format_command(channel, value)
        try:
            self._serial.write(command)
        except serial.SerialException as e:
            logger.error(f"Failed to send {command!r}: {e}")
            return False
        self.commands_sent += 1
        logger.debug(f"Sent: {command.decode().strip()}")
        return True

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()


class DryRunLink:
    """Stand-in link that logs commands instead of sending them (no apparatus attached)."""

    def __init__(self):
        self.commands_sent = 0

    @property
    def is_connected(self) -> bool:
        return True

    def connect(self) -> bool:
        logger.info("Dry run: no apparatus attached, commands are only logged")
        return True

    def disconnect(self):
        pass

    def poll(self) -> list[tuple[str, str]]:
        return []

    def publish(self, channel: str, value: int) -> bool:
        self.commands_sent += 1
        logger.info(f"Dry run command: {channel}={value}")
        return True
