"""
Communication layer - serial line protocol with the apparatus.
"""

from .apparatus_serial import ApparatusLink, DryRunLink
from .protocol import format_command, parse_line

__all__ = ["ApparatusLink", "DryRunLink", "format_command", "parse_line"]
