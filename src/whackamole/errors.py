"""
Error codes and exceptions for the controller.

None of these are fatal to the process. Ingest errors are rejected and
logged, policy errors leave the controller in manual-only operation.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    ERR_GENERIC = "ERR_GENERIC"
    ERR_POLICY_CONSTRUCTION = "ERR_POLICY_CONSTRUCTION"
    ERR_MALFORMED_EVENT = "ERR_MALFORMED_EVENT"
    ERR_MALFORMED_STATE = "ERR_MALFORMED_STATE"
    ERR_ACTION_OUT_OF_RANGE = "ERR_ACTION_OUT_OF_RANGE"


class WhackamoleError(Exception):
    code = ErrorCode.ERR_GENERIC

    def __init__(self, message: str = "", details: dict | None = None):
        super().__init__(message or self.code.value)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"code": self.code.value, "message": str(self), "details": self.details}


class PolicyConstructionFailure(WhackamoleError):
    """Policy model could not be built (missing or malformed training data)."""

    code = ErrorCode.ERR_POLICY_CONSTRUCTION


class MalformedEvent(WhackamoleError):
    """Inbound event with unknown channel or unparseable payload."""

    code = ErrorCode.ERR_MALFORMED_EVENT


class MalformedStateUpdate(MalformedEvent):
    """State event that does not carry exactly 7 integer values."""

    code = ErrorCode.ERR_MALFORMED_STATE


class OutOfRangeAction(WhackamoleError):
    """Policy returned an action id outside [0, 6)."""

    code = ErrorCode.ERR_ACTION_OUT_OF_RANGE
