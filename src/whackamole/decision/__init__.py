"""
Decision Layer - When to act.

Contains:
- SessionStateMachine: Applies events, tracks session mode
- ActionGate: Single-flight predicate over the session flags
"""

from .gate import ActionGate, gate_open
from .state_machine import SessionMode, SessionStateMachine

__all__ = ["ActionGate", "gate_open", "SessionMode", "SessionStateMachine"]
