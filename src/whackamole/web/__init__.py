"""
Web Layer - Operator and debug interface.

Provides:
- Live controller status (REST + WebSocket)
- Event injection for bench testing without the apparatus
- Manual arm/robot commands
- Parameter tuning
"""

from .server import WebServer, create_app, run_server

__all__ = ["WebServer", "create_app", "run_server"]
