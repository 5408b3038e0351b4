"""
Web server - aiohttp application for the operator/debug interface.
"""

import asyncio
import json
import logging
from typing import Optional

from aiohttp import web

from whackamole.config import CH_AUTONOMOUS_MODE, STATUS_PUSH_HZ, WEB_HOST, WEB_PORT
from whackamole.errors import MalformedEvent

logger = logging.getLogger(__name__)

INDEX_HTML = """
<!DOCTYPE html>
<html>
<head><title>Whack-a-mole controller</title></head>
<body>
    <h1>Whack-a-mole Controller</h1>
    <ul>
        <li>GET <a href="/api/status">/api/status</a></li>
        <li>POST /api/event {"channel", "payload"}</li>
        <li>POST /api/autonomous {"enabled"}</li>
        <li>POST /api/command {"channel", "value"}</li>
        <li>GET/POST <a href="/api/params">/api/params</a></li>
        <li>WS /ws/status</li>
    </ul>
</body>
</html>
"""


class WebServer:
    """
    Operator web interface server.

    Provides:
    - Controller status (REST + WebSocket push)
    - Event injection (same queue as apparatus events)
    - Manual arm/robot commands
    - Runtime parameters
    """

    def __init__(self, controller=None):
        """
        Args:
            controller: Optional Controller instance for live data
        """
        self.controller = controller
        self.app = web.Application()
        self._setup_routes()

    def _setup_routes(self):
        """Configure routes."""
        # Pages
        self.app.router.add_get("/", self.index)

        # API
        self.app.router.add_get("/api/status", self.api_status)
        self.app.router.add_post("/api/event", self.api_event)
        self.app.router.add_post("/api/autonomous", self.api_autonomous)
        self.app.router.add_post("/api/command", self.api_command)

        # Runtime parameters
        self.app.router.add_get("/api/params", self.api_params_get)
        self.app.router.add_post("/api/params", self.api_params_set)

        # WebSocket
        self.app.router.add_get("/ws/status", self.ws_status)

    async def index(self, request):
        """Landing page."""
        return web.Response(text=INDEX_HTML, content_type="text/html")

    def _unavailable(self):
        return web.json_response({"error": "Controller not available"}, status=404)

    async def _read_json(self, request) -> Optional[dict]:
        try:
            data = await request.json()
        except json.JSONDecodeError:
            return None
        return data if isinstance(data, dict) else None

    async def api_status(self, request):
        """Get current controller status."""
        if not self.controller:
            return web.json_response({"mode": "unknown"})
        return web.json_response(self.controller.status())

    async def api_event(self, request):
        """POST /api/event - Inject an inbound event, applied on the next tick."""
        if not self.controller:
            return self._unavailable()

        data = await self._read_json(request)
        if data is None or "channel" not in data:
            return web.json_response({"error": "Expected {channel, payload}"}, status=400)

        try:
            event = self.controller.submit(data["channel"], data.get("payload"))
        except MalformedEvent as e:
            self.controller.events_rejected += 1
            logger.warning(f"Rejected event from web: {e}")
            return web.json_response({"ok": False, "error": e.to_dict()}, status=400)

        return web.json_response({"ok": True, "queued": type(event).__name__})

    async def api_autonomous(self, request):
        """POST /api/autonomous - Enable/disable autonomous mode."""
        if not self.controller:
            return self._unavailable()

        data = await self._read_json(request)
        if data is None or "enabled" not in data:
            return web.json_response({"error": "Expected {enabled}"}, status=400)

        enabled = data["enabled"]
        if not isinstance(enabled, (bool, int)) or enabled not in (0, 1):
            return web.json_response(
                {"ok": False, "error": f"enabled must be true/false or 0/1, got {enabled!r}"},
                status=400,
            )

        self.controller.submit(CH_AUTONOMOUS_MODE, int(enabled))
        return web.json_response({"ok": True, "enabled": bool(enabled)})

    async def api_command(self, request):
        """POST /api/command - Manual arm/robot position command (bypasses the gate)."""
        if not self.controller:
            return self._unavailable()

        data = await self._read_json(request)
        if data is None or "channel" not in data or "value" not in data:
            return web.json_response({"error": "Expected {channel, value}"}, status=400)

        try:
            command = self.controller.publish_manual(data["channel"], data["value"])
        except (TypeError, ValueError) as e:
            return web.json_response({"ok": False, "error": str(e)}, status=400)
        except ConnectionError as e:
            return web.json_response({"ok": False, "error": str(e)}, status=503)

        return web.json_response({"ok": True, "command": str(command)})

    async def api_params_get(self, request):
        """Get current tunable parameters."""
        if self.controller and self.controller.params:
            return web.json_response(self.controller.params.to_dict())
        return web.json_response({"error": "Parameters not available"}, status=404)

    async def api_params_set(self, request):
        """Update tunable parameters. Include _save=true to persist to disk."""
        if not self.controller or not self.controller.params:
            return web.json_response({"error": "Parameters not available"}, status=404)

        data = await self._read_json(request)
        if data is None:
            return web.json_response({"error": "Expected JSON object"}, status=400)
        save = data.pop("_save", False)
        self.controller.params.update(**data)

        if save:
            self.controller.params.save()

        return web.json_response(self.controller.params.to_dict())

    async def ws_status(self, request):
        """WebSocket pushing controller status. Send "status" for an immediate update."""
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        logger.info("Status WebSocket connected")
        push_task = asyncio.ensure_future(self._push_status(ws))

        try:
            async for msg in ws:
                if msg.type == web.WSMsgType.TEXT and msg.data == "status" and self.controller:
                    await ws.send_json(self.controller.status())
        except Exception as e:
            logger.error(f"Status WebSocket error: {e}")
        finally:
            push_task.cancel()
            logger.info("Status WebSocket disconnected")

        return ws

    async def _push_status(self, ws):
        try:
            while not ws.closed:
                if self.controller:
                    await ws.send_json(self.controller.status())
                await asyncio.sleep(1.0 / STATUS_PUSH_HZ)
        except ConnectionResetError:
            pass


def create_app(controller=None) -> web.Application:
    """Create the web application."""
    server = WebServer(controller)
    return server.app


async def run_server(controller=None, host=WEB_HOST, port=WEB_PORT):
    """Run the web server."""
    app = create_app(controller)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info(f"Web server running at http://{host}:{port}")
    return runner


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    web.run_app(create_app(), host=WEB_HOST, port=WEB_PORT)
