"""
WebSocket service that ticks the rival tracker and broadcasts every result.

Messages:
    {"type": "race_update", "timestamp": ms, "data": RaceUpdate.to_dict()}
    {"type": "disconnected", "timestamp": ms, "message": "...", "status": "..."}
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from rivalwatch.config import RECONNECT_DELAY, Settings
from rivalwatch.display import build_view, render_text
from rivalwatch.tracker import RaceTracker

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class RaceUpdateServer:
    """WebSocket server that broadcasts race updates to connected clients."""

    def __init__(self):
        self.clients: set = set()
        self.last_message: Optional[Dict[str, Any]] = None

    def clear_last_message(self):
        """Forget the last update (called when iRacing disconnects)."""
        self.last_message = None

    async def broadcast(self, message: Dict[str, Any]):
        """Send to every client at once; clients whose send fails are dropped."""
        if not self.clients:
            return

        payload = json.dumps(message)
        targets = list(self.clients)
        results = await asyncio.gather(
            *(client.send(payload) for client in targets),
            return_exceptions=True,
        )
        for client, result in zip(targets, results):
            if not isinstance(result, Exception):
                continue
            if not isinstance(result, ConnectionClosed):
                logger.error(f"Broadcast error: {result}")
            self.clients.discard(client)

    async def handler(self, websocket):
        """
        Serve one client: replay the latest update, then hold the connection
        open. Clients only listen; anything they send is discarded.
        """
        self.clients.add(websocket)
        logger.info(f"📡 Client connected. Total: {len(self.clients)}")
        try:
            if self.last_message is not None:
                await websocket.send(json.dumps(self.last_message))
            async for _ in websocket:
                pass
        except ConnectionClosed:
            pass
        finally:
            self.clients.discard(websocket)
            logger.info(f"📡 Client disconnected. Total: {len(self.clients)}")


async def run_tick(tracker: RaceTracker, source, server: RaceUpdateServer) -> bool:
    """
    Read one snapshot, tick the tracker and broadcast the result.

    Returns:
        True if an update was broadcast
    """
    update = tracker.tick(source.next_snapshot())
    if update is None:
        return False

    message = {
        'type': 'race_update',
        'timestamp': _now_ms(),
        'data': update.to_dict(),
    }
    server.last_message = message
    await server.broadcast(message)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(render_text(build_view(update, tracker.settings.laps_precision)))
    return True


async def handle_disconnect(tracker: RaceTracker, source, server: RaceUpdateServer):
    """Drop all session state and tell clients the sim went away."""
    logger.warning("⚠️  iRacing disconnected")
    source.disconnect()
    tracker.reset()
    server.clear_last_message()
    await server.broadcast({
        'type': 'disconnected',
        'timestamp': _now_ms(),
        'message': 'iRacing disconnected',
        'status': build_view(None).status_text,
    })


async def tracker_loop(tracker: RaceTracker, source, server: RaceUpdateServer,
                       reconnect_delay: float = RECONNECT_DELAY):
    """
    Fixed-period tick loop.

    source needs connect(), disconnect(), a connected flag, an is_connected
    property and next_snapshot(). A tick that gets no snapshot is skipped.
    """
    interval = tracker.settings.update_interval

    while True:
        if not source.connected:
            if source.connect():
                logger.info("🏎️  iRacing connection established")
            else:
                logger.debug("Waiting for iRacing...")
                await asyncio.sleep(reconnect_delay)
                continue

        if not source.is_connected:
            await handle_disconnect(tracker, source, server)
            await asyncio.sleep(reconnect_delay)
            continue

        started = time.monotonic()
        await run_tick(tracker, source, server)
        elapsed = time.monotonic() - started
        await asyncio.sleep(max(0.0, interval - elapsed))


async def run(settings: Settings, source):
    """Serve WebSocket clients and run the tick loop until cancelled."""
    tracker = RaceTracker(settings)
    server = RaceUpdateServer()

    ws_server = await websockets.serve(server.handler, settings.websocket_host, settings.websocket_port)
    logger.info(f"✅ WebSocket server started on ws://localhost:{settings.websocket_port}")

    try:
        await tracker_loop(tracker, source, server)
    finally:
        if source.connected:
            source.disconnect()
        ws_server.close()
        await ws_server.wait_closed()
