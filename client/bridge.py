"""
WebSocket render bridge.

Connects browser renderers to the game client: pushes the view-model to
every connected renderer and routes their place / unstage / button events
back into the client. Knows nothing about specific game rules.
"""

import asyncio
import json
import logging

import websockets

from client.api import GameApi
from client.config import parse_args
from client.game_client import GameClient
from client.patricians.engine import TurnStateMachine

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ViewBridge:
    """
    Fans the client's view out to renderers and feeds their events back in.
    Game-agnostic: all game logic lives in the client.
    """

    def __init__(self, client: GameClient):
        self.client = client
        self.renderers = set()
        self._pending = set()
        client.subscribe(self._on_change)

    def _on_change(self, view):
        if not self.renderers:
            return
        task = asyncio.ensure_future(self._broadcast({"type": "view", "view": view}))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    # ── WebSocket Handler ────────────────────────────────────────────

    async def handle_connection(self, websocket):
        """Main handler for a single renderer connection."""
        self.renderers.add(websocket)
        try:
            await self._send(websocket, {"type": "view", "view": self.client.view()})

            async for raw in websocket:
                try:
                    msg = json.loads(raw)
                except json.JSONDecodeError:
                    await self._send(websocket, {"type": "error", "kind": "protocol", "message": "Invalid JSON"})
                    continue

                if msg.get("type") == "get_view":
                    await self._send(websocket, {"type": "view", "view": self.client.view()})
                    continue

                result = await self._dispatch(msg)
                if result is None:
                    await self._send(websocket, {
                        "type": "error",
                        "kind": "protocol",
                        "message": f"Unknown message type: {msg.get('type')}",
                    })
                elif result.ok:
                    await self._send(websocket, {"type": "result", "value": result.value})
                else:
                    await self._send(websocket, {"type": "error", **result.error.to_dict()})

        except websockets.ConnectionClosed:
            pass
        finally:
            self.renderers.discard(websocket)

    async def _dispatch(self, msg):
        msg_type = msg.get("type")

        if msg_type == "place":
            return self.client.place(msg.get("card_id"), msg.get("slot"))

        if msg_type == "unstage":
            return self.client.unstage(msg.get("card_id"), msg.get("slot"))

        if msg_type == "button":
            return await self.client.button_click(msg.get("id"), msg.get("choice"))

        if msg_type == "refresh":
            return await self.client.refresh()

        return None

    # ── Broadcasting ─────────────────────────────────────────────────

    async def _send(self, websocket, data):
        try:
            await websocket.send(json.dumps(data))
        except websockets.ConnectionClosed:
            pass

    async def _broadcast(self, data):
        """Send the same message to every connected renderer."""
        for websocket in list(self.renderers):
            await self._send(websocket, data)

    # ── Refresh Loop ─────────────────────────────────────────────────

    async def refresh_forever(self, interval):
        """Pull the authoritative state every `interval` seconds."""
        while True:
            await self.client.refresh()
            await asyncio.sleep(interval)


# ── Bridge Entry Point ───────────────────────────────────────────────

async def run_bridge(config):
    api = GameApi(config.base_url, timeout=config.request_timeout)
    client = TurnStateMachine(api, local_player=config.player, auto_complete=config.auto_complete)
    bridge = ViewBridge(client)

    print(f"Render bridge starting on ws://{config.host}:{config.port}")
    print(f"Game server: {config.base_url} (playing as {config.player or 'hot-seat'})")

    try:
        async with websockets.serve(bridge.handle_connection, config.host, config.port):
            print("Bridge running. Ctrl+C to stop.")
            if config.refresh_interval > 0:
                await bridge.refresh_forever(config.refresh_interval)
            else:
                await client.refresh()
                await asyncio.Future()  # run forever
    finally:
        await api.close()


def main(argv=None):
    config = parse_args(argv)
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
    asyncio.run(run_bridge(config))


if __name__ == "__main__":
    main()
