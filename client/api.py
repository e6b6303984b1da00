"""
HTTP client for the game server's action API.

Every call returns a Result instead of raising: connection problems become
NetworkFailure, HTTP errors and {"error": ...} bodies become
ServerRejection with the server's reason when it gave one.
"""

import asyncio
import json
import logging

import aiohttp

from client.errors import NetworkFailure, ServerRejection
from client.game_client import Result

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class GameApi:

    def __init__(self, base_url, timeout=DEFAULT_TIMEOUT, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session

    async def _get_session(self):
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # ── Endpoints ────────────────────────────────────────────────────

    async def fetch_game(self):
        return await self._request("GET", "/game")

    async def reset_game(self):
        return await self._request("POST", "/game/reset")

    async def place_initial_influence(self, player_id, placements):
        return await self._request(
            "POST", "/game/action/placeInitialInfluence",
            params={"playerId": player_id}, body=placements,
        )

    async def play_influence_cards(self, payload):
        return await self._request("POST", "/game/action/playInfluenceCard", body=payload)

    async def vote_of_confidence(self, player_id, patrician_type):
        return await self._request(
            "POST", "/game/action/voteOfConfidence",
            body={"playerId": player_id, "patricianType": patrician_type},
        )

    async def play_action(self, player_id, card_id):
        return await self._request(
            "POST", "/game/action/playAction",
            body={"playerId": player_id, "cardId": card_id},
        )

    # ── Transport ────────────────────────────────────────────────────

    async def _request(self, method, path, params=None, body=None):
        url = f"{self.base_url}{path}"
        logger.debug("%s %s params=%s body=%s", method, url, params, body)
        session = await self._get_session()
        try:
            async with session.request(method, url, params=params, json=body) as resp:
                text = await resp.text()
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("%s %s failed: %s", method, path, e or type(e).__name__)
            return Result.failure(NetworkFailure(f"Could not reach game server: {e or type(e).__name__}"))

        data = _decode(text)

        if status >= 400:
            message = _error_message(data) or f"Server returned HTTP {status}"
            logger.warning("%s %s rejected (%d): %s", method, path, status, message)
            return Result.failure(ServerRejection(message, status=status))

        if isinstance(data, dict) and data.get("error"):
            logger.warning("%s %s rejected: %s", method, path, data["error"])
            return Result.failure(ServerRejection(str(data["error"]), status=status))

        return Result.success(data)


def _decode(text):
    if not text:
        return {}
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return {"status": text}


def _error_message(data):
    if isinstance(data, dict):
        message = data.get("error") or data.get("message")
        if message:
            return str(message)
    return None
