"""
Tests for the HTTP game API client.

Runs GameApi against a small in-process aiohttp server that mimics the
game server's routes.
"""

import asyncio

from aiohttp import test_utils, web

from client.api import GameApi
from client.errors import NetworkFailure, ServerRejection
from client.patricians.engine import TurnStateMachine, IDLE, PLACING
from client.patricians.state import STANDARD_PLAY


# ── Helpers ───────────────────────────────────────────────────────────

def game_body(current="CAESAR"):
    return {
        "currentPlayer": current,
        "gameMode": STANDARD_PLAY,
        "waitingForInitialInfluence": False,
        "currentPlayerHand": [
            {"id": "two", "type": "influence"},
            {"id": "four", "type": "influence"},
            {"id": "VETO", "type": "action"},
        ],
        "patricianBoard": {},
    }


def make_app(overrides=None):
    """
    Fake game server. Every request lands in state["requests"] as
    (method, path, query, json body). `overrides` maps a path to a handler.
    """
    app = web.Application()
    state = {"requests": [], "game": game_body()}

    async def record(request):
        body = await request.json() if request.can_read_body else None
        state["requests"].append((request.method, request.path, dict(request.query), body))
        return body

    async def get_game(request):
        await record(request)
        return web.json_response(state["game"])

    async def reset(request):
        await record(request)
        return web.Response(text="Game reset")

    async def initial(request):
        await record(request)
        return web.json_response({"success": True, "currentPlayer": "CLEOPATRA",
                                  "currentMode": "INITIAL_INFLUENCE_PLACEMENT"})

    async def influence(request):
        await record(request)
        state["game"] = game_body(current="CLEOPATRA")
        return web.json_response({"status": "ok"})

    async def vote(request):
        body = await record(request)
        return web.json_response({"winner": body["playerId"]})

    async def action(request):
        await record(request)
        return web.json_response({"status": "ok"})

    handlers = {
        ("GET", "/game"): get_game,
        ("POST", "/game/reset"): reset,
        ("POST", "/game/action/placeInitialInfluence"): initial,
        ("POST", "/game/action/playInfluenceCard"): influence,
        ("POST", "/game/action/voteOfConfidence"): vote,
        ("POST", "/game/action/playAction"): action,
    }
    for (method, path), handler in handlers.items():
        app.router.add_route(method, path, (overrides or {}).get(path, handler))
    return app, state


def with_server(scenario, overrides=None):
    """Start the fake server, run `scenario(api, state)`, tear everything down."""
    async def runner():
        app, state = make_app(overrides)
        server = test_utils.TestServer(app)
        await server.start_server()
        api = GameApi(str(server.make_url("/")), timeout=5)
        try:
            return await scenario(api, state)
        finally:
            await api.close()
            await server.close()

    return asyncio.run(runner())


# ══════════════════════════════════════════════════════════════════════
# Endpoints
# ══════════════════════════════════════════════════════════════════════

class TestEndpoints:

    def test_fetch_game(self):
        async def scenario(api, state):
            return await api.fetch_game()

        result = with_server(scenario)
        assert result.ok
        assert result.value["currentPlayer"] == "CAESAR"

    def test_initial_influence_sends_player_as_query(self):
        async def scenario(api, state):
            result = await api.place_initial_influence("CAESAR", {"CONSUL": "ONE"})
            return result, state["requests"]

        result, requests = with_server(scenario)
        assert result.value["currentPlayer"] == "CLEOPATRA"
        assert requests == [("POST", "/game/action/placeInitialInfluence",
                             {"playerId": "CAESAR"}, {"CONSUL": "ONE"})]

    def test_vote_of_confidence(self):
        async def scenario(api, state):
            return await api.vote_of_confidence("CLEOPATRA", "CENSOR")

        assert with_server(scenario).value == {"winner": "CLEOPATRA"}

    def test_play_action(self):
        async def scenario(api, state):
            await api.play_action("CAESAR", "VETO")
            return state["requests"]

        (request,) = with_server(scenario)
        assert request[1] == "/game/action/playAction"
        assert request[3] == {"playerId": "CAESAR", "cardId": "VETO"}

    def test_plain_text_reply(self):
        async def scenario(api, state):
            return await api.reset_game()

        result = with_server(scenario)
        assert result.ok
        assert result.value == {"status": "Game reset"}


# ══════════════════════════════════════════════════════════════════════
# Failures
# ══════════════════════════════════════════════════════════════════════

class TestFailures:

    def test_http_error_carries_server_reason(self):
        async def reject(request):
            return web.json_response({"error": "Patrician already has a card"}, status=400)

        async def scenario(api, state):
            return await api.place_initial_influence("CAESAR", {})

        result = with_server(scenario, {"/game/action/placeInitialInfluence": reject})
        assert isinstance(result.error, ServerRejection)
        assert result.error.message == "Patrician already has a card"
        assert result.error.status == 400

    def test_error_body_on_success_status(self):
        async def reject(request):
            return web.json_response({"error": "Not your turn"})

        async def scenario(api, state):
            return await api.play_influence_cards({"playerId": "CAESAR"})

        result = with_server(scenario, {"/game/action/playInfluenceCard": reject})
        assert isinstance(result.error, ServerRejection)
        assert result.error.message == "Not your turn"
        assert result.error.status == 200

    def test_http_error_without_body(self):
        async def crash(request):
            return web.Response(status=500, text="<html>oops</html>")

        async def scenario(api, state):
            return await api.fetch_game()

        result = with_server(scenario, {"/game": crash})
        assert isinstance(result.error, ServerRejection)
        assert result.error.message == "Server returned HTTP 500"
        assert result.error.to_dict()["kind"] == "server_rejection"

    def test_unreachable_server(self):
        async def scenario():
            async with GameApi("http://127.0.0.1:1", timeout=2) as api:
                return await api.fetch_game()

        result = asyncio.run(scenario())
        assert isinstance(result.error, NetworkFailure)
        assert result.error.message.startswith("Could not reach game server")


# ══════════════════════════════════════════════════════════════════════
# Full Turn Over HTTP
# ══════════════════════════════════════════════════════════════════════

class TestTurnOverHttp:

    def test_end_turn_round_trip(self):
        async def scenario(api, state):
            machine = TurnStateMachine(api, local_player="CAESAR")
            await machine.refresh()
            assert machine.state == PLACING

            machine.place("two", "AEDILE")
            machine.place("four", "CONSUL")
            result = await machine.end_turn("CONSUL")
            return machine, result, state["requests"]

        machine, result, requests = with_server(scenario)
        assert result.value == {"winner": "CAESAR"}
        posts = [(path, body) for method, path, query, body in requests if method == "POST"]
        assert posts == [
            ("/game/action/playInfluenceCard", {
                "playerId": "CAESAR",
                "faceDownAssignment": {"influenceCardId": "TWO", "patricianType": "AEDILE"},
                "faceUpAssignment": {"influenceCardId": "FOUR", "patricianType": "CONSUL"},
            }),
            ("/game/action/voteOfConfidence", {"playerId": "CAESAR", "patricianType": "CONSUL"}),
        ]
        # Server handed the turn to Cleopatra
        assert machine.snapshot["current_player"] == "CLEOPATRA"
        assert machine.state == IDLE
        assert len(machine.staged) == 0
