"""
Constants and snapshot helpers for Patricians.

Players, patrician slots, card assets, and parsing of the authoritative
game state returned by GET /game.
"""

# ── Game Constants ────────────────────────────────────────────────────

PLAYERS = ("CAESAR", "CLEOPATRA")

# Board display order
PATRICIAN_TYPES = ("QUAESTOR", "AEDILE", "PRAETOR", "CONSUL", "CENSOR")

INITIAL_PLACEMENT = "INITIAL_INFLUENCE_PLACEMENT"
STANDARD_PLAY = "STANDARD_PLAY"
PHASES = (INITIAL_PLACEMENT, STANDARD_PLAY)

# Influence cards staged per standard-play turn: first face-down, second face-up
STANDARD_PLAY_CAPACITY = 2

# Every player opens with one influence card of each value
STARTING_HAND = ("ONE", "TWO", "THREE", "FOUR", "FIVE")

INFLUENCE = "influence"
ACTION = "action"


def opponent(player):
    return PLAYERS[1] if player == PLAYERS[0] else PLAYERS[0]


# ── Card Assets ───────────────────────────────────────────────────────

def card_asset(kind, card_type):
    """Asset path of a card's face, e.g. influence/three.svg."""
    folder = ACTION if kind == ACTION else INFLUENCE
    return f"{folder}/{card_type.lower()}.svg"


def back_asset(player):
    return f"backs/{player.lower()}.svg"


def patrician_image(patrician_type):
    return f"{patrician_type.lower()}.svg"


# ── Hand Cards ────────────────────────────────────────────────────────

def make_hand(cards):
    """
    Turn a list of {"id", "type"} entries into card refs with hand-unique keys.

    The hand can hold several copies of the same card. The first copy keeps
    its server id as key, later copies get "<id>#<n>" so each can be staged
    on its own.
    """
    seen = {}
    hand = []
    for card in cards:
        if not isinstance(card, dict) or not card.get("id"):
            raise ValueError(f"Hand card without an id: {card!r}")
        card_type = card["id"]
        kind = card.get("type", INFLUENCE)
        if kind not in (INFLUENCE, ACTION):
            kind = INFLUENCE
        count = seen.get(card_type, 0) + 1
        seen[card_type] = count
        key = card_type if count == 1 else f"{card_type}#{count}"
        hand.append({"card_id": key, "kind": kind, "id": card_type})
    return hand


def starting_hand():
    return make_hand([{"id": t, "type": INFLUENCE} for t in STARTING_HAND])


def playable_hand(snapshot):
    """
    Cards the current player may drag, before staged cards are taken out.

    During initial placement only the influence cards count; if the server
    did not send a hand, the standard starting cards are used.
    """
    if snapshot is None:
        return []
    if snapshot["game_mode"] == INITIAL_PLACEMENT:
        influence = [c for c in snapshot["hand"] if c["kind"] == INFLUENCE]
        return influence or starting_hand()
    return list(snapshot["hand"])


def action_cards(snapshot):
    if snapshot is None:
        return []
    return [c for c in snapshot["hand"] if c["kind"] == ACTION]


# ── Snapshot Parsing ──────────────────────────────────────────────────

def _object(value, what):
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a JSON object")
    return value


def _parse_influence(inf, patrician_type):
    if not isinstance(inf, dict) or not inf.get("type"):
        raise ValueError(f"Influence card on {patrician_type} without a type: {inf!r}")
    return {"type": inf["type"], "face_up": bool(inf.get("faceUp", False))}


def _parse_board(raw_board):
    board = {}
    for patrician_type in PATRICIAN_TYPES:
        entry = _object(_object(raw_board, "Patrician board").get(patrician_type) or {}, patrician_type)
        influence = {}
        for player in PLAYERS:
            influence[player] = [
                _parse_influence(inf, patrician_type)
                for inf in _object(entry.get("influence") or {}, patrician_type).get(player) or []
            ]
        board[patrician_type] = {
            "remaining": entry.get("remaining", 0),
            "influence": influence,
        }
    return board


def _parse_deck_counts(raw_counts):
    counts = {}
    for player in PLAYERS:
        entry = _object(_object(raw_counts, "Deck counts").get(player) or {}, f"Deck counts for {player}")
        counts[player] = {
            "influence": entry.get("influenceDeckCount", 0),
            "action": entry.get("actionDeckCount", 0),
        }
    return counts


def parse_snapshot(data):
    """
    Build the client's snapshot dict from the GET /game JSON body.

    Raises ValueError if the body does not name a known current player and
    game mode, or carries a card or board entry it cannot read. Missing
    optional fields fall back to empty/zero.
    """
    if not isinstance(data, dict):
        raise ValueError("Game state must be a JSON object")

    current = data.get("currentPlayer")
    if current not in PLAYERS:
        raise ValueError(f"Unknown current player: {current!r}")
    game_mode = data.get("gameMode")
    if game_mode not in PHASES:
        raise ValueError(f"Unknown game mode: {game_mode!r}")

    patricians = {}
    for player, counts in _object(data.get("playerPatricianCards") or {}, "Patrician cards").items():
        patricians[player] = dict(_object(counts, f"Patrician cards for {player}"))

    return {
        "current_player": current,
        "game_mode": game_mode,
        "waiting_for_initial_influence": bool(data.get("waitingForInitialInfluence", False)),
        "turn_number": data.get("turnNumber", 0),
        "hand": make_hand(data.get("currentPlayerHand") or []),
        "opponent_hand_count": data.get("opponentHandCount", 0),
        "patrician_board": _parse_board(data.get("patricianBoard") or {}),
        "deck_counts": _parse_deck_counts(data.get("deckCounts") or {}),
        "bust_bag": list(data.get("bustBagContents") or []),
        "discard_count": data.get("discardPileSize", 0),
        "player_patricians": patricians,
    }
