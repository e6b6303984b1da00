"""
Declarative view-model for the renderer.

The renderer is a pure function of this dict: it never reads staged state
from anything it drew earlier.
"""

from client.patricians.availability import button_configs
from client.patricians.state import (
    PATRICIAN_TYPES, INITIAL_PLACEMENT, INFLUENCE,
    opponent, card_asset, back_asset, patrician_image,
)


def _opponent_influence(entries, opp):
    # Opponent cards show their back until revealed
    return [
        card_asset(INFLUENCE, e["type"]) if e["face_up"] else back_asset(opp)
        for e in entries
    ]


def _committed_influence(entries, viewer):
    cards = []
    for e in entries:
        face = card_asset(INFLUENCE, e["type"])
        cards.append({
            "src": face if e["face_up"] else back_asset(viewer),
            "actual_card": None if e["face_up"] else face,
            "face_up": e["face_up"],
            "staged": False,
            "card_id": None,
        })
    return cards


def _staged_influence(records, viewer):
    cards = []
    for r in records:
        face = card_asset(INFLUENCE, r["card_type"])
        cards.append({
            "src": face if r["face_up"] else back_asset(viewer),
            "actual_card": None if r["face_up"] else face,
            "face_up": r["face_up"],
            "staged": True,
            "card_id": r["card_id"],
        })
    return cards


def build_patricians(snapshot, staged, viewer):
    opp = opponent(viewer)
    patricians = []
    for patrician_type in PATRICIAN_TYPES:
        entry = snapshot["patrician_board"][patrician_type]
        mine = [r for r in staged if r["slot"] == patrician_type]
        patricians.append({
            "type": patrician_type,
            "name": patrician_type.capitalize(),
            "image": patrician_image(patrician_type),
            "remaining": entry["remaining"],
            "opponent_influence": _opponent_influence(entry["influence"][opp], opp),
            "player_influence": (
                _committed_influence(entry["influence"][viewer], viewer)
                + _staged_influence(mine, viewer)
            ),
        })
    return patricians


def build_status(snapshot, placing):
    current = snapshot["current_player"]
    if snapshot["game_mode"] == INITIAL_PLACEMENT:
        game_status = "Initial Influence Placement Phase"
        if snapshot["waiting_for_initial_influence"]:
            turn_info = f"{current}'s turn to place initial influence"
        else:
            turn_info = f"Waiting for {current} to place initial influence"
    else:
        game_status = f"Standard Play - {current}'s turn"
        turn_info = "Select cards to play" if placing else f"Waiting for {current}"
    return {"game_status": game_status, "turn_info": turn_info}


def build_counts(snapshot, viewer):
    opp = opponent(viewer)
    decks = snapshot["deck_counts"]
    return {
        "player_influence_deck": decks[viewer]["influence"],
        "player_action_deck": decks[viewer]["action"],
        "opponent_hand": snapshot["opponent_hand_count"],
        "opponent_influence_deck": decks[opp]["influence"],
        "opponent_action_deck": decks[opp]["action"],
        "bust_bag": len(snapshot["bust_bag"]),
        "discard_pile": snapshot["discard_count"],
    }


def build_view(machine_state, snapshot, staged, hand, viewer, actions, placing, auto_complete=False):
    """
    Assemble the full view-model.

    `hand` is the already-partitioned hand (staged cards removed). `viewer`
    is the player whose side of the board is drawn as "player".
    """
    if snapshot is None:
        return {
            "state": machine_state,
            "phase": None,
            "current_player": None,
            "viewer": viewer,
            "status": {"game_status": "Loading game...", "turn_info": ""},
            "patricians": [],
            "hand": [],
            "buttons": [],
            "counts": {},
            "claimed": {},
        }

    phase = snapshot["game_mode"]
    shown_hand = hand if viewer == snapshot["current_player"] else []
    return {
        "state": machine_state,
        "phase": phase,
        "current_player": snapshot["current_player"],
        "viewer": viewer,
        "status": build_status(snapshot, placing),
        "patricians": build_patricians(snapshot, staged, viewer),
        "hand": [
            {"card_id": c["card_id"], "kind": c["kind"], "id": c["id"],
             "src": card_asset(c["kind"], c["id"]),
             "draggable": placing and c["kind"] == INFLUENCE}
            for c in shown_hand
        ],
        "buttons": button_configs(phase, actions, placing, auto_complete),
        "counts": build_counts(snapshot, viewer),
        "claimed": snapshot["player_patricians"],
    }
