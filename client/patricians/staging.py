"""
Staged placements: influence cards the player has put down this turn but
not yet submitted.

Owned by the turn state machine. Face-up/down is positional during standard
play, so every add and remove reassigns it across the remaining records.
"""

from client.errors import DUPLICATE_CARD
from client.patricians.rules import Verdict, can_place
from client.patricians.state import INITIAL_PLACEMENT, STANDARD_PLAY


def make_record(card, slot):
    return {"card_id": card["card_id"], "card_type": card["id"], "slot": slot, "face_up": False}


class StagedPlacementStore:

    def __init__(self, phase=INITIAL_PLACEMENT):
        self.phase = phase
        self._records = []

    def __len__(self):
        return len(self._records)

    def list(self):
        return [dict(r) for r in self._records]

    def card_ids(self):
        return {r["card_id"] for r in self._records}

    def find(self, slot):
        """First staged record on `slot`, or None."""
        for r in self._records:
            if r["slot"] == slot:
                return dict(r)
        return None

    def add(self, record):
        """Append a record if the rules allow it. Returns the verdict either way."""
        if record["card_id"] in self.card_ids():
            return Verdict(False, DUPLICATE_CARD)
        verdict = can_place(self.phase, self._records, record["slot"])
        if not verdict:
            return verdict
        self._records.append(dict(record))
        self._assign_faces()
        return verdict

    def remove(self, predicate):
        """Drop every record matching `predicate` and return the dropped ones."""
        removed = [r for r in self._records if predicate(r)]
        if removed:
            self._records = [r for r in self._records if not predicate(r)]
            self._assign_faces()
        return removed

    def clear(self):
        self._records = []

    def reset(self, phase):
        self.phase = phase
        self._records = []

    def _assign_faces(self):
        # Standard play: first card face-down, second face-up.
        # Initial placement: everything goes down face-down.
        for i, r in enumerate(self._records):
            r["face_up"] = self.phase == STANDARD_PLAY and i > 0


# ── Submission Payloads ───────────────────────────────────────────────

def initial_influence_payload(records):
    """Body for placeInitialInfluence: {PATRICIAN: CARD_ID}."""
    return {r["slot"]: r["card_type"].upper() for r in records}


def _assignment(record):
    return {"influenceCardId": record["card_type"].upper(), "patricianType": record["slot"]}


def influence_card_payload(player, records):
    """Body for playInfluenceCard, with face-down and face-up assignments."""
    payload = {"playerId": player}
    face_down = next((r for r in records if not r["face_up"]), None)
    face_up = next((r for r in records if r["face_up"]), None)
    if face_down is not None:
        payload["faceDownAssignment"] = _assignment(face_down)
    if face_up is not None:
        payload["faceUpAssignment"] = _assignment(face_up)
    return payload
