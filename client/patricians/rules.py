"""
Local placement legality for Patricians.

Pure functions, no I/O. They decide only whether a pending local placement
or removal is allowed before anything is submitted; the server still
judges every submitted move.
"""

from dataclasses import dataclass

from client.errors import (
    CAPACITY_EXCEEDED, SLOT_OCCUPIED, UNKNOWN_SLOT, CARD_NOT_IN_HAND,
    NOT_INFLUENCE_CARD, NOT_STAGED, NOT_YOUR_TURN,
)
from client.patricians.state import (
    PATRICIAN_TYPES, INITIAL_PLACEMENT, STANDARD_PLAY_CAPACITY, INFLUENCE,
)


@dataclass(frozen=True)
class Verdict:
    allowed: bool
    reason: str = None

    def __bool__(self):
        return self.allowed


ALLOWED = Verdict(True)


def can_place(phase, staged, slot):
    """
    Can one more card be staged on `slot`?

    Initial placement: one card per slot. Standard play: at most two cards
    per turn, on any slots.
    """
    if slot not in PATRICIAN_TYPES:
        return Verdict(False, UNKNOWN_SLOT)

    if phase == INITIAL_PLACEMENT:
        if any(r["slot"] == slot for r in staged):
            return Verdict(False, SLOT_OCCUPIED)
        return ALLOWED

    if len(staged) >= STANDARD_PLAY_CAPACITY:
        return Verdict(False, CAPACITY_EXCEEDED)
    return ALLOWED


def can_remove(phase, staged, card_id, slot, placing):
    """
    Can the staged card be taken back to hand?

    During initial placement only while the local player is the one placing.
    During standard play any card staged this turn can come back.
    """
    if phase == INITIAL_PLACEMENT and not placing:
        return Verdict(False, NOT_YOUR_TURN)
    if not any(r["card_id"] == card_id and r["slot"] == slot for r in staged):
        return Verdict(False, NOT_STAGED)
    return ALLOWED


def check_card(card):
    """A card can be staged only if it is in hand and is an influence card."""
    if card is None:
        return Verdict(False, CARD_NOT_IN_HAND)
    if card["kind"] != INFLUENCE:
        return Verdict(False, NOT_INFLUENCE_CARD)
    return ALLOWED
