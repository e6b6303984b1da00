"""
Which action controls are enabled, and the buttons that show them.

    phase              staged / hand          enabled
    INITIAL_PLACEMENT  hand empty             submit-initial-influence
    INITIAL_PLACEMENT  hand non-empty         (none)
    STANDARD_PLAY      nothing staged         skip-to-action
    STANDARD_PLAY      one or more staged     end-turn, play-action-card
"""

from client.patricians.state import INITIAL_PLACEMENT, STANDARD_PLAY

SUBMIT_INITIAL_INFLUENCE = "submit-initial-influence"
END_TURN = "end-turn"
PLAY_ACTION_CARD = "play-action-card"
SKIP_TO_ACTION = "skip-to-action"
AUTO_COMPLETE_INFLUENCE = "auto-complete-influence"
RESET_GAME = "reset-game"


def derive_actions(phase, staged_count, hand):
    if phase == INITIAL_PLACEMENT:
        if not hand:
            return frozenset({SUBMIT_INITIAL_INFLUENCE})
        return frozenset()

    if phase == STANDARD_PLAY:
        if staged_count == 0:
            return frozenset({SKIP_TO_ACTION})
        return frozenset({END_TURN, PLAY_ACTION_CARD})

    return frozenset()


def button_configs(phase, actions, placing, auto_complete=False):
    """
    Buttons for the action bar.

    While placing initial influence the submit button is always shown and
    only enabled once the hand is empty. Outside the player's own turn no
    buttons are shown at all.
    """
    if not placing:
        return []

    buttons = []
    if phase == INITIAL_PLACEMENT:
        buttons.append({
            "id": SUBMIT_INITIAL_INFLUENCE,
            "text": "Submit Initial Influence",
            "css_class": "primary-button",
            "disabled": SUBMIT_INITIAL_INFLUENCE not in actions,
        })
        if auto_complete:
            buttons.append({
                "id": AUTO_COMPLETE_INFLUENCE,
                "text": "Auto-Complete (Test)",
                "css_class": "secondary-button",
                "disabled": False,
            })
        return buttons

    if END_TURN in actions:
        buttons.append({
            "id": END_TURN,
            "text": "End Turn (Vote of Confidence)",
            "css_class": "primary-button",
            "disabled": False,
        })
    if PLAY_ACTION_CARD in actions:
        buttons.append({
            "id": PLAY_ACTION_CARD,
            "text": "Play Action Card",
            "css_class": "secondary-button",
            "disabled": False,
        })
    if SKIP_TO_ACTION in actions:
        buttons.append({
            "id": SKIP_TO_ACTION,
            "text": "Skip to Action Phase",
            "css_class": "secondary-button",
            "disabled": False,
        })
    return buttons
