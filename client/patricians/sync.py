"""
Reconciling a freshly fetched snapshot with local staged state.
"""


def reconcile(previous, incoming):
    """
    Decide what survives a refresh.

    Staged placements belong to one player's turn in one phase. They are
    dropped when the turn passes to the other player or the game mode
    changes; otherwise they are kept so an unrelated redraw does not throw
    away what the player is in the middle of doing.
    """
    if previous is None:
        reset = True
    else:
        reset = (
            incoming["current_player"] != previous["current_player"]
            or incoming["game_mode"] != previous["game_mode"]
        )
    return {"snapshot": incoming, "reset_staged": reset}


class RefreshSequencer:
    """
    Orders overlapping refreshes.

    Each fetch takes a token when it is issued; only the response for the
    most recently issued token may be applied. Issuing a token without a
    fetch (e.g. on reset) invalidates everything still in flight.
    """

    def __init__(self):
        self.latest = 0

    def issue(self):
        self.latest += 1
        return self.latest

    def is_current(self, token):
        return token == self.latest
