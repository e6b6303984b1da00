"""
Error taxonomy for the game client.

None of these are fatal. Local rule violations and busy rejections are
produced synchronously without touching the network; network failures and
server rejections come back from a submission and leave staged state alone
so the player can retry.
"""

# ── Rule violation reasons ───────────────────────────────────────────

CAPACITY_EXCEEDED = "CapacityExceeded"
SLOT_OCCUPIED = "SlotOccupied"
UNKNOWN_SLOT = "UnknownSlot"
CARD_NOT_IN_HAND = "CardNotInHand"
NOT_INFLUENCE_CARD = "NotInfluenceCard"
DUPLICATE_CARD = "DuplicateCard"
NOT_STAGED = "NotStaged"
NOT_YOUR_TURN = "NotYourTurn"
WRONG_PHASE = "WrongPhase"
NOTHING_STAGED = "NothingStaged"
HAND_NOT_EMPTY = "HandNotEmpty"
INVALID_SELECTION = "InvalidSelection"
UNKNOWN_ACTION = "UnknownAction"

# Server-side reasons
SERVER_REJECTION = "ServerRejection"
MALFORMED_STATE = "MalformedState"

MESSAGES = {
    CAPACITY_EXCEEDED: "You can only place up to 2 influence cards per turn",
    SLOT_OCCUPIED: "That patrician already holds one of your cards",
    UNKNOWN_SLOT: "Unknown patrician",
    CARD_NOT_IN_HAND: "That card is not in your hand",
    NOT_INFLUENCE_CARD: "Only influence cards can be placed on a patrician",
    DUPLICATE_CARD: "That card is already placed",
    NOT_STAGED: "That card has not been placed this turn",
    NOT_YOUR_TURN: "Not your turn",
    WRONG_PHASE: "That action is not available in this phase",
    NOTHING_STAGED: "You must place at least one influence card first",
    HAND_NOT_EMPTY: "Place all of your cards before submitting",
    INVALID_SELECTION: "Invalid selection",
    UNKNOWN_ACTION: "Unknown action",
}


class ClientError(Exception):
    """Base class; carries a machine-readable kind/reason and a message."""

    kind = "error"

    def __init__(self, message, reason=None):
        super().__init__(message)
        self.message = message
        self.reason = reason

    def to_dict(self):
        return {"kind": self.kind, "reason": self.reason, "message": self.message}


class RuleViolation(ClientError, ValueError):
    """A local move was illegal. No request was sent, nothing changed."""

    kind = "rule_violation"

    def __init__(self, reason, message=None):
        super().__init__(message or MESSAGES.get(reason, reason), reason=reason)


class Busy(ClientError):
    kind = "busy"

    def __init__(self, message="A submission is in progress"):
        super().__init__(message, reason="Busy")


class NetworkFailure(ClientError):
    kind = "network_failure"


class ServerRejection(ClientError):
    kind = "server_rejection"

    def __init__(self, message, status=None, reason=SERVER_REJECTION):
        super().__init__(message, reason=reason)
        self.status = status

    def to_dict(self):
        data = super().to_dict()
        data["status"] = self.status
        return data
