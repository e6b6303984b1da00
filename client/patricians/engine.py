"""
Patricians client turn state machine.

Implements the GameClient interface. Owns the last authoritative snapshot
and the staged placements for the current turn; every other component only
reads the view-model it produces.

State machine:
  IDLE → PLACING → SUBMITTING → AWAITING_REFRESH → (IDLE | PLACING)
                       └── on failure ──→ (PLACING | IDLE)
"""

import logging

from client.errors import (
    RuleViolation, Busy, ServerRejection,
    NOT_YOUR_TURN, WRONG_PHASE, NOTHING_STAGED, HAND_NOT_EMPTY,
    INVALID_SELECTION, UNKNOWN_ACTION, MALFORMED_STATE,
)
from client.game_client import GameClient, Result
from client.patricians.availability import (
    derive_actions, SUBMIT_INITIAL_INFLUENCE, END_TURN, PLAY_ACTION_CARD,
    SKIP_TO_ACTION, AUTO_COMPLETE_INFLUENCE, RESET_GAME,
)
from client.patricians.rules import can_remove, check_card
from client.patricians.staging import (
    StagedPlacementStore, make_record, initial_influence_payload,
    influence_card_payload,
)
from client.patricians.state import (
    PLAYERS, PATRICIAN_TYPES, INITIAL_PLACEMENT, STANDARD_PLAY,
    parse_snapshot, playable_hand, action_cards,
)
from client.patricians.sync import reconcile, RefreshSequencer
from client.patricians.view import build_view

logger = logging.getLogger(__name__)

IDLE = "IDLE"
PLACING = "PLACING"
SUBMITTING = "SUBMITTING"
AWAITING_REFRESH = "AWAITING_REFRESH"


class TurnStateMachine(GameClient):

    def __init__(self, api, local_player=None, chooser=None, auto_complete=False):
        """
        `api` is a GameApi (or anything with the same coroutine methods).
        `local_player` fixes which side this client plays; None means
        hot-seat, acting as whoever the server says is current.
        `chooser` is an optional coroutine function (kind, options) -> choice
        used when an action needs a follow-up selection and none was given.
        """
        if local_player is not None and local_player not in PLAYERS:
            raise ValueError(f"Unknown player: {local_player}")
        self.api = api
        self.local_player = local_player
        self.chooser = chooser
        self.auto_complete = auto_complete

        self.state = IDLE
        self.snapshot = None
        self.staged = StagedPlacementStore()
        self.sequencer = RefreshSequencer()
        self.actions = frozenset()
        self.listeners = []

    # ── Queries ───────────────────────────────────────────────────────

    @property
    def phase(self):
        return self.snapshot["game_mode"] if self.snapshot else None

    @property
    def viewer(self):
        if self.local_player is not None:
            return self.local_player
        return self.snapshot["current_player"] if self.snapshot else PLAYERS[0]

    def hand(self):
        """The playable hand with staged cards taken out."""
        staged = self.staged.card_ids()
        return [c for c in playable_hand(self.snapshot) if c["card_id"] not in staged]

    def available_actions(self):
        if self.state != PLACING or self.snapshot is None:
            return frozenset()
        return derive_actions(self.phase, len(self.staged), self.hand())

    def view(self):
        return build_view(
            self.state, self.snapshot, self.staged.list(), self.hand(),
            self.viewer, self.actions, self.state == PLACING, self.auto_complete,
        )

    def subscribe(self, listener):
        """Register a callable that receives the new view after every change."""
        self.listeners.append(listener)

    def _expects_local_action(self):
        snap = self.snapshot
        if snap is None:
            return False
        if self.local_player is not None and snap["current_player"] != self.local_player:
            return False
        if snap["game_mode"] == INITIAL_PLACEMENT:
            return snap["waiting_for_initial_influence"]
        return True

    def _changed(self):
        self.actions = self.available_actions()
        if not self.listeners:
            return
        view = self.view()
        for listener in self.listeners:
            listener(view)

    # ── Refresh ───────────────────────────────────────────────────────

    async def refresh(self):
        token = self.sequencer.issue()
        result = await self.api.fetch_game()
        if not self.sequencer.is_current(token):
            logger.debug("Discarding stale game state (request %d, latest %d)", token, self.sequencer.latest)
            return Result.success(self.snapshot)
        if not result.ok:
            logger.warning("Failed to load game state: %s", result.error.message)
            return result

        try:
            incoming = parse_snapshot(result.value)
        except ValueError as e:
            logger.warning("Malformed game state: %s", e)
            return Result.failure(ServerRejection(f"Malformed game state: {e}", reason=MALFORMED_STATE))

        self._apply_snapshot(incoming)
        return Result.success(self.snapshot)

    def _apply_snapshot(self, incoming):
        outcome = reconcile(self.snapshot, incoming)
        self.snapshot = outcome["snapshot"]
        if outcome["reset_staged"]:
            if len(self.staged):
                logger.info("Turn or phase changed; discarding %d staged placement(s)", len(self.staged))
            self.staged.reset(self.snapshot["game_mode"])
        else:
            # Keep only placements whose card is still ours to play
            in_hand = {c["card_id"] for c in playable_hand(self.snapshot)}
            self.staged.remove(lambda r: r["card_id"] not in in_hand)

        # A refresh landing mid-submission updates the board; the submission
        # handler decides where the machine goes next.
        if self.state != SUBMITTING:
            self.state = PLACING if self._expects_local_action() else IDLE
        self._changed()

    # ── Placement ─────────────────────────────────────────────────────

    def _placement_guard(self):
        if self.state in (SUBMITTING, AWAITING_REFRESH):
            return Result.failure(Busy())
        if self.state != PLACING:
            return Result.failure(RuleViolation(NOT_YOUR_TURN))
        return None

    def place(self, card_id, slot):
        rejected = self._placement_guard()
        if rejected:
            return rejected

        card = next((c for c in self.hand() if c["card_id"] == card_id), None)
        verdict = check_card(card)
        if not verdict:
            return Result.failure(RuleViolation(verdict.reason))

        evicted = None
        if self.phase == INITIAL_PLACEMENT and slot in PATRICIAN_TYPES:
            # One card per patrician: the occupant goes back to hand
            evicted = self.staged.find(slot)
            if evicted is not None:
                self.staged.remove(lambda r: r["slot"] == slot)

        verdict = self.staged.add(make_record(card, slot))
        if not verdict:
            return Result.failure(RuleViolation(verdict.reason))

        if evicted is not None:
            logger.info("Returned %s from %s to hand", evicted["card_id"], slot)
        logger.info("Staged %s on %s", card_id, slot)
        self._changed()
        return Result.success(self.staged.list())

    def unstage(self, card_id, slot):
        rejected = self._placement_guard()
        if rejected:
            return rejected

        verdict = can_remove(self.phase, self.staged.list(), card_id, slot, self.state == PLACING)
        if not verdict:
            return Result.failure(RuleViolation(verdict.reason))

        self.staged.remove(lambda r: r["card_id"] == card_id and r["slot"] == slot)
        logger.info("Returned %s from %s to hand", card_id, slot)
        self._changed()
        return Result.success(self.staged.list())

    def auto_complete_influence(self):
        """Stage the whole initial hand, one card per patrician in board order."""
        rejected = self._submission_guard(INITIAL_PLACEMENT)
        if rejected:
            return rejected

        self.staged.clear()
        for card, slot in zip(self.hand(), PATRICIAN_TYPES):
            self.staged.add(make_record(card, slot))
        self._changed()
        return Result.success(self.staged.list())

    # ── Submission ────────────────────────────────────────────────────

    def _submission_guard(self, phase, action=None, reason=None):
        if self.state in (SUBMITTING, AWAITING_REFRESH):
            return Result.failure(Busy())
        if self.state != PLACING:
            return Result.failure(RuleViolation(NOT_YOUR_TURN))
        if self.phase != phase:
            return Result.failure(RuleViolation(WRONG_PHASE))
        if action is not None and action not in self.available_actions():
            return Result.failure(RuleViolation(reason))
        return None

    def _enter(self, state):
        self.state = state
        self._changed()

    def _settled_state(self):
        # A refresh may have landed mid-submission and passed the turn on
        return PLACING if self._expects_local_action() else IDLE

    async def _finish(self, result):
        """Settle a submission: staged state kept on failure, otherwise refresh."""
        if not result.ok:
            logger.warning("Submission failed: %s", result.error.message)
            self._enter(self._settled_state())
            return result

        self.staged.clear()
        self._enter(AWAITING_REFRESH)
        refreshed = await self.refresh()
        if not refreshed.ok:
            logger.warning("Submitted, but could not refresh game state: %s", refreshed.error.message)
        return Result.success(result.value)

    async def _abandon(self):
        """Return to placing after a follow-up selection came back empty."""
        self._enter(self._settled_state())
        await self.refresh()

    async def submit_initial_influence(self):
        rejected = self._submission_guard(INITIAL_PLACEMENT, SUBMIT_INITIAL_INFLUENCE, HAND_NOT_EMPTY)
        if rejected:
            return rejected

        player = self.snapshot["current_player"]
        payload = initial_influence_payload(self.staged.list())
        logger.info("Submitting initial influence for %s: %s", player, payload)
        self._enter(SUBMITTING)
        result = await self.api.place_initial_influence(player, payload)
        return await self._finish(result)

    async def _submit_influence(self):
        """Send staged influence cards. Leaves the machine in SUBMITTING on success."""
        payload = influence_card_payload(self.snapshot["current_player"], self.staged.list())
        logger.info("Submitting influence cards: %s", payload)
        self._enter(SUBMITTING)
        result = await self.api.play_influence_cards(payload)
        if not result.ok:
            logger.warning("Failed to submit influence cards: %s", result.error.message)
            self._enter(self._settled_state())
            return result
        # The influence play and whatever follows are separate server calls
        self.staged.clear()
        self._changed()
        return result

    async def _choose(self, kind, options, choice):
        if choice is None and self.chooser is not None:
            choice = await self.chooser(kind, options)
        return choice

    async def end_turn(self, choice=None):
        """Submit staged influence, then call a Vote of Confidence on a patrician."""
        rejected = self._submission_guard(STANDARD_PLAY, END_TURN, NOTHING_STAGED)
        if rejected:
            return rejected

        player = self.snapshot["current_player"]
        submitted = await self._submit_influence()
        if not submitted.ok:
            return submitted

        choice = await self._choose("patrician", list(PATRICIAN_TYPES), choice)
        if not choice:
            logger.info("No patrician selected; Vote of Confidence not called")
            await self._abandon()
            return Result.success({"vote": None})

        patrician_type = str(choice).upper()
        if patrician_type not in PATRICIAN_TYPES:
            await self._abandon()
            return Result.failure(RuleViolation(INVALID_SELECTION))

        logger.info("%s calls a Vote of Confidence on %s", player, patrician_type)
        result = await self.api.vote_of_confidence(player, patrician_type)
        return await self._finish(result)

    async def play_action_card(self, choice=None):
        """Submit staged influence, then play an action card from hand."""
        rejected = self._submission_guard(STANDARD_PLAY, PLAY_ACTION_CARD, NOTHING_STAGED)
        if rejected:
            return rejected

        submitted = await self._submit_influence()
        if not submitted.ok:
            return submitted
        return await self._play_selected_action(choice)

    async def skip_to_action(self, choice=None):
        """Play an action card without placing influence this turn."""
        rejected = self._submission_guard(STANDARD_PLAY, SKIP_TO_ACTION, WRONG_PHASE)
        if rejected:
            return rejected

        # Placements are Busy while the selection is pending
        self._enter(SUBMITTING)
        choice = await self._choose("action", action_cards(self.snapshot), choice)
        if not choice:
            self._enter(self._settled_state())
            return Result.success({"action": None})
        return await self._play_selected_action(choice)

    async def _play_selected_action(self, choice):
        cards = action_cards(self.snapshot)
        choice = await self._choose("action", cards, choice)
        if not choice:
            logger.info("No action card selected")
            await self._abandon()
            return Result.success({"action": None})

        card = next((c for c in cards if choice in (c["card_id"], c["id"])), None)
        if card is None:
            await self._abandon()
            return Result.failure(RuleViolation(INVALID_SELECTION))

        player = self.snapshot["current_player"]
        logger.info("%s plays action card %s", player, card["id"])
        result = await self.api.play_action(player, card["id"])
        return await self._finish(result)

    # ── Reset ─────────────────────────────────────────────────────────

    async def reset(self):
        """Throw away all local state and ask the server for a fresh game."""
        self.sequencer.issue()
        self.snapshot = None
        self.staged.reset(INITIAL_PLACEMENT)
        self._enter(IDLE)

        result = await self.api.reset_game()
        if not result.ok:
            logger.warning("Failed to reset game: %s", result.error.message)
            return result
        logger.info("Game reset")
        refreshed = await self.refresh()
        if not refreshed.ok:
            return refreshed
        return Result.success(result.value)

    # ── Button Dispatch ───────────────────────────────────────────────

    async def button_click(self, button_id, choice=None):
        if button_id == SUBMIT_INITIAL_INFLUENCE:
            return await self.submit_initial_influence()
        if button_id == END_TURN:
            return await self.end_turn(choice)
        if button_id == PLAY_ACTION_CARD:
            return await self.play_action_card(choice)
        if button_id == SKIP_TO_ACTION:
            return await self.skip_to_action(choice)
        if button_id == AUTO_COMPLETE_INFLUENCE and self.auto_complete:
            return self.auto_complete_influence()
        if button_id == RESET_GAME:
            return await self.reset()
        return Result.failure(RuleViolation(UNKNOWN_ACTION))
