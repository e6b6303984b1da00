"""
Abstract game client interface.

A game client is the local view-model for one board game. The render
bridge knows nothing about game-specific rules; it just routes renderer
events through these methods and pushes the resulting view to whoever is
watching.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from client.errors import ClientError


@dataclass
class Result:
    """Returned by every client operation: a value on success, an error otherwise."""
    value: Any = None
    error: ClientError = None

    @property
    def ok(self):
        return self.error is None

    @classmethod
    def success(cls, value=None):
        return cls(value=value)

    @classmethod
    def failure(cls, error):
        return cls(error=error)


class GameClient(ABC):
    """
    Client-side state machine for one game session.

    The server stays the single source of truth. The client holds only what
    the local player has staged but not yet submitted, plus the last
    authoritative snapshot it fetched.
    """

    @abstractmethod
    async def refresh(self) -> Result:
        """
        Fetch the authoritative state and reconcile local staged state with it.
        Stale responses (superseded by a newer refresh) are discarded.
        """
        ...

    @abstractmethod
    def place(self, card_id: str, slot: str) -> Result:
        """Stage a card from hand onto a slot. Never touches the network."""
        ...

    @abstractmethod
    def unstage(self, card_id: str, slot: str) -> Result:
        """Return a staged card to hand."""
        ...

    @abstractmethod
    async def button_click(self, button_id: str, choice: str = None) -> Result:
        """
        Run the action behind a rendered button. Some actions need a follow-up
        selection from the player (e.g. which patrician to call a vote on);
        `choice` carries it when the renderer collected it up front.
        """
        ...

    @abstractmethod
    def view(self) -> dict:
        """Return the declarative view-model the renderer draws from."""
        ...
