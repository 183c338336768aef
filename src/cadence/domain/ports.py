"""
Ports (interfaces) for card persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from .models import CardState, StudySession


class CardRepository(ABC):
    """
    Port for loading and storing card states and the study session.

    Implementations:
        - JsonCardRepository: a single JSON file on disk.
    """

    @abstractmethod
    def load_cards(self, card_ids: Iterable[str], now: int) -> dict[str, CardState]:
        """
        Load the given cards, keyed by id.

        Ids with no stored record are returned as fresh NEW cards due at ``now``.
        """

    @abstractmethod
    def all_cards(self) -> dict[str, CardState]:
        """Return every stored card, in insertion order."""

    @abstractmethod
    def upsert_card(self, card: CardState) -> None:
        """Overwrite the full stored record for ``card.id``."""

    def upsert_cards(self, cards: Iterable[CardState]) -> None:
        """Overwrite several records; adapters may batch the write."""
        for card in cards:
            self.upsert_card(card)

    @abstractmethod
    def load_session(self) -> StudySession | None:
        """Return the persisted session, or None if there is none yet."""

    @abstractmethod
    def save_session(self, session: StudySession) -> None:
        """Persist the session, replacing any previous one."""
