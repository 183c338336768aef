"""
Domain models for card scheduling and study sessions.

These are pure data structures with no I/O or external dependencies.
All records are frozen; operations return new instances.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum, IntEnum

from .constants import DEFAULT_STARTING_EASE, DEFAULT_TIMEZONE


class CardLifecycle(str, Enum):
    """Closed set of scheduling states a card can be in."""

    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"

    @property
    def is_learning(self) -> bool:
        return self in (CardLifecycle.LEARNING, CardLifecycle.RELEARNING)


class Rating(IntEnum):
    """Answer buttons, in Anki order."""

    AGAIN = 0
    HARD = 1
    GOOD = 2
    EASY = 3


@dataclass(frozen=True)
class CardContent:
    """Optional display content embedded in a card record."""

    front: str
    back: str


@dataclass(frozen=True)
class CardState:
    """
    Scheduling state for one card.

    Attributes:
        id: Opaque card identifier.
        state: Current lifecycle state.
        interval: Minutes while learning/relearning, days while in review.
        ease: SM-2 ease multiplier (e.g. 2.5 = 250%).
        due: Epoch ms when the card becomes eligible.
        last_reviewed: Epoch ms of the last rating, 0 if never rated.
        repetitions: Successful review-state passes.
        lapses: Times the card was failed while in review.
        learning_step: Index into the active (re)learning step sequence.
        note_id: Grouping key used for sibling burying.
    """

    id: str
    state: CardLifecycle = CardLifecycle.NEW
    interval: float = 0
    ease: float = DEFAULT_STARTING_EASE
    due: int = 0
    last_reviewed: int = 0
    repetitions: int = 0
    lapses: int = 0
    learning_step: int = 0
    is_leech: bool = False
    is_suspended: bool = False
    is_buried: bool = False
    note_id: str | None = None
    content: CardContent | None = None

    @property
    def is_inert(self) -> bool:
        """Suspended or buried cards are never rescheduled."""
        return self.is_suspended or self.is_buried


@dataclass(frozen=True)
class ReviewRecord:
    """One undoable rating event."""

    card_id: str
    previous_state: CardState
    rating: Rating
    timestamp: int


class LearningQueue:
    """
    FIFO sequence of card ids cycling through (re)learning.

    Keeps a membership set next to the ordered tuple; both are rebuilt on
    every change so they can never drift apart.
    """

    __slots__ = ("_order", "_members")

    def __init__(self, card_ids: Iterable[str] = ()):
        # Drop duplicates, first occurrence wins
        self._order: tuple[str, ...] = tuple(dict.fromkeys(card_ids))
        self._members: frozenset[str] = frozenset(self._order)

    def append(self, card_id: str) -> "LearningQueue":
        if card_id in self._members:
            return self
        return LearningQueue((*self._order, card_id))

    def move_to_back(self, card_id: str) -> "LearningQueue":
        return LearningQueue((*(cid for cid in self._order if cid != card_id), card_id))

    def remove(self, card_id: str) -> "LearningQueue":
        if card_id not in self._members:
            return self
        return LearningQueue(cid for cid in self._order if cid != card_id)

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._members

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LearningQueue):
            return self._order == other._order
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._order)

    def __repr__(self) -> str:
        return f"LearningQueue({list(self._order)!r})"

    def as_list(self) -> list[str]:
        return list(self._order)


@dataclass(frozen=True)
class StudySession:
    """
    In-memory state for one learner's study session.

    Counters and ``buried_cards`` belong to the local day starting at
    ``day_start`` (epoch ms) in ``timezone``.
    """

    new_cards_studied: int = 0
    reviews_completed: int = 0
    learning_queue: LearningQueue = field(default_factory=LearningQueue)
    buried_cards: frozenset[str] = frozenset()
    review_history: tuple[ReviewRecord, ...] = ()
    day_start: int | None = None
    timezone: str = DEFAULT_TIMEZONE
