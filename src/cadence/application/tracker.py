"""
Study-session bookkeeping: counters, learning queue, sibling burying,
bounded undo history and day rollover.

Every function returns a new ``StudySession``; inputs are never mutated.
"""

import copy
import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, replace

from cadence.domain.constants import (
    DEFAULT_TIMEZONE,
    ESTIMATED_SECONDS_PER_CARD,
    UNDO_HISTORY_LIMIT,
)
from cadence.domain.models import (
    CardLifecycle,
    CardState,
    LearningQueue,
    Rating,
    ReviewRecord,
    StudySession,
)
from cadence.domain.settings import SchedulerSettings

from .day_boundary import is_new_day, local_midnight
from .settings_validator import validate_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UndoResult:
    """Session and card collection after undoing one rating."""

    session: StudySession
    cards: dict[str, CardState]
    restored: CardState


@dataclass(frozen=True)
class DailyStats:
    new_cards_studied: int
    reviews_completed: int
    lapses: int  # Again ratings in the retained history
    estimated_seconds: int
    accuracy: float  # percent of Good/Easy ratings in the retained history


def start_session(now: int, timezone: str = DEFAULT_TIMEZONE) -> StudySession:
    """Fresh session whose counters belong to the local day containing ``now``."""
    return StudySession(day_start=local_midnight(now, timezone), timezone=timezone)


def roll_over(session: StudySession, now: int) -> StudySession:
    """
    Reset daily counters and the buried set once a new local day has begun.

    The learning queue and undo history survive the rollover.
    """
    day_start = local_midnight(now, session.timezone)
    if session.day_start is None:
        # Session from an older store without a day stamp: adopt today
        return replace(session, day_start=day_start)
    if not is_new_day(session.day_start, now, session.timezone):
        return session

    logger.info(f"New day in {session.timezone}, resetting daily counters and buried cards")
    return replace(
        session,
        new_cards_studied=0,
        reviews_completed=0,
        buried_cards=frozenset(),
        day_start=day_start,
    )


def note_index(cards: Mapping[str, CardState]) -> dict[str, list[str]]:
    """Map note id -> card ids. Rebuilt per call; never cached across collections."""
    index: dict[str, list[str]] = defaultdict(list)
    for card in cards.values():
        if card.note_id:
            index[card.note_id].append(card.id)
    return dict(index)


def _update_queue(
    queue: LearningQueue, previous: CardState, rating: Rating, updated: CardState
) -> LearningQueue:
    if not updated.state.is_learning:
        return queue.remove(previous.id)

    if previous.state == CardLifecycle.NEW:
        return queue.append(previous.id)
    if previous.state.is_learning and rating == Rating.AGAIN:
        return queue.move_to_back(previous.id)
    # Hard/Good keep their position; lapsed review cards join at the back
    return queue.append(previous.id)


def record_review(
    session: StudySession,
    previous: CardState,
    rating: Rating | int,
    updated: CardState,
    cards: Mapping[str, CardState],
    settings: SchedulerSettings | dict | None,
    now: int,
) -> StudySession:
    """
    Account for one rating in the session.

    Args:
        session: Session before the rating.
        previous: Card state before the rating.
        rating: The rating given.
        updated: Card state returned by the scheduler.
        cards: Full card collection (used to find siblings).
        settings: Scheduler settings; validated before use.
        now: Time of the rating, epoch ms; stored on the history record.
    """
    s = validate_settings(settings)
    rating = Rating(rating)

    record = ReviewRecord(
        card_id=previous.id,
        previous_state=copy.deepcopy(previous),
        rating=rating,
        timestamp=now,
    )
    history = (*session.review_history, record)[-UNDO_HISTORY_LIMIT:]

    buried = session.buried_cards
    if s.bury_siblings and previous.note_id:
        siblings = note_index(cards).get(previous.note_id, [])
        buried = buried | {cid for cid in siblings if cid != previous.id}

    return replace(
        session,
        review_history=history,
        new_cards_studied=session.new_cards_studied + (previous.state == CardLifecycle.NEW),
        reviews_completed=session.reviews_completed + (previous.state == CardLifecycle.REVIEW),
        learning_queue=_update_queue(session.learning_queue, previous, rating, updated),
        buried_cards=buried,
    )


def undo_last(session: StudySession, cards: Mapping[str, CardState]) -> UndoResult | None:
    """
    Revert the most recent rating.

    Restores the card's exact previous state and reverses the counter
    increment. Returns None when there is nothing to undo.
    """
    if not session.review_history:
        logger.info("Nothing to undo")
        return None

    record = session.review_history[-1]
    restored = copy.deepcopy(record.previous_state)
    updated_cards = dict(cards)
    updated_cards[record.card_id] = restored

    was_new = restored.state == CardLifecycle.NEW
    was_review = restored.state == CardLifecycle.REVIEW
    queue = session.learning_queue
    if not restored.state.is_learning:
        queue = queue.remove(record.card_id)
    updated_session = replace(
        session,
        review_history=session.review_history[:-1],
        learning_queue=queue,
        new_cards_studied=max(0, session.new_cards_studied - was_new),
        reviews_completed=max(0, session.reviews_completed - was_review),
    )
    logger.info(f"Undid {record.rating.name} on card {record.card_id}")
    return UndoResult(session=updated_session, cards=updated_cards, restored=restored)


def daily_stats(session: StudySession) -> DailyStats:
    history = session.review_history
    total = len(history)
    passed = sum(1 for r in history if r.rating >= Rating.GOOD)
    lapses = sum(1 for r in history if r.rating == Rating.AGAIN)
    return DailyStats(
        new_cards_studied=session.new_cards_studied,
        reviews_completed=session.reviews_completed,
        lapses=lapses,
        estimated_seconds=total * ESTIMATED_SECONDS_PER_CARD,
        accuracy=(passed / total) * 100 if total else 0.0,
    )
