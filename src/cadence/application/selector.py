"""
Next-card selection for a study session.

Priority order (each tier is only consulted if the previous one is empty):
1. Due learning/relearning cards, learning-queue (FIFO) order first
2. Due review cards, earliest due first, under the daily review cap
3. New cards, random or FIFO, under the daily new-card cap
"""

import logging
import random
from collections.abc import Mapping
from dataclasses import dataclass

from cadence.domain.models import CardLifecycle, CardState, StudySession
from cadence.domain.settings import SchedulerSettings

from .settings_validator import validate_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionStats:
    """Session-aware counts of what is still available today."""

    available_new: int
    due_learning: int
    due_reviews: int
    due_total: int  # learning + review, new cards excluded
    total_cards: int


@dataclass(frozen=True)
class SessionSummary:
    is_complete: bool
    available_cards: int
    new_cards_remaining: int
    reviews_remaining: int
    learning_cards_waiting: int


def _is_buried(card: CardState, session: StudySession) -> bool:
    return card.is_buried or card.id in session.buried_cards


def _under_review_cap(session: StudySession, s: SchedulerSettings) -> bool:
    return s.max_reviews_per_day <= 0 or session.reviews_completed < s.max_reviews_per_day


def _under_new_cap(session: StudySession, s: SchedulerSettings) -> bool:
    return session.new_cards_studied < s.new_cards_per_day


def _due_learning(cards: Mapping[str, CardState], now: int) -> list[CardState]:
    return [
        card
        for card in cards.values()
        if card.state.is_learning and not card.is_suspended and card.due <= now
    ]


def _eligible_reviews(
    cards: Mapping[str, CardState], session: StudySession, s: SchedulerSettings, now: int
) -> list[CardState]:
    return [
        card
        for card in cards.values()
        if card.state == CardLifecycle.REVIEW
        and not card.is_suspended
        and not _is_buried(card, session)
        and (s.review_ahead or card.due <= now)
    ]


def _eligible_new(cards: Mapping[str, CardState], session: StudySession) -> list[CardState]:
    return [
        card
        for card in cards.values()
        if card.state == CardLifecycle.NEW
        and not card.is_suspended
        and not _is_buried(card, session)
    ]


def next_card_id(
    cards: Mapping[str, CardState],
    session: StudySession,
    settings: SchedulerSettings | dict | None,
    now: int,
    rng: random.Random | None = None,
) -> str | None:
    """
    Pick the id of the next card to study, or None when nothing qualifies.

    Args:
        cards: Full card collection keyed by id; iteration order is treated
            as creation order for FIFO tie-breaks.
        session: Current study session (counters, learning queue, buried set).
        settings: Scheduler settings; validated before use.
        now: Current time, epoch ms.
        rng: Random source for ``new_card_order == "random"``.
    """
    s = validate_settings(settings)

    # 1. Learning / relearning
    learning = _due_learning(cards, now)
    if learning:
        due_ids = {card.id for card in learning}
        for queued_id in session.learning_queue:
            if queued_id in due_ids:
                logger.debug(f"Next card {queued_id}: queued learning card")
                return queued_id
        chosen = min(learning, key=lambda card: card.due)
        logger.debug(f"Next card {chosen.id}: earliest due of {len(learning)} learning cards")
        return chosen.id

    # 2. Reviews
    if _under_review_cap(session, s):
        reviews = _eligible_reviews(cards, session, s, now)
        if reviews:
            chosen = min(reviews, key=lambda card: card.due)
            logger.debug(f"Next card {chosen.id}: earliest of {len(reviews)} review cards")
            return chosen.id
    else:
        logger.debug(
            f"Review limit reached: {session.reviews_completed}/{s.max_reviews_per_day}"
        )

    # 3. New cards
    if _under_new_cap(session, s):
        new_cards = _eligible_new(cards, session)
        if new_cards:
            if s.new_card_order == "random":
                chosen = (rng or random).choice(new_cards)
            else:
                # min() keeps the first of equal dues, i.e. creation order
                chosen = min(new_cards, key=lambda card: card.due)
            logger.debug(f"Next card {chosen.id}: new card ({s.new_card_order})")
            return chosen.id
    else:
        logger.debug(f"New card limit reached: {session.new_cards_studied}/{s.new_cards_per_day}")

    logger.debug("No cards available for study")
    return None


def has_learning_cards(cards: Mapping[str, CardState]) -> bool:
    """True while any card is still in learning or relearning."""
    return any(card.state.is_learning for card in cards.values())


def session_stats(
    cards: Mapping[str, CardState],
    session: StudySession,
    settings: SchedulerSettings | dict | None,
    now: int,
) -> SessionStats:
    """
    Count what the learner can still study today.

    Learning cards are counted whether or not they are due yet, since they
    come back within the session.
    """
    s = validate_settings(settings)
    all_cards = list(cards.values())

    new_slots = max(0, s.new_cards_per_day - session.new_cards_studied)
    new_total = sum(
        1 for card in all_cards if card.state == CardLifecycle.NEW and not card.is_suspended
    )
    available_new = min(new_total, new_slots)

    due_learning = sum(
        1 for card in all_cards if card.state.is_learning and not card.is_suspended
    )

    reviews_total = sum(
        1
        for card in all_cards
        if card.state == CardLifecycle.REVIEW and card.due <= now and not card.is_suspended
    )
    if s.max_reviews_per_day <= 0:
        due_reviews = reviews_total
    else:
        due_reviews = min(reviews_total, max(0, s.max_reviews_per_day - session.reviews_completed))

    return SessionStats(
        available_new=available_new,
        due_learning=due_learning,
        due_reviews=due_reviews,
        due_total=due_learning + due_reviews,
        total_cards=len(all_cards),
    )


def is_session_complete(
    cards: Mapping[str, CardState],
    session: StudySession,
    settings: SchedulerSettings | dict | None,
    now: int,
) -> bool:
    """Complete only when nothing is selectable and no learning cards remain."""
    nothing_next = next_card_id(cards, session, settings, now, rng=random.Random(0)) is None
    return nothing_next and not has_learning_cards(cards)


def session_summary(
    cards: Mapping[str, CardState],
    session: StudySession,
    settings: SchedulerSettings | dict | None,
    now: int,
) -> SessionSummary:
    stats = session_stats(cards, session, settings, now)
    nothing_next = next_card_id(cards, session, settings, now, rng=random.Random(0)) is None
    return SessionSummary(
        is_complete=nothing_next,
        available_cards=stats.due_total,
        new_cards_remaining=stats.available_new,
        reviews_remaining=stats.due_reviews,
        learning_cards_waiting=stats.due_learning,
    )
