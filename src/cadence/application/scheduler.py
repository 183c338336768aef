"""
SM-2 card scheduler (Anki behaviour).

State machine over ``CardLifecycle``:

    new --Again/Hard/Good--> learning --Good past last step--> review
    new --Easy-------------------------------------------->  review
    review --Again--> relearning --Good past last step / Easy--> review

Pure computation: the caller supplies ``now`` (epoch ms) and gets a new
``CardState`` back. Settings are validated on every call.
"""

import logging
import math
from dataclasses import replace
from typing import Any

from cadence.domain.constants import (
    FALLBACK_LEARNING_STEP,
    FALLBACK_RELEARNING_STEP,
    MS_PER_DAY,
    MS_PER_MINUTE,
)
from cadence.domain.models import CardLifecycle, CardState, Rating
from cadence.domain.settings import SchedulerSettings

from .settings_validator import validate_settings

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3), unlike ``round``."""
    return int(math.floor(value + 0.5))


def add_minutes(timestamp: int, minutes: float) -> int:
    return timestamp + round_half_up(minutes * MS_PER_MINUTE)


def add_days(timestamp: int, days: float) -> int:
    return timestamp + round_half_up(days * MS_PER_DAY)


def _clamp_days(days: float, settings: SchedulerSettings) -> int:
    return int(max(1, min(days, settings.max_interval)))


def _step(steps: tuple[float, ...], index: int, fallback: float) -> float:
    if not steps:
        return fallback
    if index < 0 or index >= len(steps):
        return steps[-1]
    return steps[index]


def _enter_step(card: CardState, step_index: int, steps, fallback, now: int) -> CardState:
    minutes = _step(steps, step_index, fallback)
    return replace(
        card,
        learning_step=min(max(0, step_index), len(steps) - 1),
        interval=minutes,
        due=add_minutes(now, minutes),
    )


def _graduate(card: CardState, days: int, now: int, **changes: Any) -> CardState:
    return replace(
        card,
        state=CardLifecycle.REVIEW,
        interval=days,
        due=add_days(now, days),
        learning_step=0,
        **changes,
    )


# ---------------------------------------------------------------------------
# Per-state transitions
# ---------------------------------------------------------------------------


def _schedule_new(card: CardState, rating: Rating, s: SchedulerSettings, now: int) -> CardState:
    if rating == Rating.EASY:
        if s.easy_interval > s.graduating_interval:
            days = round_half_up(s.easy_interval * s.interval_modifier)
        else:
            days = round_half_up(
                s.graduating_interval * card.ease * s.easy_interval_factor * s.interval_modifier
            )
        days = _clamp_days(days, s)
        logger.debug(f"Card {card.id} rated Easy while new, graduating to {days}d")
        return _graduate(card, days, now, repetitions=1)

    # Again, Hard and Good all start the learning steps at step 0
    learning = replace(card, state=CardLifecycle.LEARNING)
    return _enter_step(learning, 0, s.learning_steps, FALLBACK_LEARNING_STEP, now)


def _schedule_learning(
    card: CardState, rating: Rating, s: SchedulerSettings, now: int
) -> CardState:
    steps = s.learning_steps

    match rating:
        case Rating.AGAIN:
            return _enter_step(card, 0, steps, FALLBACK_LEARNING_STEP, now)
        case Rating.HARD:
            current = min(card.learning_step, len(steps) - 1)
            return _enter_step(card, current, steps, FALLBACK_LEARNING_STEP, now)
        case Rating.GOOD:
            next_step = card.learning_step + 1
            if next_step < len(steps):
                return _enter_step(card, next_step, steps, FALLBACK_LEARNING_STEP, now)
            days = _clamp_days(round_half_up(s.graduating_interval * s.interval_modifier), s)
            logger.debug(f"Learning card {card.id} graduating to {days}d")
            return _graduate(card, days, now, repetitions=1)
        case Rating.EASY:
            base = round_half_up(s.graduating_interval * card.ease * s.easy_interval_factor)
            days = _clamp_days(round_half_up(base * s.interval_modifier), s)
            logger.debug(f"Learning card {card.id} rated Easy, graduating to {days}d")
            return _graduate(card, days, now, repetitions=1)


def _schedule_review(card: CardState, rating: Rating, s: SchedulerSettings, now: int) -> CardState:
    if rating == Rating.AGAIN:
        lapses = card.lapses + 1
        reached = lapses >= s.leech_threshold
        suspend = reached and s.leech_action == "suspend"
        if reached:
            logger.info(f"Card {card.id} is a leech ({lapses} lapses, action={s.leech_action})")
        relearning = replace(
            card,
            state=CardLifecycle.RELEARNING,
            lapses=lapses,
            ease=max(s.minimum_ease, card.ease - s.lapse_ease_penalty),
            is_leech=card.is_leech or reached,
            is_suspended=card.is_suspended or suspend,
        )
        return _enter_step(relearning, 0, s.relearning_steps, FALLBACK_RELEARNING_STEP, now)

    previous = card.interval
    days_late = max(0, (now - card.due) // MS_PER_DAY)
    ease = card.ease

    if rating == Rating.HARD:
        interval = round_half_up(previous * s.hard_interval_factor)
    else:
        if card.repetitions == 0:
            interval = 1
        elif card.repetitions == 1:
            interval = round_half_up(1 * card.ease)
        else:
            interval = round_half_up(previous * card.ease)

        if rating == Rating.EASY:
            interval = round_half_up(interval * s.easy_interval_factor)
            ease = card.ease + s.easy_ease_bonus

    interval += days_late
    interval = round_half_up(interval * s.interval_modifier)

    # Every later review must push the card out by at least one more day
    if card.repetitions > 1:
        interval = max(interval, math.ceil(previous) + 1)

    interval = _clamp_days(interval, s)
    logger.debug(
        f"Review card {card.id}: rating={rating.name} reps={card.repetitions} "
        f"prev={previous} late={days_late} -> {interval}d"
    )
    return replace(
        card,
        state=CardLifecycle.REVIEW,
        repetitions=card.repetitions + 1,
        ease=max(s.minimum_ease, ease),
        interval=interval,
        due=add_days(now, interval),
    )


def _schedule_relearning(
    card: CardState, rating: Rating, s: SchedulerSettings, now: int
) -> CardState:
    steps = s.relearning_steps

    def recovered(factor: float) -> int:
        base = max(1, card.repetitions)
        days = round_half_up(base * card.ease * factor)
        return _clamp_days(round_half_up(days * s.interval_modifier), s)

    match rating:
        case Rating.AGAIN:
            return _enter_step(card, 0, steps, FALLBACK_RELEARNING_STEP, now)
        case Rating.HARD:
            current = min(card.learning_step, len(steps) - 1)
            return _enter_step(card, current, steps, FALLBACK_RELEARNING_STEP, now)
        case Rating.GOOD:
            next_step = card.learning_step + 1
            if next_step < len(steps):
                return _enter_step(card, next_step, steps, FALLBACK_RELEARNING_STEP, now)
            return _graduate(card, recovered(s.lapse_recovery_factor), now)
        case Rating.EASY:
            return _graduate(card, recovered(s.easy_interval_factor), now)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def schedule_card(
    card: CardState,
    rating: Rating | int,
    settings: SchedulerSettings | dict | None,
    now: int,
) -> CardState:
    """
    Compute a card's next state after a rating.

    Args:
        card: Current card state.
        rating: Again/Hard/Good/Easy (0-3).
        settings: Scheduler settings; validated before use.
        now: Current time, epoch ms.

    Returns:
        The new card state. ``last_reviewed`` is always stamped to ``now``;
        suspended or buried cards are otherwise returned unchanged.
    """
    rating = Rating(rating)
    s = validate_settings(settings)

    if card.is_inert:
        logger.warning(f"Attempted to schedule suspended/buried card {card.id}")
        return replace(card, last_reviewed=now)

    card = replace(card, last_reviewed=now, ease=max(s.minimum_ease, card.ease))

    match card.state:
        case CardLifecycle.NEW:
            return _schedule_new(card, rating, s, now)
        case CardLifecycle.LEARNING:
            return _schedule_learning(card, rating, s, now)
        case CardLifecycle.REVIEW:
            return _schedule_review(card, rating, s, now)
        case CardLifecycle.RELEARNING:
            return _schedule_relearning(card, rating, s, now)


def schedule_all_ratings(
    card: CardState,
    settings: SchedulerSettings | dict | None,
    now: int,
) -> dict[Rating, CardState]:
    """Outcome of each of the four ratings, keyed by rating."""
    s = validate_settings(settings)
    return {rating: schedule_card(card, rating, s, now) for rating in Rating}
