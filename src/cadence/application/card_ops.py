"""
Explicit card operations outside of rating: creation, suspend/bury flags,
manual interval overrides and progress reset.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace

from cadence.domain.constants import DEFAULT_MINIMUM_EASE
from cadence.domain.models import CardContent, CardLifecycle, CardState
from cadence.domain.settings import SchedulerSettings

from .scheduler import add_days
from .settings_validator import validate_settings

logger = logging.getLogger(__name__)


def new_card(
    card_id: str,
    now: int,
    settings: SchedulerSettings | None = None,
    note_id: str | None = None,
    content: CardContent | None = None,
) -> CardState:
    """A never-seen card, immediately due."""
    s = validate_settings(settings)
    return CardState(
        id=card_id,
        state=CardLifecycle.NEW,
        interval=0,
        ease=s.starting_ease,
        due=now,
        note_id=note_id,
        content=content,
    )


def init_cards(
    card_ids: Iterable[str],
    now: int,
    settings: SchedulerSettings | None = None,
    note_id: str | None = None,
) -> dict[str, CardState]:
    s = validate_settings(settings)
    return {cid: new_card(cid, now, s, note_id=note_id) for cid in card_ids}


def suspend_card(card: CardState) -> CardState:
    return replace(card, is_suspended=True)


def unsuspend_card(card: CardState) -> CardState:
    return replace(card, is_suspended=False)


def bury_card(card: CardState) -> CardState:
    return replace(card, is_buried=True)


def unbury_card(card: CardState) -> CardState:
    return replace(card, is_buried=False)


def bury_siblings(
    cards: Mapping[str, CardState],
    card_id: str,
    settings: SchedulerSettings | None,
) -> dict[str, CardState]:
    """
    Set the buried flag on every other card sharing ``card_id``'s note.

    No-op unless ``bury_siblings`` is enabled and the card has a note id.
    """
    s = validate_settings(settings)
    updated = dict(cards)
    card = cards.get(card_id)
    if not s.bury_siblings or card is None or not card.note_id:
        return updated

    for cid, other in cards.items():
        if cid != card_id and other.note_id == card.note_id and not other.is_buried:
            updated[cid] = bury_card(other)
    return updated


def clear_buried(cards: Mapping[str, CardState]) -> dict[str, CardState]:
    """Unbury every card (run at the day boundary)."""
    return {cid: unbury_card(c) if c.is_buried else c for cid, c in cards.items()}


def set_interval(
    card: CardState,
    interval_days: int,
    now: int,
    *,
    reset_repetitions: bool = False,
    adjust_ease: float | None = None,
    increment_lapses: bool = False,
    reset_lapses: bool = False,
    clear_flags: bool = False,
    reset_leech: bool = False,
    minimum_ease: float = DEFAULT_MINIMUM_EASE,
) -> CardState:
    """
    Manually override a card's interval.

    A positive interval puts the card in review, due ``interval_days`` from
    ``now``; zero keeps the current lifecycle state and makes it due now.
    Resetting lapses also clears the leech flag.
    """
    changes: dict = {
        "interval": interval_days,
        "due": add_days(now, interval_days),
        "state": CardLifecycle.REVIEW if interval_days > 0 else card.state,
    }
    if reset_repetitions:
        changes["repetitions"] = 0
    if adjust_ease is not None:
        changes["ease"] = max(minimum_ease, adjust_ease)
    if increment_lapses:
        changes["lapses"] = card.lapses + 1
    if reset_lapses:
        changes["lapses"] = 0
        changes["is_leech"] = False
    if clear_flags:
        changes["is_buried"] = False
        changes["is_suspended"] = False
    if reset_leech:
        changes["is_leech"] = False
    return replace(card, **changes)


def reset_card(card: CardState, settings: SchedulerSettings | None, now: int) -> CardState:
    """Forget all progress: back to NEW with the starting ease, flags cleared."""
    s = validate_settings(settings)
    logger.info(f"Resetting progress for card {card.id}")
    reset = set_interval(
        card,
        0,
        now,
        reset_repetitions=True,
        adjust_ease=s.starting_ease,
        reset_lapses=True,
        clear_flags=True,
        reset_leech=True,
        minimum_ease=s.minimum_ease,
    )
    return replace(reset, state=CardLifecycle.NEW, learning_step=0, last_reviewed=0)
