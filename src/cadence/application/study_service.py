"""
Study Service: application layer orchestrator.

Runs one rating event end to end: day rollover, scheduling, session
bookkeeping, next-card selection and persistence through the repository port.
"""

import logging
import random
from collections.abc import Iterable
from dataclasses import dataclass

from cadence.domain.constants import DEFAULT_TIMEZONE
from cadence.domain.errors import CardNotFoundError
from cadence.domain.models import CardState, Rating, StudySession
from cadence.domain.ports import CardRepository
from cadence.domain.settings import SchedulerSettings

from . import card_ops, selector, tracker
from .preview import IntervalPreview, preview_intervals
from .scheduler import schedule_card
from .settings_validator import validate_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnswerResult:
    card: CardState
    session: StudySession
    next_card_id: str | None


@dataclass(frozen=True)
class StudyOverview:
    stats: selector.SessionStats
    summary: selector.SessionSummary
    daily: tracker.DailyStats


class StudyService:
    """
    Application service for a single learner's deck.

    Follows Dependency Inversion: depends on the CardRepository abstraction,
    not on a concrete storage adapter.
    """

    def __init__(
        self,
        repo: CardRepository,
        settings: SchedulerSettings | dict | None = None,
        timezone: str = DEFAULT_TIMEZONE,
        rng: random.Random | None = None,
    ):
        """
        Args:
            repo: The repository (port) for card and session state.
            settings: Scheduler settings for this deck; validated here once.
            timezone: IANA zone whose midnight resets the daily limits.
            rng: Random source for new-card selection.
        """
        self._repo = repo
        self.settings = validate_settings(settings)
        self.timezone = timezone
        self._rng = rng or random.Random()

    # -- session -------------------------------------------------------------

    def current_session(self, now: int) -> StudySession:
        """The stored session rolled over to ``now``'s day, or a new one."""
        session = self._repo.load_session()
        if session is None:
            return tracker.start_session(now, self.timezone)
        return tracker.roll_over(session, now)

    def _day_cards(self, session: StudySession) -> dict[str, CardState]:
        cards = self._repo.all_cards()
        if session.day_start is not None and any(c.is_buried for c in cards.values()):
            stored = self._repo.load_session()
            if stored is not None and stored.day_start != session.day_start:
                # A new day began: per-card bury flags expire with the session's set
                cards = card_ops.clear_buried(cards)
                self._repo.upsert_cards(c for c in cards.values())
        return cards

    # -- operations ----------------------------------------------------------

    def add_cards(
        self, card_ids: Iterable[str], now: int, note_id: str | None = None
    ) -> list[CardState]:
        """Introduce cards as NEW; ids already in the store are left alone."""
        existing = self._repo.all_cards()
        created = [
            card_ops.new_card(cid, now, self.settings, note_id=note_id)
            for cid in dict.fromkeys(card_ids)
            if cid not in existing
        ]
        if created:
            self._repo.upsert_cards(created)
            logger.info(f"Added {len(created)} new card(s)")
        return created

    def next_card(self, now: int) -> str | None:
        session = self.current_session(now)
        cards = self._day_cards(session)
        return selector.next_card_id(cards, session, self.settings, now, rng=self._rng)

    def answer(self, card_id: str, rating: Rating | int, now: int) -> AnswerResult:
        """
        Rate a card and persist the outcome.

        Rating a suspended or flag-buried card is a no-op: nothing is stored
        and the session is unchanged. The session's sibling-bury set only
        keeps cards from being selected; a buried sibling can still be rated.

        Raises:
            CardNotFoundError: ``card_id`` is not in the store.
        """
        rating = Rating(rating)
        session = self.current_session(now)
        cards = self._day_cards(session)
        card = cards.get(card_id)
        if card is None:
            raise CardNotFoundError(card_id)

        if card.is_inert:
            logger.warning(f"Card {card_id} is suspended or buried; rating ignored")
            next_id = selector.next_card_id(cards, session, self.settings, now, rng=self._rng)
            return AnswerResult(card=card, session=session, next_card_id=next_id)

        updated = schedule_card(card, rating, self.settings, now)
        cards[card_id] = updated
        session = tracker.record_review(session, card, rating, updated, cards, self.settings, now)

        self._repo.upsert_card(updated)
        self._repo.save_session(session)

        next_id = selector.next_card_id(cards, session, self.settings, now, rng=self._rng)
        return AnswerResult(card=updated, session=session, next_card_id=next_id)

    def undo(self, now: int) -> CardState | None:
        """Undo the last rating; returns the restored card or None."""
        session = self.current_session(now)
        result = tracker.undo_last(session, self._repo.all_cards())
        if result is None:
            return None
        self._repo.upsert_card(result.restored)
        self._repo.save_session(result.session)
        return result.restored

    def preview(self, card_id: str, now: int) -> dict[Rating, IntervalPreview]:
        card = self._get(card_id)
        return preview_intervals(card, self.settings, now)

    def stats(self, now: int) -> StudyOverview:
        session = self.current_session(now)
        cards = self._day_cards(session)
        return StudyOverview(
            stats=selector.session_stats(cards, session, self.settings, now),
            summary=selector.session_summary(cards, session, self.settings, now),
            daily=tracker.daily_stats(session),
        )

    def suspend(self, card_id: str) -> CardState:
        return self._put(card_ops.suspend_card(self._get(card_id)))

    def unsuspend(self, card_id: str) -> CardState:
        return self._put(card_ops.unsuspend_card(self._get(card_id)))

    def reset(self, card_id: str, now: int) -> CardState:
        return self._put(card_ops.reset_card(self._get(card_id), self.settings, now))

    # -- helpers -------------------------------------------------------------

    def _get(self, card_id: str) -> CardState:
        card = self._repo.all_cards().get(card_id)
        if card is None:
            raise CardNotFoundError(card_id)
        return card

    def _put(self, card: CardState) -> CardState:
        self._repo.upsert_card(card)
        return card
