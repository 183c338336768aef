import random

import pytest

from cadence.application.selector import (
    has_learning_cards,
    is_session_complete,
    next_card_id,
    session_stats,
    session_summary,
)
from cadence.domain.constants import MS_PER_DAY, MS_PER_MINUTE
from cadence.domain.models import CardLifecycle, CardState, LearningQueue, StudySession

FIFO = {"new_card_order": "fifo"}


def collection(*cards):
    return {card.id: card for card in cards}


def learning(card_id, due):
    return CardState(id=card_id, state=CardLifecycle.LEARNING, interval=1, due=due)


def review(card_id, due, **kwargs):
    return CardState(id=card_id, state=CardLifecycle.REVIEW, interval=5, due=due, **kwargs)


def new(card_id, due, **kwargs):
    return CardState(id=card_id, due=due, **kwargs)


@pytest.fixture
def session():
    return StudySession()


def test_due_learning_beats_due_review(now, session, settings):
    cards = collection(review("r", now - MS_PER_DAY), learning("l", now - 1), new("n", now))
    assert next_card_id(cards, session, settings, now) == "l"


def test_learning_queue_order_wins_over_due_time(now, settings):
    cards = collection(learning("a", now - 10 * MS_PER_MINUTE), learning("b", now - 1))
    session = StudySession(learning_queue=LearningQueue(["b", "a"]))
    assert next_card_id(cards, session, settings, now) == "b"


def test_learning_outside_queue_picks_earliest_due(now, session, settings):
    cards = collection(learning("late", now - 1), learning("early", now - MS_PER_DAY))
    assert next_card_id(cards, session, settings, now) == "early"


def test_learning_not_yet_due_falls_through_to_reviews(now, session, settings):
    cards = collection(learning("l", now + MS_PER_MINUTE), review("r", now))
    assert next_card_id(cards, session, settings, now) == "r"


def test_reviews_earliest_due_first(now, session, settings):
    cards = collection(review("b", now - 1), review("a", now - MS_PER_DAY), review("c", now))
    assert next_card_id(cards, session, settings, now) == "a"


def test_future_reviews_wait_unless_review_ahead(now, session, settings):
    cards = collection(review("r", now + MS_PER_DAY))
    assert next_card_id(cards, session, settings, now) is None
    assert next_card_id(cards, session, {"review_ahead": True}, now) == "r"


def test_review_cap_falls_through_to_new(now, settings):
    cards = collection(review("r", now), new("n", now))
    session = StudySession(reviews_completed=200)
    assert next_card_id(cards, session, settings, now) == "n"


def test_zero_review_cap_means_unlimited(now):
    cards = collection(review("r", now))
    session = StudySession(reviews_completed=5000)
    assert next_card_id(cards, session, {"max_reviews_per_day": 0}, now) == "r"


def test_new_card_cap_respected(now, settings):
    cards = collection(new("n1", now), new("n2", now))
    session = StudySession(new_cards_studied=20)
    assert next_card_id(cards, session, settings, now) is None
    assert next_card_id(cards, session, {"new_cards_per_day": 21}, now) in {"n1", "n2"}


def test_zero_new_cards_per_day(now, session):
    cards = collection(new("n1", now))
    assert next_card_id(cards, session, {"new_cards_per_day": 0}, now) is None


def test_fifo_order_by_due_then_collection_order(now, session):
    cards = collection(new("c", now), new("a", now - 5), new("b", now - 5))
    assert next_card_id(cards, session, FIFO, now) == "a"


def test_random_order_uses_supplied_rng(now, session, settings):
    ids = ["n1", "n2", "n3", "n4"]
    cards = collection(*(new(cid, now) for cid in ids))
    expected = random.Random(42).choice(ids)
    assert next_card_id(cards, session, settings, now, rng=random.Random(42)) == expected


def test_suspended_and_buried_are_skipped(now, settings):
    cards = collection(
        review("suspended", now - 2, is_suspended=True),
        review("flagged", now - 1, is_buried=True),
        review("sibling", now - 1),
        new("n", now, is_suspended=True),
    )
    session = StudySession(buried_cards=frozenset({"sibling"}))
    assert next_card_id(cards, session, settings, now) is None


def test_suspended_learning_card_skipped(now, session, settings):
    cards = collection(
        CardState(id="l", state=CardLifecycle.LEARNING, due=now - 1, is_suspended=True)
    )
    assert next_card_id(cards, session, settings, now) is None


def test_empty_collection(now, session, settings):
    assert next_card_id({}, session, settings, now) is None


# --- Statistics ---


def test_session_stats(now, settings):
    cards = collection(
        new("n1", now),
        new("n2", now),
        new("n3", now, is_suspended=True),
        learning("l1", now + MS_PER_MINUTE),
        review("r1", now - 1),
        review("r2", now + MS_PER_DAY),
    )
    session = StudySession(new_cards_studied=19)
    stats = session_stats(cards, session, settings, now)
    assert stats.available_new == 1
    assert stats.due_learning == 1
    assert stats.due_reviews == 1
    assert stats.due_total == 2
    assert stats.total_cards == 6


def test_session_stats_review_cap(now):
    cards = collection(*(review(f"r{i}", now - 1) for i in range(5)))
    session = StudySession(reviews_completed=8)
    stats = session_stats(cards, session, {"max_reviews_per_day": 10}, now)
    assert stats.due_reviews == 2


def test_session_not_complete_while_learning_cards_wait(now, session, settings):
    cards = collection(learning("l", now + 5 * MS_PER_MINUTE))
    assert has_learning_cards(cards)
    assert next_card_id(cards, session, settings, now) is None
    assert not is_session_complete(cards, session, settings, now)


def test_session_complete(now, session, settings):
    cards = collection(review("r", now + MS_PER_DAY))
    assert is_session_complete(cards, session, settings, now)
    summary = session_summary(cards, session, settings, now)
    assert summary.is_complete
    assert summary.available_cards == 0


def test_session_summary_counts(now, session, settings):
    cards = collection(new("n", now), review("r", now))
    summary = session_summary(cards, session, settings, now)
    assert not summary.is_complete
    assert summary.new_cards_remaining == 1
    assert summary.reviews_remaining == 1
    assert summary.learning_cards_waiting == 0
