from dataclasses import replace

from cadence.application.card_ops import (
    bury_card,
    bury_siblings,
    clear_buried,
    init_cards,
    new_card,
    reset_card,
    set_interval,
    suspend_card,
    unbury_card,
    unsuspend_card,
)
from cadence.domain.constants import MS_PER_DAY
from cadence.domain.models import CardContent, CardLifecycle, CardState


def test_new_card(now):
    card = new_card("c1", now, {"starting_ease": 2.1}, note_id="n1", content=CardContent("Q", "A"))
    assert card.state == CardLifecycle.NEW
    assert card.due == now
    assert card.ease == 2.1
    assert card.note_id == "n1"
    assert card.content.front == "Q"


def test_init_cards(now):
    cards = init_cards(["a", "b"], now)
    assert list(cards) == ["a", "b"]
    assert all(c.state == CardLifecycle.NEW and c.due == now for c in cards.values())


def test_flag_toggles():
    card = CardState(id="c")
    assert suspend_card(card).is_suspended
    assert not unsuspend_card(suspend_card(card)).is_suspended
    assert bury_card(card).is_buried
    assert not unbury_card(bury_card(card)).is_buried
    assert not card.is_suspended


def test_bury_siblings_requires_setting():
    cards = {
        "a": CardState(id="a", note_id="n"),
        "b": CardState(id="b", note_id="n"),
        "c": CardState(id="c", note_id="m"),
    }
    assert bury_siblings(cards, "a", None) == cards

    buried = bury_siblings(cards, "a", {"bury_siblings": True})
    assert not buried["a"].is_buried
    assert buried["b"].is_buried
    assert not buried["c"].is_buried


def test_clear_buried():
    cards = {"a": CardState(id="a", is_buried=True), "b": CardState(id="b")}
    cleared = clear_buried(cards)
    assert not any(c.is_buried for c in cleared.values())
    assert cleared["b"] is cards["b"]


def test_set_interval_moves_to_review(now):
    card = CardState(id="c", lapses=3, is_leech=True)
    updated = set_interval(card, 7, now, reset_lapses=True, adjust_ease=1.0)
    assert updated.state == CardLifecycle.REVIEW
    assert updated.interval == 7
    assert updated.due == now + 7 * MS_PER_DAY
    assert updated.lapses == 0
    assert not updated.is_leech
    # Ease adjustments respect the minimum ease
    assert updated.ease == 1.3


def test_set_interval_zero_keeps_state(now):
    card = CardState(id="c", state=CardLifecycle.LEARNING)
    updated = set_interval(card, 0, now, increment_lapses=True)
    assert updated.state == CardLifecycle.LEARNING
    assert updated.due == now
    assert updated.lapses == 1


def test_reset_card(now, settings, review_card):
    card = replace(review_card, lapses=9, is_leech=True, is_suspended=True, ease=1.5)
    reset = reset_card(card, settings, now)
    assert reset.state == CardLifecycle.NEW
    assert reset.interval == 0
    assert reset.due == now
    assert reset.ease == 2.5
    assert reset.repetitions == 0
    assert reset.lapses == 0
    assert reset.learning_step == 0
    assert reset.last_reviewed == 0
    assert not (reset.is_leech or reset.is_suspended or reset.is_buried)
