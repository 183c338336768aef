"""Interval previews shown next to the answer buttons."""

from dataclasses import dataclass

from cadence.domain.models import CardState, Rating
from cadence.domain.settings import SchedulerSettings

from .scheduler import schedule_all_ratings
from .settings_validator import validate_settings


@dataclass(frozen=True)
class IntervalPreview:
    rating: Rating
    outcome: CardState
    label: str


def format_interval(card: CardState) -> str:
    """Human-readable label for how long until ``card`` is due again."""
    if card.state.is_learning:
        minutes = max(1, round(card.interval))
        if minutes < 60:
            return f"{minutes}m"
        if minutes < 1440:
            return f"{round(minutes / 60)}h"
        return f"{round(minutes / 1440)}d"

    days = int(card.interval)
    if days < 30:
        return f"{days}d"
    elif days < 365:
        months = round(days / 30)
        return f"{months}mo"
    else:
        years = round(days / 365, 1)
        return f"{years}y"


def preview_intervals(
    card: CardState,
    settings: SchedulerSettings | dict | None,
    now: int,
) -> dict[Rating, IntervalPreview]:
    """What each rating would do to ``card`` right now."""
    s = validate_settings(settings)
    return {
        rating: IntervalPreview(rating=rating, outcome=outcome, label=format_interval(outcome))
        for rating, outcome in schedule_all_ratings(card, s, now).items()
    }
