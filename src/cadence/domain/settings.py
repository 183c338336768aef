"""
Scheduler settings record.

One instance per learner/project. It is always passed explicitly to the
scheduler, selector and tracker; nothing in the package keeps a global copy.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import constants as c

LeechAction = Literal["suspend", "tag"]
NewCardOrder = Literal["random", "fifo"]


class SchedulerSettings(BaseModel):
    """
    Bounded scheduling configuration.

    Construct it through ``cadence.application.settings_validator`` when the
    input is untrusted; direct construction raises ``ValidationError`` on
    out-of-range values.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Daily limits
    new_cards_per_day: int = Field(default=c.DEFAULT_NEW_CARDS_PER_DAY, ge=0, le=9999)
    max_reviews_per_day: int = Field(default=c.DEFAULT_MAX_REVIEWS_PER_DAY, ge=0, le=99999)

    # Steps (minutes)
    learning_steps: tuple[float, ...] = c.DEFAULT_LEARNING_STEPS
    relearning_steps: tuple[float, ...] = c.DEFAULT_RELEARNING_STEPS

    # Graduation (days)
    graduating_interval: float = Field(default=c.DEFAULT_GRADUATING_INTERVAL, ge=1, le=36500)
    easy_interval: float = Field(default=c.DEFAULT_EASY_INTERVAL, ge=1, le=36500)

    # Ease
    starting_ease: float = Field(default=c.DEFAULT_STARTING_EASE, ge=1.3, le=5.0)
    minimum_ease: float = Field(default=c.DEFAULT_MINIMUM_EASE, ge=1.0, le=3.0)
    lapse_ease_penalty: float = Field(default=c.DEFAULT_LAPSE_EASE_PENALTY, ge=0.0, le=1.0)
    easy_ease_bonus: float = Field(default=c.DEFAULT_EASY_EASE_BONUS, ge=0.0, le=1.0)

    # Interval factors
    hard_interval_factor: float = Field(default=c.DEFAULT_HARD_INTERVAL_FACTOR, ge=0.5, le=2.0)
    easy_interval_factor: float = Field(default=c.DEFAULT_EASY_INTERVAL_FACTOR, ge=1.0, le=3.0)
    lapse_recovery_factor: float = Field(
        default=c.DEFAULT_LAPSE_RECOVERY_FACTOR, ge=0.0, le=1.0
    )
    interval_modifier: float = Field(default=c.DEFAULT_INTERVAL_MODIFIER, ge=0.1, le=3.0)
    max_interval: int = Field(default=c.DEFAULT_MAX_INTERVAL, ge=1, le=36500)

    # Leeches
    leech_threshold: int = Field(default=c.DEFAULT_LEECH_THRESHOLD, ge=1, le=999)
    leech_action: LeechAction = c.DEFAULT_LEECH_ACTION

    # Deck options
    new_card_order: NewCardOrder = c.DEFAULT_NEW_CARD_ORDER
    review_ahead: bool = c.DEFAULT_REVIEW_AHEAD
    bury_siblings: bool = c.DEFAULT_BURY_SIBLINGS

    @field_validator("learning_steps", "relearning_steps")
    @classmethod
    def steps_must_be_positive(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        if not v or any(step <= 0 for step in v):
            raise ValueError("step sequences must be non-empty and strictly positive")
        return v


DEFAULT_SETTINGS = SchedulerSettings()
