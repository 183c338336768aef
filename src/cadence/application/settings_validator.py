"""
Settings validation.

The single point where untrusted scheduler configuration becomes a bounded
``SchedulerSettings``. Every repair is logged as a warning and reported back
to the caller; nothing here raises.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from cadence.domain import constants as c
from cadence.domain.settings import DEFAULT_SETTINGS, SchedulerSettings

logger = logging.getLogger(__name__)

STEP_SETTINGS = ("learning_steps", "relearning_steps")
ENUM_SETTINGS: dict[str, tuple[str, ...]] = {
    "leech_action": c.LEECH_ACTIONS,
    "new_card_order": c.NEW_CARD_ORDERS,
}
BOOL_SETTINGS = ("review_ahead", "bury_siblings")
KNOWN_SETTINGS = frozenset(SchedulerSettings.model_fields)


@dataclass
class SettingsReport:
    """Validated settings plus one message per repaired value."""

    settings: SchedulerSettings
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, int):
        # Ints are always finite, even past float range; the bounds clamp them
        return True
    return math.isfinite(value)


def _is_step(value: Any) -> bool:
    if not _is_number(value) or value <= 0:
        return False
    try:
        float(value)
    except OverflowError:
        return False
    return True


def _validate_steps(name: str, value: Any, default: tuple[float, ...], warn) -> tuple[float, ...]:
    if isinstance(value, (list, tuple)) and value and all(_is_step(step) for step in value):
        return tuple(value)
    warn(f"Invalid {name} {value!r}, using default {list(default)}")
    return default


def _validate_number(name: str, value: Any, default: float, warn) -> float:
    if not _is_number(value):
        warn(f"Invalid {name} {value!r}, using default {default}")
        return default

    lo, hi = c.NUMERIC_BOUNDS[name]
    if value < lo:
        warn(f"{name} {value} below minimum ({lo}), using {lo}")
        value = lo
    elif value > hi:
        warn(f"{name} {value} above maximum ({hi}), using {hi}")
        value = hi

    if name in c.INTEGER_SETTINGS and value != int(value):
        rounded = int(math.floor(value + 0.5))
        warn(f"{name} {value} is not a whole number, using {rounded}")
        return rounded
    if name in c.INTEGER_SETTINGS:
        return int(value)
    return value


def sanitize_settings(raw: Any) -> SettingsReport:
    """
    Turn an arbitrary settings-shaped value into valid settings.

    Args:
        raw: None, a mapping (keys matched case-insensitively, so both
            ``LEARNING_STEPS`` and ``learning_steps`` work), or an existing
            ``SchedulerSettings``.

    Returns:
        SettingsReport with the repaired settings and the warnings emitted.
    """
    warnings: list[str] = []

    def warn(message: str) -> None:
        logger.warning(message)
        warnings.append(message)

    if raw is None:
        return SettingsReport(DEFAULT_SETTINGS)
    if isinstance(raw, SchedulerSettings):
        raw = raw.model_dump()
    if not isinstance(raw, Mapping):
        warn(f"Settings must be a mapping, got {type(raw).__name__}; using defaults")
        return SettingsReport(DEFAULT_SETTINGS, warnings)

    given: dict[str, Any] = {}
    for key, value in raw.items():
        name = str(key).lower()
        if name not in KNOWN_SETTINGS:
            warn(f"Unknown setting {key!r} ignored")
            continue
        given[name] = value

    values: dict[str, Any] = {}
    for name in SchedulerSettings.model_fields:
        default = getattr(DEFAULT_SETTINGS, name)
        if name not in given:
            values[name] = default
            continue

        value = given[name]
        if name in STEP_SETTINGS:
            values[name] = _validate_steps(name, value, default, warn)
        elif name in ENUM_SETTINGS:
            if value in ENUM_SETTINGS[name]:
                values[name] = value
            else:
                warn(f"Invalid {name} {value!r}, using default {default!r}")
                values[name] = default
        elif name in BOOL_SETTINGS:
            if isinstance(value, bool):
                values[name] = value
            else:
                warn(f"Invalid {name} {value!r}, using default {default}")
                values[name] = default
        else:
            values[name] = _validate_number(name, value, default, warn)

    if values["starting_ease"] < values["minimum_ease"]:
        warn(
            f"starting_ease {values['starting_ease']} below minimum_ease "
            f"{values['minimum_ease']}, using {values['minimum_ease']}"
        )
        values["starting_ease"] = values["minimum_ease"]

    return SettingsReport(SchedulerSettings(**values), warnings)


def validate_settings(raw: Any) -> SchedulerSettings:
    """Return valid settings for ``raw``; see ``sanitize_settings``."""
    return sanitize_settings(raw).settings
