# Application Package
from .scheduler import schedule_all_ratings, schedule_card
from .selector import next_card_id
from .settings_validator import SettingsReport, sanitize_settings, validate_settings
from .study_service import AnswerResult, StudyOverview, StudyService

__all__ = [
    "schedule_card",
    "schedule_all_ratings",
    "next_card_id",
    "SettingsReport",
    "sanitize_settings",
    "validate_settings",
    "AnswerResult",
    "StudyOverview",
    "StudyService",
]
