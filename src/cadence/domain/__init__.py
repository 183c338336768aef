# Domain Package
from .errors import CadenceError, CardNotFoundError, StoreError
from .models import (
    CardContent,
    CardLifecycle,
    CardState,
    LearningQueue,
    Rating,
    ReviewRecord,
    StudySession,
)
from .ports import CardRepository
from .settings import DEFAULT_SETTINGS, SchedulerSettings

__all__ = [
    "CadenceError",
    "CardNotFoundError",
    "StoreError",
    "CardContent",
    "CardLifecycle",
    "CardState",
    "LearningQueue",
    "Rating",
    "ReviewRecord",
    "StudySession",
    "CardRepository",
    "DEFAULT_SETTINGS",
    "SchedulerSettings",
]
