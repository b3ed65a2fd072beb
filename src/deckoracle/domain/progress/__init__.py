# Domain Progress Package
from .models import (
    CardPerformance,
    DeckProgress,
    LearningCurvePoint,
    MasteryPolicy,
    ProgressOverview,
    ProgressQuery,
    StreakInfo,
    StudyHistory,
    WeeklyProgress,
)

__all__ = [
    "CardPerformance",
    "DeckProgress",
    "LearningCurvePoint",
    "MasteryPolicy",
    "ProgressOverview",
    "ProgressQuery",
    "StreakInfo",
    "StudyHistory",
    "WeeklyProgress",
]
