# Domain Study Package
from .models import (
    Card,
    CardOutcome,
    CardStatus,
    Deck,
    SessionSummary,
    SessionTally,
    StudySession,
)
from .ports import StudyRepository

__all__ = [
    "Card",
    "CardOutcome",
    "CardStatus",
    "Deck",
    "SessionSummary",
    "SessionTally",
    "StudySession",
    "StudyRepository",
]
