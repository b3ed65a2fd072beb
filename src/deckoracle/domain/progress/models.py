"""
Domain models for progress analytics.

Every model here is derived: recomputed from outcome and session history
on each request, never stored.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime

from deckoracle.domain.constants import DEFAULT_LEARNED_STATUSES
from deckoracle.domain.study.models import Card, CardOutcome, CardStatus, Deck, StudySession


@dataclass(frozen=True)
class ProgressQuery:
    """
    Filters accepted by every analytics operation.

    Dates are calendar days in the reporting timezone, both bounds inclusive.
    All fields None means "all history".
    """

    deck_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None

    def includes_day(self, day: date) -> bool:
        if self.start_date is not None and day < self.start_date:
            return False
        if self.end_date is not None and day > self.end_date:
            return False
        return True


@dataclass(frozen=True)
class MasteryPolicy:
    """
    Buckets a card by its most recent outcome.

    A card whose latest status is in learned_statuses is "learned"; any other
    seen card is "reviewing"; a card with no outcome is "new".
    """

    learned_statuses: frozenset[CardStatus] = field(
        default_factory=lambda: frozenset(CardStatus(s) for s in DEFAULT_LEARNED_STATUSES)
    )

    def bucket(self, latest: CardStatus | None) -> str:
        if latest is None:
            return "new"
        if latest in self.learned_statuses:
            return "learned"
        return "reviewing"


@dataclass(frozen=True)
class ProgressOverview:
    total_cards_studied: int
    total_study_time_minutes: float
    average_accuracy: float
    total_sessions: int
    decks_in_progress: int
    streak_days: int = 0


@dataclass(frozen=True)
class DeckProgress:
    """Per-deck mastery snapshot."""

    deck_id: str
    deck_name: str
    total_cards: int
    cards_learned: int
    cards_reviewing: int
    cards_new: int
    mastery_percentage: float
    average_accuracy: float
    last_studied: datetime | None = None


@dataclass(frozen=True)
class CardPerformance:
    """
    Review statistics for one card.

    accuracy_rate is a ratio in [0, 1]; difficulty_score = 1 - accuracy_rate.
    """

    card_id: str
    total_reviews: int
    correct_count: int
    incorrect_count: int
    accuracy_rate: float
    difficulty_score: float
    average_response_time_ms: int | None = None
    last_reviewed: datetime | None = None
    front: str | None = None


@dataclass(frozen=True)
class LearningCurvePoint:
    date: date
    accuracy: float
    cards_studied: int
    study_time_minutes: float


@dataclass(frozen=True)
class StreakInfo:
    current_streak: int = 0
    longest_streak: int = 0
    last_study_date: date | None = None
    study_days: list[date] = field(default_factory=list)


@dataclass(frozen=True)
class WeeklyProgress:
    week_start: date
    total_cards_studied: int
    average_accuracy: float
    total_study_time_minutes: float
    sessions_completed: int
    new_cards_learned: int = 0


@dataclass
class StudyHistory:
    """
    Everything the analytics engine reads for one user.

    Attributes:
        sessions: The user's sessions keyed by session_id.
        outcomes: Outcomes belonging to those sessions (any order, duplicates allowed).
        decks: The user's view of each deck they studied, keyed by deck_id.
    """

    sessions: dict[str, StudySession] = field(default_factory=dict)
    outcomes: list[CardOutcome] = field(default_factory=list)
    decks: dict[str, Deck] = field(default_factory=dict)

    def deck_of(self, outcome: CardOutcome) -> str | None:
        session = self.sessions.get(outcome.session_id)
        return session.deck_id if session else None

    @classmethod
    def for_user(
        cls,
        sessions: Iterable[StudySession],
        outcomes: Iterable[CardOutcome],
        catalog: dict[str, Deck],
    ) -> "StudyHistory":
        """
        Assemble one user's history.

        Each deck is the union of the cards the user's own sessions were opened
        with, in first-seen order. Names and fronts come from the shared catalog.
        """
        ordered = sorted(sessions, key=lambda s: (s.created_at, s.session_id))
        card_ids: dict[str, dict[str, None]] = {}
        for session in ordered:
            card_ids.setdefault(session.deck_id, {}).update(dict.fromkeys(session.card_ids))

        decks = {}
        for deck_id, ids in card_ids.items():
            known = catalog.get(deck_id) or Deck(deck_id=deck_id)
            by_id = {c.card_id: c for c in known.cards}
            cards = tuple(by_id.get(cid) or Card(cid, "", "", i) for i, cid in enumerate(ids))
            decks[deck_id] = Deck(deck_id=deck_id, name=known.name, cards=cards)

        return cls(
            sessions={s.session_id: s for s in ordered},
            outcomes=list(outcomes),
            decks=decks,
        )
