"""
Domain models for study sessions.

These are pure data structures with no I/O or external dependencies.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from deckoracle.domain.constants import DEFAULT_STUDY_MODE
from deckoracle.domain.errors import InvalidStatus


class CardStatus(str, Enum):
    """How well the user knew a card."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    FORGOT = "forgot"

    @classmethod
    def parse(cls, value: "CardStatus | str") -> "CardStatus":
        """
        Coerce a raw value into a CardStatus.

        Raises:
            InvalidStatus: If the value is not one of the four statuses.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidStatus(value)

    @property
    def counts_as_correct(self) -> bool:
        return self in (CardStatus.EASY, CardStatus.MEDIUM)


@dataclass(frozen=True)
class Card:
    """
    A flashcard as handed to the core by the deck owner.

    Attributes:
        card_id: Stable identifier of the card.
        front: Prompt side.
        back: Answer side.
        position: Ordinal position within the deck.
    """

    card_id: str
    front: str
    back: str
    position: int = 0


@dataclass(frozen=True)
class Deck:
    """Every card ever studied under a deck id; supplies names and fronts to reports."""

    deck_id: str
    name: str = ""
    cards: tuple[Card, ...] = ()

    @property
    def card_ids(self) -> list[str]:
        return [c.card_id for c in self.cards]

    def has_card(self, card_id: str) -> bool:
        return any(c.card_id == card_id for c in self.cards)

    def merged_with(self, cards: Sequence[Card], name: str = "") -> "Deck":
        """
        Fold another card list into this snapshot.

        Known cards take the newer front/back, unknown cards are appended, and
        no card is ever dropped. An empty name keeps the current one.
        """
        incoming = {c.card_id: c for c in cards}
        merged = [incoming.pop(c.card_id, c) for c in self.cards]
        merged.extend(incoming.values())
        return Deck(deck_id=self.deck_id, name=name or self.name, cards=tuple(merged))


@dataclass(frozen=True)
class StudySession:
    """
    One continuous study pass over a deck.

    Mutated only by completion, which produces a copy with completed_at set.
    """

    session_id: str
    user_id: str
    deck_id: str
    created_at: datetime
    study_mode: str = DEFAULT_STUDY_MODE
    completed_at: datetime | None = None
    total_cards: int = 0
    card_ids: tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        return self.completed_at is not None

    def has_card(self, card_id: str) -> bool:
        """Whether the card was part of the list this session was opened on."""
        return card_id in self.card_ids


@dataclass(frozen=True)
class CardOutcome:
    """
    A single recorded judgment of one card within one session.

    Attributes:
        outcome_id: Unique, time-sortable identifier.
        session_id: Owning session.
        card_id: The card that was answered.
        status: easy / medium / hard / forgot.
        recorded_at: When the answer was recorded (UTC).
        response_time_ms: Latency between showing the card and answering;
            None when not measured (e.g. skipped cards).
        user_answer: Optional free-text answer typed by the user.
        is_correct: Correctness flag; derived from status when not graded externally.
    """

    outcome_id: str
    session_id: str
    card_id: str
    status: CardStatus
    recorded_at: datetime
    response_time_ms: int | None = None
    user_answer: str | None = None
    is_correct: bool | None = None

    @property
    def correct(self) -> bool:
        """Correctness with the status-based fallback for legacy records."""
        if self.is_correct is not None:
            return self.is_correct
        return self.status.counts_as_correct

    @property
    def recency_key(self) -> tuple[datetime, str]:
        """Ordering key for "most recent wins" resolution."""
        return (self.recorded_at, self.outcome_id)


@dataclass(frozen=True)
class SessionSummary:
    """Outcome counts for one session."""

    easy: int = 0
    medium: int = 0
    hard: int = 0
    forgot: int = 0
    total: int = 0

    @property
    def correct(self) -> int:
        return self.easy + self.medium

    @property
    def wrong(self) -> int:
        return self.hard + self.forgot


@dataclass
class SessionTally:
    """
    Incremental fold of a session's outcomes.

    Keeps the most recent outcome per card so that duplicates and arrival
    order never change the resulting summary.
    """

    latest: dict[str, CardOutcome] = field(default_factory=dict)

    def add(self, outcome: CardOutcome) -> None:
        current = self.latest.get(outcome.card_id)
        if current is None or outcome.recency_key > current.recency_key:
            self.latest[outcome.card_id] = outcome

    def summary(self) -> SessionSummary:
        counts = {status: 0 for status in CardStatus}
        for outcome in self.latest.values():
            counts[outcome.status] += 1
        return SessionSummary(
            easy=counts[CardStatus.EASY],
            medium=counts[CardStatus.MEDIUM],
            hard=counts[CardStatus.HARD],
            forgot=counts[CardStatus.FORGOT],
            total=sum(counts.values()),
        )
