"""
Session sequencer: deterministic single pass over a fixed card list.

State machine:
    READY(i)    --flip-->   REVEALED(i)
    REVEALED(i) --flip-->   READY(i)            (flip is a toggle)
    REVEALED(i) --answer--> READY(i+1) | COMPLETE
    READY(i) | REVEALED(i) --skip--> READY(i+1) | COMPLETE   (forgot, untimed)
    COMPLETE is terminal.
"""

import logging
from collections.abc import Sequence
from datetime import datetime
from enum import Enum

from deckoracle.application.utils.time import Clock, utc_now
from deckoracle.domain.errors import OutOfSequenceAnswer
from deckoracle.domain.study.models import (
    Card,
    CardOutcome,
    CardStatus,
    SessionSummary,
    SessionTally,
    StudySession,
)

from .recorder import AnswerRecorder

logger = logging.getLogger(__name__)


class SequencerState(str, Enum):
    READY = "ready"
    REVEALED = "revealed"
    COMPLETE = "complete"


class SessionSequencer:
    """
    Holds the ordered cards of one session, the current position and flip state.

    Owns no persistent state; outcomes leave through the AnswerRecorder.
    """

    def __init__(
        self,
        session: StudySession,
        cards: Sequence[Card],
        recorder: AnswerRecorder | None = None,
        clock: Clock = utc_now,
    ):
        self.session = session
        self._cards = tuple(cards)
        self._recorder = recorder or AnswerRecorder(clock=clock)
        self._clock = clock
        self._tally = SessionTally()
        self.outcomes: list[CardOutcome] = []
        self.index = 0
        self._shown_at: datetime | None = None

        if self._cards:
            self.state = SequencerState.READY
            self._shown_at = self._clock()
        else:
            logger.info(f"Session {session.session_id} has no cards; nothing to study")
            self.state = SequencerState.COMPLETE

    @property
    def total_cards(self) -> int:
        return len(self._cards)

    @property
    def is_complete(self) -> bool:
        return self.state is SequencerState.COMPLETE

    @property
    def current_card(self) -> Card | None:
        if self.is_complete:
            return None
        return self._cards[self.index]

    @property
    def is_revealed(self) -> bool:
        return self.state is SequencerState.REVEALED

    @property
    def progress(self) -> float:
        """(index + 1) / total while studying; 1.0 once complete (0.0 if empty)."""
        if not self._cards:
            return 0.0
        if self.is_complete:
            return 1.0
        return (self.index + 1) / len(self._cards)

    @property
    def summary(self) -> SessionSummary:
        return self._tally.summary()

    def flip(self) -> SequencerState:
        """Toggle between the front and back of the current card."""
        if self.is_complete:
            raise OutOfSequenceAnswer("Cannot flip: session is complete")
        if self.state is SequencerState.READY:
            self.state = SequencerState.REVEALED
        else:
            self.state = SequencerState.READY
        return self.state

    def answer(
        self,
        status: CardStatus | str,
        *,
        card_id: str | None = None,
        user_answer: str | None = None,
        is_correct: bool | None = None,
    ) -> CardOutcome:
        """
        Record an answer for the current card and advance.

        Args:
            status: easy / medium / hard / forgot.
            card_id: If given, must be the current card (guards stale submits).
            user_answer: Optional typed answer.
            is_correct: Optional explicit grading.

        Raises:
            OutOfSequenceAnswer: Not in REVEALED state, or card_id is stale.
            InvalidStatus / InvalidTiming: Propagated from the recorder; state unchanged.
        """
        if self.state is not SequencerState.REVEALED:
            raise OutOfSequenceAnswer(
                f"Cannot answer from state {self.state.value}; flip the card first"
            )
        card = self._check_card(card_id)

        outcome = self._recorder.record(
            self.session.session_id,
            card.card_id,
            status,
            answer_started_at=self._shown_at,
            answered_at=self._clock(),
            user_answer=user_answer,
            is_correct=is_correct,
        )
        self._advance(outcome)
        return outcome

    def skip(self, *, card_id: str | None = None) -> CardOutcome:
        """Skip the current card, recording it as forgot with no timing."""
        if self.is_complete:
            raise OutOfSequenceAnswer("Cannot skip: session is complete")
        card = self._check_card(card_id)

        outcome = self._recorder.record(
            self.session.session_id,
            card.card_id,
            CardStatus.FORGOT,
            answer_started_at=None,
            answered_at=self._clock(),
        )
        self._advance(outcome)
        return outcome

    def _check_card(self, card_id: str | None) -> Card:
        card = self._cards[self.index]
        if card_id is not None and card_id != card.card_id:
            raise OutOfSequenceAnswer(
                f"Answer for card {card_id} but current card is {card.card_id}"
            )
        return card

    def _advance(self, outcome: CardOutcome) -> None:
        self.outcomes.append(outcome)
        self._tally.add(outcome)

        if self.index + 1 < len(self._cards):
            self.index += 1
            self.state = SequencerState.READY
            self._shown_at = self._clock()
        else:
            self.state = SequencerState.COMPLETE
            self._shown_at = None
            logger.info(
                f"Session {self.session.session_id} pass complete "
                f"({len(self.outcomes)}/{len(self._cards)} cards)"
            )
