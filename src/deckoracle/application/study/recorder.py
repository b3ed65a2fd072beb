"""
Answer recorder: turns a raw user action into a CardOutcome.

Stateless apart from its collaborators; safe to call concurrently for
different cards.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from deckoracle.application.id_service import generate_outcome_id
from deckoracle.application.utils.time import Clock, is_aware, utc_now
from deckoracle.domain.errors import InvalidTiming
from deckoracle.domain.study.models import CardOutcome, CardStatus

logger = logging.getLogger(__name__)

OutcomeSink = Callable[[CardOutcome], None]


class AnswerRecorder:
    """
    Validates, timestamps and times each per-card outcome.

    Every successful call hands exactly one outcome to the optional sink
    (the persistence collaborator) and returns it.
    """

    def __init__(self, sink: OutcomeSink | None = None, clock: Clock = utc_now):
        """
        Args:
            sink: Callable receiving each recorded outcome.
            clock: Source of "now" for answered_at when the caller omits it.
        """
        self._sink = sink
        self._clock = clock

    def record(
        self,
        session_id: str,
        card_id: str,
        status: CardStatus | str,
        answer_started_at: datetime | None = None,
        answered_at: datetime | None = None,
        user_answer: str | None = None,
        is_correct: bool | None = None,
    ) -> CardOutcome:
        """
        Record one answer.

        Args:
            session_id: Session the card was studied in.
            card_id: Answered card.
            status: One of easy/medium/hard/forgot.
            answer_started_at: When the card was shown. None means no timing
                was measured (skips), giving response_time_ms=None.
            answered_at: When the answer was given; defaults to now.
            user_answer: Optional typed answer.
            is_correct: Explicit grading; defaults to status in {easy, medium}.

        Raises:
            InvalidStatus: Unknown status value.
            InvalidTiming: Naive timestamps or answered_at before answer_started_at.
        """
        parsed = CardStatus.parse(status)
        answered_at = answered_at or self._clock()
        if not is_aware(answered_at):
            raise InvalidTiming("answered_at must be timezone-aware")

        response_time_ms = None
        if answer_started_at is not None:
            if not is_aware(answer_started_at):
                raise InvalidTiming("answer_started_at must be timezone-aware")
            elapsed = answered_at - answer_started_at
            response_time_ms = int(elapsed.total_seconds() * 1000)
            if response_time_ms < 0:
                raise InvalidTiming(
                    f"Answer for card {card_id} precedes its start by {-response_time_ms} ms"
                )

        return self._emit(
            session_id, card_id, parsed, answered_at, response_time_ms, user_answer, is_correct
        )

    def record_elapsed(
        self,
        session_id: str,
        card_id: str,
        status: CardStatus | str,
        response_time_ms: int | None = None,
        answered_at: datetime | None = None,
        user_answer: str | None = None,
        is_correct: bool | None = None,
    ) -> CardOutcome:
        """
        Record an answer whose latency was measured by the caller.

        Used by collaborators (e.g. HTTP clients) that only report a duration.
        """
        parsed = CardStatus.parse(status)
        if response_time_ms is not None and response_time_ms < 0:
            raise InvalidTiming(f"Negative response time: {response_time_ms} ms")
        answered_at = answered_at or self._clock()
        if not is_aware(answered_at):
            raise InvalidTiming("answered_at must be timezone-aware")

        return self._emit(
            session_id, card_id, parsed, answered_at, response_time_ms, user_answer, is_correct
        )

    def _emit(
        self,
        session_id: str,
        card_id: str,
        status: CardStatus,
        answered_at: datetime,
        response_time_ms: int | None,
        user_answer: str | None,
        is_correct: bool | None,
    ) -> CardOutcome:
        outcome = CardOutcome(
            outcome_id=generate_outcome_id(),
            session_id=session_id,
            card_id=card_id,
            status=status,
            recorded_at=answered_at,
            response_time_ms=response_time_ms,
            user_answer=user_answer,
            is_correct=status.counts_as_correct if is_correct is None else is_correct,
        )
        logger.debug(f"Recorded {status.value} for card {card_id} in {session_id}")
        if self._sink is not None:
            self._sink(outcome)
        return outcome
