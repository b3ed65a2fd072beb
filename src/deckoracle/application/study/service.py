"""
Study Service — Application layer orchestrator.

Opens sessions, records answers and finalizes sessions through the
StudyRepository port.
"""

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime

from deckoracle.application.id_service import generate_session_id
from deckoracle.application.utils.time import Clock, utc_now
from deckoracle.domain.constants import DEFAULT_STUDY_MODE
from deckoracle.domain.errors import CardNotInDeck, InvalidTiming, SessionNotFound
from deckoracle.domain.study.models import (
    Card,
    CardOutcome,
    CardStatus,
    Deck,
    SessionSummary,
    StudySession,
)
from deckoracle.domain.study.ports import StudyRepository

from .aggregator import SessionAggregator
from .recorder import AnswerRecorder
from .sequencer import SessionSequencer

logger = logging.getLogger(__name__)


class StudyService:
    """
    Application service for the study-session lifecycle.

    Follows Dependency Inversion: depends on the StudyRepository abstraction,
    not concrete adapter implementations.
    """

    def __init__(
        self,
        repo: StudyRepository,
        recorder: AnswerRecorder | None = None,
        aggregator: SessionAggregator | None = None,
        clock: Clock = utc_now,
    ):
        self._repo = repo
        self._clock = clock
        self._recorder = recorder or AnswerRecorder(clock=clock)
        self._aggregator = aggregator or SessionAggregator(clock=clock)
        self._complete_lock = asyncio.Lock()

    async def create_session(
        self,
        user_id: str,
        deck_id: str,
        cards: Sequence[Card],
        study_mode: str | None = None,
        deck_name: str = "",
    ) -> StudySession:
        """
        Open a session over an ordered card list.

        The session keeps the ids of its cards; answers are validated against
        them. The cards are also merged into the shared deck catalog, which
        only ever grows, so another user opening the same deck id with a
        different list cannot shrink it.
        """
        ordered = tuple(cards)
        catalog = await self._repo.get_deck(deck_id)
        merged = (catalog or Deck(deck_id=deck_id)).merged_with(ordered, name=deck_name)
        if merged != catalog:
            await self._repo.save_deck(merged)
        session = StudySession(
            session_id=generate_session_id(),
            user_id=user_id,
            deck_id=deck_id,
            created_at=self._clock(),
            study_mode=study_mode or DEFAULT_STUDY_MODE,
            total_cards=len(ordered),
            card_ids=tuple(c.card_id for c in ordered),
        )
        await self._repo.add_session(session)
        logger.info(
            f"Started session {session.session_id} for user {user_id} "
            f"on deck {deck_id} ({len(ordered)} cards)"
        )
        return session

    async def open_sequencer(
        self,
        user_id: str,
        deck_id: str,
        cards: Sequence[Card],
        study_mode: str | None = None,
        deck_name: str = "",
    ) -> SessionSequencer:
        """Create a session and return a sequencer positioned on its first card."""
        session = await self.create_session(user_id, deck_id, cards, study_mode, deck_name)
        return SessionSequencer(session, cards, recorder=self._recorder, clock=self._clock)

    async def get_session(self, session_id: str) -> StudySession:
        session = await self._repo.get_session(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    async def list_sessions(self, user_id: str, limit: int | None = 50) -> list[StudySession]:
        if limit is not None and limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        return await self._repo.list_sessions(user_id, limit=limit)

    async def record_answer(
        self,
        session_id: str,
        card_id: str,
        status: CardStatus | str,
        answer_started_at: datetime | None = None,
        answered_at: datetime | None = None,
        response_time_ms: int | None = None,
        user_answer: str | None = None,
        is_correct: bool | None = None,
    ) -> CardOutcome:
        """
        Validate and persist one answer outside a sequencer.

        Timing comes either from answer_started_at/answered_at or from a caller
        measured response_time_ms, never both.

        Raises:
            SessionNotFound: Unknown session.
            CardNotInDeck: Card is not one the session was opened with.
            InvalidTiming: Both timing inputs given, or rejected by the recorder.
            InvalidStatus: Rejected by the recorder.
        """
        session = await self.get_session(session_id)
        if not session.has_card(card_id):
            raise CardNotInDeck(card_id, session.deck_id)
        if answer_started_at is not None and response_time_ms is not None:
            raise InvalidTiming("Give either answer_started_at or response_time_ms, not both")

        if answer_started_at is not None:
            outcome = self._recorder.record(
                session_id,
                card_id,
                status,
                answer_started_at=answer_started_at,
                answered_at=answered_at,
                user_answer=user_answer,
                is_correct=is_correct,
            )
        else:
            outcome = self._recorder.record_elapsed(
                session_id,
                card_id,
                status,
                response_time_ms=response_time_ms,
                answered_at=answered_at,
                user_answer=user_answer,
                is_correct=is_correct,
            )
        await self._repo.add_outcome(outcome)
        return outcome

    async def save_outcome(self, outcome: CardOutcome) -> None:
        """Persist an outcome produced by a sequencer."""
        await self._repo.add_outcome(outcome)

    async def get_session_outcomes(self, session_id: str) -> list[CardOutcome]:
        await self.get_session(session_id)
        return await self._repo.list_outcomes([session_id])

    async def summarize(self, session_id: str) -> SessionSummary:
        outcomes = await self.get_session_outcomes(session_id)
        return self._aggregator.summarize(outcomes)

    async def complete(self, session_id: str) -> StudySession:
        """
        Finalize a session. Idempotent: a second call returns the first
        completion timestamp.
        """
        async with self._complete_lock:
            session = await self.get_session(session_id)
            completed = self._aggregator.complete(session)
            if completed is not session:
                await self._repo.save_session(completed)
            return completed
