"""
Progress Service — Application layer orchestrator.

Loads a user's study history from the repository and hands it to the
ProgressCalculator.
"""

import logging
from datetime import date

from deckoracle.application.utils.time import Clock, local_day, utc_now
from deckoracle.domain.constants import CARD_PERFORMANCE_LIMIT
from deckoracle.domain.errors import DeckNotFound
from deckoracle.domain.progress.models import (
    CardPerformance,
    DeckProgress,
    LearningCurvePoint,
    ProgressOverview,
    ProgressQuery,
    StreakInfo,
    StudyHistory,
    WeeklyProgress,
)
from deckoracle.domain.study.ports import StudyRepository

from .calculator import ALL_HISTORY, ProgressCalculator

logger = logging.getLogger(__name__)


class ProgressService:
    """
    Read-only analytics over a user's sessions and outcomes.

    Follows Dependency Inversion: depends on the StudyRepository abstraction,
    not concrete adapter implementations.
    """

    def __init__(
        self,
        repo: StudyRepository,
        calculator: ProgressCalculator | None = None,
        clock: Clock = utc_now,
        dense_learning_curve: bool = False,
        card_performance_limit: int = CARD_PERFORMANCE_LIMIT,
    ):
        """
        Args:
            repo: The repository (port) for fetching history.
            calculator: Optional custom calculator; uses default if not provided.
            clock: Source of "now", used to find today's date for streaks.
            dense_learning_curve: Default fill mode for learning curves.
            card_performance_limit: Default cap on card performance rows.
        """
        self._repo = repo
        self._calc = calculator or ProgressCalculator()
        self._clock = clock
        self._dense = dense_learning_curve
        self._card_limit = card_performance_limit

    async def load_history(self, user_id: str) -> StudyHistory:
        sessions = await self._repo.list_sessions(user_id)
        by_id = {s.session_id: s for s in sessions}
        outcomes = await self._repo.list_outcomes(list(by_id)) if by_id else []
        deck_ids = {s.deck_id for s in sessions}
        decks = await self._repo.list_decks(deck_ids) if deck_ids else []
        logger.debug(
            f"Loaded history for {user_id}: {len(sessions)} sessions, {len(outcomes)} outcomes"
        )
        return StudyHistory.for_user(sessions, outcomes, {d.deck_id: d for d in decks})

    def today(self) -> date:
        return local_day(self._clock(), self._calc.tz)

    async def overview(
        self, user_id: str, query: ProgressQuery = ALL_HISTORY
    ) -> ProgressOverview:
        history = await self.load_history(user_id)
        return self._calc.overview(history, query, today=self.today())

    async def deck_progress(
        self, user_id: str, deck_id: str, query: ProgressQuery = ALL_HISTORY
    ) -> DeckProgress:
        history = await self.load_history(user_id)
        deck = history.decks.get(deck_id)
        if deck is None:
            raise DeckNotFound(deck_id)
        return self._calc.deck_progress(history, deck, query)

    async def all_deck_progress(
        self, user_id: str, query: ProgressQuery = ALL_HISTORY
    ) -> list[DeckProgress]:
        history = await self.load_history(user_id)
        return self._calc.all_deck_progress(history, query)

    async def card_performance(
        self,
        user_id: str,
        query: ProgressQuery = ALL_HISTORY,
        limit: int | None = None,
    ) -> list[CardPerformance]:
        history = await self.load_history(user_id)
        if limit is None:
            limit = self._card_limit
        return self._calc.card_performance(history, query, limit=limit)

    async def learning_curve(
        self,
        user_id: str,
        query: ProgressQuery = ALL_HISTORY,
        dense: bool | None = None,
    ) -> list[LearningCurvePoint]:
        history = await self.load_history(user_id)
        return self._calc.learning_curve(
            history, query, dense=self._dense if dense is None else dense
        )

    async def streaks(self, user_id: str, query: ProgressQuery = ALL_HISTORY) -> StreakInfo:
        history = await self.load_history(user_id)
        return self._calc.streaks(history, self.today(), query)

    async def weekly_progress(
        self, user_id: str, query: ProgressQuery = ALL_HISTORY
    ) -> list[WeeklyProgress]:
        history = await self.load_history(user_id)
        return self._calc.weekly_progress(history, query)
