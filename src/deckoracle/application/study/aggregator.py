"""
Session aggregator: folds outcomes into a SessionSummary and finalizes sessions.

This is a pure computation module with no I/O.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace

from deckoracle.application.utils.time import Clock, utc_now
from deckoracle.domain.study.models import (
    CardOutcome,
    SessionSummary,
    SessionTally,
    StudySession,
)

logger = logging.getLogger(__name__)


class SessionAggregator:
    """
    Stateless fold over a session's outcomes.

    summarize() is order-independent and matches the incremental SessionTally
    for the same outcome set; duplicates per card resolve to the most recent.
    """

    def __init__(self, clock: Clock = utc_now):
        self._clock = clock

    def summarize(self, outcomes: Iterable[CardOutcome]) -> SessionSummary:
        tally = SessionTally()
        for outcome in outcomes:
            tally.add(outcome)
        return tally.summary()

    def complete(self, session: StudySession) -> StudySession:
        """
        Stamp the completion time exactly once.

        Completing an already complete session returns it unchanged.
        """
        if session.completed_at is not None:
            logger.debug(f"Session {session.session_id} already completed")
            return session
        completed = replace(session, completed_at=self._clock())
        logger.info(f"Completed session {session.session_id}")
        return completed
