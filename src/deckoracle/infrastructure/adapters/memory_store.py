"""
In-memory Study Repository — Infrastructure adapter backed by dictionaries.

Used by tests, the HTTP server in ephemeral mode, and as the base for the
JSON file adapter.
"""

import logging
from collections.abc import Iterable

from deckoracle.domain.study.models import CardOutcome, Deck, StudySession
from deckoracle.domain.study.ports import StudyRepository

logger = logging.getLogger(__name__)


class InMemoryStudyRepository(StudyRepository):
    """
    Append-mostly store for sessions, outcomes and deck snapshots.

    Outcomes are append-only; duplicates for the same (session, card) pair
    are kept and resolved by the analytics layer.
    """

    def __init__(self):
        self.sessions: dict[str, StudySession] = {}
        self.outcomes: list[CardOutcome] = []
        self.decks: dict[str, Deck] = {}

    async def add_session(self, session: StudySession) -> None:
        if session.session_id in self.sessions:
            raise ValueError(f"Duplicate session id: {session.session_id}")
        self.sessions[session.session_id] = session
        self._changed()

    async def save_session(self, session: StudySession) -> None:
        self.sessions[session.session_id] = session
        self._changed()

    async def get_session(self, session_id: str) -> StudySession | None:
        return self.sessions.get(session_id)

    async def list_sessions(
        self, user_id: str, limit: int | None = None
    ) -> list[StudySession]:
        owned = [s for s in self.sessions.values() if s.user_id == user_id]
        owned.sort(key=lambda s: (s.created_at, s.session_id), reverse=True)
        return owned[:limit] if limit is not None else owned

    async def add_outcome(self, outcome: CardOutcome) -> None:
        self.outcomes.append(outcome)
        self._changed()

    async def list_outcomes(self, session_ids: Iterable[str]) -> list[CardOutcome]:
        wanted = set(session_ids)
        selected = [o for o in self.outcomes if o.session_id in wanted]
        return sorted(selected, key=lambda o: o.recency_key)

    async def save_deck(self, deck: Deck) -> None:
        self.decks[deck.deck_id] = deck
        self._changed()

    async def get_deck(self, deck_id: str) -> Deck | None:
        return self.decks.get(deck_id)

    async def list_decks(self, deck_ids: Iterable[str]) -> list[Deck]:
        return [self.decks[d] for d in sorted(set(deck_ids)) if d in self.decks]

    def _changed(self) -> None:
        """Hook for persistent subclasses."""
