"""
Ports (interfaces) for study-history persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from .models import CardOutcome, Deck, StudySession


class StudyRepository(ABC):
    """
    Port for storing and reading sessions, outcomes and deck snapshots.

    Implementations:
        - InMemoryStudyRepository: Process-local dictionaries.
        - JsonFileStudyRepository: Same, persisted to a JSON document.
    """

    @abstractmethod
    async def add_session(self, session: StudySession) -> None:
        pass

    @abstractmethod
    async def save_session(self, session: StudySession) -> None:
        """Replace a stored session (used for completion)."""
        pass

    @abstractmethod
    async def get_session(self, session_id: str) -> StudySession | None:
        pass

    @abstractmethod
    async def list_sessions(
        self, user_id: str, limit: int | None = None
    ) -> list[StudySession]:
        """
        Fetch a user's sessions.

        Returns:
            Sessions ordered by created_at descending, truncated to limit.
        """
        pass

    @abstractmethod
    async def add_outcome(self, outcome: CardOutcome) -> None:
        pass

    @abstractmethod
    async def list_outcomes(self, session_ids: Iterable[str]) -> list[CardOutcome]:
        """
        Fetch outcomes belonging to the given sessions.

        Returns:
            Outcomes ordered by recorded_at ascending.
        """
        pass

    @abstractmethod
    async def save_deck(self, deck: Deck) -> None:
        pass

    @abstractmethod
    async def get_deck(self, deck_id: str) -> Deck | None:
        pass

    @abstractmethod
    async def list_decks(self, deck_ids: Iterable[str]) -> list[Deck]:
        pass
