from datetime import datetime, timedelta, timezone

import pytest

from deckoracle.domain.study.models import Card, CardOutcome, CardStatus, StudySession

# Monday, 2 March 2026, noon UTC
T0 = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock; advance it explicitly between calls."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cards():
    return [
        Card("a", "uno", "one", 0),
        Card("b", "dos", "two", 1),
        Card("c", "tres", "three", 2),
    ]


@pytest.fixture
def session():
    return StudySession(session_id="ses_1", user_id="u1", deck_id="d1", created_at=T0)


@pytest.fixture
def make_outcome():
    """Factory for outcomes with sensible defaults."""
    counter = iter(range(1, 10_000))

    def _make(
        card_id: str,
        status: CardStatus | str,
        at: datetime = T0,
        session_id: str = "ses_1",
        response_time_ms: int | None = 1000,
        is_correct: bool | None = None,
    ) -> CardOutcome:
        status = CardStatus(status)
        return CardOutcome(
            outcome_id=f"out_{next(counter):05d}",
            session_id=session_id,
            card_id=card_id,
            status=status,
            recorded_at=at,
            response_time_ms=response_time_ms,
            is_correct=status.counts_as_correct if is_correct is None else is_correct,
        )

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/history files
    monkeypatch.setenv("HOME", str(home))
    for key in ("DECKORACLE_BACKEND", "DECKORACLE_TIMEZONE", "DECKORACLE_DATA_FILE"):
        monkeypatch.delenv(key, raising=False)
    return home
