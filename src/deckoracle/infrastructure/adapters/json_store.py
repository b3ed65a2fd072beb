"""
JSON file Study Repository — Infrastructure adapter for a local history file.

Implements StudyRepository by keeping everything in memory and rewriting a
single JSON document after each mutation.
"""

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

from deckoracle.domain.study.models import Card, CardOutcome, CardStatus, Deck, StudySession

from .memory_store import InMemoryStudyRepository

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def session_to_dict(session: StudySession) -> dict[str, Any]:
    return {
        "session_id": session.session_id,
        "user_id": session.user_id,
        "deck_id": session.deck_id,
        "study_mode": session.study_mode,
        "created_at": _ts(session.created_at),
        "completed_at": _ts(session.completed_at),
        "total_cards": session.total_cards,
        "card_ids": list(session.card_ids),
    }


def session_from_dict(data: dict[str, Any]) -> StudySession:
    return StudySession(
        session_id=data["session_id"],
        user_id=data["user_id"],
        deck_id=data["deck_id"],
        study_mode=data.get("study_mode", "standard"),
        created_at=_parse_ts(data["created_at"]),
        completed_at=_parse_ts(data.get("completed_at")),
        total_cards=data.get("total_cards", 0),
        card_ids=tuple(data.get("card_ids", ())),
    )


def outcome_to_dict(outcome: CardOutcome) -> dict[str, Any]:
    return {
        "outcome_id": outcome.outcome_id,
        "session_id": outcome.session_id,
        "card_id": outcome.card_id,
        "status": outcome.status.value,
        "recorded_at": _ts(outcome.recorded_at),
        "response_time_ms": outcome.response_time_ms,
        "user_answer": outcome.user_answer,
        "is_correct": outcome.is_correct,
    }


def outcome_from_dict(data: dict[str, Any]) -> CardOutcome:
    return CardOutcome(
        outcome_id=data["outcome_id"],
        session_id=data["session_id"],
        card_id=data["card_id"],
        status=CardStatus.parse(data["status"]),
        recorded_at=_parse_ts(data["recorded_at"]),
        response_time_ms=data.get("response_time_ms"),
        user_answer=data.get("user_answer"),
        is_correct=data.get("is_correct"),
    )


def deck_to_dict(deck: Deck) -> dict[str, Any]:
    return {
        "deck_id": deck.deck_id,
        "name": deck.name,
        "cards": [
            {"card_id": c.card_id, "front": c.front, "back": c.back, "position": c.position}
            for c in deck.cards
        ],
    }


def deck_from_dict(data: dict[str, Any]) -> Deck:
    return Deck(
        deck_id=data["deck_id"],
        name=data.get("name", ""),
        cards=tuple(
            Card(
                card_id=c["card_id"],
                front=c.get("front", ""),
                back=c.get("back", ""),
                position=c.get("position", 0),
            )
            for c in data.get("cards", [])
        ),
    )


class JsonFileStudyRepository(InMemoryStudyRepository):
    """
    Persists study history to a JSON file.

    The file is loaded once on construction and rewritten atomically
    (temp file + rename) whenever the history changes.
    """

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            logger.info(f"No history file at {self.path}; starting empty")
            return

        data = json.loads(self.path.read_text(encoding="utf-8"))
        version = data.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported history file version {version} in {self.path}")

        for raw in data.get("sessions", []):
            session = session_from_dict(raw)
            self.sessions[session.session_id] = session
        self.outcomes = [outcome_from_dict(raw) for raw in data.get("outcomes", [])]
        for raw in data.get("decks", []):
            deck = deck_from_dict(raw)
            self.decks[deck.deck_id] = deck

        logger.info(
            f"Loaded {len(self.sessions)} sessions and {len(self.outcomes)} outcomes "
            f"from {self.path}"
        )

    def _changed(self) -> None:
        payload = {
            "version": FORMAT_VERSION,
            "sessions": [session_to_dict(s) for s in self.sessions.values()],
            "outcomes": [outcome_to_dict(o) for o in self.outcomes],
            "decks": [deck_to_dict(d) for d in self.decks.values()],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".history-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp, self.path)
        except Exception:
            Path(tmp).unlink(missing_ok=True)
            raise
