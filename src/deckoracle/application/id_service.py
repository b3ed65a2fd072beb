"""Identifier generation for sessions and outcomes."""

from ulid import ULID

from deckoracle.domain.constants import OUTCOME_ID_PREFIX, SESSION_ID_PREFIX


def generate_session_id() -> str:
    """Generate a time-sortable session ID using ULID."""
    return f"{SESSION_ID_PREFIX}{ULID()}"


def generate_outcome_id() -> str:
    return f"{OUTCOME_ID_PREFIX}{ULID()}"
