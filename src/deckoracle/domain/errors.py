"""
Domain errors for the study core.

Validation errors are recoverable: the rejected operation leaves every
prior piece of state untouched and the caller may retry.
"""


class DeckOracleError(Exception):
    """Base class for all DeckOracle errors."""


class InvalidStatus(DeckOracleError, ValueError):
    """An outcome status outside easy/medium/hard/forgot."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid card status: {value!r}")


class InvalidTiming(DeckOracleError, ValueError):
    """Response-time inputs that would produce a negative or meaningless duration."""


class OutOfSequenceAnswer(DeckOracleError):
    """An answer (or flip/skip) the sequencer cannot accept in its current state."""


class SessionNotFound(DeckOracleError, LookupError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Study session not found: {session_id}")


class CardNotInDeck(DeckOracleError):
    def __init__(self, card_id: str, deck_id: str):
        self.card_id = card_id
        self.deck_id = deck_id
        super().__init__(f"Card {card_id} is not in study deck {deck_id}")


class DeckNotFound(DeckOracleError, LookupError):
    def __init__(self, deck_id: str):
        self.deck_id = deck_id
        super().__init__(f"No study history for deck: {deck_id}")
