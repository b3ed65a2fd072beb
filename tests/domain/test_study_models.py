from datetime import datetime, timedelta, timezone

import pytest

from deckoracle.domain.errors import InvalidStatus
from deckoracle.domain.progress.models import MasteryPolicy, ProgressQuery, StudyHistory
from deckoracle.domain.study.models import (
    Card,
    CardOutcome,
    CardStatus,
    Deck,
    SessionTally,
    StudySession,
)

T0 = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


class TestCardStatus:
    def test_parse_accepts_enum_and_strings(self):
        assert CardStatus.parse(CardStatus.HARD) is CardStatus.HARD
        assert CardStatus.parse("easy") is CardStatus.EASY
        assert CardStatus.parse(" Forgot ") is CardStatus.FORGOT

    @pytest.mark.parametrize("value", ["skip", "", "wrong", None, 3])
    def test_parse_rejects_anything_else(self, value):
        with pytest.raises(InvalidStatus):
            CardStatus.parse(value)

    def test_correctness_convention(self):
        assert CardStatus.EASY.counts_as_correct
        assert CardStatus.MEDIUM.counts_as_correct
        assert not CardStatus.HARD.counts_as_correct
        assert not CardStatus.FORGOT.counts_as_correct


def test_outcome_correct_falls_back_to_status(make_outcome):
    legacy = CardOutcome("out_1", "ses_1", "a", CardStatus.MEDIUM, recorded_at=T0)
    assert legacy.correct is True

    graded = make_outcome("a", "easy", is_correct=False)
    assert graded.correct is False


def test_session_tally_keeps_latest_per_card(make_outcome):
    tally = SessionTally()
    tally.add(make_outcome("a", "forgot", at=T0 + timedelta(minutes=5)))
    tally.add(make_outcome("a", "easy", at=T0))

    summary = tally.summary()
    assert summary.total == 1
    assert summary.forgot == 1
    assert summary.easy == 0


def test_deck_membership():
    deck = Deck("d1", "Numbers", (Card("a", "uno", "one"), Card("b", "dos", "two")))
    assert deck.card_ids == ["a", "b"]
    assert deck.has_card("b")
    assert not deck.has_card("z")


def test_deck_merge_only_grows():
    deck = Deck("d1", "Numbers", (Card("a", "uno", "one"), Card("b", "dos", "two")))

    merged = deck.merged_with([Card("b", "DOS", "two"), Card("c", "tres", "three")])
    assert merged.card_ids == ["a", "b", "c"]
    assert merged.cards[1].front == "DOS"
    assert merged.name == "Numbers"

    assert deck.merged_with([]) == deck
    assert deck.merged_with([], name="Spanish").name == "Spanish"


def test_history_for_user_builds_deck_views():
    catalog = {"d1": Deck("d1", "Numbers", (Card("a", "uno", "one"), Card("b", "dos", "two")))}
    sessions = [
        StudySession("s2", "u1", "d1", T0 + timedelta(days=1), card_ids=("b", "x")),
        StudySession("s1", "u1", "d1", T0, card_ids=("a", "b")),
        StudySession("s3", "u1", "d2", T0, card_ids=()),
    ]

    history = StudyHistory.for_user(sessions, [], catalog)

    assert list(history.sessions) == ["s1", "s3", "s2"]
    assert history.decks["d1"].card_ids == ["a", "b", "x"]
    assert history.decks["d1"].name == "Numbers"
    assert history.decks["d1"].cards[0].front == "uno"
    assert history.decks["d2"].cards == ()


def test_mastery_policy_buckets():
    policy = MasteryPolicy()
    assert policy.bucket(None) == "new"
    assert policy.bucket(CardStatus.EASY) == "learned"
    assert policy.bucket(CardStatus.MEDIUM) == "reviewing"
    assert policy.bucket(CardStatus.HARD) == "reviewing"
    assert policy.bucket(CardStatus.FORGOT) == "reviewing"

    lenient = MasteryPolicy(frozenset({CardStatus.EASY, CardStatus.MEDIUM}))
    assert lenient.bucket(CardStatus.MEDIUM) == "learned"


def test_progress_query_range_is_inclusive():
    start, end = T0.date(), T0.date().replace(day=5)
    query = ProgressQuery(start_date=start, end_date=end)
    assert query.includes_day(start)
    assert query.includes_day(end)
    assert not query.includes_day(end.replace(day=6))
    assert ProgressQuery().includes_day(start)
