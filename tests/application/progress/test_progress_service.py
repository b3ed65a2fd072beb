import pytest

from deckoracle.application.progress.service import ProgressService
from deckoracle.application.study.service import StudyService
from deckoracle.domain.errors import DeckNotFound
from deckoracle.domain.progress.models import ProgressQuery
from deckoracle.infrastructure.adapters.memory_store import InMemoryStudyRepository


@pytest.fixture
def repo():
    return InMemoryStudyRepository()


@pytest.fixture
def study(repo, clock):
    return StudyService(repo, clock=clock)


@pytest.fixture
def progress(repo, clock):
    return ProgressService(repo, clock=clock)


async def _run_session(study, user_id, deck_id, cards, statuses):
    seq = await study.open_sequencer(user_id, deck_id, cards, deck_name=deck_id.upper())
    for status in statuses:
        seq.flip()
        await study.save_outcome(seq.answer(status))
    await study.complete(seq.session.session_id)
    return seq.session


@pytest.mark.asyncio
async def test_overview_after_one_session(study, progress, cards):
    await _run_session(study, "u1", "d1", cards, ["easy", "medium", "forgot"])

    overview = await progress.overview("u1")

    assert overview.total_cards_studied == 3
    assert overview.average_accuracy == 66.67
    assert overview.total_sessions == 1
    assert overview.decks_in_progress == 1
    assert overview.streak_days == 1


@pytest.mark.asyncio
async def test_users_are_isolated(study, progress, cards):
    await _run_session(study, "u1", "d1", cards, ["easy", "easy", "easy"])
    await _run_session(study, "u2", "d1", cards, ["forgot", "hard", "forgot"])

    assert (await progress.overview("u1")).average_accuracy == 100.0
    assert (await progress.overview("u2")).average_accuracy == 0.0
    empty = await progress.overview("nobody")
    assert (empty.total_cards_studied, empty.total_sessions) == (0, 0)


@pytest.mark.asyncio
async def test_deck_progress_and_unknown_deck(study, progress, cards):
    await _run_session(study, "u1", "d1", cards[:2], ["easy", "hard"])

    deck = await progress.deck_progress("u1", "d1")
    assert deck.deck_name == "D1"
    assert deck.cards_learned == 1
    assert deck.cards_reviewing == 1

    with pytest.raises(DeckNotFound):
        await progress.deck_progress("u1", "d404")
    # Another user's deck is not visible
    with pytest.raises(DeckNotFound):
        await progress.deck_progress("u2", "d1")


@pytest.mark.asyncio
async def test_streaks_use_clock_today(study, progress, cards, clock):
    for _ in range(3):
        await _run_session(study, "u1", "d1", cards[:1], ["easy"])
        clock.advance(days=1)

    info = await progress.streaks("u1")
    assert info.current_streak == 3
    assert info.longest_streak == 3

    clock.advance(days=2)
    assert (await progress.streaks("u1")).current_streak == 0


@pytest.mark.asyncio
async def test_defaults_from_constructor(repo, study, cards, clock):
    await _run_session(study, "u1", "d1", cards, ["easy", "hard", "medium"])
    clock.advance(days=2)
    await _run_session(study, "u1", "d1", cards[:1], ["easy"])

    progress = ProgressService(
        repo, clock=clock, dense_learning_curve=True, card_performance_limit=2
    )

    assert len(await progress.learning_curve("u1")) == 3
    assert len(await progress.learning_curve("u1", dense=False)) == 2
    assert len(await progress.card_performance("u1")) == 2
    assert len(await progress.card_performance("u1", limit=10)) == 3


@pytest.mark.asyncio
async def test_weekly_and_filters(study, progress, cards, clock):
    await _run_session(study, "u1", "d1", cards, ["easy", "easy", "hard"])
    clock.advance(days=7)
    await _run_session(study, "u1", "d2", cards[:1], ["forgot"])

    weeks = await progress.weekly_progress("u1")
    assert [w.sessions_completed for w in weeks] == [1, 1]

    d2_only = await progress.weekly_progress("u1", ProgressQuery(deck_id="d2"))
    assert len(d2_only) == 1
    assert d2_only[0].week_start == clock.now.date()

    decks = await progress.all_deck_progress("u1")
    assert [d.deck_id for d in decks] == ["d2", "d1"]


@pytest.mark.asyncio
async def test_card_performance_limit_zero_is_rejected(study, progress, cards):
    await _run_session(study, "u1", "d1", cards, ["easy", "hard", "medium"])

    with pytest.raises(ValueError):
        await progress.card_performance("u1", limit=0)
    assert len(await progress.card_performance("u1", limit=None)) == 3


@pytest.mark.asyncio
async def test_deck_view_is_the_users_own_cards(study, progress, cards, clock):
    await _run_session(study, "u1", "d1", cards[:2], ["easy", "easy"])
    clock.advance(hours=1)
    await _run_session(study, "u2", "d1", cards, ["forgot", "forgot", "forgot"])

    mine = await progress.deck_progress("u1", "d1")
    assert mine.total_cards == 2
    assert mine.mastery_percentage == 100.0
    assert mine.deck_name == "D1"

    theirs = await progress.deck_progress("u2", "d1")
    assert theirs.total_cards == 3
    assert theirs.cards_reviewing == 3

    rows = await progress.card_performance("u1")
    assert [r.front for r in rows] == ["uno", "dos"]
