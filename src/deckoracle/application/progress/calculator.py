"""
Progress calculator for deriving analytics from raw study history.

This is a pure computation module with no I/O: identical history and
query always produce identical output, whatever the order of the outcomes.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, timedelta, timezone, tzinfo

from deckoracle.application.utils.time import iter_days, local_day, week_start
from deckoracle.domain.constants import (
    CARD_PERFORMANCE_LIMIT,
    DENSE_CURVE_MAX_DAYS,
    MS_PER_MINUTE,
    PERCENT_PRECISION,
    STREAK_GRACE_DAYS,
    STREAK_HISTORY_DAYS,
)
from deckoracle.domain.progress.models import (
    CardPerformance,
    DeckProgress,
    LearningCurvePoint,
    MasteryPolicy,
    ProgressOverview,
    ProgressQuery,
    StreakInfo,
    StudyHistory,
    WeeklyProgress,
)
from deckoracle.domain.study.models import CardOutcome, Deck

ALL_HISTORY = ProgressQuery()


def accuracy_percent(outcomes: list[CardOutcome]) -> float:
    """Share of correct outcomes as a percentage; 0.0 for no outcomes."""
    if not outcomes:
        return 0.0
    correct = sum(1 for o in outcomes if o.correct)
    return round(correct / len(outcomes) * 100, PERCENT_PRECISION)


def study_minutes(outcomes: Iterable[CardOutcome]) -> float:
    total_ms = sum(o.response_time_ms or 0 for o in outcomes)
    return round(total_ms / MS_PER_MINUTE, PERCENT_PRECISION)


def latest_by_card(outcomes: Iterable[CardOutcome]) -> dict[str, CardOutcome]:
    """Most recent outcome per card (recorded_at, then outcome_id)."""
    latest: dict[str, CardOutcome] = {}
    for outcome in outcomes:
        current = latest.get(outcome.card_id)
        if current is None or outcome.recency_key > current.recency_key:
            latest[outcome.card_id] = outcome
    return latest


class ProgressCalculator:
    """
    Computes overview, deck mastery, card performance, learning curves,
    streaks and weekly rollups from a StudyHistory.

    Stateless and side-effect free.
    """

    def __init__(
        self,
        tz: tzinfo = timezone.utc,
        policy: MasteryPolicy | None = None,
    ):
        """
        Args:
            tz: Reporting timezone; defines calendar-day boundaries.
            policy: Mastery bucketing policy; learned = latest "easy" by default.
        """
        self.tz = tz
        self.policy = policy or MasteryPolicy()

    # ---------- Scoping ----------

    def scoped(self, history: StudyHistory, query: ProgressQuery) -> list[CardOutcome]:
        """Outcomes matching the deck filter and the inclusive date range."""
        result = []
        for outcome in history.outcomes:
            if query.deck_id is not None and history.deck_of(outcome) != query.deck_id:
                continue
            if not query.includes_day(local_day(outcome.recorded_at, self.tz)):
                continue
            result.append(outcome)
        return result

    def _day(self, outcome: CardOutcome) -> date:
        return local_day(outcome.recorded_at, self.tz)

    # ---------- Overview ----------

    def overview(
        self,
        history: StudyHistory,
        query: ProgressQuery = ALL_HISTORY,
        today: date | None = None,
    ) -> ProgressOverview:
        outcomes = self.scoped(history, query)
        decks = {history.deck_of(o) for o in outcomes} - {None}

        streak_days = 0
        if today is not None:
            streak = self.streaks(history, today, ProgressQuery(deck_id=query.deck_id))
            streak_days = streak.current_streak

        return ProgressOverview(
            total_cards_studied=len(outcomes),
            total_study_time_minutes=study_minutes(outcomes),
            average_accuracy=accuracy_percent(outcomes),
            total_sessions=len({o.session_id for o in outcomes}),
            decks_in_progress=len(decks),
            streak_days=streak_days,
        )

    # ---------- Deck mastery ----------

    def deck_progress(
        self,
        history: StudyHistory,
        deck: Deck,
        query: ProgressQuery = ALL_HISTORY,
    ) -> DeckProgress:
        """
        Bucket every card of the deck by its most recent outcome.

        Outcomes for cards no longer in the deck snapshot count towards
        accuracy and last_studied but not towards the buckets.
        """
        deck_query = ProgressQuery(
            deck_id=deck.deck_id, start_date=query.start_date, end_date=query.end_date
        )
        outcomes = self.scoped(history, deck_query)
        latest = latest_by_card(outcomes)

        buckets = {"learned": 0, "reviewing": 0, "new": 0}
        for card_id in dict.fromkeys(deck.card_ids):
            seen = latest.get(card_id)
            buckets[self.policy.bucket(seen.status if seen else None)] += 1

        total = sum(buckets.values())
        mastery = round(buckets["learned"] / total * 100, PERCENT_PRECISION) if total else 0.0

        return DeckProgress(
            deck_id=deck.deck_id,
            deck_name=deck.name,
            total_cards=total,
            cards_learned=buckets["learned"],
            cards_reviewing=buckets["reviewing"],
            cards_new=buckets["new"],
            mastery_percentage=mastery,
            average_accuracy=accuracy_percent(outcomes),
            last_studied=max((o.recorded_at for o in outcomes), default=None),
        )

    def all_deck_progress(
        self, history: StudyHistory, query: ProgressQuery = ALL_HISTORY
    ) -> list[DeckProgress]:
        """Deck progress for every known deck, most recently studied first."""
        decks = [
            d
            for d in history.decks.values()
            if query.deck_id is None or d.deck_id == query.deck_id
        ]
        progress = [self.deck_progress(history, d, query) for d in decks]
        studied = [p for p in progress if p.last_studied is not None]
        never = [p for p in progress if p.last_studied is None]
        studied.sort(key=lambda p: (-p.last_studied.timestamp(), p.deck_id))
        never.sort(key=lambda p: p.deck_id)
        return studied + never

    # ---------- Card performance ----------

    def card_performance(
        self,
        history: StudyHistory,
        query: ProgressQuery = ALL_HISTORY,
        limit: int | None = CARD_PERFORMANCE_LIMIT,
    ) -> list[CardPerformance]:
        """
        Per-card review statistics, worst accuracy first.

        Ties are broken by the most recent review (recently struggled cards
        surface first), then by card_id.
        """
        if limit is not None and limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        by_card: dict[str, list[CardOutcome]] = defaultdict(list)
        for outcome in self.scoped(history, query):
            by_card[outcome.card_id].append(outcome)

        fronts = {c.card_id: c.front for d in history.decks.values() for c in d.cards}

        rows = []
        for card_id, outcomes in by_card.items():
            correct = sum(1 for o in outcomes if o.correct)
            total = len(outcomes)
            accuracy = correct / total
            timed = [o.response_time_ms for o in outcomes if o.response_time_ms is not None]
            rows.append(
                CardPerformance(
                    card_id=card_id,
                    total_reviews=total,
                    correct_count=correct,
                    incorrect_count=total - correct,
                    accuracy_rate=round(accuracy, 4),
                    difficulty_score=round(1 - accuracy, 4),
                    average_response_time_ms=round(sum(timed) / len(timed)) if timed else None,
                    last_reviewed=max(o.recorded_at for o in outcomes),
                    front=fronts.get(card_id),
                )
            )

        rows.sort(key=lambda r: (r.accuracy_rate, -r.last_reviewed.timestamp(), r.card_id))
        if limit is not None:
            rows = rows[:limit]
        return rows

    # ---------- Learning curve ----------

    def learning_curve(
        self,
        history: StudyHistory,
        query: ProgressQuery = ALL_HISTORY,
        dense: bool = False,
    ) -> list[LearningCurvePoint]:
        """
        Daily accuracy / volume / time series in ascending date order.

        Sparse by default; dense fills zero-valued days between the first and
        last day (the query bounds when given). Bounds spanning more than
        DENSE_CURVE_MAX_DAYS are narrowed to the days actually studied.
        """
        by_day: dict[date, list[CardOutcome]] = defaultdict(list)
        for outcome in self.scoped(history, query):
            by_day[self._day(outcome)].append(outcome)

        days = self._dense_days(by_day, query) if dense else sorted(by_day)

        return [
            LearningCurvePoint(
                date=day,
                accuracy=accuracy_percent(by_day.get(day, [])),
                cards_studied=len(by_day.get(day, [])),
                study_time_minutes=study_minutes(by_day.get(day, [])),
            )
            for day in days
        ]

    def _dense_days(
        self, by_day: dict[date, list[CardOutcome]], query: ProgressQuery
    ) -> list[date]:
        first = query.start_date or min(by_day, default=None)
        last = query.end_date or max(by_day, default=None)
        if first is None or last is None or first > last:
            return []
        if (last - first).days >= DENSE_CURVE_MAX_DAYS:
            if not by_day:
                return []
            first = max(first, min(by_day))
            last = min(last, max(by_day))
            if first > last:
                return []
        return list(iter_days(first, last))

    # ---------- Streaks ----------

    def streaks(
        self,
        history: StudyHistory,
        today: date,
        query: ProgressQuery = ALL_HISTORY,
    ) -> StreakInfo:
        """
        Consecutive-day streaks over study days (days with >= 1 outcome).

        The current streak ends today or, within the grace period, on the
        most recent study day before today.
        """
        days = sorted({self._day(o) for o in self.scoped(history, query)})
        if not days:
            return StreakInfo()

        day_set = set(days)
        anchor = None
        for offset in range(STREAK_GRACE_DAYS + 1):
            candidate = today - timedelta(days=offset)
            if candidate in day_set:
                anchor = candidate
                break

        current = 0
        while anchor is not None and anchor in day_set:
            current += 1
            anchor -= timedelta(days=1)

        longest = run = 1
        for prev, day in zip(days, days[1:]):
            run = run + 1 if day - prev == timedelta(days=1) else 1
            longest = max(longest, run)

        window_start = today - timedelta(days=STREAK_HISTORY_DAYS)
        recent = [d for d in reversed(days) if window_start <= d <= today]

        return StreakInfo(
            current_streak=current,
            longest_streak=longest,
            last_study_date=days[-1],
            study_days=recent,
        )

    # ---------- Weekly rollup ----------

    def weekly_progress(
        self, history: StudyHistory, query: ProgressQuery = ALL_HISTORY
    ) -> list[WeeklyProgress]:
        """ISO-week rollups (Monday start) for weeks with at least one outcome."""
        by_week: dict[date, list[CardOutcome]] = defaultdict(list)
        for outcome in self.scoped(history, query):
            by_week[week_start(self._day(outcome))].append(outcome)

        # First week each card was ever studied, ignoring the date range.
        first_seen: dict[str, date] = {}
        for outcome in self.scoped(history, ProgressQuery(deck_id=query.deck_id)):
            week = week_start(self._day(outcome))
            if outcome.card_id not in first_seen or week < first_seen[outcome.card_id]:
                first_seen[outcome.card_id] = week

        rows = []
        for week in sorted(by_week):
            outcomes = by_week[week]
            completed = {
                o.session_id
                for o in outcomes
                if o.session_id in history.sessions
                and history.sessions[o.session_id].is_complete
            }
            new_cards = {o.card_id for o in outcomes if first_seen.get(o.card_id) == week}
            rows.append(
                WeeklyProgress(
                    week_start=week,
                    total_cards_studied=len(outcomes),
                    average_accuracy=accuracy_percent(outcomes),
                    total_study_time_minutes=study_minutes(outcomes),
                    sessions_completed=len(completed),
                    new_cards_learned=len(new_cards),
                )
            )
        return rows
