from datetime import date, timedelta

import pytest

from taskdefender.models import AppState, FocusSession, Task
from taskdefender.urgency import (
    AT_RISK_RATIO,
    CRITICAL_RATIO,
    RECENT_TASKS_LIMIT,
    UrgencyTier,
    classify,
    dashboard_summary,
    overdue_count,
    progress_percent,
    progress_ratio,
    recent_tasks,
    status_counts,
    tasks_by_tier,
    tasks_created_on,
    tier_counts,
)

from helpers import T0

WINDOW = timedelta(hours=10)


def make_task(task_id="1", status="todo", due=T0 + WINDOW, created=T0, completed=None, title="Task"):
    return Task(
        id=task_id,
        title=title,
        status=status,
        due_date=due,
        created_at=created,
        completed_at=completed,
    )


class TestThresholdConstants:
    def test_named_cutoffs(self):
        assert CRITICAL_RATIO == 0.5
        assert AT_RISK_RATIO == 0.85
        assert RECENT_TASKS_LIMIT == 5


class TestTierBoundaries:
    """Created at T0, due at T0 + 10h."""

    @pytest.mark.parametrize(
        "elapsed, expected",
        [
            (timedelta(0), UrgencyTier.NORMAL),
            (timedelta(hours=4, minutes=59, seconds=59), UrgencyTier.NORMAL),
            (timedelta(hours=5), UrgencyTier.CRITICAL),
            (timedelta(hours=8, minutes=29, seconds=59), UrgencyTier.CRITICAL),
            (timedelta(hours=8, minutes=30), UrgencyTier.AT_RISK),
            (timedelta(hours=10), UrgencyTier.AT_RISK),
            (timedelta(hours=10, seconds=1), UrgencyTier.OVERDUE),
            (timedelta(days=30), UrgencyTier.OVERDUE),
        ],
    )
    def test_tier_for_elapsed_time(self, elapsed, expected):
        assert classify(make_task(), T0 + elapsed).tier is expected

    def test_ratio_exact_at_cutoffs(self):
        task = make_task()
        assert progress_ratio(task, T0 + timedelta(hours=5)) == CRITICAL_RATIO
        assert progress_ratio(task, T0 + timedelta(hours=8, minutes=30)) == AT_RISK_RATIO


class TestNoTier:
    @pytest.mark.parametrize(
        "elapsed",
        [timedelta(0), timedelta(hours=6), timedelta(hours=9), timedelta(days=5)],
    )
    def test_done_is_always_none(self, elapsed):
        task = make_task(status="done", completed=T0 + timedelta(hours=1))
        result = classify(task, T0 + elapsed)
        assert result.tier is UrgencyTier.NONE
        assert result.ratio is None
        assert result.percent is None

    def test_no_due_date_is_none(self):
        task = make_task(due=None)
        assert classify(task, T0 + timedelta(days=365)).tier is UrgencyTier.NONE
        assert progress_ratio(task, T0) is None

    def test_blocked_is_classified_like_open_tasks(self):
        task = make_task(status="blocked")
        assert classify(task, T0 + timedelta(hours=9)).tier is UrgencyTier.AT_RISK


class TestDegenerateWindow:
    def test_due_equal_to_creation_is_at_risk(self):
        task = make_task(due=T0)
        result = classify(task, T0)
        assert result.tier is UrgencyTier.AT_RISK
        assert result.ratio == 1.0
        assert result.percent == 100.0

    def test_due_equal_to_creation_then_passed_is_overdue(self):
        task = make_task(due=T0)
        assert classify(task, T0 + timedelta(seconds=1)).tier is UrgencyTier.OVERDUE


class TestPercent:
    def test_percent_is_clamped(self):
        assert progress_percent(None) is None
        assert progress_percent(-0.3) == 0.0
        assert progress_percent(0.42) == pytest.approx(42.0)
        assert progress_percent(3.0) == 100.0

    def test_percent_does_not_change_tier(self):
        result = classify(make_task(), T0 + timedelta(hours=20))
        assert result.tier is UrgencyTier.OVERDUE
        assert result.ratio == pytest.approx(2.0)
        assert result.percent == 100.0

    def test_before_creation_is_normal_with_zero_percent(self):
        result = classify(make_task(), T0 - timedelta(hours=1))
        assert result.tier is UrgencyTier.NORMAL
        assert result.percent == 0.0


class TestAggregates:
    def build(self):
        return [
            make_task("a"),                                          # normal at +2h
            make_task("b", created=T0 - timedelta(hours=6)),         # 8/16 -> critical
            make_task("c", created=T0 - timedelta(hours=8)),         # 10/18 -> critical
            make_task("d", due=T0 + timedelta(hours=1)),             # overdue
            make_task("e", due=None),                                # none
            make_task("f", status="done", completed=T0),             # none
            make_task("g", due=T0 + timedelta(hours=2, minutes=20)), # 2/2.33 -> at-risk
        ]

    def test_tasks_by_tier_has_every_tier(self):
        groups = tasks_by_tier(self.build(), T0 + timedelta(hours=2))
        assert set(groups) == set(UrgencyTier)
        assert [t.id for t in groups[UrgencyTier.NORMAL]] == ["a"]
        assert [t.id for t in groups[UrgencyTier.CRITICAL]] == ["b", "c"]
        assert [t.id for t in groups[UrgencyTier.AT_RISK]] == ["g"]
        assert [t.id for t in groups[UrgencyTier.OVERDUE]] == ["d"]
        assert [t.id for t in groups[UrgencyTier.NONE]] == ["e", "f"]

    def test_counts(self):
        now = T0 + timedelta(hours=2)
        counts = tier_counts(self.build(), now)
        assert counts[UrgencyTier.CRITICAL] == 2
        assert counts[UrgencyTier.NONE] == 2
        assert overdue_count(self.build(), now) == 1

    def test_empty_collection(self):
        assert overdue_count([], T0) == 0
        assert all(count == 0 for count in tier_counts([], T0).values())
        assert recent_tasks([]) == []

    def test_status_counts(self):
        counts = status_counts(self.build())
        assert counts == {"todo": 6, "in-progress": 0, "blocked": 0, "done": 1}


class TestRecentTasks:
    def test_newest_first_capped_at_five(self):
        tasks = [make_task(str(i), created=T0 + timedelta(minutes=i)) for i in range(7)]
        assert [t.id for t in recent_tasks(tasks)] == ["6", "5", "4", "3", "2"]

    def test_ties_keep_later_inserted_first(self):
        tasks = [make_task("first"), make_task("second")]
        assert [t.id for t in recent_tasks(tasks)] == ["second", "first"]

    def test_custom_limit(self):
        tasks = [make_task(str(i), created=T0 + timedelta(minutes=i)) for i in range(3)]
        assert [t.id for t in recent_tasks(tasks, limit=1)] == ["2"]


class TestDashboard:
    def test_summary(self):
        tasks = (
            make_task("a", status="in-progress"),
            make_task("b", status="done", completed=T0),
            make_task("c", created=T0 - timedelta(days=2), due=T0 - timedelta(days=1)),
        )
        session = FocusSession(id="s", task_id="a", created_at=T0)
        state = AppState(tasks=tasks, focus_session=session)

        summary = dashboard_summary(state, T0 + timedelta(hours=1))

        assert summary.completed == 1
        assert summary.in_progress == 1
        assert summary.todays_tasks == 2
        assert summary.focus_sessions == 1
        assert summary.overdue == 1
        assert summary.tiers[UrgencyTier.OVERDUE] == 1
        assert [t.id for t in summary.recent] == ["b", "a", "c"]

    def test_tasks_created_on(self):
        tasks = [make_task("today"), make_task("old", created=T0 - timedelta(days=1))]
        assert [t.id for t in tasks_created_on(tasks, date(2025, 1, 1))] == ["today"]
