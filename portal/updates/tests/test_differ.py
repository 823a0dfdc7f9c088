"""Tests for the change snapshot differ."""

from datetime import UTC, datetime, timedelta

from portal.projects.constants import TaskStatus
from portal.store.schemas import ScreenHistoryRecord, ScreenRecord, TaskHistoryRecord, TaskRecord
from portal.updates.differ import build_snapshot, diff_changes

SINCE = datetime(2025, 5, 1, 12, 0, tzinfo=UTC)
BEFORE = SINCE - timedelta(days=3)
AFTER = SINCE + timedelta(hours=2)


def make_screen(screen_id="s1", title="Home", created_at=BEFORE) -> ScreenRecord:
    return ScreenRecord(id=screen_id, project_id="p1", title=title, created_at=created_at)


def make_task(
    task_id, status=TaskStatus.NOT_STARTED, screen_id="s1", created_at=BEFORE, title=None
) -> TaskRecord:
    return TaskRecord(
        id=task_id,
        screen_id=screen_id,
        title=title or f"Task {task_id}",
        status=status,
        created_at=created_at,
    )


def make_history(task_id, status, edited_at=AFTER) -> TaskHistoryRecord:
    return TaskHistoryRecord(
        id=f"h-{task_id}-{edited_at.isoformat()}",
        task_id=task_id,
        title=f"Task {task_id}",
        status=status,
        edited_at=edited_at,
    )


def diff(tasks, previous, task_history=(), screens=None, screen_history=()):
    return diff_changes(
        screens=screens if screens is not None else [make_screen()],
        tasks=tasks,
        task_history=list(task_history),
        screen_history=list(screen_history),
        previous_statuses=previous,
        since=SINCE,
    )


class TestDiffChanges:
    """Test suite for diff_changes."""

    def test_review_tasks_always_reported(self):
        """Test review tasks appear whatever their previous status was."""
        tasks = [make_task("t1", TaskStatus.REVIEW), make_task("t2", TaskStatus.REVIEW)]

        summary = diff(tasks, {"t1": TaskStatus.REVIEW})

        assert [c.task_id for c in summary.review_tasks] == ["t1", "t2"]
        assert summary.review_tasks[0].screen_title == "Home"

    def test_review_to_done(self):
        summary = diff(
            [make_task("t1", TaskStatus.DONE)],
            {"t1": TaskStatus.REVIEW},
            task_history=[make_history("t1", TaskStatus.DONE)],
        )

        assert [c.task_id for c in summary.review_to_done] == ["t1"]
        assert summary.review_to_progress == []
        assert summary.completed_tasks == []

    def test_review_to_progress(self):
        summary = diff([make_task("t1", TaskStatus.IN_PROGRESS)], {"t1": TaskStatus.REVIEW})

        assert [c.task_id for c in summary.review_to_progress] == ["t1"]
        assert summary.review_to_done == []

    def test_review_to_waiting_is_not_reported(self):
        summary = diff([make_task("t1", TaskStatus.WAITING)], {"t1": TaskStatus.REVIEW})

        assert summary.is_empty()

    def test_done_without_history_row_is_excluded(self):
        """Test a task that became done with no history row is not newly completed."""
        summary = diff([make_task("t1", TaskStatus.DONE)], {"t1": TaskStatus.NOT_STARTED})

        assert summary.completed_tasks == []

    def test_done_with_history_row_uses_latest_edit(self):
        later = AFTER + timedelta(hours=1)
        summary = diff(
            [make_task("t1", TaskStatus.DONE)],
            {"t1": TaskStatus.IN_PROGRESS},
            task_history=[
                make_history("t1", TaskStatus.DONE, AFTER),
                make_history("t1", TaskStatus.DONE, later),
                make_history("t1", TaskStatus.IN_PROGRESS, later + timedelta(minutes=5)),
            ],
        )

        assert len(summary.completed_tasks) == 1
        assert summary.completed_tasks[0].edited_at == later

    def test_done_history_before_since_is_ignored(self):
        summary = diff(
            [make_task("t1", TaskStatus.DONE)],
            {},
            task_history=[make_history("t1", TaskStatus.DONE, BEFORE)],
        )

        assert summary.completed_tasks == []

    def test_unseen_task_counts_as_newly_completed(self):
        """Test a missing previous status is distinct from review and done."""
        summary = diff(
            [make_task("t1", TaskStatus.DONE)],
            {},
            task_history=[make_history("t1", TaskStatus.DONE)],
        )

        assert [c.title for c in summary.completed_tasks] == ["Task t1"]

    def test_already_done_is_not_completed_again(self):
        summary = diff(
            [make_task("t1", TaskStatus.DONE)],
            {"t1": TaskStatus.DONE},
            task_history=[make_history("t1", TaskStatus.DONE)],
        )

        assert summary.completed_tasks == []

    def test_new_screens_and_tasks(self):
        screens = [make_screen("s1", "Home"), make_screen("s2", "Checkout", created_at=AFTER)]
        tasks = [make_task("t1"), make_task("t2", screen_id="s2", created_at=AFTER)]

        summary = diff(tasks, {"t1": TaskStatus.NOT_STARTED}, screens=screens)

        assert [s.title for s in summary.new_screens] == ["Checkout"]
        assert [(t.title, t.screen_title) for t in summary.new_tasks] == [("Task t2", "Checkout")]

    def test_one_updated_screen_entry_per_history_row(self):
        rows = [
            ScreenHistoryRecord(
                id="sh1", screen_id="s1", title="Home", description="v2", edited_at=AFTER
            ),
            ScreenHistoryRecord(
                id="sh2",
                screen_id="s1",
                title="Home",
                description="v3",
                edited_at=AFTER + timedelta(minutes=1),
            ),
            ScreenHistoryRecord(id="sh0", screen_id="s1", title="Home", edited_at=BEFORE),
        ]

        summary = diff([], {}, screen_history=rows)

        assert [s.description for s in summary.updated_screens] == ["v2", "v3"]


class TestBuildSnapshot:
    """Test suite for build_snapshot."""

    def test_snapshot_records_current_statuses(self):
        tasks = [make_task("t1", TaskStatus.REVIEW), make_task("t2", TaskStatus.DONE)]
        summary = diff(tasks, {})

        snapshot = build_snapshot(tasks, summary)

        assert snapshot.task_statuses == {"t1": TaskStatus.REVIEW, "t2": TaskStatus.DONE}
        assert snapshot.summary == summary

    def test_snapshot_serializes_camel_case(self):
        tasks = [make_task("t1", TaskStatus.REVIEW)]
        snapshot = build_snapshot(tasks, diff(tasks, {}))

        data = snapshot.model_dump(by_alias=True, mode="json")

        assert data["taskStatuses"] == {"t1": "review"}
        assert data["summary"]["reviewTasks"][0]["screenTitle"] == "Home"

    def test_diff_against_own_snapshot_only_keeps_review(self):
        """Test re-diffing a snapshot with no later edits leaves only review tasks."""
        tasks = [
            make_task("t1", TaskStatus.REVIEW),
            make_task("t2", TaskStatus.DONE),
            make_task("t3", TaskStatus.IN_PROGRESS),
        ]
        snapshot = build_snapshot(tasks, diff(tasks, {}))

        summary = diff(tasks, snapshot.task_statuses)

        assert [c.task_id for c in summary.review_tasks] == ["t1"]
        assert summary.review_to_done == []
        assert summary.review_to_progress == []
        assert summary.completed_tasks == []
        assert summary.new_screens == []
        assert summary.updated_screens == []
        assert summary.new_tasks == []
