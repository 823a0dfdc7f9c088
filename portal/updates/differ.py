"""
Change snapshot differ.

Compares a project's current screens and tasks against the task statuses
recorded with the last update email and the edit history written since, and
builds the ``ChangesSummary`` shown in the next email. Pure functions only;
callers load the inputs from the store.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime

from portal.projects.constants import TaskStatus
from portal.store.schemas import ScreenHistoryRecord, ScreenRecord, TaskHistoryRecord, TaskRecord
from portal.updates.schemas import (
    ChangeSnapshot,
    ChangesSummary,
    CompletedTaskChange,
    NewScreenChange,
    NewTaskChange,
    ReviewTaskChange,
    UpdatedScreenChange,
)

_NOT_NEWLY_COMPLETED = (TaskStatus.REVIEW, TaskStatus.DONE)


def _latest_done_edits(
    task_history: Sequence[TaskHistoryRecord], since: datetime
) -> dict[str, datetime]:
    """Map task ID to the newest history timestamp at which it became done."""
    latest: dict[str, datetime] = {}
    for row in task_history:
        if row.status != TaskStatus.DONE or row.edited_at <= since:
            continue
        current = latest.get(row.task_id)
        if current is None or row.edited_at > current:
            latest[row.task_id] = row.edited_at
    return latest


def diff_changes(
    screens: Sequence[ScreenRecord],
    tasks: Sequence[TaskRecord],
    task_history: Sequence[TaskHistoryRecord],
    screen_history: Sequence[ScreenHistoryRecord],
    previous_statuses: Mapping[str, TaskStatus],
    since: datetime,
) -> ChangesSummary:
    """
    Summarize what changed in a project since the last update email.

    A task in review is always reported. Review outcomes come from comparing
    the previous and current status. A task only counts as newly completed
    when a history row shows it becoming done after ``since``; a matching
    status change without such a row is left out.

    Args:
        screens: All current screens of the project
        tasks: All current tasks of those screens
        task_history: Task edit rows (only rows after ``since`` are considered)
        screen_history: Screen edit rows (only rows after ``since`` are considered)
        previous_statuses: Task ID to status as recorded with the last email
        since: When the last email was sent

    Returns:
        ChangesSummary: Flat buckets in input order
    """
    screen_titles = {screen.id: screen.title for screen in screens}
    done_edits = _latest_done_edits(task_history, since)
    summary = ChangesSummary()

    for task in tasks:
        screen_title = screen_titles.get(task.screen_id, "")
        previous = previous_statuses.get(task.id)
        change = ReviewTaskChange(task_id=task.id, title=task.title, screen_title=screen_title)

        if task.status == TaskStatus.REVIEW:
            summary.review_tasks.append(change)

        if previous == TaskStatus.REVIEW and task.status == TaskStatus.DONE:
            summary.review_to_done.append(change)
        elif previous == TaskStatus.REVIEW and task.status == TaskStatus.IN_PROGRESS:
            summary.review_to_progress.append(change)

        if task.status == TaskStatus.DONE and previous not in _NOT_NEWLY_COMPLETED:
            edited_at = done_edits.get(task.id)
            if edited_at is not None:
                summary.completed_tasks.append(
                    CompletedTaskChange(
                        title=task.title, screen_title=screen_title, edited_at=edited_at
                    )
                )

        if task.created_at > since:
            summary.new_tasks.append(
                NewTaskChange(title=task.title, screen_title=screen_title, created_at=task.created_at)
            )

    summary.new_screens = [
        NewScreenChange(title=screen.title, created_at=screen.created_at)
        for screen in screens
        if screen.created_at > since
    ]
    summary.updated_screens = [
        UpdatedScreenChange(title=row.title, description=row.description, edited_at=row.edited_at)
        for row in screen_history
        if row.edited_at > since
    ]
    return summary


def build_snapshot(tasks: Sequence[TaskRecord], summary: ChangesSummary) -> ChangeSnapshot:
    """Record the current task statuses as the baseline for the next diff."""
    return ChangeSnapshot(task_statuses={task.id: task.status for task in tasks}, summary=summary)
