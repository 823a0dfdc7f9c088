"""
Update email service.

Checks a project for changes since its last update email, sends the next
update through the email provider and records the snapshot that becomes the
baseline for the following check.
"""

from datetime import datetime

from pydantic import ValidationError

from portal.integrations.email.base import EmailProvider
from portal.integrations.email.schemas import OutgoingEmail
from portal.projects.constants import TaskStatus
from portal.store.base import ProjectStore, StoreError
from portal.store.schemas import (
    EmailHistoryCreate,
    EmailHistoryRecord,
    ProjectRecord,
    TaskRecord,
    UserRecord,
)
from portal.updates.differ import build_snapshot, diff_changes
from portal.updates.rendering import render_update_email, render_update_text, update_subject
from portal.updates.schemas import (
    ChangeCheck,
    ChangeSnapshot,
    ChangesSummary,
    EmailHistoryItem,
    SendUpdateResponse,
)
from portal.utils.logger import logger

FIRST_UPDATE_MESSAGE = (
    "Project was set up successfully, emails with updates will be sent as changes are made"
)


class SnapshotConflictError(Exception):
    """Raised when another update was sent after the caller last checked."""

    def __init__(self, message: str, latest_sent_at: datetime | None = None):
        super().__init__(message)
        self.message = message
        self.latest_sent_at = latest_sent_at


def no_changes_message(sent_at: datetime) -> str:
    return f"No changes since last email on {sent_at.month}/{sent_at.day}/{sent_at.year}"


def previous_task_statuses(changes_snapshot: dict) -> dict[str, TaskStatus]:
    """
    Read the task statuses recorded with an earlier email.

    Records written before statuses were stored, or that fail validation,
    yield an empty map so every task is treated as unseen.
    """
    try:
        return ChangeSnapshot.model_validate(changes_snapshot or {}).task_statuses
    except ValidationError as e:
        logger.warning("Ignoring unreadable change snapshot", error=str(e))
        return {}


class UpdateService:
    """Change checks and update emails for projects."""

    def __init__(self, store: ProjectStore, email_provider: EmailProvider, studio_name: str):
        """
        Initialize the update service.

        Args:
            store: Project store
            email_provider: Provider used to deliver update emails
            studio_name: Studio name used in the email signature
        """
        self.store = store
        self.email_provider = email_provider
        self.studio_name = studio_name

    async def _compute(
        self, project: ProjectRecord, latest: EmailHistoryRecord | None
    ) -> tuple[ChangeCheck, list[TaskRecord]]:
        screens = await self.store.list_screens(project.id)
        tasks = await self.store.list_tasks([s.id for s in screens])

        if latest is None:
            check = ChangeCheck(
                project_id=project.id,
                project_name=project.name,
                first_update=True,
                has_changes=False,
                message=FIRST_UPDATE_MESSAGE,
                summary=ChangesSummary(),
            )
            return check, tasks

        task_history = await self.store.list_task_history(
            [t.id for t in tasks], since=latest.sent_at
        )
        screen_history = await self.store.list_screen_history(
            [s.id for s in screens], since=latest.sent_at
        )
        summary = diff_changes(
            screens=screens,
            tasks=tasks,
            task_history=task_history,
            screen_history=screen_history,
            previous_statuses=previous_task_statuses(latest.changes_snapshot),
            since=latest.sent_at,
        )
        has_changes = not summary.is_empty()
        check = ChangeCheck(
            project_id=project.id,
            project_name=project.name,
            first_update=False,
            has_changes=has_changes,
            message=None if has_changes else no_changes_message(latest.sent_at),
            last_sent_at=latest.sent_at,
            summary=summary,
        )
        return check, tasks

    async def check_changes(self, project_id: str) -> ChangeCheck:
        """
        Summarize changes since the project's last update email.

        Raises:
            StoreError: If the project does not exist or a read fails
        """
        project = await self.store.get_project(project_id)
        latest = await self.store.get_latest_email(project_id)
        check, _ = await self._compute(project, latest)
        logger.info(
            "Checked project changes",
            project_id=project_id,
            first_update=check.first_update,
            has_changes=check.has_changes,
        )
        return check

    async def send_update(
        self,
        project_id: str,
        personal_message: str,
        sent_by: str | None,
        user_id: str | None = None,
        expected_last_sent_at: datetime | None = None,
    ) -> SendUpdateResponse:
        """
        Send an update email and record the new snapshot.

        Changes are recomputed at send time. Nothing is recorded if the
        email provider fails.

        Args:
            project_id: Project to report on
            personal_message: Admin's message opening the email
            sent_by: Admin sending the email
            user_id: Recipient (defaults to the project owner)
            expected_last_sent_at: ``last_sent_at`` seen by the caller when checking

        Raises:
            ValueError: If the personal message is blank
            SnapshotConflictError: If ``expected_last_sent_at`` no longer matches
            StoreError: If a store read or write fails
            MailError: If the email provider fails
        """
        if not personal_message or not personal_message.strip():
            raise ValueError("Personal message is required")

        project = await self.store.get_project(project_id)
        recipient = await self.store.get_user(user_id or project.owner_id)
        latest = await self.store.get_latest_email(project_id)

        latest_sent_at = latest.sent_at if latest else None
        if expected_last_sent_at is not None and expected_last_sent_at != latest_sent_at:
            logger.warning(
                "Update baseline changed since check",
                project_id=project_id,
                expected_last_sent_at=expected_last_sent_at.isoformat(),
                latest_sent_at=latest_sent_at.isoformat() if latest_sent_at else None,
            )
            raise SnapshotConflictError(
                "Another update was sent for this project since changes were checked",
                latest_sent_at=latest_sent_at,
            )

        check, tasks = await self._compute(project, latest)
        subject = update_subject(project.name)
        result = await self.email_provider.send_email(
            OutgoingEmail(
                to=[recipient.email],
                subject=subject,
                html=render_update_email(
                    project.name, personal_message, check.summary, self.studio_name
                ),
                text=render_update_text(project.name, personal_message, check.summary),
            )
        )

        snapshot = build_snapshot(tasks, check.summary)
        record = await self.store.create_email_record(
            EmailHistoryCreate(
                user_id=recipient.id,
                project_id=project.id,
                sent_by=sent_by,
                email_subject=subject,
                personal_message=personal_message,
                changes_snapshot=snapshot.model_dump(by_alias=True, mode="json"),
            )
        )
        logger.info(
            "Sent project update",
            project_id=project_id,
            recipient=recipient.email,
            email_record_id=record.id,
            message_id=result.message_id,
            task_count=len(snapshot.task_statuses),
        )
        return SendUpdateResponse(
            email_record_id=record.id,
            message_id=result.message_id,
            recipient=recipient.email,
            subject=subject,
            sent_at=record.sent_at,
            first_update=check.first_update,
            summary=check.summary,
        )

    async def list_email_history(
        self, limit: int = 100, search: str | None = None
    ) -> list[EmailHistoryItem]:
        """
        List sent update emails, newest first, with recipient and project details.

        Args:
            limit: Maximum number of records read
            search: Optional case-insensitive filter over recipient, project and status
        """
        records = await self.store.list_email_history(limit)
        users: dict[str, UserRecord | None] = {}
        projects: dict[str, ProjectRecord | None] = {}

        items = []
        for record in records:
            if record.user_id not in users:
                users[record.user_id] = await self._get_or_none(self.store.get_user, record.user_id)
            if record.project_id and record.project_id not in projects:
                projects[record.project_id] = await self._get_or_none(
                    self.store.get_project, record.project_id
                )
            user = users[record.user_id]
            project = projects.get(record.project_id) if record.project_id else None
            items.append(
                EmailHistoryItem(
                    id=record.id,
                    sent_at=record.sent_at,
                    email_subject=record.email_subject,
                    personal_message=record.personal_message,
                    email_sent_successfully=record.email_sent_successfully,
                    sent_by=record.sent_by,
                    user_id=record.user_id,
                    recipient_name=user.display_name if user else None,
                    recipient_email=user.email if user else None,
                    project_id=record.project_id,
                    project_name=project.name if project else None,
                    last_email_status=user.last_email_status if user else None,
                    changes_snapshot=record.changes_snapshot,
                )
            )

        if search and search.strip():
            needle = search.strip().lower()
            items = [item for item in items if needle in _search_text(item)]
        return items

    @staticmethod
    async def _get_or_none(getter, key: str):
        try:
            return await getter(key)
        except StoreError as e:
            if e.error_code != "NOT_FOUND":
                raise
            return None


def _search_text(item: EmailHistoryItem) -> str:
    fields = [
        item.recipient_name,
        item.recipient_email,
        item.project_name,
        item.email_subject,
        item.last_email_status,
    ]
    return " ".join(f for f in fields if f).lower()
