"""
In-memory project store for tests and local development.

Holds every record in dictionaries and requires no external services. Rows
are kept in insertion order, which stands in for creation-time ordering.
"""

import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from portal.store.base import ProjectStore, StoreError
from portal.store.schemas import (
    EmailHistoryCreate,
    EmailHistoryRecord,
    ProjectRecord,
    ScreenHistoryRecord,
    ScreenRecord,
    TaskCreate,
    TaskHistoryRecord,
    TaskRecord,
    UserCreate,
    UserRecord,
)
from portal.utils.logger import logger


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InMemoryProjectStore(ProjectStore):
    """Project store backed by plain dictionaries."""

    def __init__(self, clock: Callable[[], datetime] | None = None):
        """
        Args:
            clock: Returns the timestamp stamped on new rows (defaults to UTC now)
        """
        self._clock = clock or _utcnow
        self.users: dict[str, UserRecord] = {}
        self.projects: dict[str, ProjectRecord] = {}
        self.screens: dict[str, ScreenRecord] = {}
        self.tasks: dict[str, TaskRecord] = {}
        self.task_history: list[TaskHistoryRecord] = []
        self.screen_history: list[ScreenHistoryRecord] = []
        self.emails: list[EmailHistoryRecord] = []

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    def _require(self, table: dict[str, Any], key: str, kind: str) -> Any:
        record = table.get(key)
        if record is None:
            raise StoreError(f"{kind} with ID {key} not found", "NOT_FOUND")
        return record

    # ========== Users ==========

    async def create_user(self, user: UserCreate) -> UserRecord:
        if any(u.email.lower() == user.email.lower() for u in self.users.values()):
            raise StoreError(f"A user with email {user.email} already exists", "CONFLICT")

        record = UserRecord(
            id=user.id or self._new_id(),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            is_admin=user.is_admin,
            approved=user.approved,
            created_at=self._clock(),
        )
        self.users[record.id] = record
        logger.debug("[InMemoryProjectStore] Created user", user_id=record.id)
        return record

    async def get_user(self, user_id: str) -> UserRecord:
        return self._require(self.users, user_id, "User")

    async def get_user_by_email(self, email: str) -> UserRecord | None:
        return next(
            (u for u in self.users.values() if u.email.lower() == email.lower()), None
        )

    async def list_users(
        self, approved: bool | None = None, is_admin: bool | None = None
    ) -> list[UserRecord]:
        users = [
            u
            for u in self.users.values()
            if (approved is None or u.approved == approved)
            and (is_admin is None or u.is_admin == is_admin)
        ]
        return sorted(users, key=lambda u: u.email)

    async def update_user(self, user_id: str, fields: dict[str, Any]) -> UserRecord:
        user = self._require(self.users, user_id, "User")
        updated = UserRecord.model_validate({**user.model_dump(), **fields})
        self.users[user_id] = updated
        return updated

    async def delete_user(self, user_id: str) -> None:
        self._require(self.users, user_id, "User")
        del self.users[user_id]

        # Mirror the ON DELETE rules of the Postgres schema
        project_ids = {p.id for p in self.projects.values() if p.owner_id == user_id}
        screen_ids = {s.id for s in self.screens.values() if s.project_id in project_ids}
        task_ids = {t.id for t in self.tasks.values() if t.screen_id in screen_ids}
        self.projects = {k: v for k, v in self.projects.items() if k not in project_ids}
        self.screens = {k: v for k, v in self.screens.items() if k not in screen_ids}
        self.tasks = {k: v for k, v in self.tasks.items() if k not in task_ids}
        self.task_history = [h for h in self.task_history if h.task_id not in task_ids]
        self.screen_history = [h for h in self.screen_history if h.screen_id not in screen_ids]
        self.emails = [
            e.model_copy(update={"project_id": None}) if e.project_id in project_ids else e
            for e in self.emails
            if e.user_id != user_id
        ]
        logger.debug(
            "[InMemoryProjectStore] Deleted user", user_id=user_id, projects=len(project_ids)
        )

    # ========== Projects ==========

    async def create_project(
        self,
        name: str,
        tagline: str | None,
        description: str,
        owner_id: str,
        created_by: str | None,
    ) -> ProjectRecord:
        record = ProjectRecord(
            id=self._new_id(),
            name=name,
            tagline=tagline,
            description=description,
            owner_id=owner_id,
            created_by=created_by,
            created_at=self._clock(),
        )
        self.projects[record.id] = record
        return record

    async def get_project(self, project_id: str) -> ProjectRecord:
        return self._require(self.projects, project_id, "Project")

    async def list_projects(self, owner_id: str | None = None) -> list[ProjectRecord]:
        projects = [
            p for p in self.projects.values() if owner_id is None or p.owner_id == owner_id
        ]
        return sorted(projects, key=lambda p: p.name)

    async def update_project(
        self, project_id: str, tagline: str | None, description: str
    ) -> ProjectRecord:
        project = self._require(self.projects, project_id, "Project")
        updated = project.model_copy(update={"tagline": tagline, "description": description})
        self.projects[project_id] = updated
        return updated

    # ========== Screens ==========

    async def list_screens(self, project_id: str) -> list[ScreenRecord]:
        screens = [s for s in self.screens.values() if s.project_id == project_id]
        # sorted() is stable, so equal keys keep insertion order
        return sorted(screens, key=lambda s: (s.sort_order, s.created_at))

    async def get_screen(self, screen_id: str) -> ScreenRecord:
        return self._require(self.screens, screen_id, "Screen")

    async def create_screen(
        self,
        project_id: str,
        title: str,
        description: str | None,
        created_by: str | None,
        sort_order: int = 0,
    ) -> ScreenRecord:
        self._require(self.projects, project_id, "Project")
        record = ScreenRecord(
            id=self._new_id(),
            project_id=project_id,
            title=title,
            description=description,
            sort_order=sort_order,
            created_by=created_by,
            created_at=self._clock(),
        )
        self.screens[record.id] = record
        return record

    async def update_screen(self, screen_id: str, fields: dict[str, Any]) -> ScreenRecord:
        screen = self._require(self.screens, screen_id, "Screen")
        updated = ScreenRecord.model_validate({**screen.model_dump(), **fields})
        self.screens[screen_id] = updated
        return updated

    # ========== Tasks ==========

    async def list_tasks(self, screen_ids: list[str]) -> list[TaskRecord]:
        screen_index = {screen_id: index for index, screen_id in enumerate(screen_ids)}
        tasks = [t for t in self.tasks.values() if t.screen_id in screen_index]
        return sorted(
            tasks, key=lambda t: (screen_index[t.screen_id], t.sort_order, t.created_at)
        )

    async def get_task(self, task_id: str) -> TaskRecord:
        return self._require(self.tasks, task_id, "Task")

    async def create_tasks(
        self, screen_id: str, tasks: list[TaskCreate], created_by: str | None
    ) -> list[TaskRecord]:
        self._require(self.screens, screen_id, "Screen")
        offset = sum(1 for t in self.tasks.values() if t.screen_id == screen_id)
        created = []
        for index, task in enumerate(tasks, start=offset):
            record = TaskRecord(
                id=self._new_id(),
                screen_id=screen_id,
                title=task.title,
                description=task.description,
                status=task.status,
                sort_order=index,
                created_by=created_by,
                created_at=self._clock(),
            )
            self.tasks[record.id] = record
            created.append(record)
        return created

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> TaskRecord:
        task = self._require(self.tasks, task_id, "Task")
        updated = TaskRecord.model_validate({**task.model_dump(), **fields})
        self.tasks[task_id] = updated
        return updated

    # ========== Edit History ==========

    async def add_task_history(
        self, task: TaskRecord, edited_by: str | None
    ) -> TaskHistoryRecord:
        record = TaskHistoryRecord(
            id=self._new_id(),
            task_id=task.id,
            title=task.title,
            description=task.description,
            status=task.status,
            edited_by=edited_by,
            edited_at=self._clock(),
        )
        self.task_history.append(record)
        return record

    async def add_screen_history(
        self, screen: ScreenRecord, edited_by: str | None
    ) -> ScreenHistoryRecord:
        record = ScreenHistoryRecord(
            id=self._new_id(),
            screen_id=screen.id,
            title=screen.title,
            description=screen.description,
            edited_by=edited_by,
            edited_at=self._clock(),
        )
        self.screen_history.append(record)
        return record

    async def list_task_history(
        self, task_ids: list[str], since: datetime | None = None
    ) -> list[TaskHistoryRecord]:
        wanted = set(task_ids)
        rows = [
            h
            for h in self.task_history
            if h.task_id in wanted and (since is None or h.edited_at > since)
        ]
        return list(reversed(rows))

    async def list_screen_history(
        self, screen_ids: list[str], since: datetime | None = None
    ) -> list[ScreenHistoryRecord]:
        wanted = set(screen_ids)
        rows = [
            h
            for h in self.screen_history
            if h.screen_id in wanted and (since is None or h.edited_at > since)
        ]
        return list(reversed(rows))

    # ========== Email History ==========

    async def get_latest_email(self, project_id: str) -> EmailHistoryRecord | None:
        records = [e for e in self.emails if e.project_id == project_id]
        return records[-1] if records else None

    async def create_email_record(self, record: EmailHistoryCreate) -> EmailHistoryRecord:
        stored = EmailHistoryRecord(
            id=self._new_id(),
            sent_at=self._clock(),
            **record.model_dump(),
        )
        self.emails.append(stored)
        return stored

    async def list_email_history(self, limit: int = 100) -> list[EmailHistoryRecord]:
        return list(reversed(self.emails))[:limit]
