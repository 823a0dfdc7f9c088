"""
Postgres-backed project store.

Wraps an SQLAlchemy async session. Each write commits immediately, so a
multi-step operation that fails part way leaves the rows it already wrote
in place.
"""

import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from sqlalchemy import desc, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.db.models import EmailHistory, Project, Screen, ScreenHistory, Task, TaskHistory, User
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

T = TypeVar("T")


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class PostgresProjectStore(ProjectStore):
    """Project store backed by the Postgres tables in ``portal.db``."""

    def __init__(self, session: AsyncSession):
        """
        Initialize the store with a database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def _run(self, operation: str, action: Callable[[], Awaitable[T]]) -> T:
        """Run a database action, translating SQLAlchemy failures into StoreError."""
        try:
            return await action()
        except StoreError:
            raise
        except IntegrityError as e:
            await self.session.rollback()
            logger.error(f"[PostgresProjectStore] Integrity error during {operation}", error=str(e))
            raise StoreError(f"Conflicting data during {operation}", "CONFLICT") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"[PostgresProjectStore] Database error during {operation}", error=str(e))
            raise StoreError(f"Database error during {operation}: {e}", "DATABASE_ERROR") from e

    async def _get_row(self, model: type, key: str, kind: str) -> Any:
        row = await self.session.get(model, key)
        if row is None:
            raise StoreError(f"{kind} with ID {key} not found", "NOT_FOUND")
        return row

    async def _add(self, row: Any) -> Any:
        self.session.add(row)
        await self.session.commit()
        await self.session.refresh(row)
        return row

    async def _apply(self, model: type, key: str, kind: str, fields: dict[str, Any]) -> Any:
        row = await self._get_row(model, key, kind)
        for name, value in fields.items():
            setattr(row, name, _column_value(value))
        await self.session.commit()
        await self.session.refresh(row)
        return row

    # ========== Users ==========

    async def create_user(self, user: UserCreate) -> UserRecord:
        async def action() -> UserRecord:
            row = User(
                id=user.id or str(uuid.uuid4()),
                email=user.email,
                first_name=user.first_name,
                last_name=user.last_name,
                is_admin=user.is_admin,
                approved=user.approved,
            )
            await self._add(row)
            logger.info("[PostgresProjectStore] Created user", user_id=row.id)
            return UserRecord.model_validate(row)

        try:
            return await self._run("create_user", action)
        except StoreError as e:
            if e.error_code == "CONFLICT":
                raise StoreError(
                    f"A user with email {user.email} already exists", "CONFLICT"
                ) from e
            raise

    async def get_user(self, user_id: str) -> UserRecord:
        async def action() -> UserRecord:
            return UserRecord.model_validate(await self._get_row(User, user_id, "User"))

        return await self._run("get_user", action)

    async def get_user_by_email(self, email: str) -> UserRecord | None:
        async def action() -> UserRecord | None:
            stmt = select(User).where(func.lower(User.email) == email.lower()).limit(1)
            row = (await self.session.execute(stmt)).scalar_one_or_none()
            return UserRecord.model_validate(row) if row else None

        return await self._run("get_user_by_email", action)

    async def list_users(
        self, approved: bool | None = None, is_admin: bool | None = None
    ) -> list[UserRecord]:
        async def action() -> list[UserRecord]:
            stmt = select(User)
            if approved is not None:
                stmt = stmt.where(User.approved == approved)
            if is_admin is not None:
                stmt = stmt.where(User.is_admin == is_admin)
            stmt = stmt.order_by(User.email)
            rows = (await self.session.execute(stmt)).scalars().all()
            return [UserRecord.model_validate(row) for row in rows]

        return await self._run("list_users", action)

    async def update_user(self, user_id: str, fields: dict[str, Any]) -> UserRecord:
        async def action() -> UserRecord:
            row = await self._apply(User, user_id, "User", fields)
            logger.info(
                "[PostgresProjectStore] Updated user", user_id=user_id, fields=sorted(fields)
            )
            return UserRecord.model_validate(row)

        return await self._run("update_user", action)

    async def delete_user(self, user_id: str) -> None:
        async def action() -> None:
            row = await self._get_row(User, user_id, "User")
            # Projects and email records go with it through ON DELETE CASCADE
            await self.session.delete(row)
            await self.session.commit()
            logger.info("[PostgresProjectStore] Deleted user", user_id=user_id)

        await self._run("delete_user", action)

    # ========== Projects ==========

    async def create_project(
        self,
        name: str,
        tagline: str | None,
        description: str,
        owner_id: str,
        created_by: str | None,
    ) -> ProjectRecord:
        async def action() -> ProjectRecord:
            row = await self._add(
                Project(
                    name=name,
                    tagline=tagline,
                    description=description,
                    owner_id=owner_id,
                    created_by=created_by,
                )
            )
            logger.info(
                "[PostgresProjectStore] Created project", project_id=row.id, owner_id=owner_id
            )
            return ProjectRecord.model_validate(row)

        return await self._run("create_project", action)

    async def get_project(self, project_id: str) -> ProjectRecord:
        async def action() -> ProjectRecord:
            return ProjectRecord.model_validate(
                await self._get_row(Project, project_id, "Project")
            )

        return await self._run("get_project", action)

    async def list_projects(self, owner_id: str | None = None) -> list[ProjectRecord]:
        async def action() -> list[ProjectRecord]:
            stmt = select(Project)
            if owner_id is not None:
                stmt = stmt.where(Project.owner_id == owner_id)
            stmt = stmt.order_by(Project.name)
            rows = (await self.session.execute(stmt)).scalars().all()
            return [ProjectRecord.model_validate(row) for row in rows]

        return await self._run("list_projects", action)

    async def update_project(
        self, project_id: str, tagline: str | None, description: str
    ) -> ProjectRecord:
        async def action() -> ProjectRecord:
            row = await self._apply(
                Project,
                project_id,
                "Project",
                {"tagline": tagline, "description": description},
            )
            return ProjectRecord.model_validate(row)

        return await self._run("update_project", action)

    # ========== Screens ==========

    async def list_screens(self, project_id: str) -> list[ScreenRecord]:
        async def action() -> list[ScreenRecord]:
            stmt = (
                select(Screen)
                .where(Screen.project_id == project_id)
                .order_by(Screen.sort_order, Screen.created_at)
            )
            rows = (await self.session.execute(stmt)).scalars().all()
            return [ScreenRecord.model_validate(row) for row in rows]

        return await self._run("list_screens", action)

    async def get_screen(self, screen_id: str) -> ScreenRecord:
        async def action() -> ScreenRecord:
            return ScreenRecord.model_validate(await self._get_row(Screen, screen_id, "Screen"))

        return await self._run("get_screen", action)

    async def create_screen(
        self,
        project_id: str,
        title: str,
        description: str | None,
        created_by: str | None,
        sort_order: int = 0,
    ) -> ScreenRecord:
        async def action() -> ScreenRecord:
            row = await self._add(
                Screen(
                    project_id=project_id,
                    title=title,
                    description=description,
                    sort_order=sort_order,
                    created_by=created_by,
                )
            )
            return ScreenRecord.model_validate(row)

        return await self._run("create_screen", action)

    async def update_screen(self, screen_id: str, fields: dict[str, Any]) -> ScreenRecord:
        async def action() -> ScreenRecord:
            return ScreenRecord.model_validate(
                await self._apply(Screen, screen_id, "Screen", fields)
            )

        return await self._run("update_screen", action)

    # ========== Tasks ==========

    async def list_tasks(self, screen_ids: list[str]) -> list[TaskRecord]:
        if not screen_ids:
            return []

        async def action() -> list[TaskRecord]:
            stmt = (
                select(Task)
                .where(Task.screen_id.in_(screen_ids))
                .order_by(Task.sort_order, Task.created_at)
            )
            rows = (await self.session.execute(stmt)).scalars().all()
            screen_index = {screen_id: index for index, screen_id in enumerate(screen_ids)}
            # sorted() is stable, so the SQL ordering survives within a screen
            rows = sorted(rows, key=lambda row: screen_index[row.screen_id])
            return [TaskRecord.model_validate(row) for row in rows]

        return await self._run("list_tasks", action)

    async def get_task(self, task_id: str) -> TaskRecord:
        async def action() -> TaskRecord:
            return TaskRecord.model_validate(await self._get_row(Task, task_id, "Task"))

        return await self._run("get_task", action)

    async def create_tasks(
        self, screen_id: str, tasks: list[TaskCreate], created_by: str | None
    ) -> list[TaskRecord]:
        if not tasks:
            return []

        async def action() -> list[TaskRecord]:
            existing = await self.session.execute(
                select(Task.id).where(Task.screen_id == screen_id)
            )
            offset = len(existing.scalars().all())
            rows = [
                Task(
                    screen_id=screen_id,
                    title=task.title,
                    description=task.description,
                    status=_column_value(task.status),
                    sort_order=index,
                    created_by=created_by,
                )
                for index, task in enumerate(tasks, start=offset)
            ]
            self.session.add_all(rows)
            await self.session.commit()
            for row in rows:
                await self.session.refresh(row)
            logger.info(
                "[PostgresProjectStore] Created tasks", screen_id=screen_id, count=len(rows)
            )
            return [TaskRecord.model_validate(row) for row in rows]

        return await self._run("create_tasks", action)

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> TaskRecord:
        async def action() -> TaskRecord:
            return TaskRecord.model_validate(await self._apply(Task, task_id, "Task", fields))

        return await self._run("update_task", action)

    # ========== Edit History ==========

    async def add_task_history(
        self, task: TaskRecord, edited_by: str | None
    ) -> TaskHistoryRecord:
        async def action() -> TaskHistoryRecord:
            row = await self._add(
                TaskHistory(
                    task_id=task.id,
                    title=task.title,
                    description=task.description,
                    status=_column_value(task.status),
                    edited_by=edited_by,
                )
            )
            return TaskHistoryRecord.model_validate(row)

        return await self._run("add_task_history", action)

    async def add_screen_history(
        self, screen: ScreenRecord, edited_by: str | None
    ) -> ScreenHistoryRecord:
        async def action() -> ScreenHistoryRecord:
            row = await self._add(
                ScreenHistory(
                    screen_id=screen.id,
                    title=screen.title,
                    description=screen.description,
                    edited_by=edited_by,
                )
            )
            return ScreenHistoryRecord.model_validate(row)

        return await self._run("add_screen_history", action)

    async def list_task_history(
        self, task_ids: list[str], since: datetime | None = None
    ) -> list[TaskHistoryRecord]:
        if not task_ids:
            return []

        async def action() -> list[TaskHistoryRecord]:
            stmt = select(TaskHistory).where(TaskHistory.task_id.in_(task_ids))
            if since is not None:
                stmt = stmt.where(TaskHistory.edited_at > since)
            stmt = stmt.order_by(desc(TaskHistory.edited_at))
            rows = (await self.session.execute(stmt)).scalars().all()
            return [TaskHistoryRecord.model_validate(row) for row in rows]

        return await self._run("list_task_history", action)

    async def list_screen_history(
        self, screen_ids: list[str], since: datetime | None = None
    ) -> list[ScreenHistoryRecord]:
        if not screen_ids:
            return []

        async def action() -> list[ScreenHistoryRecord]:
            stmt = select(ScreenHistory).where(ScreenHistory.screen_id.in_(screen_ids))
            if since is not None:
                stmt = stmt.where(ScreenHistory.edited_at > since)
            stmt = stmt.order_by(desc(ScreenHistory.edited_at))
            rows = (await self.session.execute(stmt)).scalars().all()
            return [ScreenHistoryRecord.model_validate(row) for row in rows]

        return await self._run("list_screen_history", action)

    # ========== Email History ==========

    async def get_latest_email(self, project_id: str) -> EmailHistoryRecord | None:
        async def action() -> EmailHistoryRecord | None:
            stmt = (
                select(EmailHistory)
                .where(EmailHistory.project_id == project_id)
                .order_by(desc(EmailHistory.sent_at))
                .limit(1)
            )
            row = (await self.session.execute(stmt)).scalar_one_or_none()
            return EmailHistoryRecord.model_validate(row) if row else None

        return await self._run("get_latest_email", action)

    async def create_email_record(self, record: EmailHistoryCreate) -> EmailHistoryRecord:
        async def action() -> EmailHistoryRecord:
            row = await self._add(EmailHistory(**record.model_dump()))
            logger.info(
                "[PostgresProjectStore] Recorded sent email",
                email_id=row.id,
                project_id=record.project_id,
            )
            return EmailHistoryRecord.model_validate(row)

        return await self._run("create_email_record", action)

    async def list_email_history(self, limit: int = 100) -> list[EmailHistoryRecord]:
        async def action() -> list[EmailHistoryRecord]:
            stmt = select(EmailHistory).order_by(desc(EmailHistory.sent_at)).limit(limit)
            rows = (await self.session.execute(stmt)).scalars().all()
            return [EmailHistoryRecord.model_validate(row) for row in rows]

        return await self._run("list_email_history", action)
