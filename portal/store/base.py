"""
Abstract base class for the project store.

The store is the single client through which services read and write users,
projects, screens, tasks, edit history and sent-email records. It is passed
into services explicitly so tests and local development can substitute the
in-memory implementation for Postgres.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

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


class StoreError(Exception):
    """Base exception for store failures."""

    def __init__(self, message: str, error_code: str | None = None):
        """
        Initialize store error.

        Args:
            message: Error message
            error_code: Optional error code (e.g., "NOT_FOUND", "CONFLICT", "DATABASE_ERROR")
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ProjectStore(ABC):
    """Interface every project store implementation provides."""

    # ========== Users ==========

    @abstractmethod
    async def create_user(self, user: UserCreate) -> UserRecord:
        """
        Create a portal user record.

        Raises:
            StoreError: "CONFLICT" if the email is already registered
        """

    @abstractmethod
    async def get_user(self, user_id: str) -> UserRecord:
        """
        Get a user by ID.

        Raises:
            StoreError: "NOT_FOUND" if the user does not exist
        """

    @abstractmethod
    async def get_user_by_email(self, email: str) -> UserRecord | None:
        """Get a user by email address, or None."""

    @abstractmethod
    async def list_users(
        self, approved: bool | None = None, is_admin: bool | None = None
    ) -> list[UserRecord]:
        """List users ordered by email, optionally filtered."""

    @abstractmethod
    async def update_user(self, user_id: str, fields: dict[str, Any]) -> UserRecord:
        """
        Apply column updates to a user.

        Raises:
            StoreError: "NOT_FOUND" if the user does not exist
        """

    @abstractmethod
    async def delete_user(self, user_id: str) -> None:
        """
        Delete a user along with their projects and sent-email records.

        Raises:
            StoreError: "NOT_FOUND" if the user does not exist
        """

    # ========== Projects ==========

    @abstractmethod
    async def create_project(
        self,
        name: str,
        tagline: str | None,
        description: str,
        owner_id: str,
        created_by: str | None,
    ) -> ProjectRecord:
        """Create a project owned by a client."""

    @abstractmethod
    async def get_project(self, project_id: str) -> ProjectRecord:
        """
        Get a project by ID.

        Raises:
            StoreError: "NOT_FOUND" if the project does not exist
        """

    @abstractmethod
    async def list_projects(self, owner_id: str | None = None) -> list[ProjectRecord]:
        """List projects ordered by name, optionally for one owner."""

    @abstractmethod
    async def update_project(
        self, project_id: str, tagline: str | None, description: str
    ) -> ProjectRecord:
        """Replace a project's tagline and description."""

    # ========== Screens ==========

    @abstractmethod
    async def list_screens(self, project_id: str) -> list[ScreenRecord]:
        """List a project's screens ordered by sort order, then creation time."""

    @abstractmethod
    async def get_screen(self, screen_id: str) -> ScreenRecord:
        """
        Get a screen by ID.

        Raises:
            StoreError: "NOT_FOUND" if the screen does not exist
        """

    @abstractmethod
    async def create_screen(
        self,
        project_id: str,
        title: str,
        description: str | None,
        created_by: str | None,
        sort_order: int = 0,
    ) -> ScreenRecord:
        """Create a screen in a project."""

    @abstractmethod
    async def update_screen(self, screen_id: str, fields: dict[str, Any]) -> ScreenRecord:
        """Apply column updates to a screen."""

    # ========== Tasks ==========

    @abstractmethod
    async def list_tasks(self, screen_ids: list[str]) -> list[TaskRecord]:
        """List the tasks of the given screens, grouped in ``screen_ids`` order, then by sort order."""

    @abstractmethod
    async def get_task(self, task_id: str) -> TaskRecord:
        """
        Get a task by ID.

        Raises:
            StoreError: "NOT_FOUND" if the task does not exist
        """

    @abstractmethod
    async def create_tasks(
        self, screen_id: str, tasks: list[TaskCreate], created_by: str | None
    ) -> list[TaskRecord]:
        """Create tasks on a screen, preserving the given order."""

    @abstractmethod
    async def update_task(self, task_id: str, fields: dict[str, Any]) -> TaskRecord:
        """Apply column updates to a task."""

    # ========== Edit History ==========

    @abstractmethod
    async def add_task_history(
        self, task: TaskRecord, edited_by: str | None
    ) -> TaskHistoryRecord:
        """Append a history row carrying the task's current values."""

    @abstractmethod
    async def add_screen_history(
        self, screen: ScreenRecord, edited_by: str | None
    ) -> ScreenHistoryRecord:
        """Append a history row carrying the screen's current values."""

    @abstractmethod
    async def list_task_history(
        self, task_ids: list[str], since: datetime | None = None
    ) -> list[TaskHistoryRecord]:
        """List task history rows (newest first), optionally only those edited after ``since``."""

    @abstractmethod
    async def list_screen_history(
        self, screen_ids: list[str], since: datetime | None = None
    ) -> list[ScreenHistoryRecord]:
        """List screen history rows (newest first), optionally only those edited after ``since``."""

    # ========== Email History ==========

    @abstractmethod
    async def get_latest_email(self, project_id: str) -> EmailHistoryRecord | None:
        """Get the most recently sent email record for a project."""

    @abstractmethod
    async def create_email_record(self, record: EmailHistoryCreate) -> EmailHistoryRecord:
        """Append a sent-email record."""

    @abstractmethod
    async def list_email_history(self, limit: int = 100) -> list[EmailHistoryRecord]:
        """List sent-email records, newest first."""
