"""
Project service layer.

``ProjectImportService`` turns uploaded markdown into stored projects, either
creating a new project or merging new screens and tasks into an existing one.
``ProjectService`` serves the client progress view and the admin edits that
feed the update-email differ through the history tables.
"""

from typing import Any

from portal.projects.constants import TaskStatus
from portal.projects.markdown_parser import parse_project_markdown
from portal.projects.schemas import (
    HistoryEntry,
    ImportResult,
    ParsedProject,
    ParsedScreen,
    ProjectProgress,
    ScreenProgress,
)
from portal.store.base import ProjectStore
from portal.store.schemas import ProjectRecord, ScreenRecord, TaskCreate, TaskRecord
from portal.utils.logger import logger


def _match_key(title: str) -> str:
    return title.strip().lower()


def _task_payloads(screen: ParsedScreen, skip_titles: set[str] | None = None) -> list[TaskCreate]:
    """
    Task payloads for a parsed screen.

    With ``skip_titles`` given (merging), titles already taken are skipped and
    only the first of several matching titles in the document is kept.
    """
    seen = None if skip_titles is None else set(skip_titles)
    payloads = []
    for task in screen.tasks:
        if seen is not None:
            key = _match_key(task.title)
            if key in seen:
                continue
            seen.add(key)
        payloads.append(
            TaskCreate(
                title=task.title, description=task.description, status=TaskStatus.NOT_STARTED
            )
        )
    return payloads


class ProjectImportService:
    """Imports parsed markdown projects into the store."""

    def __init__(self, store: ProjectStore):
        """
        Initialize the import service.

        Args:
            store: Project store to write to
        """
        self.store = store

    def preview(self, text: str) -> ParsedProject:
        """
        Parse a document without writing anything.

        Raises:
            ProjectParseError: If the document cannot be parsed
        """
        parsed = parse_project_markdown(text)
        logger.info(
            "Parsed project document",
            project_name=parsed.name,
            screen_count=len(parsed.screens),
            task_count=sum(len(s.tasks) for s in parsed.screens),
        )
        return parsed

    async def import_project(
        self,
        parsed: ParsedProject,
        owner_id: str,
        imported_by: str | None,
        project_id: str | None = None,
    ) -> ImportResult:
        """
        Create a new project or merge into an existing one.

        Screens and tasks are matched on their trimmed, case-insensitive
        title; only unmatched ones are created. Writes are not rolled back
        if a later one fails.

        Args:
            parsed: Parsed project tree
            owner_id: Client the project belongs to
            imported_by: Admin performing the import (recorded as creator)
            project_id: Existing project to merge into, or None to create one

        Returns:
            ImportResult: Project ID and counts of created screens and tasks

        Raises:
            StoreError: If a store read or write fails
        """
        if project_id is None:
            return await self._create(parsed, owner_id, imported_by)
        return await self._merge(parsed, project_id, imported_by)

    async def _create(
        self, parsed: ParsedProject, owner_id: str, imported_by: str | None
    ) -> ImportResult:
        project = await self.store.create_project(
            name=parsed.name,
            tagline=parsed.tagline,
            description=parsed.description,
            owner_id=owner_id,
            created_by=owner_id,
        )

        tasks_added = 0
        for index, screen in enumerate(parsed.screens):
            screen_record = await self.store.create_screen(
                project_id=project.id,
                title=screen.title,
                description=screen.description,
                created_by=imported_by,
                sort_order=index,
            )
            created = await self.store.create_tasks(
                screen_record.id, _task_payloads(screen), imported_by
            )
            tasks_added += len(created)

        logger.info(
            "Created project from document",
            project_id=project.id,
            owner_id=owner_id,
            screens_added=len(parsed.screens),
            tasks_added=tasks_added,
        )
        return ImportResult(
            project_id=project.id,
            created=True,
            screens_added=len(parsed.screens),
            tasks_added=tasks_added,
        )

    async def _merge(
        self, parsed: ParsedProject, project_id: str, imported_by: str | None
    ) -> ImportResult:
        await self.store.update_project(project_id, parsed.tagline, parsed.description)

        existing_screens = await self.store.list_screens(project_id)
        screens_by_key = {_match_key(s.title): s for s in existing_screens}
        existing_tasks = await self.store.list_tasks([s.id for s in existing_screens])
        task_titles: dict[str, set[str]] = {}
        for task in existing_tasks:
            task_titles.setdefault(task.screen_id, set()).add(_match_key(task.title))

        screens_added = 0
        tasks_added = 0
        next_sort_order = len(existing_screens)

        for screen in parsed.screens:
            match = screens_by_key.get(_match_key(screen.title))
            if match is None:
                match = await self.store.create_screen(
                    project_id=project_id,
                    title=screen.title,
                    description=screen.description,
                    created_by=imported_by,
                    sort_order=next_sort_order,
                )
                next_sort_order += 1
                screens_added += 1
                screens_by_key[_match_key(screen.title)] = match

            new_tasks = _task_payloads(screen, task_titles.setdefault(match.id, set()))
            if new_tasks:
                created = await self.store.create_tasks(match.id, new_tasks, imported_by)
                tasks_added += len(created)
                task_titles[match.id].update(_match_key(t.title) for t in new_tasks)

        logger.info(
            "Merged document into project",
            project_id=project_id,
            screens_added=screens_added,
            tasks_added=tasks_added,
        )
        return ImportResult(
            project_id=project_id,
            created=False,
            screens_added=screens_added,
            tasks_added=tasks_added,
        )


class ProjectService:
    """Project progress views and admin edits."""

    def __init__(self, store: ProjectStore):
        self.store = store

    async def list_projects(self, owner_id: str | None = None) -> list[ProjectRecord]:
        return await self.store.list_projects(owner_id)

    async def create_project(
        self, owner_id: str, name: str, tagline: str | None, description: str
    ) -> ProjectRecord:
        """
        Create an empty project for a client.

        Raises:
            StoreError: "NOT_FOUND" if the owner does not exist
        """
        await self.store.get_user(owner_id)
        project = await self.store.create_project(
            name=name,
            tagline=tagline or None,
            description=description,
            owner_id=owner_id,
            created_by=owner_id,
        )
        logger.info("Created project", project_id=project.id, owner_id=owner_id)
        return project

    async def add_screen(
        self, project_id: str, title: str, description: str | None, created_by: str | None
    ) -> ScreenRecord:
        """
        Add a screen after the project's existing screens.

        Raises:
            StoreError: "NOT_FOUND" if the project does not exist
        """
        await self.store.get_project(project_id)
        screens = await self.store.list_screens(project_id)
        sort_order = max((s.sort_order for s in screens), default=-1) + 1
        screen = await self.store.create_screen(
            project_id=project_id,
            title=title,
            description=description or None,
            created_by=created_by,
            sort_order=sort_order,
        )
        logger.info("Added screen", project_id=project_id, screen_id=screen.id)
        return screen

    async def reorder_screens(self, project_id: str, screen_ids: list[str]) -> list[ScreenRecord]:
        """
        Move the given screens to the front, in the given order.

        Screens not listed keep their relative order after them. Sort orders
        are renumbered from zero and only changed rows are written.

        Raises:
            StoreError: "NOT_FOUND" if the project does not exist
            ValueError: If an ID is repeated or not a screen of the project
        """
        await self.store.get_project(project_id)
        screens = await self.store.list_screens(project_id)
        by_id = {s.id: s for s in screens}

        if len(set(screen_ids)) != len(screen_ids):
            raise ValueError("Screen IDs must not repeat")
        unknown = [screen_id for screen_id in screen_ids if screen_id not in by_id]
        if unknown:
            raise ValueError(f"Screens not in project {project_id}: {', '.join(unknown)}")

        listed = set(screen_ids)
        ordered = [by_id[screen_id] for screen_id in screen_ids]
        ordered.extend(s for s in screens if s.id not in listed)

        result = []
        for index, screen in enumerate(ordered):
            if screen.sort_order != index:
                screen = await self.store.update_screen(screen.id, {"sort_order": index})
            result.append(screen)

        logger.info("Reordered screens", project_id=project_id, screen_count=len(result))
        return result

    async def get_project_progress(self, project_id: str) -> ProjectProgress:
        """
        Load a project with its screens, tasks and completion counts.

        Raises:
            StoreError: "NOT_FOUND" if the project does not exist
        """
        project = await self.store.get_project(project_id)
        screens = await self.store.list_screens(project_id)
        tasks = await self.store.list_tasks([s.id for s in screens])

        tasks_by_screen: dict[str, list[TaskRecord]] = {s.id: [] for s in screens}
        for task in tasks:
            tasks_by_screen[task.screen_id].append(task)

        screen_progress = []
        for screen in screens:
            screen_tasks = tasks_by_screen[screen.id]
            screen_progress.append(
                ScreenProgress(
                    screen=screen,
                    tasks=screen_tasks,
                    done_count=sum(1 for t in screen_tasks if t.status == TaskStatus.DONE),
                    total_count=len(screen_tasks),
                )
            )

        done = sum(s.done_count for s in screen_progress)
        total = len(tasks)
        return ProjectProgress(
            project=project,
            screens=screen_progress,
            done_count=done,
            total_count=total,
            percent_complete=round(done * 100 / total) if total else 0,
        )

    async def update_task(
        self,
        task_id: str,
        edited_by: str | None,
        title: str | None = None,
        description: str | None = None,
        status: TaskStatus | None = None,
    ) -> TaskRecord:
        """
        Edit a task and record the new values in its history.

        An edit with no fields returns the current record and writes no history.

        Raises:
            StoreError: "NOT_FOUND" if the task does not exist
        """
        fields: dict[str, Any] = {}
        if title is not None:
            fields["title"] = title
        if description is not None:
            fields["description"] = description
        if status is not None:
            fields["status"] = status
        if not fields:
            return await self.store.get_task(task_id)

        task = await self.store.update_task(task_id, fields)
        await self.store.add_task_history(task, edited_by)
        logger.info(
            "Updated task",
            task_id=task_id,
            edited_by=edited_by,
            fields=sorted(fields),
            status=task.status.value,
        )
        return task

    async def update_screen(
        self,
        screen_id: str,
        edited_by: str | None,
        title: str | None = None,
        description: str | None = None,
    ) -> ScreenRecord:
        """
        Edit a screen and record the new values in its history.

        An edit with no fields returns the current record and writes no history.

        Raises:
            StoreError: "NOT_FOUND" if the screen does not exist
        """
        fields: dict[str, Any] = {}
        if title is not None:
            fields["title"] = title
        if description is not None:
            fields["description"] = description
        if not fields:
            return await self.store.get_screen(screen_id)

        screen = await self.store.update_screen(screen_id, fields)
        await self.store.add_screen_history(screen, edited_by)
        logger.info(
            "Updated screen", screen_id=screen_id, edited_by=edited_by, fields=sorted(fields)
        )
        return screen

    async def get_task_history(self, task_id: str) -> list[HistoryEntry]:
        await self.store.get_task(task_id)
        rows = await self.store.list_task_history([task_id])
        return [HistoryEntry.model_validate(row.model_dump()) for row in rows]

    async def get_screen_history(self, screen_id: str) -> list[HistoryEntry]:
        await self.store.get_screen(screen_id)
        rows = await self.store.list_screen_history([screen_id])
        return [HistoryEntry.model_validate(row.model_dump()) for row in rows]
