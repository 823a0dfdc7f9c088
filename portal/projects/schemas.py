"""
Pydantic schemas for project import, progress views and edits.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from portal.projects.constants import DEFAULT_PROJECT_DESCRIPTION, TaskStatus
from portal.store.schemas import ProjectRecord, ScreenRecord, TaskRecord

# ========== Parsed Markdown ==========


class ParsedTask(BaseModel):
    """A checkbox line from an uploaded project document."""

    title: str
    description: str | None = None


class ParsedScreen(BaseModel):
    """A ``##`` section of an uploaded project document."""

    title: str
    description: str | None = None
    tasks: list[ParsedTask] = Field(default_factory=list)


class ParsedProject(BaseModel):
    """The project tree read from an uploaded markdown document."""

    name: str
    tagline: str | None = None
    description: str = DEFAULT_PROJECT_DESCRIPTION
    screens: list[ParsedScreen] = Field(default_factory=list)


class ImportResult(BaseModel):
    """Outcome of importing a parsed project into the store."""

    project_id: str = Field(..., description="ID of the created or merged project")
    created: bool = Field(..., description="True when a new project was created")
    screens_added: int = Field(0, description="Number of screens created")
    tasks_added: int = Field(0, description="Number of tasks created")


# ========== Progress View ==========


class ScreenProgress(BaseModel):
    screen: ScreenRecord
    tasks: list[TaskRecord]
    done_count: int
    total_count: int


class ProjectProgress(BaseModel):
    """A project with its screens, tasks and completion counts."""

    project: ProjectRecord
    screens: list[ScreenProgress]
    done_count: int
    total_count: int
    percent_complete: int = Field(..., description="Rounded share of done tasks (0-100)")


# ========== Manual Creation ==========


class ProjectCreateRequest(BaseModel):
    """A project entered by hand instead of imported from markdown."""

    model_config = ConfigDict(str_strip_whitespace=True)

    owner_id: str = Field(..., description="Client the project belongs to")
    name: str = Field(..., min_length=1)
    tagline: str | None = None
    description: str = Field(DEFAULT_PROJECT_DESCRIPTION, min_length=1)


class ScreenCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1)
    description: str | None = None


class ScreenOrderRequest(BaseModel):
    screen_ids: list[str] = Field(
        ..., min_length=1, description="Screens to move to the front, in display order"
    )


# ========== Edits ==========


class TaskUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1)
    description: str | None = None
    status: TaskStatus | None = None


class ScreenUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1)
    description: str | None = None


class HistoryEntry(BaseModel):
    """One recorded edit of a task or screen."""

    id: str
    title: str
    description: str | None = None
    status: TaskStatus | None = None
    edited_by: str | None = None
    edited_at: datetime
