"""
Project router.

Admin endpoints for importing projects from markdown, viewing progress and
editing screens and tasks.
"""

from http import HTTPStatus

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from portal.auth.dependencies import get_current_admin
from portal.auth.schemas import AdminUser
from portal.projects.constants import MARKDOWN_EXTENSION
from portal.projects.dependencies import get_project_import_service, get_project_service
from portal.projects.markdown_parser import ProjectParseError
from portal.projects.schemas import (
    HistoryEntry,
    ImportResult,
    ParsedProject,
    ProjectCreateRequest,
    ProjectProgress,
    ScreenCreateRequest,
    ScreenOrderRequest,
    ScreenUpdateRequest,
    TaskUpdateRequest,
)
from portal.projects.service import ProjectImportService, ProjectService
from portal.store.base import StoreError
from portal.store.schemas import ProjectRecord, ScreenRecord, TaskRecord
from portal.utils.errors import store_http_error
from portal.utils.logger import logger

router = APIRouter(prefix="/projects", tags=["Projects"])


async def _read_markdown(file: UploadFile) -> str:
    if not (file.filename or "").lower().endswith(MARKDOWN_EXTENSION):
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Please upload a markdown (.md) file",
        )
    content = await file.read()
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.warning("Uploaded markdown is not UTF-8", upload_name=file.filename)
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="Markdown file must be UTF-8 text"
        ) from e


def _parse(service: ProjectImportService, text: str) -> ParsedProject:
    try:
        return service.preview(text)
    except ProjectParseError as e:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=e.message) from e


# ========== Import ==========


@router.post("/import/preview", response_model=ParsedProject)
async def preview_import(
    file: UploadFile = File(..., description="Project markdown file"),
    admin: AdminUser = Depends(get_current_admin),
    service: ProjectImportService = Depends(get_project_import_service),
) -> ParsedProject:
    """Parse an uploaded markdown file without saving anything."""
    return _parse(service, await _read_markdown(file))


@router.post("/import", response_model=ImportResult, status_code=HTTPStatus.CREATED)
async def import_project(
    file: UploadFile = File(..., description="Project markdown file"),
    owner_id: str = Form(..., description="Client the project belongs to"),
    project_id: str | None = Form(None, description="Existing project to merge into"),
    admin: AdminUser = Depends(get_current_admin),
    service: ProjectImportService = Depends(get_project_import_service),
) -> ImportResult:
    """
    Create a project from an uploaded markdown file, or merge it into an existing one.

    Raises:
        HTTPException: 400 if the file cannot be parsed, 404 if the project is unknown
    """
    parsed = _parse(service, await _read_markdown(file))
    try:
        return await service.import_project(
            parsed, owner_id=owner_id, imported_by=admin.id, project_id=project_id or None
        )
    except StoreError as e:
        raise store_http_error(e) from e


# ========== Views ==========


@router.get("", response_model=list[ProjectRecord])
async def list_projects(
    owner_id: str | None = Query(None, description="Only projects owned by this client"),
    admin: AdminUser = Depends(get_current_admin),
    service: ProjectService = Depends(get_project_service),
) -> list[ProjectRecord]:
    try:
        return await service.list_projects(owner_id)
    except StoreError as e:
        raise store_http_error(e) from e


@router.get("/{project_id}", response_model=ProjectProgress)
async def get_project(
    project_id: str,
    admin: AdminUser = Depends(get_current_admin),
    service: ProjectService = Depends(get_project_service),
) -> ProjectProgress:
    """Get a project with its screens, tasks and completion counts."""
    try:
        return await service.get_project_progress(project_id)
    except StoreError as e:
        raise store_http_error(e) from e


# ========== Manual Creation ==========


@router.post("", response_model=ProjectRecord, status_code=HTTPStatus.CREATED)
async def create_project(
    request: ProjectCreateRequest,
    admin: AdminUser = Depends(get_current_admin),
    service: ProjectService = Depends(get_project_service),
) -> ProjectRecord:
    """Create an empty project for a client."""
    try:
        return await service.create_project(
            request.owner_id, request.name, request.tagline, request.description
        )
    except StoreError as e:
        raise store_http_error(e) from e


@router.post(
    "/{project_id}/screens", response_model=ScreenRecord, status_code=HTTPStatus.CREATED
)
async def add_screen(
    project_id: str,
    request: ScreenCreateRequest,
    admin: AdminUser = Depends(get_current_admin),
    service: ProjectService = Depends(get_project_service),
) -> ScreenRecord:
    try:
        return await service.add_screen(
            project_id, request.title, request.description, created_by=admin.id
        )
    except StoreError as e:
        raise store_http_error(e) from e


@router.put("/{project_id}/screens/order", response_model=list[ScreenRecord])
async def reorder_screens(
    project_id: str,
    request: ScreenOrderRequest,
    admin: AdminUser = Depends(get_current_admin),
    service: ProjectService = Depends(get_project_service),
) -> list[ScreenRecord]:
    """
    Put the listed screens first, in the given order.

    Raises:
        HTTPException: 400 for repeated or foreign screen IDs, 404 for an unknown project
    """
    try:
        return await service.reorder_screens(project_id, request.screen_ids)
    except ValueError as e:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(e)) from e
    except StoreError as e:
        raise store_http_error(e) from e


# ========== Edits ==========


@router.patch("/tasks/{task_id}", response_model=TaskRecord)
async def update_task(
    task_id: str,
    request: TaskUpdateRequest,
    admin: AdminUser = Depends(get_current_admin),
    service: ProjectService = Depends(get_project_service),
) -> TaskRecord:
    """Edit a task; the new values are appended to its history."""
    try:
        return await service.update_task(
            task_id,
            edited_by=admin.id,
            title=request.title,
            description=request.description,
            status=request.status,
        )
    except StoreError as e:
        raise store_http_error(e) from e


@router.patch("/screens/{screen_id}", response_model=ScreenRecord)
async def update_screen(
    screen_id: str,
    request: ScreenUpdateRequest,
    admin: AdminUser = Depends(get_current_admin),
    service: ProjectService = Depends(get_project_service),
) -> ScreenRecord:
    """Edit a screen; the new values are appended to its history."""
    try:
        return await service.update_screen(
            screen_id, edited_by=admin.id, title=request.title, description=request.description
        )
    except StoreError as e:
        raise store_http_error(e) from e


@router.get("/tasks/{task_id}/history", response_model=list[HistoryEntry])
async def get_task_history(
    task_id: str,
    admin: AdminUser = Depends(get_current_admin),
    service: ProjectService = Depends(get_project_service),
) -> list[HistoryEntry]:
    try:
        return await service.get_task_history(task_id)
    except StoreError as e:
        raise store_http_error(e) from e


@router.get("/screens/{screen_id}/history", response_model=list[HistoryEntry])
async def get_screen_history(
    screen_id: str,
    admin: AdminUser = Depends(get_current_admin),
    service: ProjectService = Depends(get_project_service),
) -> list[HistoryEntry]:
    try:
        return await service.get_screen_history(screen_id)
    except StoreError as e:
        raise store_http_error(e) from e
