"""
FastAPI dependencies for project services.
"""

from fastapi import Depends

from portal.projects.service import ProjectImportService, ProjectService
from portal.store.base import ProjectStore
from portal.store.dependencies import get_project_store


def get_project_import_service(
    store: ProjectStore = Depends(get_project_store),
) -> ProjectImportService:
    return ProjectImportService(store)


def get_project_service(store: ProjectStore = Depends(get_project_store)) -> ProjectService:
    return ProjectService(store)
