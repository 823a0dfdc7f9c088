import tomllib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from importlib import metadata
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portal.config import get_app_settings
from portal.db.database import close_db
from portal.integrations.email.factory import close_email_provider
from portal.integrations.email.router import router as email_router
from portal.milestones.router import router as milestones_router
from portal.projects.router import router as projects_router
from portal.updates.router import router as updates_router
from portal.users.router import router as users_router
from portal.utils.logger import logger


def get_version():
    """Get version from pyproject.toml, or the installed distribution outside a checkout"""
    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    if not pyproject_path.exists():
        return metadata.version("studio-portal")
    with open(pyproject_path, "rb") as f:
        data = tomllib.load(f)
    return data["project"]["version"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("Studio portal API starting")
    yield
    await close_email_provider()
    await close_db()
    logger.info("Studio portal API stopped")


app = FastAPI(
    title="Studio Portal API",
    description="Client project tracking and admin back-office for the studio",
    version=get_version(),
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_app_settings().client_base_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(projects_router, prefix="/api")
app.include_router(updates_router, prefix="/api")
app.include_router(milestones_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(email_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {"status": "ok", "message": "Studio Portal API is running"}


@app.get("/healthcheck")
@app.get("/api/healthcheck", include_in_schema=False)
async def healthcheck():
    """Health check endpoint."""
    return {"status": "ok", "message": "Studio Portal API is running"}
