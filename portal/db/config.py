"""Postgres connection settings, read from ``DB_*`` environment variables."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

from portal.utils.logger import logger

ASYNC_DRIVER = "postgresql+asyncpg"
SYNC_DRIVER = "postgresql+psycopg2"


class DatabaseSettings(BaseSettings):
    """Database configuration using Pydantic settings.

    Either ``DB_URL`` or the individual host/user/password fields must be set.
    A full URL wins; its driver is replaced per use.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False, extra="ignore", env_prefix="DB_"
    )

    url: SecretStr | None = Field(default=None, description="Full database URL")
    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    name: str = Field(default="portal", description="Database name")
    username: str = Field(default="postgres", description="Database username")
    password: SecretStr = Field(default=SecretStr(""), description="Database user password")
    require_ssl: bool = Field(
        default=True, description="Require SSL (hosted Postgres providers need it)"
    )

    pool_size: int = Field(default=5, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum overflow connections")
    echo: bool = Field(default=False, description="Echo SQL statements to logs")

    def _url(self, driver: str, ssl_query: dict[str, str]) -> URL:
        if self.url is not None:
            return make_url(self.url.get_secret_value()).set(drivername=driver)
        return URL.create(
            driver,
            username=self.username,
            password=self.password.get_secret_value() or None,
            host=self.host,
            port=self.port,
            database=self.name,
            query=ssl_query if self.require_ssl else {},
        )

    def get_sync_url(self) -> str:
        """psycopg2 URL, used by Alembic."""
        return self._url(SYNC_DRIVER, {"sslmode": "require"}).render_as_string(
            hide_password=False
        )

    def get_async_url(self) -> URL:
        """asyncpg URL, used by the application engine."""
        return self._url(ASYNC_DRIVER, {"ssl": "require"})


_db_settings: DatabaseSettings | None = None


def get_db_settings() -> DatabaseSettings:
    """Return the process-wide settings, loading them on first use."""
    global _db_settings
    if _db_settings is None:
        _db_settings = DatabaseSettings()
        target = _db_settings.get_async_url()
        logger.info(
            "DatabaseSettings loaded",
            host=target.host,
            port=target.port,
            database=target.database,
        )
    return _db_settings


def set_db_settings(settings: DatabaseSettings) -> None:
    """Replace the process-wide settings (used by tests)."""
    global _db_settings
    _db_settings = settings
