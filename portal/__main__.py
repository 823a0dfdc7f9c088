"""Run the portal API server: ``python -m portal`` or ``studio-portal``."""

import uvicorn

from portal.config import Environment, get_app_settings


def main() -> None:
    settings = get_app_settings()
    uvicorn.run(
        "portal.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == Environment.DEVELOPMENT,
    )


if __name__ == "__main__":
    main()
