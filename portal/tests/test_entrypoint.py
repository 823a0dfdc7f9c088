"""Tests for the ``studio-portal`` server entry point."""

from unittest.mock import patch

from portal import __main__ as entrypoint
from portal.config import AppSettings, Environment, get_app_settings, set_app_settings


def test_main_runs_app_with_configured_address():
    original = get_app_settings()
    set_app_settings(
        AppSettings(server_host="127.0.0.1", server_port=9000, environment=Environment.PRODUCTION)
    )
    try:
        with patch.object(entrypoint.uvicorn, "run") as run:
            entrypoint.main()
    finally:
        set_app_settings(original)

    run.assert_called_once_with("portal.main:app", host="127.0.0.1", port=9000, reload=False)
