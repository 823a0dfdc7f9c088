"""
Structured JSON logging for the portal.

``logger`` is the shared instance. Keyword arguments passed to a log call
become top-level JSON fields::

    logger.info("Sent project update", project_id=project.id, recipient=email)

``bind`` returns an adapter that adds the same fields to every call.
"""

import inspect
import logging
import os
from typing import Any

from pythonjsonlogger import jsonlogger

LOGGER_NAME = "portal"

# Attributes of logging.LogRecord; passing one of these as "extra" raises KeyError
_RESERVED_FIELDS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}

# Keyword arguments that logging itself understands
_LOGGING_KWARGS = ("exc_info", "stack_info", "stacklevel")

# Positional parameters of LoggerAdapter.log(); used as field names they are prefixed
_LOG_METHOD_PARAMS = ("level", "msg")


def _level_from_env() -> int:
    level = logging.getLevelNamesMapping().get(os.getenv("LOG_LEVEL", "INFO").upper())
    return level if level is not None else logging.INFO


def _configure(name: str) -> logging.Logger:
    base = logging.getLogger(name)
    base.setLevel(_level_from_env())
    base.propagate = False
    if not base.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s",
                rename_fields={"asctime": "@timestamp", "levelname": "log_level"},
                datefmt="%Y-%m-%dT%H:%M:%S%z",
            )
        )
        base.addHandler(handler)
    return base


def _caller_location() -> str:
    # Two frames up: past error()/exception() to the code that called it
    frame = inspect.currentframe()
    caller = frame.f_back.f_back if frame and frame.f_back else None
    if caller is None:
        return "unknown:0"
    return f"{caller.f_code.co_filename}:{caller.f_lineno}"

class PortalLogger(logging.LoggerAdapter):
    """Adapter turning keyword arguments into structured log fields.

    The level methods take ``msg`` positional-only, so fields named ``msg`` or
    ``level`` reach ``process`` instead of binding to ``log()``'s parameters.
    """

    def __init__(self, base: logging.Logger, fields: dict[str, Any] | None = None):
        super().__init__(base, fields or {})

    def bind(self, **fields: Any) -> "PortalLogger":
        """Return a logger that adds ``fields`` to every record."""
        return PortalLogger(self.logger, {**self.extra, **fields})

    def _emit(self, level: int, msg: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        for key in _LOG_METHOD_PARAMS:
            if key in kwargs:
                kwargs[f"field_{key}"] = kwargs.pop(key)
        # Skip _emit and the level method when locating the caller
        kwargs.setdefault("stacklevel", 3)
        self.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, /, *args: Any, **kwargs: Any) -> None:
        self._emit(logging.DEBUG, msg, args, kwargs)

    def info(self, msg: str, /, *args: Any, **kwargs: Any) -> None:
        self._emit(logging.INFO, msg, args, kwargs)

    def warning(self, msg: str, /, *args: Any, **kwargs: Any) -> None:
        self._emit(logging.WARNING, msg, args, kwargs)

    def error(self, msg: str, /, *args: Any, **kwargs: Any) -> None:
        """Log at ERROR with the caller's ``file:line`` attached."""
        kwargs["file"] = _caller_location()
        self._emit(logging.ERROR, msg, args, kwargs)

    def exception(self, msg: str, /, *args: Any, exc_info: Any = True, **kwargs: Any) -> None:
        kwargs["file"] = _caller_location()
        self._emit(logging.ERROR, msg, args, {**kwargs, "exc_info": exc_info})

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        passthrough = {key: kwargs.pop(key) for key in _LOGGING_KWARGS if key in kwargs}
        fields = {**self.extra, **kwargs}
        if fields:
            passthrough["extra"] = {
                (f"field_{key}" if key in _RESERVED_FIELDS else key): value
                for key, value in fields.items()
            }
        return msg, passthrough


logger = PortalLogger(_configure(LOGGER_NAME))
logger.debug(
    "Logger configured",
    configured_level=logging.getLevelName(logger.logger.getEffectiveLevel()),
)
