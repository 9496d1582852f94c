"""Structlog setup shared by the API and the stdlib loggers (uvicorn, motor).

Call ``configure_logging()`` once at startup and use ``get_logger()`` in
modules.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_CONFIGURED = False


def configure_logging(app_env: str = "local", log_format: str = "") -> None:
    """One-shot structlog + stdlib bridge configuration.

    Renderer is JSON when ``log_format`` is ``json`` or the app runs in
    production, console otherwise.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return
    _CONFIGURED = True

    renderer = _select_renderer(app_env, log_format)
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    processors = [*shared_processors, renderer]
    if isinstance(renderer, structlog.processors.JSONRenderer):
        processors.insert(-1, structlog.processors.format_exc_info)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(logging.INFO)


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger pre-bound with the component name.

    The proxy stays lazy, so module-level loggers pick up the configuration
    applied later by ``configure_logging()``.
    """
    return structlog.get_logger(component=component)


def _select_renderer(app_env: str, log_format: str) -> Any:
    log_format = log_format.lower()
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=True)
    if app_env.lower() in ("qa", "staging", "prod", "production"):
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)
