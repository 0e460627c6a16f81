"""Structured logging via structlog.

Configures structlog once at application startup. All subsequent calls to
`structlog.get_logger()` use this configuration; library modules keep using
`logging.getLogger(__name__)`; their records are rendered by a
`structlog.stdlib.ProcessorFormatter` on the root handler, so they get the
same timestamp, level and context fields as structlog events.

Renderer selection:
  debug=True:  `ConsoleRenderer` with colours for local development.
  debug=False: `JSONRenderer` for machine-parseable logs in production.

ContextVar injection:
  `request_id` comes from `drafter.core.middleware`; `run_id` is bound by
  the draft service for the lifetime of one pipeline run, so log lines from
  the downloader and uploader can be correlated with the request that
  started them.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

import structlog

from drafter.core.middleware import get_request_id

_run_id_var: ContextVar[str] = ContextVar("run_id", default="")
_HANDLER_NAME = "drafter"


def get_run_id() -> str:
    """Return the current pipeline run ID, or empty string if not set."""
    return _run_id_var.get()


def bind_run_id(run_id: str):
    """Bind `run_id` for the current context. Returns the reset token."""
    return _run_id_var.set(run_id)


def reset_run_id(token) -> None:
    _run_id_var.reset(token)


def _inject_context_vars(
    logger: logging.Logger,
    method: str,
    event_dict: dict,
) -> dict:
    """Structlog processor: inject request_id and run_id from ContextVars."""
    request_id = get_request_id()
    run_id = get_run_id()
    if request_id:
        event_dict["request_id"] = request_id
    if run_id:
        event_dict["run_id"] = run_id
    return event_dict


def build_formatter(debug: bool = True) -> structlog.stdlib.ProcessorFormatter:
    """Return the formatter that renders both structlog and stdlib records.

    Records from `logging.getLogger(__name__)` pass through the same shared
    chain as structlog events, so they carry request_id and run_id too.
    """
    shared_processors: list = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _inject_context_vars,
        structlog.processors.StackInfoRenderer(),
    ]

    if debug:
        final: list = [structlog.dev.ConsoleRenderer()]
    else:
        final = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *final],
    )


def configure_structlog(debug: bool = True) -> None:
    """Configure structlog for the application lifetime.

    Call once from `create_app()` before any routers are registered.
    Calling multiple times is safe: the root handler installed by a previous
    call is replaced, not duplicated.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _inject_context_vars,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(build_formatter(debug))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
