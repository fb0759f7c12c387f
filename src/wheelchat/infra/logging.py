"""Logging bootstrap for wheelchat.

All modules use ``logging.getLogger(__name__)``.  ``setup_logging``
installs one stdout handler on the root logger and routes uvicorn's
loggers through it.  Production emits one JSON object per line via
``python-json-logger``; with ``json_output: false`` records are rendered
by uvicorn's coloured formatter instead.

Records carry ``trace_id`` / ``span_id`` whenever an OpenTelemetry span
is active (empty strings otherwise).
"""

from __future__ import annotations

import logging
import sys

from opentelemetry import trace

from wheelchat.configs.system import LoggingConfig

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

_JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
_JSON_RENAMES = {"asctime": "timestamp", "levelname": "level", "name": "logger"}

_TEXT_FORMAT = "%(levelprefix)s %(asctime)s [%(name)s] %(message)s"
_TEXT_DATEFMT = "%H:%M:%S"


class _TraceContextFilter(logging.Filter):
    """Stamp the active span's IDs onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = trace.get_current_span().get_span_context()
        valid = ctx is not None and ctx.is_valid
        record.trace_id = format(ctx.trace_id, "032x") if valid else ""  # type: ignore[attr-defined]
        record.span_id = format(ctx.span_id, "016x") if valid else ""  # type: ignore[attr-defined]
        return True


def _build_formatter(config: LoggingConfig) -> logging.Formatter:
    if not config.json_output:
        from uvicorn.logging import DefaultFormatter

        return DefaultFormatter(fmt=_TEXT_FORMAT, datefmt=_TEXT_DATEFMT, use_colors=True)

    from pythonjsonlogger.json import JsonFormatter

    return JsonFormatter(
        fmt=_JSON_FIELDS,
        rename_fields=_JSON_RENAMES,
        static_fields={"service": "wheelchat"},
        defaults={"trace_id": "", "span_id": ""},
    )


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the root logger once, before the app starts serving."""
    config = config or LoggingConfig()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_TraceContextFilter())
    handler.setFormatter(_build_formatter(config))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(config.level.upper())

    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False

    # Third-party clients log every request at INFO.
    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)
