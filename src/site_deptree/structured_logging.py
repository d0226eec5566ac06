"""
Structured logging for site-deptree.

Graph building emits machine-readable events on stderr so that stdout
carries nothing but the rendered tree.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_RESERVED_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "getMessage",
    "exc_info",
    "exc_text",
    "stack_info",
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class EventFormatter(logging.Formatter):
    """Plain-text formatter that appends event fields as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        fields = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_KEYS and key != "message" and key != "asctime"
        ]
        return f"{base} {' '.join(fields)}" if fields else base


class EventLogger:
    """Structured logger for graph building events."""

    def __init__(self, name: str = "site_deptree.events"):
        self.logger = logging.getLogger(name)
        self.handler = logging.StreamHandler(sys.stderr)
        self.handler.setFormatter(EventFormatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        self.logger.addHandler(self.handler)
        self.logger.setLevel(logging.WARNING)
        self.logger.propagate = False
        self.context: Dict[str, Any] = {}

    def set_context(self, env_path: Optional[str] = None) -> None:
        """Set the environment currently being scanned."""
        self.context = {}
        if env_path:
            self.context["env_path"] = env_path

    def clear_context(self) -> None:
        self.context.clear()

    def _log(self, level: str, event_type: str, **kwargs) -> None:
        log_data = {"event_type": event_type, **self.context, **kwargs}
        getattr(self.logger, level.lower())(event_type, extra=log_data)

    def info(self, event_type: str, **kwargs) -> None:
        self._log("info", event_type, **kwargs)

    def warning(self, event_type: str, **kwargs) -> None:
        self._log("warning", event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        self._log("debug", event_type, **kwargs)


_graph_logger = EventLogger()


def get_graph_logger() -> EventLogger:
    """Get graph building logger."""
    return _graph_logger


def log_graph_build_start(env_path: str) -> None:
    _graph_logger.set_context(env_path)
    _graph_logger.info("graph_build_started")


def log_distribution_parsed(name: str, installed_version: str, dependency_count: int) -> None:
    _graph_logger.debug(
        "distribution_parsed",
        distribution=name,
        installed_version=installed_version,
        dependency_count=dependency_count,
    )


def log_distribution_skipped(source: str, reason: str) -> None:
    _graph_logger.warning("distribution_skipped", source=source, reason=reason)


def log_duplicate_distribution(name: str, source: str) -> None:
    _graph_logger.warning("duplicate_distribution", distribution=name, source=source)


def log_graph_build_complete(total_distributions: int, skipped: int = 0) -> None:
    _graph_logger.info(
        "graph_build_completed",
        total_distributions=total_distributions,
        skipped_distributions=skipped,
    )
    _graph_logger.clear_context()


def configure_logging(
    log_level: str = "WARNING",
    enable_json: bool = False,
    log_format: Optional[str] = None,
) -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.WARNING)

    if enable_json:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = EventFormatter(
            log_format or "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    _graph_logger.handler.setFormatter(formatter)
    _graph_logger.logger.setLevel(level)
    logging.getLogger("site_deptree").setLevel(level)
