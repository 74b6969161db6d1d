"""Structured Logging — registry log records as JSON lines or readable text.

Invariants:
    - Every line carries the record's own time, level, logger and message
    - Registry context (node_id, caller, beneficiary, sequence, ...) is emitted only
      when set on the record via `extra=`
    - setup_logging owns exactly one root handler: calling it again replaces it

Design Decisions:
    - Timestamps come from record.created, not formatting time, so buffered
      records keep their order
    - The text format appends the same context as key=value pairs, keeping
      local runs greppable by node or caller
    - SQLAlchemy engine chatter is capped at WARNING regardless of app level
"""

import logging
import json
from datetime import datetime, timezone

CONTEXT_FIELDS = (
    "node_id", "caller", "beneficiary", "chain_type", "capability",
    "amount", "sequence", "error_code", "path",
)

_TEXT_PATTERN = "%(asctime)s %(levelname)s %(name)s - %(message)s"
_QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite")


def _context(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key]
        for key in CONTEXT_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ContextTextFormatter(logging.Formatter):
    """Human-readable line followed by the record's registry context."""

    def __init__(self):
        super().__init__(_TEXT_PATTERN)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context(record)
        if not context:
            return line
        pairs = " ".join(f"{k}={v}" for k, v in context.items())
        return f"{line} [{pairs}]"


class _RegistryHandler(logging.StreamHandler):
    """Marker type so setup_logging can find the handler it installed."""


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the registry's root handler, replacing any earlier one."""
    root = logging.getLogger()
    for existing in [h for h in root.handlers if isinstance(h, _RegistryHandler)]:
        root.removeHandler(existing)

    handler = _RegistryHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else ContextTextFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
