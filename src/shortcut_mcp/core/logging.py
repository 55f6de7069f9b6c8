import logging
import sys
from typing import Any, Iterable

LOG_EXTRA_FIELDS = (
    "request_id",
    "action",
    "method",
    "endpoint",
    "status",
    "duration_ms",
    "attempt",
    "kind",
    "error_type",
)

# Libraries that log every request at INFO; their lines would drown sc_call events.
NOISY_LOGGERS = ("httpx", "httpcore", "mcp.server.lowlevel.server")


class LogfmtFormatter(logging.Formatter):
    """logfmt lines (`key=value ...`); extras missing from a record are skipped."""

    def format(self, record: logging.LogRecord) -> str:
        pairs = [("level", record.levelname.lower()), ("logger", record.name)]

        message = record.getMessage()
        if message:
            pairs.append(("event", message))

        pairs.extend(
            (key, getattr(record, key))
            for key in LOG_EXTRA_FIELDS
            if getattr(record, key, None) is not None
        )

        if record.exc_info and record.exc_info[0] is not None:
            pairs.append(("exc_type", record.exc_info[0].__name__))

        return " ".join(f"{key}={self._fmt_val(val)}" for key, val in pairs)

    @staticmethod
    def _fmt_val(val: Any) -> str:
        if isinstance(val, (int, float, bool)):
            return str(val)
        s = str(val).replace("\n", "\\n")
        if not s or any(ch in s for ch in ' ="'):
            s = '"' + s.replace('"', '\\"') + '"'
        return s


def setup_logging(level: str = "INFO", *, quiet: Iterable[str] = NOISY_LOGGERS) -> None:
    """Route the root logger to stderr in logfmt.

    stdout carries the MCP stdio stream, so nothing may be logged there.
    """
    root = logging.getLogger()
    # Replace handlers so a second call does not duplicate output
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(LogfmtFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["setup_logging", "LogfmtFormatter", "LOG_EXTRA_FIELDS", "NOISY_LOGGERS"]
