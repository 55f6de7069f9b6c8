from __future__ import annotations

import logging
from typing import Any, Dict

from .context import current_request_id

OBSERVABILITY_LOGGER = "shortcut_mcp.observability"

# Attributes every LogRecord already carries; `extra` may not overwrite them.
RESERVED_LOG_KEYS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}


def _clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k not in RESERVED_LOG_KEYS}


def log_event(
    event: str,
    logger: logging.Logger | None = None,
    *,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """
    Emit one structured event; `fields` become LogRecord extras.
    The active request id is attached unless given explicitly.
    """
    log = logger or logging.getLogger(OBSERVABILITY_LOGGER)
    extra = _clean_fields(fields)
    extra.setdefault("request_id", current_request_id())
    log.log(level, event, extra=extra)


__all__ = ["log_event", "OBSERVABILITY_LOGGER", "RESERVED_LOG_KEYS"]
