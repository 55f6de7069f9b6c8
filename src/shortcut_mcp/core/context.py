"""Per-invocation request id carried through ContextVars."""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def ensure_request_id(candidate: Optional[str] = None) -> str:
    return candidate or uuid.uuid4().hex


def current_request_id() -> Optional[str]:
    return _request_id_var.get()


@contextmanager
def request_scope(request_id: Optional[str] = None) -> Iterator[str]:
    """Bind a request id for the duration of one tool invocation."""
    rid = ensure_request_id(request_id)
    token = _request_id_var.set(rid)
    try:
        yield rid
    finally:
        _request_id_var.reset(token)


__all__ = ["ensure_request_id", "current_request_id", "request_scope"]
