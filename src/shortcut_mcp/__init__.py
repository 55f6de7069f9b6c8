"""shortcut_mcp package exports."""

from .core.actions import dispatch, run_action
from .core.cache import CacheEntry, ReferenceCache
from .core.client import (
    RetryConfig,
    ShortcutClient,
    ShortcutClientError,
    ShortcutHTTPError,
    ShortcutModelValidationError,
    ShortcutRateLimitError,
)
from .core.errors import InvalidIdError, MissingFieldError, ResolutionError
from .core.models import ActionRequest, ActionResult, ResultKind
from .core.resolvers import resolve_id, resolve_member, resolve_state

__all__ = [
    # Client
    "ShortcutClient",
    "RetryConfig",
    # Exceptions
    "ShortcutClientError",
    "ShortcutHTTPError",
    "ShortcutRateLimitError",
    "ShortcutModelValidationError",
    "InvalidIdError",
    "MissingFieldError",
    "ResolutionError",
    # Cache & resolvers
    "CacheEntry",
    "ReferenceCache",
    "resolve_id",
    "resolve_state",
    "resolve_member",
    # Actions
    "ActionRequest",
    "ActionResult",
    "ResultKind",
    "dispatch",
    "run_action",
]
