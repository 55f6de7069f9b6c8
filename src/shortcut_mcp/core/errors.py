from __future__ import annotations

from .client import (
    ShortcutClientError,
    ShortcutHTTPError,
    ShortcutModelValidationError,
    ShortcutRateLimitError,
)
from .config import MissingTokenError


class InvalidIdError(ValueError):
    """Identifier could not be parsed into a positive integer."""

    def __init__(self, value: str):
        super().__init__(f"Invalid ID: {value}")
        self.value = value


class NotFoundError(LookupError):
    """Story or epic lookup that returned 404 or an empty body."""

    def __init__(self, message: str, *, entity: str, entity_id: int):
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


# --- Resolution errors ---


class ResolutionError(ValueError):
    def __init__(self, message: str, *, query: str):
        super().__init__(message)
        self.query = query


class StateNotFoundError(ResolutionError):
    def __init__(self, *, query: str, available: list[str]):
        super().__init__(
            f'State "{query}" not found. Valid states: {", ".join(available)}',
            query=query,
        )
        self.available = available


class MemberNotFoundError(ResolutionError):
    def __init__(self, *, query: str):
        super().__init__(f'Could not find member "{query}"', query=query)


class MissingFieldError(ValueError):
    def __init__(self, field: str, action: str):
        super().__init__(f"{field} is required for {action} action")
        self.field = field
        self.action = action


__all__ = [
    "ShortcutClientError",
    "ShortcutHTTPError",
    "ShortcutRateLimitError",
    "ShortcutModelValidationError",
    "MissingTokenError",
    "InvalidIdError",
    "NotFoundError",
    "ResolutionError",
    "StateNotFoundError",
    "MemberNotFoundError",
    "MissingFieldError",
]
