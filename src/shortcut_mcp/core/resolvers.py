"""
Resolve human-friendly identifiers (IDs, URLs, state and member names) to the
canonical IDs the Shortcut API expects.
"""

from __future__ import annotations

import re
from typing import Iterator, List, Optional, Tuple

from .cache import ReferenceCache
from .errors import InvalidIdError
from .models import Workflow, WorkflowState

_ID_PATTERNS = (
    re.compile(r"story/(\d+)", re.IGNORECASE),
    re.compile(r"epic/(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)"),
)

# Canonical label -> informal synonyms. Declaration order is the tie-break when
# an input matches several buckets ("re" hits both "ready" and "review").
STATE_ALIASES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("done", ("done", "complete", "completed", "finished", "deployed")),
    (
        "in progress",
        ("in progress", "started", "doing", "wip", "in prog", "development"),
    ),
    ("ready", ("ready", "todo", "to do", "backlog", "open", "ready for")),
    ("review", ("review", "code review", "pr", "pull request")),
)


def resolve_id(value: str) -> int:
    """
    Accepts `704`, `sc-704`, or a story/epic URL and returns 704.
    Raises InvalidIdError when no pattern yields a positive integer.
    """
    text = str(value)
    for pattern in _ID_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        try:
            parsed = int(match.group(1))
        except ValueError as exc:
            # digit runs past the interpreter's int conversion limit
            raise InvalidIdError(text) from exc
        if parsed > 0:
            return parsed
    raise InvalidIdError(text)


def _iter_states(workflows: List[Workflow]) -> Iterator[WorkflowState]:
    for wf in workflows:
        yield from wf.states


def _norm(s: Optional[str]) -> str:
    return (s or "").lower()


async def resolve_state(cache: ReferenceCache, name: str) -> Optional[int]:
    """
    Fuzzy state lookup across all workflows, case-insensitive:
    exact name, then substring, then the alias table. None if nothing matches.
    """
    workflows = await cache.workflows()
    lower = _norm(name)

    for state in _iter_states(workflows):
        if state.name and _norm(state.name) == lower:
            return state.id

    for state in _iter_states(workflows):
        if state.name and lower in _norm(state.name):
            return state.id

    for canonical, synonyms in STATE_ALIASES:
        if not any(lower in alias or alias in lower for alias in synonyms):
            continue
        for state in _iter_states(workflows):
            if state.name and canonical in _norm(state.name):
                return state.id

    return None


async def resolve_member(cache: ReferenceCache, value: str) -> Optional[str]:
    """`me` is the token's owner; otherwise first name/mention-name substring hit."""
    if value == "me":
        member = await cache.current_member()
        return member.id

    lower = _norm(value)
    for member in await cache.members():
        profile = member.profile
        if profile is None:
            continue
        if lower in _norm(profile.name) or lower in _norm(profile.mention_name):
            return member.id
    return None


async def get_state_name(cache: ReferenceCache, state_id: Optional[int]) -> str:
    for state in _iter_states(await cache.workflows()):
        if state.id == state_id:
            return state.name
    return str(state_id)


async def all_state_names(cache: ReferenceCache) -> List[str]:
    return [state.name for state in _iter_states(await cache.workflows())]


async def default_state_id(cache: ReferenceCache) -> Optional[int]:
    """First `unstarted` state of the first workflow, used for new stories."""
    workflows = await cache.workflows()
    if not workflows:
        return None
    for state in workflows[0].states:
        if state.type == "unstarted":
            return state.id
    return None


__all__ = [
    "STATE_ALIASES",
    "resolve_id",
    "resolve_state",
    "resolve_member",
    "get_state_name",
    "all_state_names",
    "default_state_id",
]
