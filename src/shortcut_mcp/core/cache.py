from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Type, TypeVar

from .client import ShortcutClient
from .config import DEFAULT_CACHE_TTL_SECONDS
from .models import CurrentMember, Member, Workflow

T = TypeVar("T")

Clock = Callable[[], float]


@dataclass
class CacheEntry(Generic[T]):
    data: T
    timestamp: float

    def is_valid(self, now: float, ttl_seconds: float) -> bool:
        return (now - self.timestamp) < ttl_seconds


class ReferenceCache:
    """
    TTL-bounded snapshots of the reference data actions resolve against:
    the token's member, the workflow list, and the member directory.

    Entries expire purely by age; there is no invalidation on writes, so a
    state renamed in Shortcut may show the old name until the TTL lapses.
    """

    def __init__(
        self,
        client: ShortcutClient,
        *,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Optional[Clock] = None,
    ):
        self.client = client
        self.ttl_seconds = ttl_seconds
        self._clock: Clock = clock or time.monotonic
        self._current_member: Optional[CacheEntry[CurrentMember]] = None
        self._workflows: Optional[CacheEntry[List[Workflow]]] = None
        self._members: Optional[CacheEntry[List[Member]]] = None

    def _fresh(self, entry: Optional[CacheEntry[Any]]) -> bool:
        return entry is not None and entry.is_valid(self._clock(), self.ttl_seconds)

    async def _load(self, model: Type[T] | Any, path: str) -> CacheEntry[T]:
        data = await self.client.request_model(model, "GET", path)
        return CacheEntry(data=data, timestamp=self._clock())

    async def current_member(self) -> CurrentMember:
        if not self._fresh(self._current_member):
            self._current_member = await self._load(CurrentMember, "/member")
        return self._current_member.data  # type: ignore[union-attr]

    async def workflows(self) -> List[Workflow]:
        if not self._fresh(self._workflows):
            self._workflows = await self._load(List[Workflow], "/workflows")
        return self._workflows.data  # type: ignore[union-attr]

    async def members(self) -> List[Member]:
        if not self._fresh(self._members):
            self._members = await self._load(List[Member], "/members")
        return self._members.data  # type: ignore[union-attr]


__all__ = ["CacheEntry", "ReferenceCache", "Clock"]
