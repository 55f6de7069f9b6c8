from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _drop_nulls(value: Any) -> Any:
    """Shortcut occasionally returns null entries inside nested lists."""
    if value is None:
        return []
    if isinstance(value, list):
        return [v for v in value if isinstance(v, dict)]
    return value


# --- Reference data ---


class WorkflowState(BaseModel):
    id: int
    name: str = ""
    type: Optional[str] = None  # unstarted | started | done

    model_config = ConfigDict(extra="ignore")


class Workflow(BaseModel):
    id: int
    name: str = ""
    states: List[WorkflowState] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("states", mode="before")
    @classmethod
    def _states(cls, value: Any) -> Any:
        return _drop_nulls(value)


class MemberProfile(BaseModel):
    name: Optional[str] = None
    mention_name: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class Member(BaseModel):
    id: str
    profile: Optional[MemberProfile] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def display_name(self) -> str:
        if self.profile and self.profile.name:
            return self.profile.name
        return self.id


class CurrentMember(BaseModel):
    """Payload of GET /member (the token's owner)."""

    id: str
    name: Optional[str] = None
    mention_name: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


# --- Stories & epics ---


class Label(BaseModel):
    name: str

    model_config = ConfigDict(extra="ignore")


class Comment(BaseModel):
    author_id: Optional[str] = None
    created_at: Optional[str] = None
    text: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class Story(BaseModel):
    id: int
    name: Optional[str] = None
    story_type: Optional[str] = None
    estimate: Optional[int | float] = None
    workflow_state_id: Optional[int] = None
    epic_id: Optional[int] = None
    iteration_id: Optional[int] = None
    labels: List[Label] = Field(default_factory=list)
    app_url: Optional[str] = None
    description: Optional[str] = None
    comments: List[Comment] = Field(default_factory=list)
    started: bool = False
    completed: bool = False
    owner_ids: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("labels", mode="before")
    @classmethod
    def _labels(cls, value: Any) -> Any:
        value = _drop_nulls(value)
        if isinstance(value, list):
            return [v for v in value if isinstance(v.get("name"), str)]
        return value

    @field_validator("comments", mode="before")
    @classmethod
    def _comments(cls, value: Any) -> Any:
        return _drop_nulls(value)

    @field_validator("owner_ids", mode="before")
    @classmethod
    def _owner_ids(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("started", "completed", mode="before")
    @classmethod
    def _flags(cls, value: Any) -> Any:
        return False if value is None else value

    @property
    def progress(self) -> str:
        if self.completed:
            return "done"
        if self.started:
            return "started"
        return "unstarted"


class EpicStats(BaseModel):
    num_stories_total: Optional[int] = None
    num_stories_done: Optional[int] = None

    model_config = ConfigDict(extra="ignore")


class Epic(BaseModel):
    id: int
    name: Optional[str] = None
    state: Optional[str] = None
    stats: Optional[EpicStats] = None
    app_url: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


# --- Tool envelope ---

Action = Literal["search", "get", "update", "comment", "create", "epic", "api", "help"]
StoryType = Literal["feature", "bug", "chore"]


class ActionRequest(BaseModel):
    """Arguments of the single `shortcut` tool.

    `owner` distinguishes "not provided" from an explicit null (unassign), so
    handlers check `model_fields_set` rather than `is None`.
    """

    action: Action
    query: Optional[str | Dict[str, Any]] = None
    id: Optional[str] = None
    state: Optional[str] = None
    estimate: Optional[int | float] = None
    owner: Optional[str] = None
    type: Optional[StoryType] = None
    name: Optional[str] = None
    description: Optional[str] = None
    body: Optional[str] = None
    epic: Optional[int] = None
    iteration: Optional[int] = None
    labels: Optional[List[str]] = None
    method: Optional[str] = None
    path: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @property
    def owner_provided(self) -> bool:
        return "owner" in self.model_fields_set


class ResultKind(str, Enum):
    OK = "ok"
    GUIDANCE = "guidance"
    ERROR = "error"


class ActionResult(BaseModel):
    text: str
    kind: ResultKind = ResultKind.OK

    @property
    def is_error(self) -> bool:
        return self.kind is ResultKind.ERROR

    @classmethod
    def ok(cls, text: str) -> "ActionResult":
        return cls(text=text, kind=ResultKind.OK)

    @classmethod
    def guidance(cls, text: str) -> "ActionResult":
        return cls(text=text, kind=ResultKind.GUIDANCE)

    @classmethod
    def error(cls, text: str) -> "ActionResult":
        return cls(text=text, kind=ResultKind.ERROR)


__all__ = [
    "WorkflowState",
    "Workflow",
    "MemberProfile",
    "Member",
    "CurrentMember",
    "Label",
    "Comment",
    "Story",
    "EpicStats",
    "Epic",
    "Action",
    "StoryType",
    "ActionRequest",
    "ResultKind",
    "ActionResult",
]
