from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from .cache import ReferenceCache
from .client import ShortcutClient, ShortcutHTTPError
from .context import request_scope
from .errors import (
    InvalidIdError,
    MemberNotFoundError,
    MissingFieldError,
    NotFoundError,
    StateNotFoundError,
)
from .formatters import (
    format_comments,
    format_epic,
    format_story,
    format_story_list,
    normalize_search_response,
)
from .models import ActionRequest, ActionResult, Epic, Story
from .observability import log_event
from .resolvers import (
    all_state_names,
    default_state_id,
    get_state_name,
    resolve_id,
    resolve_member,
    resolve_state,
)

log = logging.getLogger("shortcut_mcp.actions")

EPIC_STORY_LIMIT = 25
COMMENT_LIMIT = 5
COMMENT_ECHO_LENGTH = 100

HELP_TEXT = """# Shortcut MCP

## Actions

**search** - Find stories
  {"action": "search"}                              → your active stories
  {"action": "search", "query": "auth bug"}         → text search
  {"action": "search", "query": {"state": "In Progress", "owner": "me"}}

**get** - Story details (accepts 704, sc-704, or URLs)
  {"action": "get", "id": "704"}

**update** - Change state, estimate, owner
  {"action": "update", "id": "704", "state": "Done"}
  {"action": "update", "id": "704", "estimate": 3}
  {"action": "update", "id": "704", "owner": "me"}
  {"action": "update", "id": "704", "owner": null}  → unassign

**comment** - Add comment to story
  {"action": "comment", "id": "704", "body": "Fixed in abc123"}

**create** - Create new story
  {"action": "create", "name": "Bug title"}
  {"action": "create", "name": "Bug", "type": "bug", "estimate": 2, "epic": 308}

**epic** - Get epic with its stories
  {"action": "epic", "id": "308"}

**api** - Raw REST API for anything else
  {"action": "api", "method": "GET", "path": "/workflows"}
  {"action": "api", "method": "POST", "path": "/stories/search", "query": {"epic_ids": [308]}}

## Reference

Story types: feature, bug, chore

Estimate: story points (typically 1, 2, 3, 5, 8)

Query filters: {owner: "me"|name, state: "name", epic: id, iteration: id, type: "feature"|"bug"|"chore", archived: true|false}

State matching is fuzzy: "done" → "Done", "in prog" → "In Progress"

IDs accept: 704, sc-704, or shortcut.com URLs"""


def _stories(payload: Any) -> List[Story]:
    stories: List[Story] = []
    for entry in normalize_search_response(payload):
        try:
            stories.append(Story.model_validate(entry))
        except ValidationError:
            log_event(
                "search_hit_skipped",
                log,
                level=logging.WARNING,
                error_type="ValidationError",
            )
    return stories


def _archived_flag(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return None


async def _search(client: ShortcutClient, params: Dict[str, Any]) -> List[Story]:
    return _stories(await client.post("/stories/search", json=params))


def _optional_id(value: Any) -> Optional[int]:
    try:
        return resolve_id(str(value))
    except InvalidIdError:
        return None


async def _fetch_entity(
    client: ShortcutClient, path: str, *, entity: str, entity_id: int, label: str
) -> Any:
    """GET `path`; a 404 or empty body raises NotFoundError."""
    try:
        payload = await client.get(path)
    except ShortcutHTTPError as exc:
        if exc.status_code != 404:
            raise
        payload = None

    if not payload:
        raise NotFoundError(f"{label} not found", entity=entity, entity_id=entity_id)
    return payload


async def _state_guidance(cache: ReferenceCache, name: str) -> ActionResult:
    available = await all_state_names(cache)
    return ActionResult.guidance(
        str(StateNotFoundError(query=name, available=available))
    )


# --- Handlers ---


async def handle_search(
    client: ShortcutClient,
    cache: ReferenceCache,
    query: Optional[str | Mapping[str, Any]] = None,
) -> ActionResult:
    """
    No query: the token owner's non-archived stories.
    String: Shortcut search syntax. Mapping: owner/state/epic/iteration/type/
    archived filters; filters that fail to resolve are dropped.
    """
    params: Dict[str, Any] = {}

    if query is None or query == "":
        member = await cache.current_member()
        params = {"owner_ids": [member.id], "archived": False}
    elif isinstance(query, str):
        params = {"query": query}
    else:
        owner = query.get("owner")
        if owner:
            member_id = await resolve_member(cache, str(owner))
            if member_id is not None:
                params["owner_ids"] = [member_id]

        state = query.get("state")
        if state:
            state_id = await resolve_state(cache, str(state))
            if state_id is not None:
                params["workflow_state_id"] = state_id

        if query.get("epic"):
            epic_id = _optional_id(query["epic"])
            if epic_id is not None:
                params["epic_ids"] = [epic_id]
        if query.get("iteration"):
            iteration_id = _optional_id(query["iteration"])
            if iteration_id is not None:
                params["iteration_ids"] = [iteration_id]
        if query.get("type"):
            params["story_type"] = query["type"]
        archived = _archived_flag(query.get("archived"))
        if archived is not None:
            params["archived"] = archived

    return ActionResult.ok(format_story_list(await _search(client, params)))


async def handle_get(
    client: ShortcutClient, cache: ReferenceCache, story_ref: str
) -> ActionResult:
    story_id = resolve_id(story_ref)
    try:
        payload = await _fetch_entity(
            client,
            f"/stories/{story_id}",
            entity="story",
            entity_id=story_id,
            label=f"Story sc-{story_id}",
        )
    except NotFoundError as exc:
        return ActionResult.guidance(str(exc))

    story = Story.model_validate(payload)
    state_name = await get_state_name(cache, story.workflow_state_id)
    text = format_story(story, state_name)

    comments = format_comments(story.comments, limit=COMMENT_LIMIT)
    if comments:
        text += "\n\n" + comments

    return ActionResult.ok(text)


async def handle_update(
    client: ShortcutClient, cache: ReferenceCache, data: ActionRequest
) -> ActionResult:
    """
    Apply a partial update. Only provided fields are sent; an unknown state or
    owner returns guidance without touching the story.
    """
    story_id = resolve_id(data.id or "")
    payload: Dict[str, Any] = {}

    if data.state:
        state_id = await resolve_state(cache, data.state)
        if state_id is None:
            return await _state_guidance(cache, data.state)
        payload["workflow_state_id"] = state_id

    if data.estimate is not None:
        payload["estimate"] = data.estimate
    if data.name:
        payload["name"] = data.name
    if data.description is not None:
        payload["description"] = data.description
    if data.type:
        payload["story_type"] = data.type

    # Explicit null unassigns; omission leaves owners untouched
    if data.owner_provided:
        if data.owner is None:
            payload["owner_ids"] = []
        else:
            member_id = await resolve_member(cache, data.owner)
            if member_id is None:
                return ActionResult.guidance(
                    str(MemberNotFoundError(query=data.owner))
                )
            payload["owner_ids"] = [member_id]

    if not payload:
        return ActionResult.guidance("No updates provided")

    response = await client.put(f"/stories/{story_id}", json=payload)
    # An empty 2xx body still means the write happened
    story = Story.model_validate(response) if response else None

    changes: List[str] = []
    if data.state:
        state_id = story.workflow_state_id if story else payload["workflow_state_id"]
        changes.append(f"state → {await get_state_name(cache, state_id)}")
    if data.estimate is not None:
        changes.append(f"estimate → {data.estimate}")
    if data.owner_provided:
        changes.append(f"owner → {data.owner or 'unassigned'}")
    if data.name:
        changes.append("name updated")
    if data.description is not None:
        changes.append("description updated")
    if data.type:
        changes.append(f"type → {data.type}")

    text = f"Updated sc-{story_id}: {', '.join(changes)}"
    if story and story.app_url:
        text += f"\n{story.app_url}"
    return ActionResult.ok(text)


async def handle_comment(
    client: ShortcutClient, cache: ReferenceCache, story_ref: str, body: str
) -> ActionResult:
    story_id = resolve_id(story_ref)

    await client.post(f"/stories/{story_id}/comments", json={"text": body})

    truncated = (
        body[:COMMENT_ECHO_LENGTH] + "..." if len(body) > COMMENT_ECHO_LENGTH else body
    )
    return ActionResult.ok(f"Added comment to sc-{story_id}:\n> {truncated}")


async def handle_create(
    client: ShortcutClient, cache: ReferenceCache, data: ActionRequest
) -> ActionResult:
    """
    Create a story. Without an explicit state the story lands in the first
    `unstarted` state of the first workflow.
    """
    payload: Dict[str, Any] = {"name": data.name}

    if data.state:
        state_id = await resolve_state(cache, data.state)
        if state_id is None:
            return await _state_guidance(cache, data.state)
        payload["workflow_state_id"] = state_id
    else:
        state_id = await default_state_id(cache)
        if state_id is not None:
            payload["workflow_state_id"] = state_id

    if data.description:
        payload["description"] = data.description
    if data.type:
        payload["story_type"] = data.type
    if data.estimate is not None:
        payload["estimate"] = data.estimate
    if data.epic:
        payload["epic_id"] = data.epic
    if data.iteration:
        payload["iteration_id"] = data.iteration

    if data.owner:
        member_id = await resolve_member(cache, data.owner)
        if member_id is None:
            return ActionResult.guidance(str(MemberNotFoundError(query=data.owner)))
        payload["owner_ids"] = [member_id]

    if data.labels:
        payload["labels"] = [{"name": label} for label in data.labels]

    response = await client.post("/stories", json=payload)
    if not response:
        return ActionResult.ok(f"Created story: {data.name}")

    story = Story.model_validate(response)
    text = f"Created sc-{story.id}: {story.name or data.name}"
    if story.app_url:
        text += f"\n{story.app_url}"
    return ActionResult.ok(text)


async def handle_epic(
    client: ShortcutClient, cache: ReferenceCache, epic_ref: str
) -> ActionResult:
    epic_id = resolve_id(epic_ref)
    try:
        payload = await _fetch_entity(
            client,
            f"/epics/{epic_id}",
            entity="epic",
            entity_id=epic_id,
            label=f"Epic {epic_id}",
        )
    except NotFoundError as exc:
        return ActionResult.guidance(str(exc))

    text = format_epic(Epic.model_validate(payload))

    stories = await _search(client, {"epic_ids": [epic_id]})
    if stories:
        text += "\n\n## Stories\n" + format_story_list(stories[:EPIC_STORY_LIMIT])
        if len(stories) > EPIC_STORY_LIMIT:
            text += f"\n... and {len(stories) - EPIC_STORY_LIMIT} more"

    return ActionResult.ok(text)


async def handle_api(
    client: ShortcutClient,
    cache: ReferenceCache,
    method: str,
    path: str,
    body: Optional[Mapping[str, Any]] = None,
) -> ActionResult:
    """Raw passthrough for anything the other actions do not cover."""
    if not path.startswith("/"):
        raise ValueError("Path must start with /")

    result = await client.request(
        method.upper(), path, json=dict(body) if body is not None else None
    )
    return ActionResult.ok(json.dumps(result, indent=2, ensure_ascii=False))


async def handle_help(client: ShortcutClient, cache: ReferenceCache) -> ActionResult:
    return ActionResult.ok(HELP_TEXT)


# --- Dispatch boundary ---


def _require(data: ActionRequest, *fields: str) -> None:
    for field in fields:
        if not getattr(data, field):
            raise MissingFieldError(field, data.action)


async def _route(
    client: ShortcutClient, cache: ReferenceCache, data: ActionRequest
) -> ActionResult:
    action = data.action

    if action == "search":
        return await handle_search(client, cache, data.query)
    if action == "get":
        _require(data, "id")
        return await handle_get(client, cache, data.id or "")
    if action == "update":
        _require(data, "id")
        return await handle_update(client, cache, data)
    if action == "comment":
        _require(data, "id", "body")
        return await handle_comment(client, cache, data.id or "", data.body or "")
    if action == "create":
        _require(data, "name")
        return await handle_create(client, cache, data)
    if action == "epic":
        _require(data, "id")
        return await handle_epic(client, cache, data.id or "")
    if action == "api":
        _require(data, "method", "path")
        body = data.query if isinstance(data.query, Mapping) else None
        return await handle_api(client, cache, data.method or "", data.path or "", body)
    if action == "help":
        return await handle_help(client, cache)

    raise ValueError(f"Unknown action: {action}")


async def dispatch(
    client: ShortcutClient, cache: ReferenceCache, data: ActionRequest
) -> ActionResult:
    """
    Run one action. Every exception raised by a handler becomes an
    error-flagged result; nothing escapes to the transport.
    """
    start = time.perf_counter()
    with request_scope():
        try:
            result = await _route(client, cache, data)
        except Exception as exc:
            log_event(
                "action_failed",
                log,
                level=logging.WARNING,
                action=data.action,
                error_type=type(exc).__name__,
            )
            result = ActionResult.error(f"Error: {exc}")

        log_event(
            "action",
            log,
            action=data.action,
            kind=result.kind.value,
            duration_ms=int((time.perf_counter() - start) * 1000),
        )
        return result


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


async def run_action(
    client: ShortcutClient, cache: ReferenceCache, arguments: Mapping[str, Any]
) -> ActionResult:
    """Validate raw tool arguments, then dispatch."""
    try:
        data = ActionRequest.model_validate(dict(arguments))
    except ValidationError as exc:
        return ActionResult.error(
            f"Error: Invalid arguments: {_describe_validation_error(exc)}"
        )
    return await dispatch(client, cache, data)


__all__ = [
    "HELP_TEXT",
    "EPIC_STORY_LIMIT",
    "handle_search",
    "handle_get",
    "handle_update",
    "handle_comment",
    "handle_create",
    "handle_epic",
    "handle_api",
    "handle_help",
    "dispatch",
    "run_action",
]
