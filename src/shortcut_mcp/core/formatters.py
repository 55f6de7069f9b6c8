"""Render stories, story lists, and epics as text summaries for the agent."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from .models import Comment, Epic, Story, Workflow

NO_STORIES = "No stories found."


def _or(value: Any, placeholder: str) -> Any:
    # Falsy values (None, "", 0) fall back to the placeholder.
    return value if value else placeholder


def _estimate(value: Optional[int | float]) -> Any:
    return "?" if value is None else value


def format_story(story: Story, state_name: Optional[str] = None) -> str:
    labels = ", ".join(label.name for label in story.labels)

    lines = [
        f"**sc-{story.id}**: {_or(story.name, 'Untitled')}",
        f"Type: {_or(story.story_type, '?')} | "
        f"State: {state_name or story.workflow_state_id or '?'} | "
        f"Est: {_estimate(story.estimate)} pts",
        f"Epic: {_or(story.epic_id, 'none')} | "
        f"Iteration: {_or(story.iteration_id, 'none')}",
    ]

    if labels:
        lines.append(f"Labels: {labels}")
    if story.app_url:
        lines.append(f"Link: {story.app_url}")
    if story.description:
        lines.extend(["", story.description])

    return "\n".join(lines)


def format_comments(comments: Sequence[Comment], limit: int = 5) -> str:
    """
    Recent-comments block: the `limit` newest comments, oldest first.
    Empty string when there is nothing to show.
    """
    recent = list(comments)[-limit:] if limit > 0 else []
    if not recent:
        return ""
    entries = [
        f"**{_or(c.author_id, 'Unknown')}** ({_or(c.created_at, '?')}):\n{c.text or ''}"
        for c in recent
    ]
    return "## Recent Comments\n" + "\n\n".join(entries)


def format_story_list(stories: Optional[Sequence[Story]]) -> str:
    if not stories:
        return NO_STORIES

    return "\n".join(
        f"- **sc-{s.id}** [{s.progress}] {_or(s.name, 'Untitled')} "
        f"({_or(s.story_type, '?')}, {_estimate(s.estimate)}pts)"
        for s in stories
        if s is not None
    )


def format_epic(epic: Epic) -> str:
    stats = epic.stats
    total = (stats.num_stories_total if stats else None) or 0
    done = (stats.num_stories_done if stats else None) or 0
    return "\n".join(
        [
            f"**Epic {epic.id}**: {_or(epic.name, 'Untitled')}",
            f"State: {_or(epic.state, '?')} | Stories: {total} ({done} done)",
            f"Link: {_or(epic.app_url, 'N/A')}",
        ]
    )


def normalize_search_response(response: Any) -> List[Dict[str, Any]]:
    """Accept a bare list or a `{"data": [...]}` envelope; anything else is empty."""
    items: Any = []
    if isinstance(response, list):
        items = response
    elif isinstance(response, dict) and isinstance(response.get("data"), list):
        items = response["data"]
    return [item for item in items if isinstance(item, dict)]


def format_tool_description(workflows: Sequence[Workflow]) -> str:
    """Tool description advertised to the agent, listing live workflow states."""
    state_lines = [
        f"  {wf.name}: {', '.join(s.name for s in wf.states)}" for wf in workflows
    ]

    return (
        "Shortcut stories. Actions: help, search, get, update, comment, create, "
        "epic, api\n"
        "\n"
        "Workflows (states):\n"
        + "\n".join(state_lines)
        + "\n\n"
        '{"action": "search"} → your active stories\n'
        '{"action": "search", "query": "text"} → text search\n'
        '{"action": "get", "id": "704"} → story details\n'
        '{"action": "update", "id": "704", "state": "Done"}\n'
        '{"action": "create", "name": "Title", "type": "feature"}\n'
        '{"action": "epic", "id": "308"} → epic with stories\n'
        '{"action": "help"} → full documentation'
    )


__all__ = [
    "NO_STORIES",
    "format_story",
    "format_comments",
    "format_story_list",
    "format_epic",
    "normalize_search_response",
    "format_tool_description",
]
