from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult, TextContent

from shortcut_mcp.core.actions import run_action
from shortcut_mcp.core.cache import ReferenceCache
from shortcut_mcp.core.client import ShortcutClient
from shortcut_mcp.core.formatters import format_tool_description
from shortcut_mcp.core.models import Action, ActionResult, StoryType

SERVER_NAME = "shortcut"
TOOL_NAME = "shortcut"

# An explicit null owner means "unassign", so "not provided" needs its own value.
OWNER_NOT_PROVIDED = ""


def to_call_result(result: ActionResult) -> CallToolResult:
    return CallToolResult(
        content=[TextContent(type="text", text=result.text)],
        isError=result.is_error,
    )


def build_tool(
    client: ShortcutClient, cache: ReferenceCache
) -> Callable[..., Awaitable[CallToolResult]]:
    """Return the `shortcut` tool function bound to a client and cache."""

    async def shortcut(
        action: Action,
        query: Optional[str | Dict[str, Any]] = None,
        id: Optional[str] = None,
        state: Optional[str] = None,
        estimate: Optional[int | float] = None,
        owner: Optional[str] = OWNER_NOT_PROVIDED,
        type: Optional[StoryType] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
        body: Optional[str] = None,
        epic: Optional[int] = None,
        iteration: Optional[int] = None,
        labels: Optional[List[str]] = None,
        method: Optional[str] = None,
        path: Optional[str] = None,
    ) -> CallToolResult:
        arguments: Dict[str, Any] = {
            key: value
            for key, value in {
                "action": action,
                "query": query,
                "id": id,
                "state": state,
                "estimate": estimate,
                "type": type,
                "name": name,
                "description": description,
                "body": body,
                "epic": epic,
                "iteration": iteration,
                "labels": labels,
                "method": method,
                "path": path,
            }.items()
            if value is not None
        }
        if owner != OWNER_NOT_PROVIDED:
            arguments["owner"] = owner

        return to_call_result(await run_action(client, cache, arguments))

    return shortcut


async def build_description(cache: ReferenceCache) -> str:
    return format_tool_description(await cache.workflows())


def create_app(
    client: ShortcutClient, cache: ReferenceCache, description: str
) -> FastMCP:
    app = FastMCP(SERVER_NAME)
    app.tool(name=TOOL_NAME, description=description)(build_tool(client, cache))
    return app


__all__ = [
    "SERVER_NAME",
    "TOOL_NAME",
    "OWNER_NOT_PROVIDED",
    "to_call_result",
    "build_tool",
    "build_description",
    "create_app",
]
