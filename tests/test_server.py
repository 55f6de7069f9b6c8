import json

import pytest
import respx
from httpx import Response
from mcp.types import CallToolResult
from shortcut_mcp.core.actions import HELP_TEXT
from shortcut_mcp.core.config import ServerConfig
from shortcut_mcp.server import (
    TOOL_NAME,
    build_description,
    build_tool,
    create_app,
)
from shortcut_mcp.transports.stdio import main as stdio_main

from .conftest import BASE, MEMBERS, WORKFLOWS


@pytest.mark.asyncio
@respx.mock
async def test_app_exposes_single_tool_with_workflow_description(client, cache):
    respx.get(f"{BASE}/workflows").mock(return_value=Response(200, json=WORKFLOWS))

    async with client:
        description = await build_description(cache)

    app = create_app(client, cache, description)
    tools = await app.list_tools()

    assert [tool.name for tool in tools] == [TOOL_NAME]
    assert tools[0].description == description
    assert "Engineering: Backlog" in description
    schema = tools[0].inputSchema
    assert schema["required"] == ["action"]
    assert "owner" in schema["properties"]


@pytest.mark.asyncio
async def test_tool_help_is_not_an_error(client, cache):
    result = await build_tool(client, cache)(action="help")

    assert result.isError is False
    assert result.content[0].text == HELP_TEXT


@pytest.mark.asyncio
async def test_tool_flags_handler_errors(client, cache):
    result = await build_tool(client, cache)(action="get")

    assert result.isError is True
    assert result.content[0].text == "Error: id is required for get action"


@pytest.mark.asyncio
@pytest.mark.respx(assert_all_called=False)
async def test_tool_null_owner_unassigns(client, cache, respx_mock):
    respx_mock.get(f"{BASE}/workflows").mock(return_value=Response(200, json=WORKFLOWS))
    put = respx_mock.put(f"{BASE}/stories/704").mock(
        return_value=Response(200, json={"id": 704})
    )
    tool = build_tool(client, cache)

    async with client:
        result = await tool(action="update", id="704", owner=None)

    assert result.isError is False
    assert json.loads(put.calls[0].request.content) == {"owner_ids": []}


@pytest.mark.asyncio
@pytest.mark.respx(assert_all_called=False)
async def test_tool_omitted_owner_is_left_alone(client, cache, respx_mock):
    respx_mock.get(f"{BASE}/members").mock(return_value=Response(200, json=MEMBERS))
    put = respx_mock.put(f"{BASE}/stories/704").mock(
        return_value=Response(200, json={"id": 704})
    )
    tool = build_tool(client, cache)

    async with client:
        result = await tool(action="update", id="704")

    assert result.content[0].text == "No updates provided"
    assert not put.called


@pytest.mark.asyncio
@pytest.mark.respx(assert_all_called=False)
async def test_call_tool_through_app_keeps_null_owner(client, cache, respx_mock):
    put = respx_mock.put(f"{BASE}/stories/704").mock(
        return_value=Response(200, json={"id": 704})
    )
    app = create_app(client, cache, "Shortcut stories.")

    async with client:
        result = await app.call_tool(
            TOOL_NAME, {"action": "update", "id": "704", "owner": None}
        )
        omitted = await app.call_tool(TOOL_NAME, {"action": "update", "id": "704"})

    assert isinstance(result, CallToolResult)
    assert result.isError is False
    assert result.content[0].text == "Updated sc-704: owner → unassigned"
    assert put.call_count == 1
    assert json.loads(put.calls[0].request.content) == {"owner_ids": []}
    assert omitted.content[0].text == "No updates provided"


@pytest.mark.asyncio
async def test_call_tool_through_app_flags_errors(client, cache):
    app = create_app(client, cache, "Shortcut stories.")

    result = await app.call_tool(TOOL_NAME, {"action": "comment", "id": "704"})

    assert isinstance(result, CallToolResult)
    assert result.isError is True
    assert result.content[0].text == "Error: body is required for comment action"


@pytest.mark.asyncio
@respx.mock
async def test_serve_fails_when_workflows_unavailable():
    respx.get(f"{BASE}/workflows").mock(return_value=Response(401, text="Unauthorized"))

    exit_code = await stdio_main.serve(ServerConfig(api_token="bad"))

    assert exit_code == 1


def test_main_exits_without_token(monkeypatch):
    monkeypatch.setattr("shortcut_mcp.core.config.load_dotenv", lambda *a, **k: None)
    monkeypatch.setattr(stdio_main, "setup_logging", lambda *a, **k: None)
    monkeypatch.delenv("SHORTCUT_API_TOKEN", raising=False)

    with pytest.raises(SystemExit) as exc:
        stdio_main.main()

    assert exc.value.code == 1
