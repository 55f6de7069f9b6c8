import json

import httpx
import pytest
import respx
from httpx import Response
from pydantic import BaseModel
from shortcut_mcp.core.client import (
    RetryConfig,
    ShortcutClient,
    ShortcutClientError,
    ShortcutHTTPError,
    ShortcutModelValidationError,
    ShortcutRateLimitError,
    parse_retry_after,
)

from .conftest import BASE, SleepRecorder


@pytest.mark.asyncio
async def test_get_request_success(client):
    async with respx.mock:
        route = respx.get(f"{BASE}/workflows").mock(
            return_value=Response(200, json=[{"id": 1, "name": "Eng"}])
        )

        async with client:
            data = await client.get("/workflows")

        assert data == [{"id": 1, "name": "Eng"}]
        assert route.called


@pytest.mark.asyncio
async def test_auth_and_content_type_headers(client):
    async with respx.mock:
        route = respx.post(f"{BASE}/stories/search").mock(
            return_value=Response(200, json=[])
        )

        async with client:
            await client.post("/stories/search", json={"query": "bug"})

        sent = route.calls[0].request
        assert sent.headers["Shortcut-Token"] == "mock-token"
        assert sent.headers["Content-Type"] == "application/json"
        assert json.loads(sent.content) == {"query": "bug"}


@pytest.mark.asyncio
async def test_404_raises_typed_error_with_body(client):
    async with respx.mock:
        respx.get(f"{BASE}/stories/999").mock(
            return_value=Response(404, text='{"message": "Resource not found."}')
        )

        async with client:
            with pytest.raises(ShortcutHTTPError) as exc:
                await client.get("/stories/999")

    assert exc.value.status_code == 404
    assert exc.value.body == '{"message": "Resource not found."}'
    assert str(exc.value).startswith("API error (404): ")


@pytest.mark.asyncio
async def test_empty_response_returns_none(client):
    async with respx.mock:
        respx.delete(f"{BASE}/stories/1").mock(return_value=Response(204))

        async with client:
            assert await client.delete("/stories/1") is None


@pytest.mark.asyncio
async def test_non_json_response_returns_raw_text(client):
    async with respx.mock:
        respx.get(f"{BASE}/odd").mock(
            return_value=Response(200, text="<html>Not JSON</html>")
        )

        async with client:
            assert await client.get("/odd") == "<html>Not JSON</html>"


@pytest.mark.asyncio
async def test_429_waits_retry_after_then_succeeds(client, sleeper):
    async with respx.mock:
        route = respx.get(f"{BASE}/member").mock(
            side_effect=[
                Response(429, headers={"Retry-After": "2"}),
                Response(200, json={"id": "uuid-me"}),
            ]
        )

        async with client:
            data = await client.get("/member")

    assert data == {"id": "uuid-me"}
    assert route.call_count == 2
    assert sleeper.calls == [2.0]


@pytest.mark.asyncio
async def test_429_without_header_uses_default_delay(client, sleeper):
    async with respx.mock:
        respx.get(f"{BASE}/member").mock(
            side_effect=[
                Response(429, headers={"Retry-After": "soon"}),
                Response(200, json={"id": "uuid-me"}),
            ]
        )

        async with client:
            await client.get("/member")

    assert sleeper.calls == [60.0]


@pytest.mark.asyncio
async def test_429_exhausts_retry_budget(client, sleeper):
    async with respx.mock:
        route = respx.get(f"{BASE}/member").mock(
            return_value=Response(429, headers={"Retry-After": "1"})
        )

        async with client:
            with pytest.raises(ShortcutRateLimitError) as exc:
                await client.get("/member")

    # initial attempt + 3 retries
    assert route.call_count == 4
    assert sleeper.calls == [1.0, 1.0, 1.0]
    assert "Rate limit exceeded" in str(exc.value)


@pytest.mark.asyncio
async def test_connect_timeout_after_retries():
    sleeper = SleepRecorder()
    client = ShortcutClient(
        api_token="mock-token",
        retry=RetryConfig(max_retries=1, backoff_base_seconds=0.5),
        sleep=sleeper,
    )
    async with respx.mock:
        route = respx.get(f"{BASE}/workflows").mock(
            side_effect=httpx.ConnectTimeout("boom")
        )

        async with client:
            with pytest.raises(ShortcutClientError):
                await client.get("/workflows")

    assert route.call_count == 2
    assert sleeper.calls == [0.5]


class _Thing(BaseModel):
    id: int


@pytest.mark.asyncio
async def test_request_model_validates_payload(client):
    async with respx.mock:
        respx.get(f"{BASE}/things/1").mock(return_value=Response(200, json={"id": 1}))
        respx.get(f"{BASE}/things/2").mock(
            return_value=Response(200, json={"id": "nope"})
        )

        async with client:
            thing = await client.request_model(_Thing, "GET", "/things/1")
            with pytest.raises(ShortcutModelValidationError):
                await client.request_model(_Thing, "GET", "/things/2")

    assert thing.id == 1


def test_client_requires_token():
    with pytest.raises(ValueError):
        ShortcutClient(api_token="")


@pytest.mark.parametrize(
    "value,expected",
    [("2", 2.0), ("1.5", 1.5), (None, 60.0), ("", 60.0), ("later", 60.0), ("-3", 60.0)],
)
def test_parse_retry_after(value, expected):
    assert parse_retry_after(value, 60.0) == expected
