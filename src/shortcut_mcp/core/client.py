from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .config import DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS, load_env_config
from .observability import log_event

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."


class ShortcutClientError(Exception):
    """Base error for client failures."""


class ShortcutHTTPError(ShortcutClientError):
    def __init__(
        self,
        *,
        status_code: int,
        method: str,
        url: str,
        body: str = "",
    ):
        super().__init__(f"API error ({status_code}): {body}")
        self.status_code = status_code
        self.method = method
        self.url = url
        self.body = body


class ShortcutRateLimitError(ShortcutClientError):
    status_code = 429

    def __init__(self, *, method: str, url: str, attempts: int):
        super().__init__(RATE_LIMIT_MESSAGE)
        self.method = method
        self.url = url
        self.attempts = attempts


class ShortcutModelValidationError(ShortcutClientError):
    pass


@dataclass(frozen=True)
class RetryConfig:
    max_rate_limit_retries: int = 3  # extra attempts after a 429
    default_retry_after_seconds: float = 60.0
    max_retries: int = 2  # extra attempts on network/timeout errors
    backoff_base_seconds: float = 0.3  # 0.3, 0.6, 1.2...


def parse_retry_after(value: Optional[str], default: float) -> float:
    """Seconds to wait from a Retry-After header; `default` if absent or garbled."""
    if value is None:
        return default
    try:
        seconds = float(value.strip())
    except ValueError:
        return default
    if seconds != seconds or seconds < 0 or seconds == float("inf"):
        return default
    return seconds


class ShortcutClient:
    """
    Shared HTTP client for the Shortcut REST API (v3).
    - Handles auth header, base URL, timeouts, 429 backoff
    - Returns parsed JSON, None for empty bodies, or raw text for non-JSON bodies
    - No business logic; actions own domain decisions
    """

    def __init__(
        self,
        *,
        api_token: str,
        base_url: str = DEFAULT_API_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        retry: Optional[RetryConfig] = None,
        logger: Optional[logging.Logger] = None,
        http: Optional[httpx.AsyncClient] = None,
        sleep: Optional[Sleep] = None,
    ):
        base_url = (base_url or "").rstrip("/")
        api_token = api_token or ""

        if not base_url:
            raise ValueError("base_url must be provided.")
        if not api_token:
            raise ValueError("api_token must be provided.")

        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self.retry = retry if retry is not None else RetryConfig()
        self.log = logger or logging.getLogger("shortcut_mcp.client")
        self._sleep: Sleep = sleep or asyncio.sleep

        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                "Shortcut-Token": api_token,
            },
            timeout=timeout_seconds,
        )

    @classmethod
    def from_env(cls, **kwargs) -> "ShortcutClient":
        config = load_env_config()
        return cls(
            api_token=config.api_token,
            base_url=config.api_url,
            timeout_seconds=config.timeout_seconds,
            **kwargs,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "ShortcutClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Any] = None,
    ) -> Any:
        """
        Core request method.
        - On 429 waits Retry-After seconds (default 60) and retries, up to
          `max_rate_limit_retries` times, then raises ShortcutRateLimitError
        - Retries network/timeout errors with exponential backoff
        - Raises ShortcutHTTPError on other non-2xx responses
        - Returns parsed JSON, None on an empty body, raw text on non-JSON
        """
        method = method.upper()
        start = time.perf_counter()

        rate_limited = 0
        attempt = 0

        while True:
            try:
                resp = await self.http.request(method, path, json=json)
            except (httpx.ConnectError, httpx.ReadTimeout, httpx.ConnectTimeout) as exc:
                if attempt < self.retry.max_retries:
                    await self._sleep(self.retry.backoff_base_seconds * (2**attempt))
                    attempt += 1
                    continue
                self._log_call(
                    method,
                    path,
                    start,
                    status="exception",
                    attempt=attempt + rate_limited,
                    error_type=type(exc).__name__,
                )
                raise ShortcutClientError(
                    f"Network/timeout error calling {method} {path}: {exc}"
                ) from exc
            except httpx.HTTPError as exc:
                # Other httpx exceptions (rare) - do not blindly retry
                self._log_call(
                    method,
                    path,
                    start,
                    status="exception",
                    attempt=attempt + rate_limited,
                    error_type=type(exc).__name__,
                )
                raise ShortcutClientError(
                    f"HTTPX error calling {method} {path}: {exc}"
                ) from exc

            self._log_call(
                method,
                path,
                start,
                status=resp.status_code,
                attempt=attempt + rate_limited,
            )

            if resp.status_code == 429:
                if rate_limited < self.retry.max_rate_limit_retries:
                    delay = parse_retry_after(
                        resp.headers.get("Retry-After"),
                        self.retry.default_retry_after_seconds,
                    )
                    self.log.warning(
                        "rate_limited",
                        extra={
                            "method": method,
                            "endpoint": path,
                            "status": 429,
                            "attempt": rate_limited,
                        },
                    )
                    await self._sleep(delay)
                    rate_limited += 1
                    continue
                raise ShortcutRateLimitError(
                    method=method,
                    url=str(resp.request.url),
                    attempts=rate_limited + 1,
                )

            if resp.status_code < 200 or resp.status_code >= 300:
                raise ShortcutHTTPError(
                    status_code=resp.status_code,
                    method=method,
                    url=str(resp.request.url),
                    body=resp.text or "",
                )

            return self._parse_body(resp)

    def _parse_body(self, resp: httpx.Response) -> Any:
        # Handle empty responses (204 No Content, etc.)
        text = resp.text
        if not text:
            return None
        try:
            return resp.json()
        except ValueError:
            return text

    def _log_call(
        self,
        method: str,
        path: str,
        start: float,
        *,
        status: Any,
        attempt: int,
        error_type: Optional[str] = None,
    ) -> None:
        fields: Dict[str, Any] = {
            "method": method,
            "endpoint": path,
            "status": status,
            "duration_ms": int((time.perf_counter() - start) * 1000),
            "attempt": attempt,
        }
        if error_type:
            fields["error_type"] = error_type
        log_event("sc_call", **fields)

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, *, json: Optional[Any] = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, *, json: Optional[Any] = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def request_model(
        self, model: Type[T], method: str, path: str, **kwargs: Any
    ) -> T:
        """Request and validate the payload as `model` (a model class or type hint)."""
        payload = await self.request(method, path, **kwargs)
        try:
            if isinstance(model, type) and issubclass(model, BaseModel):
                return model.model_validate(payload)  # type: ignore[return-value]
            return TypeAdapter(model).validate_python(payload)
        except ValidationError as exc:
            name = getattr(model, "__name__", str(model))
            raise ShortcutModelValidationError(
                f"Response from {method.upper()} {path} did not match {name}: {exc}"
            ) from exc


__all__ = [
    "ShortcutClient",
    "RetryConfig",
    "ShortcutClientError",
    "ShortcutHTTPError",
    "ShortcutRateLimitError",
    "ShortcutModelValidationError",
    "parse_retry_after",
    "RATE_LIMIT_MESSAGE",
]
