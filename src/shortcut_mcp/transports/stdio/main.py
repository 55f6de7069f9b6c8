from __future__ import annotations

import asyncio
import logging
import sys

from shortcut_mcp.core.cache import ReferenceCache
from shortcut_mcp.core.client import ShortcutClient
from shortcut_mcp.core.config import MissingTokenError, ServerConfig, load_env_config
from shortcut_mcp.core.logging import setup_logging
from shortcut_mcp.server import build_description, create_app

log = logging.getLogger("shortcut_mcp.transports.stdio")


async def serve(config: ServerConfig) -> int:
    client = ShortcutClient(
        api_token=config.api_token,
        base_url=config.api_url,
        timeout_seconds=config.timeout_seconds,
    )
    async with client:
        cache = ReferenceCache(client, ttl_seconds=config.cache_ttl_seconds)
        try:
            description = await build_description(cache)
        except Exception as exc:
            log.error("Failed to initialize Shortcut MCP: %s", exc)
            log.error("Check your SHORTCUT_API_TOKEN and network connection.")
            return 1

        app = create_app(client, cache, description)
        await app.run_stdio_async()
    return 0


def main() -> None:
    try:
        config = load_env_config(use_dotenv=True)
    except MissingTokenError as exc:
        setup_logging()
        log.error("%s", exc)
        sys.exit(1)

    setup_logging(config.log_level)
    sys.exit(asyncio.run(serve(config)))


if __name__ == "__main__":
    main()
