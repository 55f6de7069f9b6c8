"""
Transport-agnostic core: Shortcut client, reference cache, resolvers,
formatters and action handlers. Must not import MCP server or transport code.
"""

from .actions import dispatch, run_action
from .cache import ReferenceCache
from .client import RetryConfig, ShortcutClient
from .config import ServerConfig, load_env_config
from .models import ActionRequest, ActionResult, ResultKind

__all__ = [
    "ShortcutClient",
    "RetryConfig",
    "ReferenceCache",
    "ServerConfig",
    "load_env_config",
    "ActionRequest",
    "ActionResult",
    "ResultKind",
    "dispatch",
    "run_action",
]
