import pytest
from shortcut_mcp.core.cache import ReferenceCache
from shortcut_mcp.core.client import ShortcutClient

BASE = "https://api.app.shortcut.com/api/v3"

WORKFLOWS = [
    {
        "id": 500,
        "name": "Engineering",
        "states": [
            {"id": 5001, "name": "Backlog", "type": "unstarted"},
            {"id": 5002, "name": "Ready for Development", "type": "unstarted"},
            {"id": 5003, "name": "In Progress", "type": "started"},
            {"id": 5004, "name": "In Review", "type": "started"},
            {"id": 5005, "name": "Done", "type": "done"},
        ],
    },
    {
        "id": 600,
        "name": "Support",
        "states": [
            {"id": 6001, "name": "New", "type": "unstarted"},
            {"id": 6002, "name": "Resolved", "type": "done"},
        ],
    },
]

ALL_STATE_NAMES = (
    "Backlog, Ready for Development, In Progress, In Review, Done, New, Resolved"
)

MEMBERS = [
    {
        "id": "uuid-ada",
        "profile": {"name": "Ada Lovelace", "mention_name": "ada"},
    },
    {
        "id": "uuid-grace",
        "profile": {"name": "Grace Hopper", "mention_name": "grace"},
    },
    {"id": "uuid-ghost", "profile": None},
]

CURRENT_MEMBER = {"id": "uuid-me", "name": "Sam Example", "mention_name": "sam"}


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SleepRecorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(sleeper):
    return ShortcutClient(api_token="mock-token", sleep=sleeper)


@pytest.fixture
def cache(client, clock):
    return ReferenceCache(client, clock=clock)
