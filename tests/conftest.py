import json

import pytest

from main import create_app
from surrogat.settings import Settings
from surrogat.state import ClientRegistry


class FakeSocket:
    """Stand-in for a WebSocketResponse that records what was sent"""

    def __init__(self, fail=False):
        self.fail = fail
        self.closed = False
        self.sent = []

    async def send_str(self, data):
        if self.fail:
            raise ConnectionResetError("Cannot write to closing transport")
        self.sent.append(data)

    async def close(self, **kwargs):
        if self.fail:
            raise ConnectionResetError("transport already gone")
        self.closed = True

    @property
    def messages(self):
        return [json.loads(data) for data in self.sent]


@pytest.fixture
def registry():
    return ClientRegistry()


@pytest.fixture
def settings():
    return Settings(cleanup_interval_ms=60_000, activity_timeout_ms=120_000)


@pytest.fixture
async def client(aiohttp_client, settings):
    return await aiohttp_client(create_app(settings))
