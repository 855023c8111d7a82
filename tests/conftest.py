import asyncio
import json
import logging
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from starlette.websockets import WebSocketState

from voice_relay.bot.live_api import LiveAudioClient
from voice_relay.bot.tool_executor import ToolExecutor
from voice_relay.config.settings import Settings

BUSINESS_TZ = ZoneInfo("America/New_York")
# Sunday, February 1, 2026, 10:00 AM in the business timezone
FIXED_NOW = datetime(2026, 2, 1, 10, 0, tzinfo=BUSINESS_TZ)


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


class FakeWebSocket:
    """Stands in for an accepted FastAPI websocket with a scripted receive queue."""

    def __init__(self):
        self.application_state = WebSocketState.CONNECTED
        self.client_state = WebSocketState.CONNECTED
        self.client = None
        self.accepted = False
        self.sent = []
        self.close_codes = []
        self.fail_sends = False
        self._incoming = asyncio.Queue()

    async def accept(self):
        self.accepted = True

    async def receive(self):
        return await self._incoming.get()

    async def send_text(self, data):
        if self.fail_sends:
            raise RuntimeError("socket broken")
        self.sent.append(json.loads(data))

    async def close(self, code=1000):
        self.close_codes.append(code)
        self.application_state = WebSocketState.DISCONNECTED
        self._incoming.put_nowait({"type": "websocket.disconnect", "code": code})

    def push_text(self, text):
        self._incoming.put_nowait({"type": "websocket.receive", "text": text})

    def push_json(self, payload):
        self.push_text(json.dumps(payload))

    def push_bytes(self, data):
        self._incoming.put_nowait({"type": "websocket.receive", "bytes": data})

    def push_disconnect(self, code=1000):
        self.client_state = WebSocketState.DISCONNECTED
        self._incoming.put_nowait({"type": "websocket.disconnect", "code": code})


class FakeLiveClient(LiveAudioClient):
    """LiveAudioClient that records outbound frames instead of using a socket."""

    def __init__(self, connect_result=True):
        super().__init__("test-api-key")
        self.connect_result = connect_result
        self.setup = None
        self.sent = []
        self.close_count = 0

    async def connect(self, setup):
        self.setup = setup
        self._connection_active = self.connect_result
        return self.connect_result

    async def _send_json(self, message):
        if not self.is_open:
            return False
        self.sent.append(message)
        return True

    async def close(self):
        self.close_count += 1
        await super().close()

    async def emit(self, name, *args):
        await self._emit(name, *args)

    def tool_responses(self):
        return [m["toolResponse"] for m in self.sent if "toolResponse" in m]


class FakeSchedulingBackend:
    """In-memory scheduling backend with optional blocking and failures."""

    def __init__(self, events=None):
        self.events = events or []
        self.list_calls = []
        self.created = []
        self.confirmations = []
        self.list_gate = None
        self.create_error = None
        self.confirmation_error = None

    async def list_events(self, start, end):
        self.list_calls.append((start, end))
        if self.list_gate is not None:
            await self.list_gate.wait()
        return list(self.events)

    async def create_event(self, appointment):
        if self.create_error:
            raise self.create_error
        self.created.append(appointment)
        return f"event-{len(self.created)}"

    async def send_confirmation(self, appointment):
        if self.confirmation_error:
            raise self.confirmation_error
        self.confirmations.append(appointment)


async def settle(seconds=0.01):
    """Let pending tasks run."""
    await asyncio.sleep(seconds)


@pytest.fixture
def settings():
    return Settings(google_api_key="test-api-key", greeting_delay=0.0)


@pytest.fixture
def backend():
    return FakeSchedulingBackend()


@pytest.fixture
def executor(backend):
    return ToolExecutor(backend, timeout=1.0, clock=lambda: FIXED_NOW)


@pytest.fixture
def fake_websocket():
    return FakeWebSocket()


@pytest.fixture
def fake_upstream():
    return FakeLiveClient()
