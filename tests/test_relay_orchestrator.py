"""
Unit tests for the relay orchestrator.

Each test runs a full session between a scripted client websocket and a
recording provider client, checking forwarding order, tool-call handling and
teardown.
"""

import asyncio

import pytest

from voice_relay.bot.relay_orchestrator import RelayOrchestrator
from voice_relay.bot.tool_executor import ToolExecutor
from voice_relay.models.live_schemas import ToolCallRequest
from voice_relay.models.session import SessionState


async def settle():
    await asyncio.sleep(0.02)


@pytest.fixture
def orchestrator(fake_websocket, executor, settings, fake_upstream):
    return RelayOrchestrator(
        fake_websocket,
        executor,
        settings,
        upstream_factory=lambda: fake_upstream,
        session_id="test-session",
    )


@pytest.fixture
async def running(orchestrator):
    """Start a session and stop it at the end of the test."""
    task = asyncio.create_task(orchestrator.run())
    await settle()
    yield orchestrator
    await orchestrator.close()
    await asyncio.wait_for(task, timeout=1)


@pytest.mark.asyncio
async def test_session_becomes_ready_with_setup(running, fake_upstream):
    assert running.state is SessionState.READY
    assert fake_upstream.setup.model == running.settings.gemini_model
    assert "checkAvailability" in fake_upstream.setup.system_instruction


@pytest.mark.asyncio
async def test_client_frames_forwarded_in_order(running, fake_websocket, fake_upstream):
    fake_websocket.push_json({"type": "audio", "data": "AAAA"})
    fake_websocket.push_json({"type": "text", "text": "Do you have time today?"})
    fake_websocket.push_json({"type": "audio", "data": "BBBB"})
    await settle()

    assert fake_upstream.sent == [
        {"realtimeInput": {"mediaChunks": [{"mimeType": "audio/pcm;rate=16000", "data": "AAAA"}]}},
        {
            "clientContent": {
                "turns": [{"role": "user", "parts": [{"text": "Do you have time today?"}]}],
                "turnComplete": True,
            }
        },
        {"realtimeInput": {"mediaChunks": [{"mimeType": "audio/pcm;rate=16000", "data": "BBBB"}]}},
    ]


@pytest.mark.asyncio
async def test_provider_events_forwarded_to_client(running, fake_websocket, fake_upstream):
    await fake_upstream.emit("audio", "QUJD")
    assert running.agent_speaking is True
    await fake_upstream.emit("text", "Sure!")
    await fake_upstream.emit("interrupted")
    await fake_upstream.emit("turn_complete")

    assert running.agent_speaking is False
    assert fake_websocket.sent == [
        {"type": "audio", "data": "QUJD"},
        {"type": "text", "text": "Sure!"},
        {"type": "interrupted"},
        {"type": "turnComplete"},
    ]


@pytest.mark.asyncio
async def test_tool_call_sends_status_and_result(running, fake_websocket, fake_upstream):
    call = ToolCallRequest(id="X", name="checkAvailability", args={"date": "2026-02-01"})
    await fake_upstream.emit("tool_call", call)
    await settle()

    assert fake_websocket.sent == [{"type": "text", "text": "Checking the calendar..."}]
    assert fake_upstream.tool_responses() == [
        {
            "functionResponses": [
                {
                    "id": "X",
                    "name": "checkAvailability",
                    "response": {"result": {"message": "Found 0 appointments.", "busyTimes": []}},
                }
            ]
        }
    ]
    assert running.tool_pending is False


@pytest.mark.asyncio
async def test_get_current_time_without_status_text(running, fake_websocket, fake_upstream):
    await fake_upstream.emit("tool_call", ToolCallRequest(id="t1", name="getCurrentTime"))
    await settle()

    assert fake_websocket.sent == []
    response = fake_upstream.tool_responses()[0]["functionResponses"][0]
    assert response["id"] == "t1"
    assert response["response"]["result"]["currentTime"] == "Sunday, February 1, 10:00 AM"


@pytest.mark.asyncio
async def test_unknown_tool_returns_error_result(running, fake_upstream):
    await fake_upstream.emit("tool_call", ToolCallRequest(id="u1", name="orderPizza"))
    await settle()

    response = fake_upstream.tool_responses()[0]["functionResponses"][0]
    assert response["response"] == {"result": {"error": "Unknown function"}}


@pytest.mark.asyncio
async def test_forwarding_continues_while_tool_pending(running, fake_websocket, fake_upstream, backend):
    backend.list_gate = asyncio.Event()
    await fake_upstream.emit("tool_call", ToolCallRequest(id="X", name="checkAvailability"))
    await settle()
    assert running.tool_pending is True

    fake_websocket.push_json({"type": "audio", "data": "AAAA"})
    await fake_upstream.emit("audio", "QUJD")
    await settle()

    assert fake_upstream.sent[0]["realtimeInput"]["mediaChunks"][0]["data"] == "AAAA"
    assert {"type": "audio", "data": "QUJD"} in fake_websocket.sent

    backend.list_gate.set()
    await settle()
    assert len(fake_upstream.tool_responses()) == 1


@pytest.mark.asyncio
async def test_client_close_with_pending_tool(orchestrator, fake_websocket, fake_upstream, backend):
    """The provider is closed once and the late tool result is discarded."""
    backend.list_gate = asyncio.Event()
    task = asyncio.create_task(orchestrator.run())
    await settle()

    await fake_upstream.emit("tool_call", ToolCallRequest(id="X", name="checkAvailability"))
    await settle()
    fake_websocket.push_disconnect()
    await asyncio.wait_for(task, timeout=1)

    assert orchestrator.state is SessionState.CLOSED
    assert fake_upstream.close_count == 1
    assert fake_websocket.close_codes == []

    backend.list_gate.set()
    await settle()
    assert fake_upstream.tool_responses() == []


@pytest.mark.asyncio
async def test_provider_close_closes_client_once(orchestrator, fake_websocket, fake_upstream):
    task = asyncio.create_task(orchestrator.run())
    await settle()

    await fake_upstream.emit("close")
    await asyncio.wait_for(task, timeout=1)

    assert orchestrator.state is SessionState.CLOSED
    assert fake_websocket.close_codes == [1000]
    assert fake_upstream.close_count == 1


@pytest.mark.asyncio
async def test_nothing_forwarded_after_close(orchestrator, fake_websocket, fake_upstream):
    task = asyncio.create_task(orchestrator.run())
    await settle()
    await orchestrator.close()
    await asyncio.wait_for(task, timeout=1)

    await fake_upstream.emit("audio", "QUJD")
    await fake_upstream.emit("turn_complete")

    assert fake_websocket.sent == []


@pytest.mark.asyncio
async def test_connect_failure_closes_client(orchestrator, fake_websocket, fake_upstream):
    fake_upstream.connect_result = False

    await orchestrator.run()

    assert orchestrator.state is SessionState.CLOSED
    assert fake_websocket.close_codes == [1011]
    assert fake_upstream.close_count == 1
    assert fake_upstream.sent == []


@pytest.mark.asyncio
async def test_provider_error_does_not_close_session(running, fake_upstream):
    await fake_upstream.emit("error", {"code": 400, "message": "bad request"})
    assert running.state is SessionState.READY


@pytest.mark.asyncio
async def test_timed_out_tool_reports_busy_once(fake_websocket, settings, fake_upstream, backend):
    """After a timeout only the busy error reaches the provider, never the real result"""
    backend.list_gate = asyncio.Event()
    executor = ToolExecutor(backend, timeout=0.05)
    orchestrator = RelayOrchestrator(
        fake_websocket, executor, settings, upstream_factory=lambda: fake_upstream
    )
    task = asyncio.create_task(orchestrator.run())
    await settle()

    await fake_upstream.emit("tool_call", ToolCallRequest(id="slow", name="checkAvailability"))
    await asyncio.sleep(0.1)
    backend.list_gate.set()
    await settle()

    responses = fake_upstream.tool_responses()
    assert len(responses) == 1
    response = responses[0]["functionResponses"][0]
    assert response["id"] == "slow"
    assert response["response"] == {"result": {"error": "Service busy, try again."}}

    await orchestrator.close()
    await asyncio.wait_for(task, timeout=1)


@pytest.mark.asyncio
async def test_time_question_end_to_end(running, fake_websocket, fake_upstream):
    """Typed question, tool round trip, then the spoken answer reaches the client"""
    fake_websocket.push_json({"type": "text", "text": "What time is it?"})
    await settle()
    assert fake_upstream.sent == [
        {
            "clientContent": {
                "turns": [{"role": "user", "parts": [{"text": "What time is it?"}]}],
                "turnComplete": True,
            }
        }
    ]

    await fake_upstream.emit("tool_call", ToolCallRequest(id="time-1", name="getCurrentTime"))
    await settle()
    response = fake_upstream.tool_responses()[0]["functionResponses"][0]
    assert response["id"] == "time-1"
    assert response["name"] == "getCurrentTime"
    assert response["response"]["result"]["currentTime"] == "Sunday, February 1, 10:00 AM"

    await fake_upstream.emit("text", "It's 10:00 AM on Sunday, February 1.")
    await fake_upstream.emit("turn_complete")

    assert fake_websocket.sent == [
        {"type": "text", "text": "It's 10:00 AM on Sunday, February 1."},
        {"type": "turnComplete"},
    ]


@pytest.mark.asyncio
async def test_status_reports_speaking_and_pending_tools(running, fake_upstream, backend):
    assert running.status() == {"state": "ready", "agent_speaking": False, "tool_pending": False}

    backend.list_gate = asyncio.Event()
    await fake_upstream.emit("audio", "QUJD")
    await fake_upstream.emit("tool_call", ToolCallRequest(id="X", name="checkAvailability"))
    await settle()
    assert running.status() == {"state": "ready", "agent_speaking": True, "tool_pending": True}

    backend.list_gate.set()
    await fake_upstream.emit("turn_complete")
    await settle()
    assert running.status() == {"state": "ready", "agent_speaking": False, "tool_pending": False}
