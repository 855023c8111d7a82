import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect
from unittest.mock import patch, MagicMock

from voice_relay.main import app, websocket_manager

client = TestClient(app)

def test_health_check():
    """Test the health check endpoint returns correct response"""
    response = client.get("/health")
    assert response.status_code == 200

    response_json = response.json()
    assert response_json["status"] == "healthy"
    assert isinstance(response_json["google_api_key_configured"], bool)
    assert isinstance(response_json["calendar_configured"], bool)
    assert response_json["active_sessions"] == 0

def test_health_check_reports_session_status():
    """Live sessions are listed with their state, speaking flag and pending tools"""
    session = MagicMock()
    session.status.return_value = {"state": "ready", "agent_speaking": True, "tool_pending": False}
    websocket_manager.session_manager.add_session("session-1", session)
    try:
        response = client.get("/health")
    finally:
        websocket_manager.session_manager.remove_session("session-1")

    response_json = response.json()
    assert response_json["active_sessions"] == 1
    assert response_json["sessions"]["session-1"] == {
        "state": "ready",
        "agent_speaking": True,
        "tool_pending": False,
    }

def test_root_endpoint():
    """Test the root endpoint returns the correct API information"""
    response = client.get("/")
    assert response.status_code == 200

    response_json = response.json()
    assert response_json["name"] == "Realtime Voice Relay"
    assert "description" in response_json
    assert response_json["version"] == "1.0.0"
    assert "/ws" in response_json["endpoints"]
    assert "/webhook" in response_json["endpoints"]
    assert "/health" in response_json["endpoints"]

def test_webhook_invalid_json_is_ignored():
    """Malformed bodies are acknowledged with 200 so the platform does not retry"""
    response = client.post(
        "/webhook", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 200
    assert response.json() == {"status": "ignored"}

def test_webhook_tool_call():
    response = client.post(
        "/webhook",
        json={
            "message": {
                "type": "tool-calls",
                "toolCalls": [
                    {"id": "call-1", "type": "function", "function": {"name": "getCurrentTime", "arguments": "{}"}}
                ],
            }
        },
    )
    assert response.status_code == 200

    results = response.json()["results"]
    assert len(results) == 1
    assert results[0]["toolCallId"] == "call-1"
    assert "currentTime" in results[0]["result"]

def test_webhook_other_message_type():
    response = client.post("/webhook", json={"message": {"type": "end-of-call-report"}})
    assert response.status_code == 200
    assert response.json() == {"status": "processed"}

def test_websocket_manager_initialization():
    """Test that websocket_manager is properly initialized"""
    assert websocket_manager is not None
    assert websocket_manager.session_manager is not None
    assert websocket_manager.executor is not None

def test_websocket_closed_when_provider_unavailable(fake_upstream):
    """The client socket is closed with 1011 if the provider cannot be reached"""
    fake_upstream.connect_result = False
    with patch.object(websocket_manager, "upstream_factory", lambda: fake_upstream):
        with client.websocket_connect("/ws") as websocket:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_text()
    assert exc_info.value.code == 1011
    assert len(websocket_manager.session_manager) == 0

@pytest.mark.asyncio
async def test_websocket_endpoint():
    """Test that websocket endpoint calls the handle_websocket method"""
    with patch('voice_relay.websocket_manager.WebSocketManager.handle_websocket') as mock_handle:
        mock_handle.return_value = None
        mock_websocket = MagicMock()

        # Find the websocket endpoint by path
        websocket_route = next(route for route in app.routes if route.path == "/ws")
        websocket_endpoint = websocket_route.endpoint
        await websocket_endpoint(mock_websocket)

        # Verify the websocket is handled
        mock_handle.assert_called_once_with(mock_websocket)
