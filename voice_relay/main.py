"""
FastAPI server for the realtime voice relay.

This module initializes the FastAPI application that bridges browser voice clients
to the Gemini Live API. It exposes the client websocket, the telephony tool-call
webhook, a health check and, when present, the static widget bundle.

Shared resources (tool executor, scheduling backend and its token cache) are
created once per process and used by every session.
"""

from pathlib import Path

from fastapi import FastAPI, Request, WebSocket
from fastapi.staticfiles import StaticFiles

from voice_relay.bot.tool_executor import ToolExecutor
from voice_relay.config.logging_config import configure_logging
from voice_relay.config.settings import Settings, get_settings, log_configuration_warnings
from voice_relay.handlers.webhook_handlers import handle_webhook
from voice_relay.services.graph_calendar import GraphCalendarBackend
from voice_relay.services.token_cache import AccessTokenCache, msal_token_acquirer
from voice_relay.websocket_manager import WebSocketManager

settings = get_settings()

# Configure logging
logger = configure_logging(settings.log_level)
log_configuration_warnings(settings)


def create_tool_executor(settings: Settings) -> ToolExecutor:
    """Build the process-wide tool executor and its scheduling backend."""
    token_cache = None
    if settings.calendar_configured:
        token_cache = AccessTokenCache(
            msal_token_acquirer(
                settings.ms_tenant_id, settings.ms_client_id, settings.ms_client_secret
            )
        )
    backend = GraphCalendarBackend(
        settings.ms_user_email, token_cache, business_name=settings.business_name
    )
    return ToolExecutor(
        backend,
        timezone_name=settings.business_timezone,
        timeout=settings.tool_timeout,
        location_label=settings.business_location,
    )


app = FastAPI(
    title="Realtime Voice Relay",
    description="Relay between browser voice clients and the Gemini Live API with calendar tools",
    version="1.0.0",
)

tool_executor = create_tool_executor(settings)
websocket_manager = WebSocketManager(tool_executor, settings)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for browser voice clients.

    Each connection becomes one relay session with its own Gemini Live connection.
    Frames follow the client wire protocol: audio and text in; audio, text,
    turnComplete and interrupted out.
    """
    await websocket_manager.handle_websocket(websocket)


@app.post("/webhook")
async def webhook(request: Request):
    """Tool-call webhook for the telephony platform. Always answers 200."""
    try:
        body = await request.json()
    except ValueError:
        body = None
    return await handle_webhook(body, tool_executor, settings)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring system status.

    Returns:
        dict: Service status, configuration flags and live session states.
    """
    sessions = websocket_manager.session_manager.get_all_sessions()
    return {
        "status": "healthy",
        "google_api_key_configured": bool(settings.google_api_key),
        "calendar_configured": settings.calendar_configured,
        "active_sessions": len(sessions),
        "sessions": {session_id: session.status() for session_id, session in sessions.items()},
    }


@app.get("/")
async def root():
    """Root endpoint to display basic information about the API."""
    return {
        "name": "Realtime Voice Relay",
        "description": "Relay between browser voice clients and the Gemini Live API",
        "version": "1.0.0",
        "endpoints": {
            "/ws": "WebSocket endpoint for browser voice clients",
            "/webhook": "Tool-call webhook for the telephony platform",
            "/health": "Health check endpoint",
            "/widget": "Browser widget assets (when installed)",
        },
    }


static_dir = Path(settings.static_dir)
if static_dir.is_dir():
    app.mount("/widget", StaticFiles(directory=static_dir, html=True), name="widget")
    logger.info(f"Serving widget assets from {static_dir.resolve()}")


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on http://{settings.host}:{settings.port}")
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        ws_ping_interval=5,
        ws_ping_timeout=20,
        ws_max_size=16777216,  # 16MB - large enough for audio chunks
        http="h11",
    )
