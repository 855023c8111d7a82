"""
Voice Relay - Browser to Gemini Live API Voice Agent

This application relays realtime voice conversations between browser clients and
Google's Gemini Live API, giving the model access to a business calendar through
function calls. The agent answers as a receptionist: it tells the time, checks
availability and books appointments.

Architecture Overview:
- FastAPI server exposing a WebSocket endpoint for browser voice clients
- One Gemini Live connection per client session
- Tool execution against a Microsoft Graph calendar with a bounded timeout
- A webhook endpoint that runs the same tools for a telephony platform

Key Components:
- bot: Provider client, client channel, tool executor and relay orchestration
- config: Application-wide configuration, constants, and logging setup
- handlers: HTTP webhook handling for telephony tool calls
- models: Wire-protocol schemas and session state
- services: Calendar backend, token caching and the relay client
- websocket_manager: Accepts client connections and runs one session per socket

Getting Started:
1. Set up environment variables:
   - GOOGLE_API_KEY: Your Gemini API key
   - MS_TENANT_ID, MS_CLIENT_ID, MS_CLIENT_SECRET, MS_USER_EMAIL: calendar access
   - PORT: Port to run the server on (default 8080)
   - LOG_LEVEL: Logging level (default INFO)

2. Start the server:
   ```bash
   python run.py
   ```

3. Point the browser widget at ws://your-server:8080/ws
"""
