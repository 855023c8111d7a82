"""
Bot module for relaying browser voice sessions to the Gemini Live API.

Key components:
- LiveAudioClient: Client for one Gemini Live streaming session. Sends the setup
  descriptor first, forwards audio, text and tool results, and classifies
  inbound frames into typed events.
- ClientChannel: The browser side of a session; decodes client frames and is the
  only writer to the client socket.
- ToolExecutor: Runs getCurrentTime, checkAvailability and bookAppointment against
  the scheduling backend with a per-call timeout.
- RelayOrchestrator: Pairs one ClientChannel with one LiveAudioClient and owns the
  session state machine.

Usage examples:
```python
from voice_relay.bot import RelayOrchestrator

async def handle(websocket):
    await websocket.accept()
    session = RelayOrchestrator(websocket, tool_executor, settings)
    await session.run()
```
"""

from voice_relay.bot.client_channel import ClientChannel
from voice_relay.bot.live_api import LiveAudioClient
from voice_relay.bot.relay_orchestrator import RelayOrchestrator
from voice_relay.bot.tool_executor import ToolExecutor

__all__ = ["ClientChannel", "LiveAudioClient", "RelayOrchestrator", "ToolExecutor"]
