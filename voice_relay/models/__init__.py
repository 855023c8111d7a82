"""
Models module for wire protocols and session state in the voice relay.

Key components:
- message_schemas: Pydantic models for the browser client protocol.
- live_schemas: Gemini Live setup, input, tool response frames and the
  classification of server frames into events.
- webhook_schemas: Telephony webhook requests and responses.
- scheduling: Busy intervals and appointments exchanged with the calendar.
- session: Session lifecycle states and the live session registry.

Usage examples:
```python
from voice_relay.models.message_schemas import parse_client_frame

frame = parse_client_frame('{"type": "text", "text": "Hello"}')
```
"""

from voice_relay.models.live_schemas import (
    SetupDescriptor,
    ToolCallRequest,
    ToolCallResult,
    classify_server_message,
)
from voice_relay.models.message_schemas import (
    ClientAudioFrame,
    ClientTextFrame,
    InterruptedFrame,
    ServerAudioFrame,
    ServerTextFrame,
    TurnCompleteFrame,
    parse_client_frame,
)
from voice_relay.models.scheduling import Appointment, BusyInterval
from voice_relay.models.session import SessionManager, SessionState
