"""
Pydantic models for the Gemini Live bidirectional streaming protocol.

This module covers the frames the relay sends (setup, realtime audio input,
client content turns, tool responses) and the classification of inbound server
frames into an ordered list of typed events. A single server frame can carry
several signals at once, for example audio parts together with a turn-complete
flag, so classification always returns a list.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from voice_relay.config.constants import (
    INPUT_AUDIO_MIME_TYPE,
    TOOL_BOOK_APPOINTMENT,
    TOOL_CHECK_AVAILABILITY,
    TOOL_GET_CURRENT_TIME,
)

TOOL_DECLARATIONS: Tuple[Dict[str, Any], ...] = (
    {
        "name": TOOL_GET_CURRENT_TIME,
        "description": (
            "Get the current time in the business timezone. "
            "Use this to know what time it is right now."
        ),
        "parameters": {"type": "OBJECT", "properties": {}},
    },
    {
        "name": TOOL_CHECK_AVAILABILITY,
        "description": "Check if a specific date is available for an appointment in the calendar.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "date": {"type": "STRING", "description": "Date to check in YYYY-MM-DD format."}
            },
            "required": ["date"],
        },
    },
    {
        "name": TOOL_BOOK_APPOINTMENT,
        "description": "Book an appointment in the calendar.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "date": {"type": "STRING", "description": "Date of appointment in YYYY-MM-DD format."},
                "time": {"type": "STRING", "description": "Time of appointment (e.g., 14:00)"},
                "name": {"type": "STRING", "description": "Name of the customer"},
                "phone": {"type": "STRING", "description": "Phone number"},
                "address": {"type": "STRING", "description": "Address for outcall"},
            },
            "required": ["date", "time", "name", "address"],
        },
    },
)


class SetupDescriptor(BaseModel):
    """Per-session configuration sent once as the first provider frame."""

    model_config = ConfigDict(frozen=True)

    model: str = Field(..., description="Provider model identifier")
    voice: str = Field(..., description="Prebuilt voice name")
    system_instruction: str
    response_modalities: Tuple[str, ...] = ("AUDIO",)
    tools: Tuple[Dict[str, Any], ...] = TOOL_DECLARATIONS

    def to_message(self) -> Dict[str, Any]:
        return {
            "setup": {
                "model": self.model,
                "generationConfig": {
                    "responseModalities": list(self.response_modalities),
                    "speechConfig": {
                        "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": self.voice}}
                    },
                },
                "systemInstruction": {"parts": [{"text": self.system_instruction}]},
                "tools": [{"functionDeclarations": [dict(tool) for tool in self.tools]}],
            }
        }


class ToolCallRequest(BaseModel):
    """A function call requested by the model mid-stream."""

    id: Optional[str] = None
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)


class ToolCallResult(BaseModel):
    """The outcome of a tool call, correlated to the request by id."""

    id: Optional[str] = None
    name: str
    result: Any

    def to_message(self) -> Dict[str, Any]:
        return {
            "toolResponse": {
                "functionResponses": [
                    {"id": self.id, "name": self.name, "response": {"result": self.result}}
                ]
            }
        }


def realtime_audio_message(data: str, mime_type: str = INPUT_AUDIO_MIME_TYPE) -> Dict[str, Any]:
    """Wrap a base64 PCM chunk as realtime media input."""
    return {"realtimeInput": {"mediaChunks": [{"mimeType": mime_type, "data": data}]}}


def client_content_message(text: str, role: str = "user", turn_complete: bool = True) -> Dict[str, Any]:
    """Wrap text as a complete conversational turn."""
    return {
        "clientContent": {
            "turns": [{"role": role, "parts": [{"text": text}]}],
            "turnComplete": turn_complete,
        }
    }


# Inbound events
class ToolCallEvent(BaseModel):
    call: ToolCallRequest


class SetupCompleteEvent(BaseModel):
    pass


class AudioEvent(BaseModel):
    data: str
    mime_type: Optional[str] = None


class TextEvent(BaseModel):
    text: str


class InterruptedEvent(BaseModel):
    pass


class TurnCompleteEvent(BaseModel):
    pass


LiveEvent = Union[
    ToolCallEvent, SetupCompleteEvent, AudioEvent, TextEvent, InterruptedEvent, TurnCompleteEvent
]


def _parse_function_call(raw: Any) -> Optional[ToolCallRequest]:
    if not isinstance(raw, dict) or not raw.get("name"):
        return None
    args = raw.get("args")
    return ToolCallRequest(
        id=raw.get("id"),
        name=raw["name"],
        args=args if isinstance(args, dict) else {},
    )


def classify_server_message(message: Any) -> List[LiveEvent]:
    """
    Classify one decoded server frame into the events it carries.

    Events are returned in dispatch order: tool call, setup complete, model-turn
    content parts (in part order), interrupted, turn complete. Only the first
    tool call found in a frame is reported; a top-level toolCall envelope takes
    precedence over function calls embedded in model-turn parts.

    Args:
        message: The decoded JSON frame

    Returns:
        A list of events, empty when the frame carries nothing the relay acts on
    """
    events: List[LiveEvent] = []
    if not isinstance(message, dict):
        return events

    server_content = message.get("serverContent")
    if not isinstance(server_content, dict):
        server_content = {}
    model_turn = server_content.get("modelTurn")
    parts = model_turn.get("parts") if isinstance(model_turn, dict) else None
    if not isinstance(parts, list):
        parts = []

    tool_call = None
    envelope = message.get("toolCall")
    if isinstance(envelope, dict):
        for raw_call in envelope.get("functionCalls") or []:
            tool_call = _parse_function_call(raw_call)
            if tool_call:
                break
    if tool_call is None:
        for part in parts:
            if isinstance(part, dict) and "functionCall" in part:
                tool_call = _parse_function_call(part["functionCall"])
                if tool_call:
                    break
    if tool_call:
        events.append(ToolCallEvent(call=tool_call))

    if "setupComplete" in message:
        events.append(SetupCompleteEvent())

    for part in parts:
        if not isinstance(part, dict):
            continue
        inline_data = part.get("inlineData")
        if isinstance(inline_data, dict) and inline_data.get("data"):
            events.append(AudioEvent(data=inline_data["data"], mime_type=inline_data.get("mimeType")))
        elif isinstance(part.get("text"), str) and part["text"]:
            events.append(TextEvent(text=part["text"]))

    if server_content.get("interrupted"):
        events.append(InterruptedEvent())
    if server_content.get("turnComplete"):
        events.append(TurnCompleteEvent())

    return events
