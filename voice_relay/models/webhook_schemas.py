"""
Pydantic models for the telephony platform webhook.

The platform posts several message types to the same endpoint. Only
`tool-calls` carries work for the relay; the assistant handshake types receive
the assistant configuration and everything else is acknowledged.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

MESSAGE_TYPE_TOOL_CALLS = "tool-calls"
ASSISTANT_REQUEST_TYPES = ("assistant-request", "conversation-start", "vapi-request")


class WebhookFunction(BaseModel):
    """Function name and arguments; arguments may arrive JSON-encoded as a string."""

    name: str
    arguments: Any = None


class WebhookToolCall(BaseModel):
    id: Optional[Union[str, int]] = None
    type: Optional[str] = "function"
    function: WebhookFunction


class WebhookMessage(BaseModel):
    type: str
    toolCalls: List[WebhookToolCall] = Field(default_factory=list)


class WebhookRequest(BaseModel):
    message: WebhookMessage


class WebhookToolResult(BaseModel):
    toolCallId: Optional[Union[str, int]] = Field(None, description="Echo of the originating call id")
    result: str = Field(..., description="JSON-encoded tool result")


class WebhookToolResponse(BaseModel):
    results: List[WebhookToolResult]


class SystemMessage(BaseModel):
    role: str = "system"
    content: str


class AssistantModel(BaseModel):
    messages: List[SystemMessage]


class AssistantConfig(BaseModel):
    model: AssistantModel


class AssistantResponse(BaseModel):
    """Assistant configuration echo with the freshly rendered system instructions."""

    assistant: AssistantConfig
    assistantOverrides: AssistantConfig

    @classmethod
    def from_instructions(cls, instructions: str) -> "AssistantResponse":
        config = AssistantConfig(model=AssistantModel(messages=[SystemMessage(content=instructions)]))
        return cls(assistant=config, assistantOverrides=config)


def acknowledgement(status: str) -> Dict[str, str]:
    """Neutral acknowledgement body for messages that carry no tool work."""
    return {"status": status}
