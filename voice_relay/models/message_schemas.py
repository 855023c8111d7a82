"""
Pydantic models for the browser client wire protocol.

The client speaks JSON text frames over a single websocket. Inbound frames carry
microphone audio (base64 PCM16 mono, 16 kHz) or typed text; outbound frames carry
model audio, model text and turn-control signals.
"""

import base64
import binascii
import logging
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from voice_relay.config.constants import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


class BaseFrame(BaseModel):
    """Base model for all client protocol frames."""

    type: str = Field(..., description="Frame type identifier")


# Client -> server
class ClientAudioFrame(BaseFrame):
    """Microphone audio chunk from the browser."""

    type: Literal["audio"]
    data: str = Field(..., description="Base64-encoded PCM16 mono audio")

    @field_validator("data")
    def validate_data(cls, v):
        """Validate that the audio payload is non-empty base64."""
        if not v:
            raise ValueError("Audio data cannot be empty")
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("Invalid base64 encoded audio data")
        return v


class ClientTextFrame(BaseFrame):
    """Typed text message from the browser."""

    type: Literal["text"]
    text: str = Field(..., description="Text typed by the user")


ClientFrame = Annotated[
    Union[ClientAudioFrame, ClientTextFrame], Field(discriminator="type")
]

_client_frame_adapter = TypeAdapter(ClientFrame)


def parse_client_frame(raw: Union[str, bytes]) -> Optional[Union[ClientAudioFrame, ClientTextFrame]]:
    """
    Decode one inbound client frame.

    Returns:
        The typed frame, or None when the frame is not one of the two accepted shapes.
    """
    try:
        return _client_frame_adapter.validate_json(raw)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid client frame: {e.error_count()} validation error(s)")
        return None


# Server -> client
class ServerAudioFrame(BaseFrame):
    """Model audio forwarded to the browser."""

    type: Literal["audio"] = "audio"
    data: str = Field(..., description="Base64-encoded PCM16 audio")


class ServerTextFrame(BaseFrame):
    """Model text or an interim status message."""

    type: Literal["text"] = "text"
    text: str


class TurnCompleteFrame(BaseFrame):
    """The agent finished its turn; the client may resume listening."""

    type: Literal["turnComplete"] = "turnComplete"


class InterruptedFrame(BaseFrame):
    """The agent was interrupted; the client should flush queued playback."""

    type: Literal["interrupted"] = "interrupted"


ServerFrame = Union[ServerAudioFrame, ServerTextFrame, TurnCompleteFrame, InterruptedFrame]
