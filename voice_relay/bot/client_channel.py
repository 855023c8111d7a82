"""
Downstream side of a relay session: the browser websocket.

ClientChannel is the only writer to the client socket. It decodes the two
accepted inbound frame shapes and hands them to async handlers, one frame at a
time, so each frame is fully forwarded before the next one is read. Outbound
sends are fire-and-forget: on a closed socket they do nothing, and send errors
are logged rather than raised.
"""

import logging
from typing import Awaitable, Callable, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from voice_relay.config.constants import LOGGER_NAME
from voice_relay.models.message_schemas import (
    BaseFrame,
    ClientAudioFrame,
    ClientTextFrame,
    InterruptedFrame,
    ServerAudioFrame,
    ServerTextFrame,
    TurnCompleteFrame,
    parse_client_frame,
)

logger = logging.getLogger(LOGGER_NAME)


class ClientChannel:
    """Wraps one accepted FastAPI websocket speaking the client wire protocol."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self._closed = False
        self._close_notified = False
        self._disconnected = False
        self._socket_closed = False
        self._audio_handler: Optional[Callable[[str], Awaitable[None]]] = None
        self._text_handler: Optional[Callable[[str], Awaitable[None]]] = None
        self._close_handler: Optional[Callable[[], Awaitable[None]]] = None

    def on_audio(self, handler: Callable[[str], Awaitable[None]]) -> None:
        self._audio_handler = handler

    def on_text(self, handler: Callable[[str], Awaitable[None]]) -> None:
        self._text_handler = handler

    def on_close(self, handler: Callable[[], Awaitable[None]]) -> None:
        self._close_handler = handler

    @property
    def closed(self) -> bool:
        return self._closed

    async def run(self) -> None:
        """
        Read client frames until the socket closes.

        Invalid JSON, unknown frame types and binary frames are logged and ignored.
        The close handler fires once when the client goes away.
        """
        while not self._closed:
            try:
                message = await self.websocket.receive()
            except RuntimeError as e:
                # Raised by Starlette once the socket was closed from our side
                logger.debug(f"Client socket no longer readable: {e}")
                break

            if message.get("type") == "websocket.disconnect":
                logger.info(f"Client disconnected (code: {message.get('code')})")
                self._disconnected = True
                break

            text = message.get("text")
            if text is None:
                logger.warning("Ignoring binary frame from client")
                continue

            await self._dispatch(text)

        self._closed = True
        if not self._close_notified:
            self._close_notified = True
            if self._close_handler:
                await self._close_handler()

    async def _dispatch(self, raw: str) -> None:
        frame = parse_client_frame(raw)
        if isinstance(frame, ClientAudioFrame):
            if self._audio_handler:
                await self._audio_handler(frame.data)
        elif isinstance(frame, ClientTextFrame):
            logger.info(f"Client text: {frame.text[:100]}")
            if self._text_handler:
                await self._text_handler(frame.text)

    async def send_audio(self, data: str) -> None:
        await self._send(ServerAudioFrame(data=data))

    async def send_text(self, text: str) -> None:
        await self._send(ServerTextFrame(text=text))

    async def send_turn_complete(self) -> None:
        await self._send(TurnCompleteFrame())

    async def send_interrupted(self) -> None:
        await self._send(InterruptedFrame())

    async def _send(self, frame: BaseFrame) -> None:
        if self._closed or self.websocket.application_state != WebSocketState.CONNECTED:
            logger.debug(f"Dropping {frame.type} frame, client socket is closed")
            return
        try:
            await self.websocket.send_text(frame.model_dump_json())
        except Exception as e:
            logger.warning(f"Failed to send {frame.type} frame to client: {e}")
            self._closed = True

    async def close(self, code: int = 1000) -> None:
        """Close the client socket. Safe to call more than once."""
        self._closed = True
        if self._socket_closed:
            return
        self._socket_closed = True
        if self._disconnected or self.websocket.application_state != WebSocketState.CONNECTED:
            return
        try:
            await self.websocket.close(code=code)
            logger.info("Client WebSocket closed")
        except Exception as e:
            logger.warning(f"Error closing client WebSocket: {e}")
