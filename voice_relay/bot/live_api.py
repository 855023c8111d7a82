import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, ConnectionClosedOK

from voice_relay.config.constants import GEMINI_HOST, GEMINI_WS_PATH, LOGGER_NAME
from voice_relay.models.live_schemas import (
    AudioEvent,
    InterruptedEvent,
    LiveEvent,
    SetupCompleteEvent,
    SetupDescriptor,
    TextEvent,
    ToolCallEvent,
    ToolCallResult,
    TurnCompleteEvent,
    classify_server_message,
    client_content_message,
    realtime_audio_message,
)

logger = logging.getLogger(LOGGER_NAME)

CONNECTION_TIMEOUT = 30  # seconds

# WebSocket configuration for low latency
WS_MAX_SIZE = 16 * 1024 * 1024  # 16MB - large enough for audio chunks
WS_PING_INTERVAL = 5  # 5 seconds between pings
WS_PING_TIMEOUT = 10

EventHandler = Callable[..., Awaitable[None]]

EVENT_NAMES = {
    ToolCallEvent: "tool_call",
    SetupCompleteEvent: "setup_complete",
    AudioEvent: "audio",
    TextEvent: "text",
    InterruptedEvent: "interrupted",
    TurnCompleteEvent: "turn_complete",
}


class LiveAudioClient:
    """
    Client for one Gemini Live bidirectional streaming session.

    The setup descriptor is always the first frame on the socket. Inbound frames are
    classified into events and delivered, in order, to the registered async handlers.
    Sends attempted before the socket is open or after it closed are dropped.
    There is no reconnection: when the provider closes, `on_close` fires once.
    """

    def __init__(
        self,
        api_key: Optional[str],
        greeting_prompt: Optional[str] = None,
        greeting_delay: float = 0.0,
        url: Optional[str] = None,
    ):
        self.api_key = api_key
        self.url = url or f"wss://{GEMINI_HOST}{GEMINI_WS_PATH}?key={api_key}"
        self.greeting_prompt = greeting_prompt
        self.greeting_delay = greeting_delay
        self.ws = None
        self._recv_task: Optional[asyncio.Task] = None
        self._greeting_task: Optional[asyncio.Task] = None
        self._connection_active = False
        self._is_closing = False
        self._close_notified = False
        self._handlers: Dict[str, Optional[EventHandler]] = {
            "audio": None,
            "text": None,
            "tool_call": None,
            "turn_complete": None,
            "interrupted": None,
            "setup_complete": None,
            "close": None,
            "error": None,
        }

    # Handler registration
    def on_audio(self, handler: Callable[[str], Awaitable[None]]) -> None:
        self._handlers["audio"] = handler

    def on_text(self, handler: Callable[[str], Awaitable[None]]) -> None:
        self._handlers["text"] = handler

    def on_tool_call(self, handler: EventHandler) -> None:
        self._handlers["tool_call"] = handler

    def on_turn_complete(self, handler: Callable[[], Awaitable[None]]) -> None:
        self._handlers["turn_complete"] = handler

    def on_interrupted(self, handler: Callable[[], Awaitable[None]]) -> None:
        self._handlers["interrupted"] = handler

    def on_setup_complete(self, handler: Callable[[], Awaitable[None]]) -> None:
        self._handlers["setup_complete"] = handler

    def on_close(self, handler: Callable[[], Awaitable[None]]) -> None:
        self._handlers["close"] = handler

    def on_error(self, handler: Callable[[Any], Awaitable[None]]) -> None:
        self._handlers["error"] = handler

    @property
    def is_open(self) -> bool:
        return self._connection_active and not self._is_closing

    async def connect(self, setup: SetupDescriptor) -> bool:
        """
        Open the provider socket and send the setup descriptor.

        Returns:
            bool: True if the socket is open and the setup frame was sent
        """
        if self._is_closing:
            logger.warning("Cannot connect - client is closing")
            return False

        if not self.api_key:
            logger.error("GOOGLE_API_KEY is not configured, cannot connect to Gemini")
            return False

        try:
            logger.info(f"Connecting to Gemini Live API with model: {setup.model}")
            self.ws = await websockets.connect(
                self.url,
                max_size=WS_MAX_SIZE,
                ping_interval=WS_PING_INTERVAL,
                ping_timeout=WS_PING_TIMEOUT,
                open_timeout=CONNECTION_TIMEOUT,
                compression=None,
            )
        except asyncio.TimeoutError:
            logger.error(f"Timeout while connecting to Gemini Live API (after {CONNECTION_TIMEOUT}s)")
            return False
        except Exception as e:
            logger.error(f"Failed to connect to Gemini Live API: {e}")
            return False

        self._connection_active = True
        if not await self._send_json(setup.to_message()):
            logger.error("Failed to send setup frame to Gemini")
            await self.close()
            return False

        self._recv_task = asyncio.create_task(self._recv_loop())
        logger.info("Connected to Gemini Live API, setup sent")
        return True

    async def send_audio(self, data: str) -> bool:
        """Forward one base64 PCM16 chunk as realtime input."""
        return await self._send_json(realtime_audio_message(data))

    async def send_text(self, text: str) -> bool:
        """Send text as a complete user turn."""
        return await self._send_json(client_content_message(text))

    async def send_tool_result(self, call_id: Optional[str], name: str, result: Any) -> bool:
        """Return a tool result, echoing the id of the originating call."""
        message = ToolCallResult(id=call_id, name=name, result=result).to_message()
        sent = await self._send_json(message)
        if sent:
            logger.info(f"Sent tool result for {name} (id: {call_id})")
        return sent

    async def _send_json(self, message: Dict[str, Any]) -> bool:
        if not self.is_open or self.ws is None:
            logger.warning("Cannot send to Gemini - connection not active")
            return False

        try:
            await self.ws.send(json.dumps(message))
            return True
        except ConnectionClosed as e:
            logger.warning(f"Connection closed while sending to Gemini: {e}")
            self._connection_active = False
            return False
        except Exception as e:
            logger.error(f"Error sending message to Gemini: {e}")
            return False

    async def _recv_loop(self) -> None:
        """Receive frames until the provider closes the socket."""
        try:
            while self._connection_active and not self._is_closing:
                message = await self.ws.recv()
                await self._handle_message(message)
        except ConnectionClosedOK:
            logger.info("Gemini connection closed normally")
        except ConnectionClosedError as e:
            logger.warning(f"Gemini connection closed unexpectedly: {e}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in Gemini receive loop: {e}", exc_info=True)
            await self._emit("error", e)

        self._connection_active = False
        logger.info("Gemini receive loop exited")

        if not self._is_closing and not self._close_notified:
            self._close_notified = True
            await self._emit("close")

    async def _handle_message(self, raw: Any) -> None:
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError:
                logger.warning(f"Dropping undecodable binary frame of {len(raw)} bytes")
                return

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Received invalid JSON from Gemini: {raw[:200]}")
            return

        if isinstance(data, dict) and "error" in data:
            logger.error(f"Received error from Gemini: {data['error']}")
            await self._emit("error", data["error"])

        for event in classify_server_message(data):
            await self._dispatch(event)

    async def _dispatch(self, event: LiveEvent) -> None:
        if isinstance(event, ToolCallEvent):
            logger.info(f"Gemini requested tool: {event.call.name}")
            await self._emit("tool_call", event.call)
        elif isinstance(event, SetupCompleteEvent):
            logger.info("Gemini setup complete")
            self._schedule_greeting()
            await self._emit("setup_complete")
        elif isinstance(event, AudioEvent):
            await self._emit("audio", event.data)
        elif isinstance(event, TextEvent):
            await self._emit("text", event.text)
        else:
            await self._emit(EVENT_NAMES[type(event)])

    async def _emit(self, name: str, *args: Any) -> None:
        handler = self._handlers.get(name)
        if handler is None:
            return
        try:
            await handler(*args)
        except Exception as e:
            logger.error(f"Error in Gemini {name} handler: {e}", exc_info=True)

    def _schedule_greeting(self) -> None:
        if not self.greeting_prompt or self._greeting_task is not None:
            return
        self._greeting_task = asyncio.create_task(self._send_greeting())

    async def _send_greeting(self) -> None:
        """Advance the conversation with a scripted opening turn so the agent speaks first."""
        if self.greeting_delay > 0:
            await asyncio.sleep(self.greeting_delay)
        if await self.send_text(self.greeting_prompt):
            logger.info("Sent scripted greeting turn")

    async def close(self) -> None:
        """Close the provider socket. Safe to call more than once."""
        if self._is_closing:
            return

        logger.info("Closing Gemini Live client")
        self._is_closing = True
        self._connection_active = False

        current = asyncio.current_task()
        for task in (self._recv_task, self._greeting_task):
            if task and not task.done() and task is not current:
                task.cancel()

        if self.ws:
            try:
                await self.ws.close()
            except Exception as e:
                logger.warning(f"Error closing Gemini WebSocket: {e}")

        logger.info("Gemini Live client closed")
