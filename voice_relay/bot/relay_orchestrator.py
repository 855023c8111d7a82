"""
Relay orchestration for one client connection.

A RelayOrchestrator pairs one browser websocket with one Gemini Live socket for
the lifetime of a session:

    CONNECTING -> READY -> (tool pending)* -> CLOSING -> CLOSED

Client audio and text are forwarded upstream one frame at a time, in receipt
order. Model audio, text and turn signals are forwarded to the client. Tool calls
run as detached tasks so forwarding continues in both directions while a calendar
lookup is in flight. When either socket closes, the other one is closed exactly
once and nothing more is sent.
"""

import asyncio
import logging
import uuid
from typing import Any, Callable, Dict, Optional, Set

from fastapi import WebSocket

from voice_relay.bot.client_channel import ClientChannel
from voice_relay.bot.live_api import LiveAudioClient
from voice_relay.bot.prompts import build_setup_descriptor, get_greeting_prompt
from voice_relay.bot.tool_executor import ToolExecutor
from voice_relay.config.constants import (
    LOGGER_NAME,
    TOOL_BOOK_APPOINTMENT,
    TOOL_CHECK_AVAILABILITY,
)
from voice_relay.config.settings import Settings
from voice_relay.models.live_schemas import ToolCallRequest
from voice_relay.models.session import SessionState

logger = logging.getLogger(LOGGER_NAME)

# Interim status shown to the client while a calendar tool runs
TOOL_STATUS_MESSAGES = {
    TOOL_CHECK_AVAILABILITY: "Checking the calendar...",
    TOOL_BOOK_APPOINTMENT: "Booking your appointment in the calendar...",
}

UpstreamFactory = Callable[[], LiveAudioClient]


class RelayOrchestrator:
    """
    Orchestrates one relay session between a browser client and Gemini Live.

    Args:
        websocket: The accepted client websocket
        executor: Tool executor shared by all sessions
        settings: Process settings used to build the provider setup
        upstream_factory: Optional factory for the provider client, used by tests
        session_id: Optional identifier, generated when omitted
    """

    def __init__(
        self,
        websocket: WebSocket,
        executor: ToolExecutor,
        settings: Settings,
        upstream_factory: Optional[UpstreamFactory] = None,
        session_id: Optional[str] = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.channel = ClientChannel(websocket)
        self.executor = executor
        self.settings = settings
        self._upstream_factory = upstream_factory or self._create_upstream
        self.upstream: Optional[LiveAudioClient] = None
        self.state = SessionState.CONNECTING
        self.agent_speaking = False
        self._pending_tools: Set[asyncio.Task] = set()

    def _create_upstream(self) -> LiveAudioClient:
        return LiveAudioClient(
            self.settings.google_api_key,
            greeting_prompt=get_greeting_prompt(self.settings),
            greeting_delay=self.settings.greeting_delay,
        )

    @property
    def tool_pending(self) -> bool:
        return bool(self._pending_tools)

    def status(self) -> Dict[str, Any]:
        """Snapshot of the session for health reporting."""
        return {
            "state": self.state.value,
            "agent_speaking": self.agent_speaking,
            "tool_pending": self.tool_pending,
        }

    async def run(self) -> None:
        """Connect upstream, relay frames until either side closes, then tear down."""
        self.upstream = self._upstream_factory()
        self._register_handlers()

        setup = build_setup_descriptor(self.settings)
        if not await self.upstream.connect(setup):
            logger.error(f"[{self.session_id}] Provider connection failed, closing client")
            self.state = SessionState.CLOSING
            await self.upstream.close()
            await self.channel.close(code=1011)
            self.state = SessionState.CLOSED
            return

        self.state = SessionState.READY
        logger.info(f"[{self.session_id}] Session ready")

        try:
            await self.channel.run()
        finally:
            await self.close()

    def _register_handlers(self) -> None:
        self.channel.on_audio(self._forward_client_audio)
        self.channel.on_text(self._forward_client_text)
        self.channel.on_close(self._on_client_close)

        self.upstream.on_audio(self._on_upstream_audio)
        self.upstream.on_text(self._on_upstream_text)
        self.upstream.on_tool_call(self._on_tool_call)
        self.upstream.on_turn_complete(self._on_turn_complete)
        self.upstream.on_interrupted(self._on_interrupted)
        self.upstream.on_setup_complete(self._on_setup_complete)
        self.upstream.on_close(self._on_upstream_close)
        self.upstream.on_error(self._on_upstream_error)

    # Client -> provider
    async def _forward_client_audio(self, data: str) -> None:
        if self.state is SessionState.READY:
            await self.upstream.send_audio(data)

    async def _forward_client_text(self, text: str) -> None:
        if self.state is SessionState.READY:
            await self.upstream.send_text(text)

    async def _on_client_close(self) -> None:
        logger.info(f"[{self.session_id}] Client closed the session")
        await self.close()

    # Provider -> client
    async def _on_upstream_audio(self, data: str) -> None:
        if self.state is SessionState.READY:
            self.agent_speaking = True
            await self.channel.send_audio(data)

    async def _on_upstream_text(self, text: str) -> None:
        if self.state is SessionState.READY:
            await self.channel.send_text(text)

    async def _on_turn_complete(self) -> None:
        self.agent_speaking = False
        if self.state is SessionState.READY:
            await self.channel.send_turn_complete()

    async def _on_interrupted(self) -> None:
        self.agent_speaking = False
        if self.state is SessionState.READY:
            await self.channel.send_interrupted()

    async def _on_setup_complete(self) -> None:
        logger.info(f"[{self.session_id}] Provider setup complete")

    async def _on_upstream_error(self, error: Any) -> None:
        # The provider reports fatal problems through a close event
        logger.error(f"[{self.session_id}] Provider error: {error}")

    async def _on_upstream_close(self) -> None:
        logger.info(f"[{self.session_id}] Provider closed the session")
        await self.close()

    # Tool calls
    async def _on_tool_call(self, call: ToolCallRequest) -> None:
        task = asyncio.create_task(self._run_tool_call(call))
        self._pending_tools.add(task)
        task.add_done_callback(self._pending_tools.discard)

    async def _run_tool_call(self, call: ToolCallRequest) -> None:
        status = TOOL_STATUS_MESSAGES.get(call.name)
        if status and self.state is SessionState.READY:
            await self.channel.send_text(status)

        result = await self.executor.execute(call.name, call.args)

        if self.state is not SessionState.READY:
            logger.info(
                f"[{self.session_id}] Discarding result of {call.name}, session is {self.state.value}"
            )
            return
        await self.upstream.send_tool_result(call.id, call.name, result)

    async def close(self) -> None:
        """Tear the session down. Safe to call from either side, more than once."""
        if self.state in (SessionState.CLOSING, SessionState.CLOSED):
            return

        self.state = SessionState.CLOSING
        logger.info(f"[{self.session_id}] Closing session")

        if self.upstream:
            await self.upstream.close()
        await self.channel.close()

        if self._pending_tools:
            logger.info(
                f"[{self.session_id}] Abandoning {len(self._pending_tools)} pending tool call(s)"
            )
        self.state = SessionState.CLOSED
        logger.info(f"[{self.session_id}] Session closed")
