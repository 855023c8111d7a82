"""
WebSocket connection manager for browser voice sessions.

This module accepts client websocket connections and gives each one its own
RelayOrchestrator. The manager keeps a registry of live sessions for health
reporting; sessions never share frames or state.
"""

import logging
import socket
from typing import Optional

from fastapi import WebSocket

from voice_relay.bot.relay_orchestrator import RelayOrchestrator, UpstreamFactory
from voice_relay.bot.tool_executor import ToolExecutor
from voice_relay.config.constants import LOGGER_NAME
from voice_relay.config.settings import Settings
from voice_relay.models.session import SessionManager

logger = logging.getLogger(LOGGER_NAME)


class WebSocketManager:
    """
    Accepts client websockets and runs one relay session per connection.

    Args:
        executor: Tool executor shared by all sessions
        settings: Process settings
        upstream_factory: Optional provider client factory passed to each session
    """

    def __init__(
        self,
        executor: ToolExecutor,
        settings: Settings,
        upstream_factory: Optional[UpstreamFactory] = None,
    ):
        self.executor = executor
        self.settings = settings
        self.upstream_factory = upstream_factory
        self.session_manager = SessionManager()

    async def _optimize_socket(self, websocket: WebSocket) -> None:
        """
        Optimize the WebSocket's underlying TCP socket for low-latency transmission.

        Args:
            websocket: The FastAPI WebSocket connection
        """
        try:
            client = websocket.client
            if hasattr(client, "sock") and client.sock is not None:
                # Disable Nagle's algorithm to send packets immediately
                client.sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                logger.info("Optimized socket: TCP_NODELAY enabled for low latency")
        except Exception as e:
            logger.warning(f"Could not optimize socket: {e}")

    async def handle_websocket(self, websocket: WebSocket) -> None:
        """Handle a client connection for its whole lifetime.

        The connection is accepted, paired with a new provider connection, and
        relayed until either side closes. The session is always unregistered on exit.
        """
        await websocket.accept()
        await self._optimize_socket(websocket)

        session = RelayOrchestrator(
            websocket,
            self.executor,
            self.settings,
            upstream_factory=self.upstream_factory,
        )
        self.session_manager.add_session(session.session_id, session)
        logger.info(f"Client connected, session: {session.session_id}")

        try:
            await session.run()
        except Exception as e:
            logger.error(f"Error in session {session.session_id}: {e}", exc_info=True)
            await session.close()
        finally:
            self.session_manager.remove_session(session.session_id)
            logger.info(f"Session removed during cleanup: {session.session_id}")
