"""
WebSocket client utilities for connecting to the voice relay.

This module provides a client for the relay's browser wire protocol. It is used
by the command-line client and by integration checks: it sends microphone audio
or typed text and collects the agent's frames until the turn completes.
"""

import base64
import json
import logging
from typing import Any, Dict, List, Optional

import websockets

from voice_relay.config.constants import (
    LOGGER_NAME,
    MESSAGE_TYPE_INTERRUPTED,
    MESSAGE_TYPE_TURN_COMPLETE,
)
from voice_relay.models.message_schemas import ClientAudioFrame, ClientTextFrame

logger = logging.getLogger(LOGGER_NAME)


class RelayClient:
    """
    Client for one browser-protocol session with the voice relay.

    Frames are validated with the same Pydantic models the server uses.
    """

    def __init__(self, url: str):
        """
        Initialize the relay WebSocket client.

        Args:
            url: The WebSocket URL of the relay, e.g. ws://localhost:8080/ws
        """
        self.url = url
        self.websocket = None

    async def connect(self) -> bool:
        """
        Establish a connection to the relay.

        Returns:
            True if connection was successful, False otherwise
        """
        try:
            self.websocket = await websockets.connect(self.url)
            logger.info(f"Connected to relay at {self.url}")
            return True
        except Exception as e:
            logger.error(f"Failed to connect to relay: {e}")
            return False

    async def send_text(self, text: str) -> None:
        """Send a typed user message."""
        if not self.websocket:
            logger.error("Cannot send text: Not connected")
            return
        await self.websocket.send(ClientTextFrame(type="text", text=text).model_dump_json())
        logger.info(f"Sent text: {text[:100]}")

    async def send_audio(self, audio_data: bytes) -> None:
        """
        Send a chunk of PCM16 mono 16 kHz audio.

        Args:
            audio_data: The raw audio bytes to send (will be base64 encoded)
        """
        if not self.websocket:
            logger.error("Cannot send audio: Not connected")
            return
        encoded_data = base64.b64encode(audio_data).decode("utf-8")
        await self.websocket.send(ClientAudioFrame(type="audio", data=encoded_data).model_dump_json())
        logger.debug(f"Sent audio chunk of length: {len(encoded_data)}")

    async def receive_frame(self) -> Optional[Dict[str, Any]]:
        """
        Receive one frame from the relay.

        Returns:
            The decoded frame, or None if the connection closed
        """
        if not self.websocket:
            logger.error("Cannot receive: Not connected")
            return None
        try:
            message_data = await self.websocket.recv()
        except websockets.exceptions.ConnectionClosed:
            logger.info("WebSocket connection closed by server")
            self.websocket = None
            return None
        return json.loads(message_data)

    async def collect_until_turn_complete(self) -> List[Dict[str, Any]]:
        """
        Collect frames until the agent completes or abandons its turn.

        Returns:
            All frames received, including the final turnComplete or interrupted frame
        """
        frames = []
        while True:
            frame = await self.receive_frame()
            if frame is None:
                break
            frames.append(frame)
            if frame.get("type") in (MESSAGE_TYPE_TURN_COMPLETE, MESSAGE_TYPE_INTERRUPTED):
                break
        return frames

    async def close(self) -> None:
        """
        Close the WebSocket connection.
        """
        if self.websocket:
            await self.websocket.close()
            logger.info("Closed WebSocket connection")
            self.websocket = None
