"""
Command-line client for the voice relay.

Sends typed messages (or a raw PCM16 mono 16 kHz audio file) over the browser
wire protocol and logs the agent's replies until each turn completes.

Usage:
    python client.py --text "What time is it?" [--url ws://localhost:8080/ws]
    python client.py --audio question.pcm
"""

import argparse
import asyncio
import base64
import logging
from pathlib import Path

from voice_relay.config.constants import MESSAGE_TYPE_AUDIO, MESSAGE_TYPE_TEXT
from voice_relay.services.websocket_client import RelayClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("relay_client")

# 100 ms of 16 kHz PCM16 mono audio
AUDIO_CHUNK_BYTES = 3200


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Talk to the voice relay from the terminal")
    parser.add_argument(
        "--url",
        default="ws://localhost:8080/ws",
        help="Relay WebSocket URL (default: ws://localhost:8080/ws)",
    )
    parser.add_argument(
        "--text",
        action="append",
        default=[],
        help="Text message to send; repeat for several turns",
    )
    parser.add_argument(
        "--audio",
        type=Path,
        help="Raw PCM16 mono 16 kHz file to stream as microphone input",
    )
    parser.add_argument(
        "--save-audio",
        type=Path,
        help="Write the agent's audio replies to this raw PCM file",
    )
    return parser.parse_args()


def log_frames(frames, audio_sink=None) -> None:
    """Log a turn's frames, optionally appending agent audio to a file."""
    audio_bytes = 0
    for frame in frames:
        frame_type = frame.get("type")
        if frame_type == MESSAGE_TYPE_AUDIO:
            chunk = base64.b64decode(frame["data"])
            audio_bytes += len(chunk)
            if audio_sink:
                audio_sink.write(chunk)
        elif frame_type == MESSAGE_TYPE_TEXT:
            logger.info(f"Agent: {frame['text']}")
        else:
            logger.info(f"Signal: {frame_type}")
    if audio_bytes:
        logger.info(f"Received {audio_bytes} bytes of agent audio")


async def stream_audio_file(client: RelayClient, path: Path) -> None:
    """Stream a raw PCM file in real-time sized chunks."""
    data = path.read_bytes()
    logger.info(f"Streaming {len(data)} bytes of audio from {path}")
    for offset in range(0, len(data), AUDIO_CHUNK_BYTES):
        await client.send_audio(data[offset : offset + AUDIO_CHUNK_BYTES])
        await asyncio.sleep(0.1)  # Simulate real-time capture


async def run_client(args) -> None:
    client = RelayClient(args.url)
    if not await client.connect():
        return

    audio_sink = args.save_audio.open("wb") if args.save_audio else None
    try:
        # The agent greets the caller first
        logger.info("Waiting for greeting")
        log_frames(await client.collect_until_turn_complete(), audio_sink)

        for text in args.text:
            await client.send_text(text)
            log_frames(await client.collect_until_turn_complete(), audio_sink)

        if args.audio:
            await stream_audio_file(client, args.audio)
            log_frames(await client.collect_until_turn_complete(), audio_sink)

        logger.info("Client finished successfully")
    except Exception as e:
        logger.error(f"Error in relay client: {e}", exc_info=True)
    finally:
        if audio_sink:
            audio_sink.close()
        await client.close()


if __name__ == "__main__":
    logger.info("Starting voice relay client")
    asyncio.run(run_client(parse_args()))
