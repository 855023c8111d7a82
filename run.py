"""
Run script for starting the voice relay server with low-latency settings.

This script configures and starts the FastAPI server with WebSocket settings
suited to streaming audio between browser clients and the Gemini Live API.

Usage:
    python run.py [--port PORT] [--host HOST]
"""

import argparse
import os
import sys
from pathlib import Path

import uvicorn

sys.path.append(str(Path(__file__).parent))

from voice_relay.config.logging_config import configure_logging
from voice_relay.config.settings import get_settings

# Configure logging
logger = configure_logging()


def parse_args():
    """Parse command line arguments."""
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Start the voice relay server")
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help="Port to run the server on (default: 8080 or PORT env var)",
    )
    parser.add_argument(
        "--host",
        default=settings.host,
        help="Host to bind the server to (default: 0.0.0.0 or HOST env var)",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO or LOG_LEVEL env var)",
    )
    return parser.parse_args()


def main():
    """Main entry point for starting the server."""
    args = parse_args()
    settings = get_settings()

    # Missing credentials degrade features but never block startup
    if not settings.google_api_key:
        logger.warning("GOOGLE_API_KEY environment variable not set; voice sessions will fail")

    logger.info(f"Starting server on http://{args.host}:{args.port}")
    logger.info(f"Log level: {args.log_level}")
    logger.info(f"Calendar configured: {settings.calendar_configured}")

    uvicorn.run(
        "voice_relay.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        # Use HTTP/1.1 for lower overhead than HTTP/2
        http="h11",
        # Disable access logs for lower overhead, we have our own logging
        access_log=False,
        # Reload on code changes during development
        reload=os.getenv("ENV", "production").lower() == "development",
    )


if __name__ == "__main__":
    main()
