"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for protocol names and default settings.
"""

# Logger name used throughout the application
LOGGER_NAME = "voice_relay"

# Gemini Live API defaults
GEMINI_HOST = "generativelanguage.googleapis.com"
GEMINI_WS_PATH = (
    "/ws/google.ai.generativelanguage.v1alpha.GenerativeService.BidiGenerateContent"
)
DEFAULT_GEMINI_MODEL = "models/gemini-2.0-flash-exp"
DEFAULT_VOICE = "Puck"
INPUT_AUDIO_MIME_TYPE = "audio/pcm;rate=16000"

# Client wire protocol message types
MESSAGE_TYPE_AUDIO = "audio"
MESSAGE_TYPE_TEXT = "text"
MESSAGE_TYPE_TURN_COMPLETE = "turnComplete"
MESSAGE_TYPE_INTERRUPTED = "interrupted"

# Tool names
TOOL_GET_CURRENT_TIME = "getCurrentTime"
TOOL_CHECK_AVAILABILITY = "checkAvailability"
TOOL_BOOK_APPOINTMENT = "bookAppointment"

# Tool execution policy
DEFAULT_TOOL_TIMEOUT = 9.0  # seconds
TOOL_TIMEOUT_MESSAGE = "Service busy, try again."
UNKNOWN_FUNCTION_MESSAGE = "Unknown function"

# Scheduling defaults
DEFAULT_BUSINESS_NAME = "GC Pro West"
DEFAULT_BUSINESS_TIMEZONE = "America/New_York"
DEFAULT_BUSINESS_LOCATION = "Naples, FL"
APPOINTMENT_DURATION_MINUTES = 60
TOKEN_REFRESH_MARGIN = 5 * 60  # seconds before expiry

# Microsoft Graph
GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"
GRAPH_AUTHORITY_TEMPLATE = "https://login.microsoftonline.com/{tenant_id}"
