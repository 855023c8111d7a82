"""
System instructions and scripted turns for the receptionist agent.

Instructions are rendered per connection so the agent always knows today's date
in the business timezone.
"""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from voice_relay.config.settings import Settings
from voice_relay.models.live_schemas import SetupDescriptor

SYSTEM_INSTRUCTIONS_TEMPLATE = """
You are the "{business_name} AI Receptionist". Your job is to answer calls, qualify leads, and schedule appointments.
You have access to the company calendar.
- When asked for availability, use the 'checkAvailability' tool.
- When the user confirms a time, use the 'bookAppointment' tool.
- When you need the current time, use the 'getCurrentTime' tool.
- NOTIFICATIONS: An email confirmation is sent automatically after booking.
Always confirm the details before booking.
IMPORTANT RULES:
- TODAY'S DATE: {today} (Timezone: {location} / {timezone}).
- DATE AWARENESS: DO NOT ask the user for the current date or time. You already know it.
- Use the date above to interpret "today", "tomorrow", or "next week".
- We ONLY do outcall appointments (we go to the customer).
- You MUST ask for the customer's ADDRESS before booking an appointment.
- Operating Hours are 8:00 AM to 5:00 PM ({location} time), Monday to Friday.
- PERSONALITY: Be energetic, friendly, and "real". Use natural language and contractions.
- GUARDRAILS: You must ONLY answer questions about {business_name} services and appointments.
- If a tool returns an error, tell the caller briefly and offer to try again or take a message.
IMPORTANT: Do NOT write code. Return valid Tool/Function calls.
"""

GREETING_TEMPLATE = (
    "User connected. Say exactly: 'Welcome to {business_name}. "
    "I am a virtual assistant. How can I help you today?'"
)


def format_long_date(now: datetime) -> str:
    return f"{now:%A}, {now:%B} {now.day}, {now.year}"


def get_system_instructions(settings: Settings, now: Optional[datetime] = None) -> str:
    """Render the system instructions with today's date in the business timezone."""
    tz = ZoneInfo(settings.business_timezone)
    now = (now or datetime.now(tz)).astimezone(tz)
    return SYSTEM_INSTRUCTIONS_TEMPLATE.format(
        business_name=settings.business_name,
        today=format_long_date(now),
        location=settings.business_location,
        timezone=settings.business_timezone,
    )


def get_greeting_prompt(settings: Settings) -> str:
    """Scripted user turn that makes the agent speak first."""
    return GREETING_TEMPLATE.format(business_name=settings.business_name)


def build_setup_descriptor(settings: Settings, now: Optional[datetime] = None) -> SetupDescriptor:
    """Build the immutable setup descriptor for one provider connection."""
    return SetupDescriptor(
        model=settings.gemini_model,
        voice=settings.gemini_voice,
        system_instruction=get_system_instructions(settings, now),
    )
