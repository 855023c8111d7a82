"""
Interface of the external scheduling backend consumed by the tool executor.

The executor owns argument normalization, timeouts and error shaping; a backend
only talks to the remote calendar and mailbox.
"""

from datetime import datetime
from typing import List, Protocol

from voice_relay.models.scheduling import Appointment, BusyInterval


class SchedulingBackend(Protocol):
    """Calendar and notification operations used by the scheduling tools."""

    async def list_events(self, start: datetime, end: datetime) -> List[BusyInterval]:
        """Return the busy intervals overlapping [start, end)."""
        ...

    async def create_event(self, appointment: Appointment) -> str:
        """Create a calendar event and return its identifier."""
        ...

    async def send_confirmation(self, appointment: Appointment) -> None:
        """Send a confirmation notification for a booked appointment."""
        ...
