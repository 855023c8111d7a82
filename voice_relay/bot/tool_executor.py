"""
Tool execution for model-initiated function calls.

The ToolExecutor maps a function name and its argument map to one of the
scheduling operations. It owns argument normalization, the per-call timeout and
the shape of error results; the scheduling backend owns the remote calls.

Every result is a JSON-serializable dict. Failures never raise out of
`execute`; they come back as `{"error": message}` so the model can tell the
caller what went wrong.
"""

import asyncio
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Awaitable, Callable, Dict, Optional, Set
from zoneinfo import ZoneInfo

from voice_relay.config.constants import (
    APPOINTMENT_DURATION_MINUTES,
    DEFAULT_BUSINESS_LOCATION,
    DEFAULT_BUSINESS_TIMEZONE,
    DEFAULT_TOOL_TIMEOUT,
    LOGGER_NAME,
    TOOL_BOOK_APPOINTMENT,
    TOOL_CHECK_AVAILABILITY,
    TOOL_GET_CURRENT_TIME,
    TOOL_TIMEOUT_MESSAGE,
    UNKNOWN_FUNCTION_MESSAGE,
)
from voice_relay.errors import ToolArgumentError
from voice_relay.models.scheduling import Appointment
from voice_relay.services.scheduling import SchedulingBackend

logger = logging.getLogger(LOGGER_NAME)

ToolHandler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]

TIME_FORMATS = ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M%p", "%I %p", "%I%p")
REQUIRED_BOOKING_FIELDS = ("time", "name", "address")


def normalize_date(value: Any, today: date) -> date:
    """
    Reduce a date argument to a plain calendar date.

    Any time or zone component after a "T" is discarded. Missing or invalid
    values fall back to `today`.
    """
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip().split("T")[0])
        except ValueError:
            logger.warning(f"Invalid date argument {value!r}, using {today.isoformat()}")
    return today


def parse_booking_date(value: Any, today: date) -> date:
    """Like normalize_date, but a date that was given and cannot be read is an error."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return today
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip().split("T")[0])
        except ValueError:
            pass
    raise ToolArgumentError(
        f'The provided date "{value}" is not in a valid format. Please use YYYY-MM-DD.'
    )


def parse_time(value: Any) -> time:
    """Parse a wall-clock time such as "14:00", "9:30:00", "2 PM" or "2:30 p.m."."""
    if isinstance(value, str):
        cleaned = value.strip().upper().replace(".", "")
        for fmt in TIME_FORMATS:
            try:
                return datetime.strptime(cleaned, fmt).time()
            except ValueError:
                continue
    raise ToolArgumentError(
        f'The provided time "{value}" is not in a valid format. Please use HH:mm (e.g., 14:00).'
    )


class ToolExecutor:
    """
    Dispatch tool calls to the scheduling operations.

    Args:
        backend: Scheduling backend used by the calendar tools
        timezone_name: IANA name of the business timezone used for all dates and times
        timeout: Seconds each call may take before it is abandoned
        location_label: Human-readable place name used in time announcements
        clock: Optional time source, used by tests
    """

    def __init__(
        self,
        backend: SchedulingBackend,
        timezone_name: str = DEFAULT_BUSINESS_TIMEZONE,
        timeout: float = DEFAULT_TOOL_TIMEOUT,
        location_label: str = DEFAULT_BUSINESS_LOCATION,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.backend = backend
        self.tz = ZoneInfo(timezone_name)
        self.timeout = timeout
        self.location_label = location_label
        self._clock = clock or (lambda: datetime.now(self.tz))
        self._background_tasks: Set[asyncio.Task] = set()

        self.handlers: Dict[str, ToolHandler] = {
            TOOL_GET_CURRENT_TIME: self.get_current_time,
            TOOL_CHECK_AVAILABILITY: self.check_availability,
            TOOL_BOOK_APPOINTMENT: self.book_appointment,
        }

    def now(self) -> datetime:
        return self._clock().astimezone(self.tz)

    async def execute(self, name: str, args: Any = None) -> Dict[str, Any]:
        """
        Run one tool call and return its result.

        Unknown names, timeouts and failures are all reported as `{"error": ...}`.
        A call that times out is cancelled and its eventual result is discarded.
        """
        handler = self.handlers.get(name)
        if handler is None:
            logger.warning(f"Unknown tool requested: {name}")
            return {"error": UNKNOWN_FUNCTION_MESSAGE}

        if not isinstance(args, dict):
            args = {}

        logger.info(f"Executing tool {name} with args: {args}")
        try:
            return await asyncio.wait_for(handler(args), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"Tool {name} timed out after {self.timeout}s")
            return {"error": TOOL_TIMEOUT_MESSAGE}
        except Exception as e:
            logger.error(f"Tool {name} failed: {e}")
            return {"error": str(e)}

    async def get_current_time(self, args: Dict[str, Any]) -> Dict[str, Any]:
        now = self.now()
        formatted = f"{now:%A}, {now:%B} {now.day}, {now:%I:%M %p}"
        return {
            "currentTime": formatted,
            "message": f"The current time and date in {self.location_label} is {formatted}.",
        }

    async def check_availability(self, args: Dict[str, Any]) -> Dict[str, Any]:
        day = normalize_date(args.get("date"), self.now().date())
        start = datetime.combine(day, time.min, tzinfo=self.tz)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=self.tz)
        logger.info(f"Checking availability for {day.isoformat()}")

        intervals = await self.backend.list_events(start, end)
        busy_times = [
            {
                "start": interval.start.astimezone(self.tz).strftime("%H:%M"),
                "end": interval.end.astimezone(self.tz).strftime("%H:%M"),
                "subject": interval.subject,
            }
            for interval in intervals
        ]
        return {"message": f"Found {len(busy_times)} appointments.", "busyTimes": busy_times}

    async def book_appointment(self, args: Dict[str, Any]) -> Dict[str, Any]:
        missing = [field for field in REQUIRED_BOOKING_FIELDS if not str(args.get(field) or "").strip()]
        if missing:
            raise ToolArgumentError(f"Missing required appointment details: {', '.join(missing)}.")

        day = parse_booking_date(args.get("date"), self.now().date())
        start = datetime.combine(day, parse_time(args["time"]), tzinfo=self.tz)
        appointment = Appointment(
            start=start,
            end=start + timedelta(minutes=APPOINTMENT_DURATION_MINUTES),
            name=str(args["name"]).strip(),
            address=str(args["address"]).strip(),
            phone=str(args["phone"]).strip() if args.get("phone") else None,
        )

        logger.info(f"Booking appointment for {appointment.name} on {start.isoformat()}")
        event_id = await self.backend.create_event(appointment)
        logger.info(f"Appointment booked with id: {event_id}")

        self._notify_in_background(appointment)
        return {"status": "confirmed", "id": event_id, "message": "Appointment booked."}

    def _notify_in_background(self, appointment: Appointment) -> None:
        """
        Send the booking confirmation as a detached task.

        Best-effort and non-blocking: the booking result is returned without
        waiting, and a failed notification never rolls back the booking.
        """
        task = asyncio.create_task(self._send_confirmation(appointment))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _send_confirmation(self, appointment: Appointment) -> None:
        try:
            await self.backend.send_confirmation(appointment)
        except Exception as e:
            logger.error(f"Failed to send confirmation for {appointment.name}: {e}")

    async def wait_for_background_tasks(self) -> None:
        """Wait until all pending confirmation notifications have finished."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
