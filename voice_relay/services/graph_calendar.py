"""
Microsoft Graph implementation of the scheduling backend.

Availability is read from the mailbox calendar view, bookings are created as
calendar events, and confirmations are sent through the mailbox's sendMail
action. Graph is asked to report all event times in UTC.
"""

import html
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from voice_relay.config.constants import DEFAULT_BUSINESS_NAME, GRAPH_BASE_URL, LOGGER_NAME
from voice_relay.errors import SchedulingError, SchedulingNotConfiguredError
from voice_relay.models.scheduling import Appointment, BusyInterval
from voice_relay.services.token_cache import AccessTokenCache

logger = logging.getLogger(LOGGER_NAME)

REQUEST_TIMEOUT = 8.0  # seconds, below the tool timeout
PAGE_SIZE = 100  # calendarView returns 10 events per page by default


def _format_utc(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _parse_graph_datetime(value: Dict[str, Any]) -> datetime:
    """Parse a Graph dateTimeTimeZone object reported in UTC."""
    # Graph returns seven fractional digits, e.g. 2026-02-01T15:00:00.0000000
    raw = value["dateTime"][:19]
    return datetime.fromisoformat(raw).replace(tzinfo=timezone.utc)


def _graph_error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.text[:200] or response.reason_phrase


class GraphCalendarBackend:
    """
    Scheduling backend for one Microsoft 365 mailbox.

    Args:
        mailbox: User principal name or email whose calendar is managed
        token_cache: Shared access-token cache; None when credentials are missing
        business_name: Name used in event subjects and confirmation emails
        base_url: Graph API root
        transport: Optional httpx transport, used by tests
    """

    def __init__(
        self,
        mailbox: Optional[str],
        token_cache: Optional[AccessTokenCache],
        business_name: str = DEFAULT_BUSINESS_NAME,
        base_url: str = GRAPH_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.mailbox = mailbox
        self.token_cache = token_cache
        self.business_name = business_name
        self.base_url = base_url
        self._transport = transport
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.mailbox and self.token_cache)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        if not self.configured:
            raise SchedulingNotConfiguredError("The calendar service is not configured.")

        token = await self.token_cache.get_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Prefer": 'outlook.timezone="UTC"',
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, transport=self._transport, timeout=self._timeout
            ) as client:
                response = await client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Calendar request {method} {path} failed: {e}")
            raise SchedulingError(f"The calendar service could not be reached: {e}") from e

        if response.status_code == 401:
            self.token_cache.invalidate()
        if response.is_error:
            message = _graph_error_message(response)
            logger.error(f"Calendar request {method} {path} returned {response.status_code}: {message}")
            raise SchedulingError(f"Calendar request failed ({response.status_code}): {message}")
        return response

    async def list_events(self, start: datetime, end: datetime) -> List[BusyInterval]:
        """Return every event in [start, end), following Graph's paging links."""
        path: Optional[str] = f"/users/{self.mailbox}/calendarView"
        params: Optional[Dict[str, str]] = {
            "startDateTime": _format_utc(start),
            "endDateTime": _format_utc(end),
            "$select": "start,end,subject",
            "$orderby": "start/dateTime",
            "$top": str(PAGE_SIZE),
        }
        intervals: List[BusyInterval] = []
        while path:
            response = await self._request("GET", path, params=params)
            payload = response.json()
            intervals.extend(
                BusyInterval(
                    start=_parse_graph_datetime(event["start"]),
                    end=_parse_graph_datetime(event["end"]),
                    subject=event.get("subject"),
                )
                for event in payload.get("value", [])
            )
            # The next link is absolute and already carries the query
            path = payload.get("@odata.nextLink")
            params = None
        return intervals

    async def create_event(self, appointment: Appointment) -> str:
        name = html.escape(appointment.name)
        phone = html.escape(appointment.phone or "not provided")
        address = html.escape(appointment.address)
        event = {
            "subject": f"{self.business_name} Appointment: {appointment.name}",
            "body": {
                "contentType": "HTML",
                "content": f"<b>Customer:</b> {name}<br><b>Phone:</b> {phone}<br><b>Address:</b> {address}",
            },
            "start": {"dateTime": _format_utc(appointment.start)[:-1], "timeZone": "UTC"},
            "end": {"dateTime": _format_utc(appointment.end)[:-1], "timeZone": "UTC"},
            "location": {"displayName": appointment.address},
        }
        logger.info(f"Creating calendar event for {appointment.name} at {appointment.start.isoformat()}")
        response = await self._request("POST", f"/users/{self.mailbox}/events", json=event)
        event_id = response.json().get("id")
        if not event_id:
            raise SchedulingError("The calendar did not return an event id.")
        return event_id

    async def send_confirmation(self, appointment: Appointment) -> None:
        name = html.escape(appointment.name)
        address = html.escape(appointment.address)
        business = html.escape(self.business_name)
        mail = {
            "message": {
                "subject": f"Appointment Confirmed: {self.business_name}",
                "body": {
                    "contentType": "HTML",
                    "content": (
                        f"<h2>Hi {name},</h2>"
                        f"<p>Your consultation with {business} is confirmed!</p>"
                        f"<p><b>Date:</b> {appointment.date_label}<br>"
                        f"<b>Time:</b> {appointment.time_label}<br>"
                        f"<b>Address:</b> {address}</p>"
                        "<p>We look forward to seeing you then!</p>"
                    ),
                },
                "toRecipients": [{"emailAddress": {"address": self.mailbox}}],
            },
            "saveToSentItems": "true",
        }
        await self._request("POST", f"/users/{self.mailbox}/sendMail", json=mail)
        logger.info(f"Confirmation email sent for {appointment.name}")
