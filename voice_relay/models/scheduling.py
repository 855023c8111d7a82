"""
Pydantic models exchanged with the scheduling backend.

All datetimes are timezone-aware. The backend decides how to serialize them for
the remote calendar; the tool executor decides which timezone they are shown in.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class BusyInterval(BaseModel):
    """A time range already occupied on the calendar."""

    start: datetime
    end: datetime
    subject: Optional[str] = None


class Appointment(BaseModel):
    """A validated appointment ready to be written to the calendar."""

    start: datetime
    end: datetime
    name: str = Field(..., description="Customer name")
    address: str = Field(..., description="Address for the outcall")
    phone: Optional[str] = None

    @property
    def date_label(self) -> str:
        return self.start.strftime("%Y-%m-%d")

    @property
    def time_label(self) -> str:
        return self.start.strftime("%H:%M")
