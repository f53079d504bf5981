"""
Domain models for barbershop schedules and appointments.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pendulum import Date, DateTime

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

_TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

WEEKDAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def parse_time_of_day(value: str, field_name: str = "time") -> time:
    """
    Parse a zero-padded ``HH:MM`` string.

    Raises:
        ConfigError: If the value is not a valid time of day
    """
    match = _TIME_OF_DAY.match(value) if isinstance(value, str) else None
    if match is None:
        raise ConfigError(field_name, f"expected HH:MM, got {value!r}")
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def format_time_of_day(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def day_of_week(day: Date) -> int:
    """Return the day of week with 0 = Sunday, 6 = Saturday."""
    return day.isoweekday() % 7


def _validate_day_of_week(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 6:
        raise ConfigError("dayOfWeek", f"must be between 0 and 6, got {value!r}")
    return value


def _validate_order(start: time, end: time) -> None:
    if end <= start:
        raise ConfigError(
            "end",
            f"{format_time_of_day(end)} must be later than {format_time_of_day(start)}",
        )


@dataclass(frozen=True)
class WorkingHoursWindow:
    """
    A barbershop's opening hours for one day of the week.

    Invariant: when ``is_open`` is true, ``start`` is before ``end``.
    Start and end of a closed day are ignored.
    """
    day_of_week: int
    is_open: bool
    start: Optional[time] = None
    end: Optional[time] = None

    def __post_init__(self):
        _validate_day_of_week(self.day_of_week)
        if not self.is_open:
            return
        if self.start is None or self.end is None:
            raise ConfigError("start", "an open day needs both start and end")
        _validate_order(self.start, self.end)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "WorkingHoursWindow":
        """Build a window from a stored ``{dayOfWeek, isOpen, start, end}`` record."""
        is_open = bool(record.get("isOpen", False))
        start = end = None
        if is_open:
            start = parse_time_of_day(record.get("start"), "start")
            end = parse_time_of_day(record.get("end"), "end")
        return cls(
            day_of_week=_validate_day_of_week(record.get("dayOfWeek")),
            is_open=is_open,
            start=start,
            end=end,
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "dayOfWeek": self.day_of_week,
            "isOpen": self.is_open,
            "start": format_time_of_day(self.start) if self.start else None,
            "end": format_time_of_day(self.end) if self.end else None,
        }


@dataclass(frozen=True)
class BarberAvailability:
    """A barber's personal working window for one day of the week."""
    day_of_week: int
    start: time
    end: time

    def __post_init__(self):
        _validate_day_of_week(self.day_of_week)
        _validate_order(self.start, self.end)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "BarberAvailability":
        return cls(
            day_of_week=_validate_day_of_week(record.get("dayOfWeek")),
            start=parse_time_of_day(record.get("start"), "start"),
            end=parse_time_of_day(record.get("end"), "end"),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "dayOfWeek": self.day_of_week,
            "start": format_time_of_day(self.start),
            "end": format_time_of_day(self.end),
        }


def parse_working_hours(records: Iterable[Dict[str, Any]], owner: str = "") -> List[WorkingHoursWindow]:
    """
    Build a shop's working hours, one window per day of week.

    Malformed entries and repeated days are logged and skipped so that a
    single bad entry does not close the whole week.
    """
    windows: Dict[int, WorkingHoursWindow] = {}
    for record in records:
        try:
            window = WorkingHoursWindow.from_record(record)
        except ConfigError as exc:
            logger.warning("Skipping working-hours entry of %s %r: %s", owner, record, exc)
            continue
        if window.day_of_week in windows:
            logger.warning(
                "Duplicate working-hours entry for day %s of %s, keeping the first",
                window.day_of_week,
                owner,
            )
            continue
        windows[window.day_of_week] = window
    return [windows[day] for day in sorted(windows)]


def parse_availability(records: Iterable[Dict[str, Any]], owner: str = "") -> List[BarberAvailability]:
    """Build a barber's weekly windows, skipping malformed entries."""
    availability: List[BarberAvailability] = []
    for record in records:
        try:
            availability.append(BarberAvailability.from_record(record))
        except ConfigError as exc:
            logger.warning("Skipping availability window of barber %s %r: %s", owner, record, exc)
    return availability


@dataclass(frozen=True)
class Barber:
    """A barber employed by exactly one barbershop."""
    id: str
    barbershop_id: str
    name: str
    availability: List[BarberAvailability] = field(default_factory=list)
    assigned_service_ids: List[str] = field(default_factory=list)

    def windows_for(self, day: int) -> List[BarberAvailability]:
        """Return this barber's windows on a day of week, earliest first."""
        return sorted(
            (window for window in self.availability if window.day_of_week == day),
            key=lambda window: window.start,
        )

    def offers_all(self, service_ids: Iterable[str]) -> bool:
        return all(service_id in self.assigned_service_ids for service_id in service_ids)


@dataclass(frozen=True)
class Barbershop:
    """A barbershop and its weekly opening hours."""
    id: str
    name: str
    working_hours: List[WorkingHoursWindow] = field(default_factory=list)

    def window_for(self, day: int) -> Optional[WorkingHoursWindow]:
        for window in self.working_hours:
            if window.day_of_week == day:
                return window
        return None


@dataclass(frozen=True)
class Service:
    id: str
    barbershop_id: str
    name: str
    price: float
    duration: int
    is_active: bool = True


class AppointmentStatus(str, Enum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled_by_client = "cancelled_by_client"
    cancelled_by_admin = "cancelled_by_admin"


@dataclass(frozen=True)
class BookedInterval:
    """
    Time held by an active appointment on one day.

    ``barber_id`` is None for bookings that were not pinned to a barber.
    """
    barber_id: Optional[str]
    start: time
    duration_minutes: int


@dataclass(frozen=True)
class Appointment:
    """A booking made by a client at a barbershop."""
    id: str
    barbershop_id: str
    client_id: str
    service_ids: List[str]
    date: Date
    time: str
    total_duration: int
    total_price: float
    status: AppointmentStatus = AppointmentStatus.scheduled
    barber_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[DateTime] = None

    @property
    def is_active(self) -> bool:
        return self.status == AppointmentStatus.scheduled

    def to_booked_interval(self) -> BookedInterval:
        return BookedInterval(
            barber_id=self.barber_id,
            start=parse_time_of_day(self.time),
            duration_minutes=self.total_duration,
        )
