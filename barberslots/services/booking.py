"""
Booking service: the write side that keeps offered slots honest.

Availability shown to a client can go stale between the query and the
booking. Creating an appointment therefore asks the availability service
again, under a per-shop/per-day lock and inside the store's exclusive
section, and refuses a slot that is gone.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import date
from typing import (
    Any,
    AsyncContextManager,
    AsyncIterator,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
)

import pendulum
from pendulum import DateTime

from ..domain.exceptions import BookingConflictError, ConfigError, InvalidArgumentError
from ..domain.models import Appointment, AppointmentStatus, Service, parse_time_of_day
from .slot_finder import SlotAvailabilityService, parse_date

logger = logging.getLogger(__name__)

CANCELLED_BY = {
    "client": AppointmentStatus.cancelled_by_client,
    "admin": AppointmentStatus.cancelled_by_admin,
}


class AppointmentStoreProtocol(Protocol):
    """Write side of the store used by the booking service."""

    def exclusive(self) -> AsyncContextManager[Any]:
        """Section in which reads are current and no other writer commits."""

    async def get_services(self, service_ids: Sequence[str]) -> List[Service]:
        """Return the services in order or raise ``NotFoundError``."""

    async def get_appointment(self, appointment_id: str) -> Appointment:
        """Return the appointment or raise ``NotFoundError``."""

    async def insert_appointment(self, appointment: Appointment) -> Appointment:
        """Persist a new appointment."""

    async def update_appointment_status(
        self, appointment_id: str, status: AppointmentStatus
    ) -> Appointment:
        """Change the status of an appointment or raise ``NotFoundError``."""


class BookingService:
    """Creates, cancels and completes appointments."""

    def __init__(
        self,
        store: AppointmentStoreProtocol,
        availability: SlotAvailabilityService,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], DateTime]] = None,
    ) -> None:
        self._store = store
        self._availability = availability
        self._id_factory = id_factory or (lambda: f"appt_{uuid.uuid4().hex[:12]}")
        self._clock = clock or pendulum.now
        # (shop, day) -> (lock, number of requests holding or waiting for it)
        self._locks: Dict[Tuple[str, date], Tuple[asyncio.Lock, int]] = {}

    async def create_appointment(
        self,
        *,
        client_id: str,
        barbershop_id: str,
        service_ids: Sequence[str],
        date,
        time: str,
        barber_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Appointment:
        """
        Book ``time`` on ``date`` for the given services.

        Total duration and price are the sums over the services. The slot is
        checked against current availability right before the insert.

        Raises:
            InvalidArgumentError: No services, bad date or time
            NotFoundError: Unknown service, barbershop or barber
            BookingConflictError: The slot is no longer offered
        """
        if not service_ids:
            raise InvalidArgumentError("At least one service is required")
        try:
            parse_time_of_day(time)
        except ConfigError as exc:
            raise InvalidArgumentError(f"Invalid time {time!r}, expected HH:MM") from exc
        day = parse_date(date)

        services = await self._store.get_services(service_ids)
        foreign = [service.id for service in services if service.barbershop_id != barbershop_id]
        if foreign:
            raise InvalidArgumentError(
                f"Service(s) {', '.join(foreign)} are not offered by barbershop {barbershop_id}"
            )
        total_duration = sum(service.duration for service in services)
        total_price = sum(service.price for service in services)

        async with self._day_lock(barbershop_id, day):
            async with self._store.exclusive():
                slots = await self._availability.get_available_slots(
                    barbershop_id,
                    total_duration,
                    day,
                    barber_id=barber_id,
                    service_ids=service_ids if barber_id is None else (),
                )
                if time not in slots:
                    raise BookingConflictError(
                        f"{day.isoformat()} {time} is no longer available at barbershop {barbershop_id}"
                    )

                appointment = Appointment(
                    id=self._id_factory(),
                    barbershop_id=barbershop_id,
                    client_id=client_id,
                    service_ids=list(service_ids),
                    date=day,
                    time=time,
                    total_duration=total_duration,
                    total_price=total_price,
                    status=AppointmentStatus.scheduled,
                    barber_id=barber_id,
                    notes=notes,
                    created_at=self._clock(),
                )
                created = await self._store.insert_appointment(appointment)

        logger.info(
            "Booked %s at %s %s (barber=%s, %d min)",
            created.id,
            day.isoformat(),
            time,
            barber_id or "any",
            total_duration,
        )
        return created

    async def cancel_appointment(self, appointment_id: str, cancelled_by: str = "client") -> Appointment:
        """Cancel an appointment on behalf of the client or the shop admin."""
        try:
            status = CANCELLED_BY[cancelled_by]
        except KeyError as exc:
            raise InvalidArgumentError(
                f"cancelled_by must be 'client' or 'admin', got {cancelled_by!r}"
            ) from exc
        await self._store.get_appointment(appointment_id)
        appointment = await self._store.update_appointment_status(appointment_id, status)
        logger.info("Appointment %s set to %s", appointment_id, status.value)
        return appointment

    async def complete_appointment(self, appointment_id: str) -> Appointment:
        await self._store.get_appointment(appointment_id)
        appointment = await self._store.update_appointment_status(
            appointment_id, AppointmentStatus.completed
        )
        logger.info("Appointment %s completed", appointment_id)
        return appointment

    @property
    def pending_days(self) -> int:
        """Number of (shop, day) pairs with a booking in progress."""
        return len(self._locks)

    @asynccontextmanager
    async def _day_lock(self, barbershop_id: str, day: date) -> AsyncIterator[None]:
        """Serialize bookings of one shop and day; the entry goes when the last user leaves."""
        key = (barbershop_id, day)
        lock, users = self._locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[key]
            if users == 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)
