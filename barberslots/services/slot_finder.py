"""
Application service for finding bookable appointment slots.

The service validates the request, loads a barbershop's working hours,
barbers and the day's active appointments through a store adapter, and
delegates the actual availability calculation to the domain-level
``SlotCalculator``. Keeping the store behind a protocol lets tests inject
canned data.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Callable, List, Optional, Protocol, Sequence

import pendulum
from pendulum import DateTime

from ..domain.exceptions import InvalidArgumentError, NotFoundError, StoreError
from ..domain.models import Barber, Barbershop, BookedInterval, Service, WorkingHoursWindow
from ..domain.slot_calculator import SlotCalculator

logger = logging.getLogger(__name__)


class BarbershopStoreProtocol(Protocol):
    """Read side of the store needed to compute availability."""

    async def get_barbershop(self, barbershop_id: str) -> Barbershop:
        """Return the barbershop or raise ``NotFoundError``."""

    async def get_working_hours(self, barbershop_id: str) -> List[WorkingHoursWindow]:
        """Return the shop's weekly windows (0..7 entries)."""

    async def get_barbers(self, barbershop_id: str) -> List[Barber]:
        """Return every barber of the shop."""

    async def get_barber(self, barber_id: str) -> Barber:
        """Return a barber of any shop or raise ``NotFoundError``."""

    async def get_active_appointments(self, barbershop_id: str, day: date) -> List[BookedInterval]:
        """Return the shop's scheduled bookings on ``day``."""

    async def get_services_for_barbershop(self, barbershop_id: str) -> List[Service]:
        """Return every service of the shop, active or not."""


def parse_date(value) -> date:
    """
    Accept a date or a ``YYYY-MM-DD`` string.

    Raises:
        InvalidArgumentError: If the value cannot be read as a calendar date
    """
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return pendulum.date(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return pendulum.from_format(value.strip(), "YYYY-MM-DD").date()
        except ValueError as exc:
            raise InvalidArgumentError(f"Invalid date {value!r}, expected YYYY-MM-DD") from exc
    raise InvalidArgumentError(f"Invalid date {value!r}, expected YYYY-MM-DD")


class SlotAvailabilityService:
    """
    Orchestrates store reads and slot calculation.

    The three reads (working hours, barbers, appointments) are independent
    and are awaited together; the calculation itself never touches the store.
    """

    def __init__(
        self,
        store: BarbershopStoreProtocol,
        slot_calculator: SlotCalculator,
        timezone: str = "America/Sao_Paulo",
        timeout_seconds: Optional[float] = None,
        clock: Optional[Callable[[], DateTime]] = None,
    ) -> None:
        self._store = store
        self._slot_calculator = slot_calculator
        self._timezone = timezone
        self._timeout_seconds = timeout_seconds
        self._clock = clock or (lambda: pendulum.now(self._timezone))

    async def get_available_slots(
        self,
        barbershop_id: str,
        service_duration_minutes: int,
        date,
        barber_id: Optional[str] = None,
        service_ids: Sequence[str] = (),
    ) -> List[str]:
        """
        Return the bookable "HH:MM" start times for a barbershop on a date.

        Raises:
            InvalidArgumentError: Bad duration or date, before any store read
            NotFoundError: Unknown barbershop, or a barber id no shop knows
            StoreError: The store failed or timed out
        """
        if isinstance(service_duration_minutes, bool) or not isinstance(service_duration_minutes, int):
            raise InvalidArgumentError(
                f"service_duration_minutes must be an integer, got {service_duration_minutes!r}"
            )
        if service_duration_minutes <= 0:
            raise InvalidArgumentError(
                f"service_duration_minutes must be greater than zero, got {service_duration_minutes}"
            )
        day = parse_date(date)

        working_hours, barbers, bookings = await self._load(barbershop_id, day)

        if barber_id is not None and all(barber.id != barber_id for barber in barbers):
            # Raises NotFoundError when the barber does not exist anywhere.
            other = await self._bounded(self._store.get_barber(barber_id))
            logger.info(
                "Barber %s belongs to barbershop %s, not %s",
                barber_id,
                other.barbershop_id,
                barbershop_id,
            )
            return []

        now = self._clock().in_timezone(self._timezone).naive()

        slots = self._slot_calculator.available_slots(
            day=day,
            duration_minutes=service_duration_minutes,
            working_hours=working_hours,
            barbers=barbers,
            bookings=bookings,
            barber_id=barber_id,
            service_ids=service_ids,
            now=now,
        )
        logger.debug(
            "%d slot(s) for barbershop=%s date=%s duration=%s barber=%s",
            len(slots),
            barbershop_id,
            day,
            service_duration_minutes,
            barber_id,
        )
        return slots

    async def duration_for_services(self, barbershop_id: str, service_ids: Sequence[str]) -> int:
        """
        Total duration of the requested services of one barbershop.

        Raises:
            InvalidArgumentError: No service ids, or an inactive service
            NotFoundError: A service id the barbershop does not offer
        """
        if not service_ids:
            raise InvalidArgumentError("At least one service is required")

        offered = {
            service.id: service
            for service in await self._bounded(self._store.get_services_for_barbershop(barbershop_id))
        }
        missing = [service_id for service_id in service_ids if service_id not in offered]
        if missing:
            raise NotFoundError(
                f"Service(s) not offered by barbershop {barbershop_id}: {', '.join(missing)}"
            )
        inactive = [service_id for service_id in service_ids if not offered[service_id].is_active]
        if inactive:
            raise InvalidArgumentError(f"Service(s) no longer offered: {', '.join(inactive)}")

        return sum(offered[service_id].duration for service_id in service_ids)

    async def _load(self, barbershop_id: str, day: date):
        """Fetch working hours, barbers and bookings concurrently."""
        return await self._bounded(
            asyncio.gather(
                self._store.get_working_hours(barbershop_id),
                self._store.get_barbers(barbershop_id),
                self._store.get_active_appointments(barbershop_id, day),
            )
        )

    async def _bounded(self, awaitable):
        if self._timeout_seconds is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise StoreError(
                f"Store did not answer within {self._timeout_seconds} seconds"
            ) from exc
