"""
Core business logic for calculating bookable appointment slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence

from pendulum import DateTime

from .capacity import AnyBarberPolicy, CapacityResolver
from .intervals import at_time, enumerate_slots
from .models import (
    Barber,
    BookedInterval,
    WorkingHoursWindow,
    day_of_week,
    parse_time_of_day,
)

logger = logging.getLogger(__name__)


class SlotCalculator:
    """
    Calculates bookable start times for one barbershop on one day.

    Algorithm:
    1. Resolve the day of week (0 = Sunday)
    2. Pick the windows to enumerate: the requested barber's windows, the
       union of all relevant barbers' windows, or the shop's own hours when
       the shop has no barbers
    3. Enumerate candidate starts in every window at a fixed step
    4. Deduplicate and sort the "HH:MM" strings
    5. Keep the candidates the capacity resolver accepts
    6. On the current day, drop everything not strictly after "now"
    """

    def __init__(
        self,
        step_minutes: int = 30,
        policy: AnyBarberPolicy = AnyBarberPolicy.headcount,
    ):
        if step_minutes <= 0:
            raise ValueError(f"step_minutes must be positive, got {step_minutes}")
        self.step_minutes = step_minutes
        self.policy = AnyBarberPolicy(policy)

    def available_slots(
        self,
        day: date,
        duration_minutes: int,
        working_hours: Sequence[WorkingHoursWindow],
        barbers: Sequence[Barber],
        bookings: Iterable[BookedInterval],
        barber_id: Optional[str] = None,
        service_ids: Sequence[str] = (),
        now: Optional[DateTime] = None,
    ) -> List[str]:
        """
        Find all bookable start times.

        Args:
            day: Calendar day of the appointment
            duration_minutes: Total duration of the requested services
            working_hours: The shop's weekly opening hours
            barbers: All barbers of the shop
            bookings: Active bookings of the shop on ``day``
            barber_id: Restrict to one barber; None means any barber
            service_ids: In "any barber" mode, only barbers assigned to all of
                these services are considered
            now: Naive wall-clock "now" in the shop timezone; slots at or
                before it are dropped when ``day`` is today

        Returns:
            Sorted list of "HH:MM" strings, possibly empty
        """
        weekday = day_of_week(day)

        if barber_id is not None:
            chosen = [barber for barber in barbers if barber.id == barber_id]
            if not chosen:
                logger.info("Barber %s does not work at this barbershop", barber_id)
                return []
            relevant = chosen
        elif service_ids:
            relevant = [barber for barber in barbers if barber.offers_all(service_ids)]
        else:
            relevant = list(barbers)

        relevant_ids = {barber.id for barber in relevant}
        resolver = CapacityResolver(
            day=day,
            barbers=relevant,
            bookings=bookings,
            policy=self.policy,
            ignored_barber_ids=[b.id for b in barbers if b.id not in relevant_ids],
        )

        candidates = self._candidate_starts(
            day=day,
            weekday=weekday,
            duration_minutes=duration_minutes,
            working_hours=working_hours,
            has_barbers=bool(barbers),
            relevant=relevant,
        )

        slots = [
            label
            for label in candidates
            if resolver.is_bookable(
                self._slot_start(day, label),
                duration_minutes,
                barber_id=barber_id,
            )
        ]

        if now is not None and now.date() == day:
            slots = [label for label in slots if self._slot_start(day, label) > now]

        return slots

    def _candidate_starts(
        self,
        *,
        day: date,
        weekday: int,
        duration_minutes: int,
        working_hours: Sequence[WorkingHoursWindow],
        has_barbers: bool,
        relevant: Sequence[Barber],
    ) -> List[str]:
        windows = []
        if has_barbers:
            for barber in relevant:
                windows.extend((window.start, window.end) for window in barber.windows_for(weekday))
        else:
            for window in working_hours:
                if window.day_of_week == weekday and window.is_open:
                    windows.append((window.start, window.end))

        labels = set()
        for window_start, window_end in windows:
            for start in enumerate_slots(
                day, window_start, window_end, self.step_minutes, duration_minutes
            ):
                labels.add(start.format("HH:mm"))

        # Zero-padded HH:MM sorts chronologically.
        return sorted(labels)

    @staticmethod
    def _slot_start(day: date, label: str) -> DateTime:
        return at_time(day, parse_time_of_day(label))
