"""
Per-slot bookability decisions.

The resolver answers one question for one candidate start time: can a client
still book it? A conflict is an ordinary ``False``, never an exception.
"""

from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pendulum import DateTime

from .intervals import at_time, covers, overlaps
from .models import Barber, BookedInterval, day_of_week

Busy = Tuple[Optional[str], DateTime, int]


class AnyBarberPolicy(str, Enum):
    """How "any barber" requests decide whether someone is free."""
    headcount = "headcount"
    matching = "matching"


class CapacityResolver:
    """
    Decides bookability of candidate slots on one day.

    Modes:
    - specific barber: the barber must work during the whole slot and have no
      overlapping booking of their own
    - any barber, ``headcount``: overlapping bookings (pinned or not) must be
      fewer than the number of barbers
    - any barber, ``matching``: the new slot and the unpinned bookings it
      overlaps (directly or through each other) must all be given barbers who
      work then and are not otherwise busy; one barber can take bookings that
      do not overlap each other
    """

    def __init__(
        self,
        day: date,
        barbers: Sequence[Barber],
        bookings: Iterable[BookedInterval],
        policy: AnyBarberPolicy = AnyBarberPolicy.headcount,
        ignored_barber_ids: Iterable[str] = (),
    ):
        self.day = day
        self.policy = AnyBarberPolicy(policy)
        self._barbers: Dict[str, Barber] = {barber.id: barber for barber in barbers}
        self._weekday = day_of_week(day)
        ignored = set(ignored_barber_ids)
        # Bookings pinned to barbers outside the relevant set hold none of its capacity.
        self._busy: List[Busy] = [
            (booking.barber_id, at_time(day, booking.start), booking.duration_minutes)
            for booking in bookings
            if booking.barber_id is None or booking.barber_id not in ignored
        ]

    @property
    def headcount(self) -> int:
        """Simultaneous clients the shop can serve; a shop without barbers is one chair."""
        return len(self._barbers) or 1

    def is_bookable(
        self,
        start: DateTime,
        duration_minutes: int,
        barber_id: Optional[str] = None,
    ) -> bool:
        if barber_id is not None:
            barber = self._barbers.get(barber_id)
            if barber is None:
                return False
            return self._works_during(barber, start, duration_minutes) and self._is_free(
                barber.id, start, duration_minutes
            )

        if self.policy == AnyBarberPolicy.matching and self._barbers:
            return self._can_assign_barber(start, duration_minutes)

        return self.count_overlapping(start, duration_minutes) < self.headcount

    def count_overlapping(self, start: DateTime, duration_minutes: int) -> int:
        """Count active bookings overlapping the interval, whoever holds them."""
        return sum(
            1
            for _, busy_start, busy_duration in self._busy
            if overlaps(start, duration_minutes, busy_start, busy_duration)
        )

    def _works_during(self, barber: Barber, start: DateTime, duration_minutes: int) -> bool:
        return any(
            covers(
                at_time(self.day, window.start),
                at_time(self.day, window.end),
                start,
                duration_minutes,
            )
            for window in barber.windows_for(self._weekday)
        )

    def _is_free(self, barber_id: str, start: DateTime, duration_minutes: int) -> bool:
        return not any(
            holder == barber_id and overlaps(start, duration_minutes, busy_start, busy_duration)
            for holder, busy_start, busy_duration in self._busy
        )

    def _can_assign_barber(self, start: DateTime, duration_minutes: int) -> bool:
        """
        Assignment check: the candidate and every unpinned booking chained to
        it by overlaps each need one barber who works that interval and has
        no pinned booking in it. A barber may take several of them as long
        as they do not overlap each other.
        """
        demands = self._overlap_group(start, duration_minutes)

        options: List[List[str]] = []
        for busy_start, busy_duration in demands:
            options.append(
                [
                    barber.id
                    for barber in self._barbers.values()
                    if self._works_during(barber, busy_start, busy_duration)
                    and self._is_free(barber.id, busy_start, busy_duration)
                ]
            )

        # An unpinned booking nobody on shift could serve holds no one's time.
        kept = [0] + [index for index in range(1, len(demands)) if options[index]]
        kept.sort(key=lambda index: demands[index][0])

        schedule: Dict[str, List[Tuple[DateTime, int]]] = {barber_id: [] for barber_id in self._barbers}
        return _assign(kept, demands, options, schedule)

    def _overlap_group(self, start: DateTime, duration_minutes: int) -> List[Tuple[DateTime, int]]:
        """The candidate first, then unpinned bookings reachable from it through overlaps."""
        floating = [
            (busy_start, busy_duration)
            for holder, busy_start, busy_duration in self._busy
            if holder is None or holder not in self._barbers
        ]
        group = [(start, duration_minutes)]
        frontier = [(start, duration_minutes)]
        while frontier:
            current_start, current_duration = frontier.pop()
            for interval in list(floating):
                if overlaps(current_start, current_duration, *interval):
                    floating.remove(interval)
                    group.append(interval)
                    frontier.append(interval)
        return group


def _assign(
    pending: List[int],
    demands: List[Tuple[DateTime, int]],
    options: List[List[str]],
    schedule: Dict[str, List[Tuple[DateTime, int]]],
) -> bool:
    """Backtracking search giving each pending demand a barber free at that time."""
    if not pending:
        return True
    index, rest = pending[0], pending[1:]
    demand_start, demand_duration = demands[index]
    for barber_id in options[index]:
        taken = schedule[barber_id]
        if any(overlaps(demand_start, demand_duration, *held) for held in taken):
            continue
        taken.append(demands[index])
        if _assign(rest, demands, options, schedule):
            return True
        taken.pop()
    return False
