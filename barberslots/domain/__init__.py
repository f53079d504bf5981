"""
Domain layer - Pure business logic without external dependencies.
"""

from .capacity import AnyBarberPolicy, CapacityResolver
from .exceptions import (
    BarberSlotsError,
    BookingConflictError,
    ConfigError,
    InvalidArgumentError,
    NotFoundError,
    StoreError,
)
from .models import (
    Appointment,
    AppointmentStatus,
    Barber,
    BarberAvailability,
    Barbershop,
    BookedInterval,
    Service,
    WorkingHoursWindow,
)
from .slot_calculator import SlotCalculator

__all__ = [
    "AnyBarberPolicy",
    "Appointment",
    "AppointmentStatus",
    "Barber",
    "BarberAvailability",
    "BarberSlotsError",
    "Barbershop",
    "BookedInterval",
    "BookingConflictError",
    "CapacityResolver",
    "ConfigError",
    "InvalidArgumentError",
    "NotFoundError",
    "Service",
    "SlotCalculator",
    "StoreError",
    "WorkingHoursWindow",
]
