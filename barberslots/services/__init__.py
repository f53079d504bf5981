"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking import AppointmentStoreProtocol, BookingService
from .slot_finder import BarbershopStoreProtocol, SlotAvailabilityService, parse_date

__all__ = [
    "AppointmentStoreProtocol",
    "BarbershopStoreProtocol",
    "BookingService",
    "SlotAvailabilityService",
    "parse_date",
]
