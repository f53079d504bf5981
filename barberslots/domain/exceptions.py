"""
Domain-specific exception hierarchy for the barberslots application.
"""


class BarberSlotsError(Exception):
    """Base class for all application-level errors."""


class ConfigError(BarberSlotsError):
    """Raised when a schedule window or time of day is malformed."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class NotFoundError(BarberSlotsError):
    """Raised when a barbershop, barber, service or appointment does not exist."""


class InvalidArgumentError(BarberSlotsError):
    """Raised when a caller passes an argument that can never be served."""


class StoreError(BarberSlotsError):
    """Raised when the backing store cannot be read or written."""


class BookingConflictError(BarberSlotsError):
    """Raised when a requested slot is no longer available at write time."""
