"""
Record schemas for the store boundary.

Rows coming back from a store are validated here and converted into the
typed domain values; nothing downstream sees raw dictionaries.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Type, TypeVar

import pendulum
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..domain.exceptions import StoreError
from ..domain.models import (
    Appointment,
    AppointmentStatus,
    Barber,
    Barbershop,
    Service,
    parse_availability,
    parse_working_hours,
)

RecordT = TypeVar("RecordT", bound=BaseModel)


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BarbershopRecord(_Record):
    id: str
    name: str
    working_hours: List[Dict[str, Any]] = Field(default_factory=list, alias="workingHours")

    @field_validator("working_hours", mode="before")
    @classmethod
    def none_is_empty(cls, value: Any) -> Any:
        return value or []

    def to_domain(self) -> Barbershop:
        return Barbershop(
            id=self.id,
            name=self.name,
            working_hours=parse_working_hours(self.working_hours, owner=self.id),
        )


class BarberRecord(_Record):
    id: str
    barbershop_id: str = Field(alias="barbershopId")
    name: str = ""
    available_hours: List[Dict[str, Any]] = Field(default_factory=list, alias="availableHours")
    assigned_services: List[str] = Field(default_factory=list, alias="assignedServices")

    @field_validator("available_hours", "assigned_services", mode="before")
    @classmethod
    def none_is_empty(cls, value: Any) -> Any:
        return value or []

    def to_domain(self) -> Barber:
        return Barber(
            id=self.id,
            barbershop_id=self.barbershop_id,
            name=self.name,
            availability=parse_availability(self.available_hours, owner=self.id),
            assigned_service_ids=list(self.assigned_services),
        )


class ServiceRecord(_Record):
    id: str
    barbershop_id: str = Field(alias="barbershopId")
    name: str
    price: float
    duration: int = Field(gt=0)
    is_active: bool = Field(default=True, alias="isActive")

    def to_domain(self) -> Service:
        return Service(
            id=self.id,
            barbershop_id=self.barbershop_id,
            name=self.name,
            price=self.price,
            duration=self.duration,
            is_active=self.is_active,
        )


class AppointmentRecord(_Record):
    id: str
    client_id: str = Field(alias="clientId")
    barbershop_id: str = Field(alias="barbershopId")
    service_ids: List[str] = Field(default_factory=list, alias="serviceIds")
    total_price: float = Field(default=0.0, alias="totalPrice")
    total_duration: int = Field(gt=0, alias="totalDuration")
    barber_id: Optional[str] = Field(default=None, alias="barberId")
    date: date
    time: str = Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    status: AppointmentStatus = AppointmentStatus.scheduled
    notes: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    def to_domain(self) -> Appointment:
        return Appointment(
            id=self.id,
            barbershop_id=self.barbershop_id,
            client_id=self.client_id,
            service_ids=list(self.service_ids),
            date=pendulum.date(self.date.year, self.date.month, self.date.day),
            time=self.time,
            total_duration=self.total_duration,
            total_price=self.total_price,
            status=self.status,
            barber_id=self.barber_id,
            notes=self.notes,
            created_at=pendulum.instance(self.created_at) if self.created_at else None,
        )

    @classmethod
    def from_domain(cls, appointment: Appointment) -> "AppointmentRecord":
        return cls(
            id=appointment.id,
            client_id=appointment.client_id,
            barbershop_id=appointment.barbershop_id,
            service_ids=list(appointment.service_ids),
            total_price=appointment.total_price,
            total_duration=appointment.total_duration,
            barber_id=appointment.barber_id,
            date=appointment.date,
            time=appointment.time,
            status=appointment.status,
            notes=appointment.notes,
            created_at=appointment.created_at,
        )

    def to_row(self) -> Dict[str, Any]:
        """Serialize with the store's column names."""
        return self.model_dump(by_alias=True, mode="json")


def load_record(model: Type[RecordT], row: Any) -> RecordT:
    """
    Validate one store row.

    Raises:
        StoreError: If the row does not match the schema
    """
    try:
        return model.model_validate(row)
    except ValidationError as exc:
        raise StoreError(f"Malformed {model.__name__} row: {exc}") from exc
