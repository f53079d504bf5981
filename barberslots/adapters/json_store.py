"""
JSON file store for barbershop data.

Used by the CLI in ``--mock`` mode and in tests. The file holds four lists
named like the platform's tables::

    {
        "barbershops":  [{"id", "name", "workingHours"}],
        "barbers":      [{"id", "barbershopId", "name", "availableHours", "assignedServices"}],
        "services":     [{"id", "barbershopId", "name", "price", "duration", "isActive"}],
        "appointments": [{"id", "clientId", "barbershopId", "serviceIds", "totalPrice",
                          "totalDuration", "barberId", "date", "time", "status", ...}]
    }
"""

import copy
import json
import logging
import os
from contextlib import asynccontextmanager, contextmanager
from datetime import date
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Iterator, List, Optional, Sequence

from filelock import FileLock, Timeout

from ..domain.exceptions import NotFoundError, StoreError
from ..domain.models import (
    Appointment,
    AppointmentStatus,
    Barber,
    Barbershop,
    BookedInterval,
    Service,
)
from .schemas import (
    AppointmentRecord,
    BarberRecord,
    BarbershopRecord,
    ServiceRecord,
    load_record,
)

logger = logging.getLogger(__name__)

TABLES = ("barbershops", "barbers", "services", "appointments")

SAMPLE_DATA_FILE = Path(__file__).parent / "sample_data.json"

State = Dict[str, List[Dict[str, Any]]]


class JsonFileStore:
    """
    Store backed by a single JSON document.

    The document is read when the store is built. Every write takes the
    ``<file>.lock`` file lock, re-reads the file, applies the change to that
    fresh copy, persists it and only then swaps it in. Writes made by other
    processes in the meantime are kept, and a failed write leaves both the
    file and the in-memory state untouched.
    """

    def __init__(self, data: Dict[str, Any], path: Optional[Path] = None, lock_timeout: float = 10.0):
        self.path = path
        self._data = _tables(data)
        self._lock = FileLock(f"{path}.lock", timeout=lock_timeout) if path is not None else None

    @classmethod
    def load(cls, path: Path, lock_timeout: float = 10.0) -> "JsonFileStore":
        """
        Read a store file.

        Raises:
            StoreError: If the file is missing or not a JSON object
        """
        return cls(_read_json(path), path=path, lock_timeout=lock_timeout)

    @classmethod
    def sample(cls) -> "JsonFileStore":
        """In-memory store seeded with the bundled demo data."""
        with open(SAMPLE_DATA_FILE, "r", encoding="utf-8") as f:
            return cls(json.load(f))

    @staticmethod
    def provision(path: Path) -> bool:
        """
        Create an empty store file if none exists.

        Safe to call on every start; an existing file is never touched.

        Returns:
            True if a new file was written
        """
        if path.exists():
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        _write_json(path, {table: [] for table in TABLES})
        logger.info("Provisioned empty store at %s", path)
        return True

    # -- reads ------------------------------------------------------------

    async def get_barbershop(self, barbershop_id: str) -> Barbershop:
        for row in self._data["barbershops"]:
            if row.get("id") == barbershop_id:
                return load_record(BarbershopRecord, row).to_domain()
        raise NotFoundError(f"Barbershop not found: {barbershop_id}")

    async def get_working_hours(self, barbershop_id: str):
        shop = await self.get_barbershop(barbershop_id)
        return shop.working_hours

    async def get_barbers(self, barbershop_id: str) -> List[Barber]:
        return [
            load_record(BarberRecord, row).to_domain()
            for row in self._data["barbers"]
            if row.get("barbershopId") == barbershop_id
        ]

    async def get_barber(self, barber_id: str) -> Barber:
        for row in self._data["barbers"]:
            if row.get("id") == barber_id:
                return load_record(BarberRecord, row).to_domain()
        raise NotFoundError(f"Barber not found: {barber_id}")

    async def get_active_appointments(self, barbershop_id: str, day: date) -> List[BookedInterval]:
        return [
            appointment.to_booked_interval()
            for appointment in self._appointments(barbershop_id)
            if appointment.date == day and appointment.is_active
        ]

    async def get_services(self, service_ids: Sequence[str]) -> List[Service]:
        rows = {row.get("id"): row for row in self._data["services"]}
        missing = [service_id for service_id in service_ids if service_id not in rows]
        if missing:
            raise NotFoundError(f"Service(s) not found: {', '.join(missing)}")
        return [load_record(ServiceRecord, rows[service_id]).to_domain() for service_id in service_ids]

    async def get_services_for_barbershop(self, barbershop_id: str) -> List[Service]:
        return [
            load_record(ServiceRecord, row).to_domain()
            for row in self._data["services"]
            if row.get("barbershopId") == barbershop_id
        ]

    async def get_appointment(self, appointment_id: str) -> Appointment:
        for row in self._data["appointments"]:
            if row.get("id") == appointment_id:
                return load_record(AppointmentRecord, row).to_domain()
        raise NotFoundError(f"Appointment not found: {appointment_id}")

    def _appointments(self, barbershop_id: str) -> List[Appointment]:
        return [
            load_record(AppointmentRecord, row).to_domain()
            for row in self._data["appointments"]
            if row.get("barbershopId") == barbershop_id
        ]

    # -- writes -----------------------------------------------------------

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator["JsonFileStore"]:
        """
        Hold the file lock and work on the file's current content.

        Reads inside the block see every write committed so far by any
        process, and no other store can write until the block ends.
        """
        with self._locked():
            if self.path is not None:
                self._data = _tables(_read_json(self.path))
            yield self

    async def add_barbershop(self, barbershop: Barbershop) -> Barbershop:
        """Register a barbershop; an existing id is left as it is."""

        def mutate(state: State) -> None:
            if any(row.get("id") == barbershop.id for row in state["barbershops"]):
                return
            state["barbershops"].append(
                {
                    "id": barbershop.id,
                    "name": barbershop.name,
                    "workingHours": [window.to_record() for window in barbershop.working_hours],
                }
            )

        self._commit(mutate)
        return await self.get_barbershop(barbershop.id)

    async def insert_appointment(self, appointment: Appointment) -> Appointment:
        row = AppointmentRecord.from_domain(appointment).to_row()
        self._commit(lambda state: state["appointments"].append(row))
        return appointment

    async def update_appointment_status(
        self, appointment_id: str, status: AppointmentStatus
    ) -> Appointment:
        def mutate(state: State) -> None:
            for row in state["appointments"]:
                if row.get("id") == appointment_id:
                    row["status"] = AppointmentStatus(status).value
                    return
            raise NotFoundError(f"Appointment not found: {appointment_id}")

        self._commit(mutate)
        return await self.get_appointment(appointment_id)

    def _commit(self, mutate: Callable[[State], None]) -> None:
        with self._locked():
            if self.path is None:
                state = copy.deepcopy(self._data)
            else:
                state = _tables(_read_json(self.path))
            mutate(state)
            if self.path is not None:
                try:
                    _write_json(self.path, state)
                except OSError as exc:
                    raise StoreError(f"Could not write store file {self.path}: {exc}") from exc
            self._data = state

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Take the store file lock; nested use within one store is fine."""
        if self._lock is None:
            yield
            return
        try:
            self._lock.acquire()
        except Timeout as exc:
            raise StoreError(f"Store file {self.path} is locked by another process") from exc
        try:
            yield
        finally:
            self._lock.release()


def _tables(data: Dict[str, Any]) -> State:
    return {table: list(data.get(table) or []) for table in TABLES}


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as exc:
        raise StoreError(
            f"Store file not found: {path}. Run 'barberslots init-store' first."
        ) from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise StoreError(f"Could not read store file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise StoreError(f"Store file {path} must contain a JSON object")
    return data


def _write_json(path: Path, data: Dict[str, Any]) -> None:
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    os.replace(tmp_path, path)
