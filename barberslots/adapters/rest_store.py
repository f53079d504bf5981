"""
REST store client for a PostgREST endpoint (e.g. a Supabase project).

Tables and column names follow the booking platform's schema:
``barbershop_profiles``, ``barbers``, ``services`` and ``appointments`` with
camelCase columns (``barbershopId``, ``availableHours``, ...).
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import requests

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


class RestStore:
    """
    Client for the platform's PostgREST API.

    Requests are blocking ``requests`` calls pushed onto a worker thread, so
    the async service layer can await several reads at once. Failures are
    reported as ``StoreError``; nothing is retried here.
    """

    REST_PATH = "/rest/v1"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the REST client.

        Args:
            base_url: Project URL, e.g. https://xyz.supabase.co
            api_key: API key sent as ``apikey`` and bearer token
            timeout: Per-request timeout in seconds
            session: Optional preconfigured requests session
        """
        self.base_url = base_url.rstrip("/") + self.REST_PATH
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    # -- reads ------------------------------------------------------------

    async def get_barbershop(self, barbershop_id: str) -> Barbershop:
        rows = await self._select(
            "barbershop_profiles",
            {"id": f"eq.{barbershop_id}", "select": "id,name,workingHours"},
        )
        if not rows:
            raise NotFoundError(f"Barbershop not found: {barbershop_id}")
        return load_record(BarbershopRecord, rows[0]).to_domain()

    async def get_working_hours(self, barbershop_id: str):
        shop = await self.get_barbershop(barbershop_id)
        return shop.working_hours

    async def get_barbers(self, barbershop_id: str) -> List[Barber]:
        rows = await self._select("barbers", {"barbershopId": f"eq.{barbershop_id}"})
        return [load_record(BarberRecord, row).to_domain() for row in rows]

    async def get_barber(self, barber_id: str) -> Barber:
        rows = await self._select("barbers", {"id": f"eq.{barber_id}"})
        if not rows:
            raise NotFoundError(f"Barber not found: {barber_id}")
        return load_record(BarberRecord, rows[0]).to_domain()

    async def get_active_appointments(self, barbershop_id: str, day: date) -> List[BookedInterval]:
        rows = await self._select(
            "appointments",
            {
                "barbershopId": f"eq.{barbershop_id}",
                "date": f"eq.{day.isoformat()}",
                "status": f"eq.{AppointmentStatus.scheduled.value}",
            },
        )
        return [load_record(AppointmentRecord, row).to_domain().to_booked_interval() for row in rows]

    async def get_services(self, service_ids: Sequence[str]) -> List[Service]:
        if not service_ids:
            return []
        rows = await self._select("services", {"id": f"in.({','.join(service_ids)})"})
        by_id = {row.get("id"): row for row in rows}
        missing = [service_id for service_id in service_ids if service_id not in by_id]
        if missing:
            raise NotFoundError(f"Service(s) not found: {', '.join(missing)}")
        return [load_record(ServiceRecord, by_id[service_id]).to_domain() for service_id in service_ids]

    async def get_services_for_barbershop(self, barbershop_id: str) -> List[Service]:
        rows = await self._select("services", {"barbershopId": f"eq.{barbershop_id}"})
        return [load_record(ServiceRecord, row).to_domain() for row in rows]

    async def get_appointment(self, appointment_id: str) -> Appointment:
        rows = await self._select("appointments", {"id": f"eq.{appointment_id}"})
        if not rows:
            raise NotFoundError(f"Appointment not found: {appointment_id}")
        return load_record(AppointmentRecord, rows[0]).to_domain()

    # -- writes -----------------------------------------------------------

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator["RestStore"]:
        """Pass-through: reads always hit the database and PostgREST has no lock to hold."""
        yield self

    async def insert_appointment(self, appointment: Appointment) -> Appointment:
        row = AppointmentRecord.from_domain(appointment).to_row()
        rows = await asyncio.to_thread(self._request, "POST", "appointments", json=row)
        return load_record(AppointmentRecord, rows[0]).to_domain() if rows else appointment

    async def update_appointment_status(
        self, appointment_id: str, status: AppointmentStatus
    ) -> Appointment:
        rows = await asyncio.to_thread(
            self._request,
            "PATCH",
            "appointments",
            params={"id": f"eq.{appointment_id}"},
            json={"status": AppointmentStatus(status).value},
        )
        if not rows:
            raise NotFoundError(f"Appointment not found: {appointment_id}")
        return load_record(AppointmentRecord, rows[0]).to_domain()

    # -- transport --------------------------------------------------------

    async def _select(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._request, "GET", table, params=params)

    def _request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Perform one PostgREST call and return the decoded rows.

        Raises:
            StoreError: If the call fails or the body is not a JSON list
        """
        url = f"{self.base_url}/{table}"
        logger.debug("%s %s params=%s", method, url, params)

        try:
            response = self.session.request(
                method,
                url,
                headers=self.headers,
                params=params,
                json=json,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json() if response.content else []
        except requests.exceptions.RequestException as e:
            raise StoreError(f"Store request {method} {table} failed: {e}") from e
        except ValueError as e:
            raise StoreError(f"Store returned invalid JSON for {table}: {e}") from e

        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise StoreError(f"Unexpected response shape for {table}: {type(data).__name__}")
        return data
