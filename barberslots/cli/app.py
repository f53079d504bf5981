"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.json_store import JsonFileStore
from ..adapters.rest_store import RestStore
from ..config import AppConfig
from ..domain.exceptions import BarberSlotsError
from ..domain.models import Barbershop, WEEKDAY_NAMES, format_time_of_day
from ..domain.slot_calculator import SlotCalculator
from ..services.booking import BookingService
from ..services.slot_finder import SlotAvailabilityService

app = typer.Typer(
    name="barberslots",
    help="Find and book available barbershop appointment slots",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use the bundled demo data instead of the configured store."),
]


def _setup(config_file: Optional[Path]) -> AppConfig:
    """Load configuration and route log records through rich."""
    config = AppConfig.load(config_file)
    logging.basicConfig(
        level=config.log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    return config


def _build_store(config: AppConfig, mock: bool):
    if mock:
        return JsonFileStore.sample()
    if config.store.backend == "rest":
        return RestStore(
            base_url=config.store.base_url,
            api_key=config.store.api_key,
            timeout=config.store.timeout_seconds,
        )
    return JsonFileStore.load(config.store.data_file)


def _build_availability(config: AppConfig, store) -> SlotAvailabilityService:
    calculator = SlotCalculator(
        step_minutes=config.slot_step_minutes,
        policy=config.any_barber_policy,
    )
    return SlotAvailabilityService(
        store=store,
        slot_calculator=calculator,
        timezone=config.timezone,
        timeout_seconds=config.store.timeout_seconds,
    )


def _fail(exc: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {exc}")
    raise typer.Exit(1)


@app.command()
def slots(
    barbershop_id: Annotated[str, typer.Argument(help="Barbershop id")],
    date: Annotated[str, typer.Option("--date", "-d", help="Date (YYYY-MM-DD)")],
    duration: Annotated[Optional[int], typer.Option("--duration", help="Total service duration in minutes")] = None,
    service: Annotated[Optional[List[str]], typer.Option("--service", "-s", help="Service id; repeat for several")] = None,
    barber: Annotated[Optional[str], typer.Option("--barber", "-b", help="Only this barber")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the slots as a JSON array")] = False,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List bookable start times for a barbershop on a date.

    Examples:

        barberslots slots admin1 --date 2030-01-07 --duration 30

        barberslots slots admin1 --date 2030-01-07 --service service1 --barber barber1_admin1

        barberslots slots admin1 --date 2030-01-07 -s service1 -s service2 --mock
    """
    try:
        config = _setup(config_file)
        store = _build_store(config, mock)
        service_ids = list(service or [])

        availability = _build_availability(config, store)

        if duration is None:
            if not service_ids:
                console.print("[bold red]Error:[/bold red] pass --duration or at least one --service")
                raise typer.Exit(1)
            duration = asyncio.run(availability.duration_for_services(barbershop_id, service_ids))

        result = asyncio.run(
            availability.get_available_slots(
                barbershop_id,
                duration,
                date,
                barber_id=barber,
                service_ids=service_ids,
            )
        )
    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if as_json:
        console.print_json(json.dumps(result))
        return

    console.print()
    if not result:
        console.print(
            "[yellow]⚠ No available slots.[/yellow]\n"
            "Try another date, another barber or a shorter service."
        )
    else:
        who = f"barber {barber}" if barber else "any barber"
        console.print(
            f"[bold green]✓ {len(result)} slot(s) on {date} ({duration} min, {who}):[/bold green]\n"
        )
        console.print("  " + "  ".join(result))
    console.print()


@app.command()
def barbers(
    barbershop_id: Annotated[str, typer.Argument(help="Barbershop id")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List the barbers of a barbershop with their weekly hours.
    """
    try:
        config = _setup(config_file)
        store = _build_store(config, mock)
        shop = asyncio.run(store.get_barbershop(barbershop_id))
        shop_barbers = asyncio.run(store.get_barbers(barbershop_id))
    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print()
    console.print(f"[bold cyan]{shop.name}[/bold cyan]  {_format_shop_hours(shop)}")

    if not shop_barbers:
        console.print("[yellow]No barbers registered; the shop's own hours apply.[/yellow]\n")
        return

    table = Table(
        title="Barbers",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Id", style="dim", no_wrap=True)
    table.add_column("Name", style="bold yellow", no_wrap=True)
    table.add_column("Hours")
    table.add_column("Services", style="dim")

    for barber in shop_barbers:
        hours = ", ".join(
            f"{WEEKDAY_NAMES[window.day_of_week]} "
            f"{format_time_of_day(window.start)}-{format_time_of_day(window.end)}"
            for window in sorted(barber.availability, key=lambda w: (w.day_of_week, w.start))
        )
        table.add_row(barber.id, barber.name, hours or "-", ", ".join(barber.assigned_service_ids))

    console.print()
    console.print(table)
    console.print()


def _format_shop_hours(shop: Barbershop) -> str:
    parts = []
    for window in shop.working_hours:
        name = WEEKDAY_NAMES[window.day_of_week]
        if window.is_open:
            parts.append(f"{name} {format_time_of_day(window.start)}-{format_time_of_day(window.end)}")
        else:
            parts.append(f"{name} closed")
    return "[dim]" + " | ".join(parts) + "[/dim]"


@app.command()
def book(
    barbershop_id: Annotated[str, typer.Argument(help="Barbershop id")],
    client: Annotated[str, typer.Option("--client", help="Client id")],
    service: Annotated[List[str], typer.Option("--service", "-s", help="Service id; repeat for several")],
    date: Annotated[str, typer.Option("--date", "-d", help="Date (YYYY-MM-DD)")],
    time: Annotated[str, typer.Option("--time", "-t", help="Start time (HH:MM)")],
    barber: Annotated[Optional[str], typer.Option("--barber", "-b", help="Barber id")] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Free text for the barber")] = None,
    config_file: ConfigOption = None,
):
    """
    Book an appointment after re-checking that the slot is still free.
    """
    try:
        config = _setup(config_file)
        store = _build_store(config, mock=False)
        booking = BookingService(store=store, availability=_build_availability(config, store))
        appointment = asyncio.run(
            booking.create_appointment(
                client_id=client,
                barbershop_id=barbershop_id,
                service_ids=service,
                date=date,
                time=time,
                barber_id=barber,
                notes=notes,
            )
        )
    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(
        f"\n[green]✓ Booked {appointment.id}:[/green] {appointment.date.isoformat()} {appointment.time}, "
        f"{appointment.total_duration} min, R$ {appointment.total_price:.2f}\n"
    )


@app.command()
def cancel(
    appointment_id: Annotated[str, typer.Argument(help="Appointment id")],
    by: Annotated[str, typer.Option("--by", help="Who cancels: client or admin")] = "client",
    config_file: ConfigOption = None,
):
    """
    Cancel an appointment, freeing its slot.
    """
    try:
        config = _setup(config_file)
        store = _build_store(config, mock=False)
        booking = BookingService(store=store, availability=_build_availability(config, store))
        appointment = asyncio.run(booking.cancel_appointment(appointment_id, cancelled_by=by))
    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(f"\n[green]✓ {appointment.id} is now {appointment.status.value}.[/green]\n")


@app.command()
def complete(
    appointment_id: Annotated[str, typer.Argument(help="Appointment id")],
    config_file: ConfigOption = None,
):
    """
    Mark an appointment as completed.
    """
    try:
        config = _setup(config_file)
        store = _build_store(config, mock=False)
        booking = BookingService(store=store, availability=_build_availability(config, store))
        appointment = asyncio.run(booking.complete_appointment(appointment_id))
    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(f"\n[green]✓ {appointment.id} is now {appointment.status.value}.[/green]\n")


@app.command("init-store")
def init_store(
    barbershop_id: Annotated[Optional[str], typer.Option("--barbershop", help="Register a barbershop with the default hours")] = None,
    name: Annotated[Optional[str], typer.Option("--name", help="Barbershop name")] = None,
    config_file: ConfigOption = None,
):
    """
    Create the JSON store file if missing. Safe to run repeatedly.
    """
    try:
        config = _setup(config_file)
        path = config.store.data_file
        if config.store.backend != "json":
            console.print("[yellow]⊘ The rest backend is provisioned by its own migrations.[/yellow]")
            return

        created = JsonFileStore.provision(path)
        console.print(
            f"[green]✓ Created {path}[/green]" if created else f"[dim]{path} already exists[/dim]"
        )

        if barbershop_id:
            store = JsonFileStore.load(path)
            shop = Barbershop(
                id=barbershop_id,
                name=name or barbershop_id,
                working_hours=config.working_hours_template(),
            )
            asyncio.run(store.add_barbershop(shop))
            console.print(f"[green]✓ Barbershop {barbershop_id} registered[/green]")
    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]barberslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
