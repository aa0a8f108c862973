"""
Main CLI application using Typer.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from ..adapters.memory_store import InMemoryBookingStore
from ..adapters.sql_store import SqlBookingStore
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import (
    BookingError,
    ConfigurationError,
    InvalidStateTransitionError,
    NotFoundError,
    SlotUnavailableError,
)
from ..domain.slot_calculator import SlotCalculator
from ..services.scheduling import SchedulingService, coerce_date

app = typer.Typer(
    name="slotbooker",
    help="Check availability and manage reservations of a service marketplace",
    add_completion=False
)

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load the given config file, the default one if present, or built-in defaults."""
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()


def _configure_logging(level: str, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _build_service(config: AppConfig, quiet: bool = False) -> SchedulingService:
    """Wire the configured store into a scheduling service."""
    if config.database_url:
        store = SqlBookingStore.from_url(config.database_url)
    else:
        if not quiet:
            err_console.print("[yellow]⚠  In-memory mode: changes are not saved[/yellow]\n")
        store = InMemoryBookingStore.from_json(config.data_file)

    return SchedulingService(
        services=store,
        schedules=store,
        reservations=store,
        slot_calculator=SlotCalculator(step_minutes=config.booking.step_minutes),
    )


def _fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(1)


def _run(command):
    """Execute a command body, translating domain errors into CLI output."""
    try:
        return command()
    except SlotUnavailableError as e:
        console.print(f"[bold yellow]Slot taken:[/bold yellow] {e}")
        console.print("Please check availability again and pick another time.")
        raise typer.Exit(1)
    except (NotFoundError, InvalidStateTransitionError, ValueError, FileNotFoundError) as e:
        _fail(str(e))
    except ConfigurationError as e:
        logger.error("Invalid schedule data: %s", e)
        _fail("Something went wrong while reading the business hours.")
    except SQLAlchemyError as e:
        logger.error("Database error: %s", e)
        _fail("Something went wrong while talking to the database.")
    except BookingError as e:
        _fail(str(e))


@app.command()
def slots(
    company: Annotated[str, typer.Argument(help="Company id")],
    service: Annotated[str, typer.Argument(help="Service id")],
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD), defaults to today")] = None,
    config_file: ConfigOption = None,
    only_free: Annotated[bool, typer.Option("--free", help="Show only available slots.")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON instead of a table.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Show the slots of a day for a service.

    Examples:

        slotbooker slots barbearia-centro corte --date 2026-11-02
        slotbooker slots barbearia-centro corte-barba --free --json
    """

    def command():
        config = _load_config(config_file)
        _configure_logging(config.log_level, verbose)
        day = coerce_date(date) if date else config.today()
        scheduling = _build_service(config, quiet=as_json)

        found = scheduling.get_available_slots(company, day, service)
        if only_free:
            found = [slot for slot in found if slot.available]

        if as_json:
            console.print_json(json.dumps([slot.to_dict() for slot in found]))
            return

        if not found:
            console.print(f"[yellow]⚠ No slots on {day.format('DD.MM.YYYY')}.[/yellow]")
            return

        table = Table(
            title=f"Slots for {service} at {company} on {day.format('DD.MM.YYYY')}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Start", style="bold")
        table.add_column("End")
        table.add_column("Available")

        for slot in found:
            table.add_row(
                slot.start,
                slot.end,
                "[green]yes[/green]" if slot.available else "[red]no[/red]"
            )

        console.print()
        console.print(table)
        console.print()

    _run(command)


@app.command()
def book(
    company: Annotated[str, typer.Argument(help="Company id")],
    service: Annotated[str, typer.Argument(help="Service id")],
    start: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    client: Annotated[str, typer.Option("--client", help="Client id")],
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD), defaults to today")] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Notes for the company")] = None,
    config_file: ConfigOption = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Book a service for a client.
    """

    def command():
        config = _load_config(config_file)
        _configure_logging(config.log_level, verbose)
        day = coerce_date(date) if date else config.today()
        scheduling = _build_service(config)

        reservation = scheduling.create_reservation(
            client_id=client,
            company_id=company,
            service_id=service,
            day=day,
            start_time=start,
            notes=notes,
        )
        console.print(f"[bold green]✓ Reservation created:[/bold green] {reservation.id}")
        console.print(f"  {reservation.format_display()} – R$ {reservation.price}")

    _run(command)


@app.command()
def status(
    reservation_id: Annotated[str, typer.Argument(help="Reservation id")],
    new_status: Annotated[str, typer.Argument(help="confirmed, cancelled or completed")],
    config_file: ConfigOption = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Change the status of a reservation.
    """

    def command():
        config = _load_config(config_file)
        _configure_logging(config.log_level, verbose)
        scheduling = _build_service(config)

        reservation = scheduling.update_reservation_status(reservation_id, new_status)
        console.print(f"[green]✓ {reservation.id}: {reservation.status.value}[/green]")

    _run(command)


@app.command()
def reservations(
    company: Annotated[Optional[str], typer.Option("--company", help="Company id")] = None,
    client: Annotated[Optional[str], typer.Option("--client", help="Client id")] = None,
    status_filter: Annotated[Optional[str], typer.Option("--status", help="Only reservations with this status")] = None,
    config_file: ConfigOption = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    List the reservations of a company or a client.
    """
    if (company is None) == (client is None):
        _fail("Use exactly one of --company or --client.")

    def command():
        config = _load_config(config_file)
        _configure_logging(config.log_level, verbose)
        scheduling = _build_service(config)

        if company is not None:
            found = scheduling.list_company_reservations(company, status=status_filter)
        else:
            found = scheduling.list_client_reservations(client, status=status_filter)

        if not found:
            console.print("[yellow]No reservations found.[/yellow]")
            return

        table = Table(title="Reservations", show_header=True, header_style="bold cyan")
        table.add_column("Id", style="dim")
        table.add_column("When", style="bold")
        table.add_column("Service")
        table.add_column("Client")
        table.add_column("Price", justify="right")

        for reservation in found:
            table.add_row(
                reservation.id,
                reservation.format_display(),
                reservation.service_id,
                reservation.client_id,
                str(reservation.price),
            )

        console.print()
        console.print(table)
        console.print()

    _run(command)


@app.command()
def init_db(
    seed: Annotated[Optional[Path], typer.Option("--seed", help="JSON file with companies, services and reservations")] = None,
    config_file: ConfigOption = None,
):
    """
    Create the database tables and optionally load seed data.
    """

    def command():
        config = _load_config(config_file)
        if not config.database_url:
            _fail("database_url is not configured.")

        store = SqlBookingStore.from_url(config.database_url)
        store.create_schema()
        console.print("[green]✓ Tables created[/green]")

        if seed is not None:
            if not seed.exists():
                raise FileNotFoundError(f"Seed file not found: {seed}")
            with open(seed, "r", encoding="utf-8") as f:
                store.load(json.load(f))
            console.print(f"[green]✓ Seed data loaded from {seed}[/green]")

    _run(command)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotbooker[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
