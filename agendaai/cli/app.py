"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from dotenv import load_dotenv
from pendulum import DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.event_file import build_event_file
from ..adapters.google_calendar_client import GoogleCalendarClient
from ..adapters.graph_authenticator import GraphAuthenticator
from ..adapters.graph_client import GraphClient
from ..adapters.llm_client import OpenAIIntentClient
from ..adapters.mock_calendar_client import MockCalendarClient
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import AgendaError
from ..domain.messages import format_slot, localize
from ..domain.models import DEFAULT_LANGUAGE, EventFile, SUPPORTED_LANGUAGES
from ..domain.slot_finder import SlotFinder
from ..services.assistant import SchedulingAssistant
from ..services.slot_suggestions import CalendarClientProtocol, SlotSuggestionService

app = typer.Typer(
    name="agendaai",
    help="Conversational appointment scheduling assistant",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use bundled mock calendar data instead of the configured provider.")
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load configuration; a missing default config file means built-in defaults."""
    load_dotenv()

    if config_file is None:
        default_path = get_default_config_path()
        if not default_path.exists():
            return AppConfig()
        config_file = default_path

    try:
        return AppConfig.load_from_yaml(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _build_calendar_client(config: AppConfig, mock: bool) -> CalendarClientProtocol:
    """Create the busy-interval provider selected in the configuration."""
    calendar = config.calendar

    if mock or calendar.provider == "mock":
        console.print("[yellow]⚠  MOCK MODE: using bundled calendar data[/yellow]\n")
        return MockCalendarClient()

    if calendar.provider == "google":
        return GoogleCalendarClient.from_service_account_file(calendar.service_account_file)

    authenticator = GraphAuthenticator(client_id=calendar.client_id, tenant_id=calendar.tenant_id)
    return GraphClient(access_token=authenticator.get_access_token())


def _build_slot_service(config: AppConfig, mock: bool) -> SlotSuggestionService:
    calendar_id = "primary" if mock else config.calendar.calendar_id
    return SlotSuggestionService(
        calendar_client=_build_calendar_client(config, mock),
        slot_finder=SlotFinder(config.policy.to_policy()),
        calendar_id=calendar_id,
    )


def _parse_instant(value: str, tz: str, label: str) -> DateTime:
    """Parse an ISO 8601 argument; values without offset are read in ``tz``."""
    try:
        parsed = pendulum.parse(value, tz=tz)
    except ValueError as e:
        console.print(f"[red]Could not parse {label} '{value}': {e}[/red]")
        raise typer.Exit(1)

    if not isinstance(parsed, DateTime):
        console.print(f"[red]{label.capitalize()} '{value}' must be a date and time.[/red]")
        raise typer.Exit(1)

    return parsed


def _write_event_file(event_file: EventFile, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / event_file.file_name
    path.write_bytes(event_file.content)
    return path


def _print_suggestions(slots: List[DateTime], assistant: SchedulingAssistant) -> None:
    for idx, slot in enumerate(slots, 1):
        console.print(f"  [bold yellow]{idx}.[/bold yellow] {assistant.describe_slot(slot)}")


async def _chat_loop(assistant: SchedulingAssistant, output_dir: Path) -> None:
    for message in assistant.greeting():
        console.print(f"[bold cyan]🤖[/bold cyan] {message}")

    suggestions: List[DateTime] = []

    while True:
        text = console.input("\n[bold]You:[/bold] ").strip()

        if not text:
            continue
        if text.lower() in ("quit", "exit", "sair", "salir"):
            break

        if text.isdigit() and suggestions:
            idx = int(text) - 1
            if 0 <= idx < len(suggestions):
                slot = suggestions[idx]
                language = assistant.language or DEFAULT_LANGUAGE
                console.print(f"[dim]{localize('book_request', language, slot=assistant.describe_slot(slot))}[/dim]")

                confirmation = assistant.select_slot(slot)
                path = _write_event_file(confirmation.event_file, output_dir)

                console.print(f"[bold cyan]🤖[/bold cyan] {confirmation.text}")
                console.print(f"[green]✓ {path}[/green]")
                suggestions = []
                continue

        reply = await assistant.handle_message(
            text,
            on_progress=lambda message: console.print(f"[bold cyan]🤖[/bold cyan] [dim]{message}[/dim]"),
        )

        style = "red" if reply.kind == "error" else "default"
        console.print(f"[bold cyan]🤖[/bold cyan] [{style}]{reply.text}[/{style}]")

        if reply.suggestions:
            suggestions = reply.suggestions
            _print_suggestions(suggestions, assistant)


@app.command()
def chat(
    config_file: ConfigOption = None,
    mock: MockOption = False,
    output_dir: Annotated[Path, typer.Option("--output-dir", "-o", help="Where booked .ics files are written.")] = Path("."),
    timezone: Annotated[Optional[str], typer.Option("--timezone", help="Your IANA timezone. Defaults to the system timezone.")] = None,
    verbose: VerboseOption = False,
):
    """
    Chat with the assistant to find and book an appointment.

    Type the number of a suggested slot to book it. Type 'quit' to leave.
    """
    _configure_logging(verbose)
    config = _load_config(config_file)

    console.print("\n" + "="*60)
    console.print("[bold cyan]🗓️  Agenda AI Chat[/bold cyan]")
    console.print("="*60 + "\n")

    try:
        slot_service = _build_slot_service(config, mock)
        intent_client = OpenAIIntentClient.from_settings(
            api_key=config.llm.get_api_key(),
            model=config.llm.model,
            base_url=config.llm.base_url,
            timeout_seconds=config.llm.timeout_seconds,
            max_retries=config.llm.max_retries,
        )
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    assistant = SchedulingAssistant(
        intent_client=intent_client,
        slot_service=slot_service,
        event_settings=config.event.to_settings(),
        requester_timezone=timezone or pendulum.local_timezone().name,
    )

    try:
        asyncio.run(_chat_loop(assistant, output_dir))
    except (KeyboardInterrupt, EOFError):
        console.print()


@app.command()
def slots(
    requested_time: Annotated[str, typer.Argument(help="Requested time, ISO 8601 (e.g. 2024-04-29T14:00). Without offset it is read in the provider timezone.")],
    now: Annotated[Optional[str], typer.Option("--now", help="Override the current time (ISO 8601).")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    timezone: Annotated[Optional[str], typer.Option("--timezone", help="Timezone to display suggestions in.")] = None,
    verbose: VerboseOption = False,
):
    """
    Suggest open slots near a requested time (no language model involved).

    Examples:

        agendaai slots 2024-04-29T14:00 --mock --now 2024-04-29T08:00
    """
    _configure_logging(verbose)
    config = _load_config(config_file)
    provider_tz = config.policy.timezone
    display_tz = timezone or provider_tz

    requested = _parse_instant(requested_time, provider_tz, "requested time")
    current = _parse_instant(now, provider_tz, "current time") if now else pendulum.now(provider_tz)

    console.print("[bold cyan]📊 Summary:[/bold cyan]")
    console.print(f"   Requested: {requested.in_timezone(provider_tz).format('ddd DD.MM.YYYY HH:mm')} ({provider_tz})")
    console.print(f"   Working hours: {config.policy.start_hour}:00 - {config.policy.end_hour}:00")
    console.print(f"   Slot duration: {config.policy.slot_duration_minutes} minutes")
    console.print()

    try:
        service = _build_slot_service(config, mock)
    except AgendaError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    found = asyncio.run(service.suggest_slots(requested, current, requester_timezone=display_tz))

    if not found:
        console.print(f"[yellow]⚠ {localize('no_openings', DEFAULT_LANGUAGE)}[/yellow]")
        return

    table = Table(title="Suggested slots", show_header=True, header_style="bold cyan")
    table.add_column("#", style="bold yellow")
    table.add_column(f"Provider ({provider_tz})")
    table.add_column(f"Requester ({display_tz})", style="dim")
    table.add_column("UTC", style="dim")

    for idx, slot in enumerate(found, 1):
        table.add_row(
            str(idx),
            format_slot(slot, DEFAULT_LANGUAGE, provider_tz),
            format_slot(slot, DEFAULT_LANGUAGE, display_tz),
            slot.to_iso8601_string(),
        )

    console.print(table)


@app.command()
def book(
    slot: Annotated[str, typer.Argument(help="Slot start, ISO 8601.")],
    subject: Annotated[Optional[str], typer.Option("--subject", "-s", help="Appointment subject.")] = None,
    language: Annotated[str, typer.Option("--language", "-l", help="Language for default texts (en, pt, es).")] = DEFAULT_LANGUAGE,
    output_dir: Annotated[Path, typer.Option("--output-dir", "-o", help="Where the .ics file is written.")] = Path("."),
    config_file: ConfigOption = None,
):
    """
    Write an .ics calendar file for a slot.
    """
    config = _load_config(config_file)

    if language not in SUPPORTED_LANGUAGES:
        console.print(f"[red]Unsupported language '{language}', use one of {', '.join(SUPPORTED_LANGUAGES)}.[/red]")
        raise typer.Exit(1)

    start = _parse_instant(slot, config.policy.timezone, "slot")
    settings = config.event
    summary = subject or localize("default_subject", language)
    attendee_name = settings.attendee_name or localize("default_attendee", language)

    event_file = build_event_file(
        start,
        summary,
        attendee_name=attendee_name,
        attendee_email=settings.attendee_email,
        organizer_name=settings.organizer_name,
        organizer_email=settings.organizer_email,
        description=localize("event_description", language, attendee=attendee_name),
        now=pendulum.now("UTC"),
        uid_domain=settings.uid_domain,
        product_id=settings.product_id,
    )
    path = _write_event_file(event_file, output_dir)

    console.print(f"[green]✓ {localize('confirmed', language, subject=summary)}[/green]")
    console.print(f"  {path}")


@app.command()
def test_auth(
    config_file: ConfigOption = None,
    force: Annotated[bool, typer.Option("--force", help="Force re-authentication (Microsoft only)")] = False,
):
    """
    Test access to the configured provider calendar.
    """
    config = _load_config(config_file)
    calendar = config.calendar

    try:
        if calendar.provider == "mock":
            console.print("[yellow]⊘ Mock provider configured, nothing to test.[/yellow]")
            return

        if calendar.provider == "google":
            client = GoogleCalendarClient.from_service_account_file(calendar.service_account_file)
            info = client.test_connection(calendar.calendar_id)
            details = f"[bold]Calendar:[/bold] {info.get('summary', 'N/A')} ({info.get('timeZone', 'N/A')})"
        else:
            authenticator = GraphAuthenticator(client_id=calendar.client_id, tenant_id=calendar.tenant_id)
            user_info = GraphClient(access_token=authenticator.get_access_token(force_refresh=force)).test_connection()
            details = (
                f"[bold]User:[/bold] {user_info.get('displayName', 'N/A')}\n"
                f"[bold]E-Mail:[/bold] {user_info.get('mail') or user_info.get('userPrincipalName', 'N/A')}"
            )

        console.print(Panel.fit(
            f"[bold green]✓ Connection successful![/bold green]\n\n{details}",
            title="✓ Connection test"
        ))

    except AgendaError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}\n")
        raise typer.Exit(1)


@app.command()
def clear_cache(config_file: ConfigOption = None):
    """
    Clear the Microsoft authentication token cache.
    """
    config = _load_config(config_file)
    calendar = config.calendar

    if calendar.provider != "microsoft":
        console.print("[yellow]Token caching only applies to the microsoft provider.[/yellow]")
        return

    GraphAuthenticator(client_id=calendar.client_id, tenant_id=calendar.tenant_id).clear_cache()
    console.print("\n[green]✓ Token cache cleared.[/green]")
    console.print("You will need to sign in again next time.\n")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]agendaai[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
