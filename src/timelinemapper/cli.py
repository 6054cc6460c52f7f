# src/timelinemapper/cli.py
"""
timelinemapper Command Line Interface (CLI).

This module implements the terminal front-end using `typer` and `rich`. It is
a thin UI collaborator: it resolves an app config, runs one extraction
cycle through :class:`TimelineSession`, then reads (``events``) or drives
(``browse``) the resulting navigator.

Usage
-----
    # Print the timeline for an app config
    $ timelinemapper events --config config/quakes.yml

    # Resolve the app through a registry and step through it interactively
    $ timelinemapper browse --registry config/registry.yml --app quakes
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from timelinemapper.core.contracts.timeline import TimelineEvent
from timelinemapper.core.errors import TimelineError
from timelinemapper.core.registry import load_app_config, resolve_app_config
from timelinemapper.core.settings import load_settings
from timelinemapper.timeline.navigator import TimelineNavigator
from timelinemapper.timeline.session import TimelineSession

load_dotenv()

app = typer.Typer(
    help="timelinemapper: browse geospatial features as a timeline of events.",
    rich_markup_mode="markdown",
)
console = Console()

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        readable=True,
        help="App config file (YAML/JSON). Overrides the registry.",
    ),
]
RegistryOption = Annotated[
    Path | None,
    typer.Option("--registry", "-r", help="Registry file listing the available apps."),
]
AppOption = Annotated[
    str | None,
    typer.Option("--app", "-a", help="App id to pick from the registry."),
]


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _open_session(
    config: Path | None, registry: Path | None, app_id: str | None
) -> tuple[str, TimelineSession]:
    """Resolve the app config and run the first extraction cycle."""
    if config is not None:
        app_config, config_path = load_app_config(config), config
    else:
        current = load_settings()
        app_config, config_path = resolve_app_config(
            registry or Path(current.registry_path), app_id or current.app_id
        )
    session = TimelineSession.from_app_config(app_config, config_path)
    asyncio.run(session.reload())
    return app_config.app.title, session


def _fail(exc: TimelineError) -> typer.Exit:
    console.print(f"[bold red]❌ {exc.kind}:[/bold red] {escape(str(exc))}")
    return typer.Exit(code=1)


def _location(event: TimelineEvent) -> str:
    if event.lon_lat is None:
        return "-"
    lon, lat = event.lon_lat
    return f"{lon:.4f}, {lat:.4f}"


def _render_table(title: str, events: tuple[TimelineEvent, ...], cursor: int | None = None) -> None:
    table = Table(title=escape(title), show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Subtitle")
    table.add_column("Location", style="dim")
    for i, event in enumerate(events):
        marker = "▶ " if cursor is not None and i == cursor else ""
        table.add_row(
            f"{marker}{i}",
            event.formatted_date,
            escape(event.title),
            escape(event.subtitle or ""),
            _location(event),
        )
    console.print(table)


def _render_current(navigator: TimelineNavigator) -> None:
    event = navigator.current_event
    if event is None:
        console.print(Panel("No Event Information", border_style="dim"))
        return
    body = escape(event.description) if event.description else "[dim]No description[/dim]"
    subtitle = f"[italic]{escape(event.subtitle)}[/italic]\n\n" if event.subtitle else ""
    console.print(
        Panel(
            f"{subtitle}{body}\n\n[dim]{event.formatted_date} · {_location(event)}[/dim]",
            title=f"[bold]{escape(event.title)}[/bold]",
            subtitle=f"{navigator.cursor + 1} / {len(navigator)}",
            border_style="cyan",
        )
    )


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def events(
    config: ConfigOption = None,
    registry: RegistryOption = None,
    app_id: AppOption = None,
) -> None:
    """Print every event of the timeline as a table."""
    try:
        title, session = _open_session(config, registry, app_id)
    except TimelineError as exc:
        raise _fail(exc) from exc

    navigator = session.navigator
    if not navigator.events:
        console.print("[yellow]No events found.[/yellow]")
        return
    _render_table(title, navigator.events)


@app.command()  # type: ignore[misc]
def browse(
    config: ConfigOption = None,
    registry: RegistryOption = None,
    app_id: AppOption = None,
) -> None:
    """
    Step through the timeline interactively.

    Commands: `n` next, `p` previous, `g <index>` go to, `f` toggle filter
    (show only events up to the current one), `l` list, `q` quit.
    """
    try:
        title, session = _open_session(config, registry, app_id)
    except TimelineError as exc:
        raise _fail(exc) from exc

    navigator = session.navigator
    console.print(Panel.fit(f"[bold cyan]{escape(title)}[/bold cyan]", border_style="cyan"))
    if not navigator.events:
        console.print("[yellow]No events found.[/yellow]")
        return

    _render_current(navigator)
    while True:
        answer = Prompt.ask("[n]ext [p]rev [g]oto [f]ilter [l]ist [q]uit", default="n")
        command, _, arg = answer.strip().partition(" ")
        command = command.lower()
        if command == "q":
            break
        if command == "n":
            if not navigator.next():
                console.print("[dim]Already at the last event.[/dim]")
        elif command == "p":
            if not navigator.previous():
                console.print("[dim]Already at the first event.[/dim]")
        elif command == "g":
            try:
                navigator.goto(int(arg))
            except (ValueError, IndexError) as exc:
                console.print(f"[red]{escape(str(exc))}[/red]")
                continue
        elif command == "f":
            state = "on" if navigator.toggle_filter() else "off"
            console.print(f"[dim]Filter {state}.[/dim]")
            continue
        elif command == "l":
            _render_table(title, navigator.visible_events, navigator.cursor)
            continue
        else:
            console.print(f"[red]Unknown command: {escape(command)}[/red]")
            continue
        _render_current(navigator)


if __name__ == "__main__":
    app()
