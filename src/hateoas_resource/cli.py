"""Command-line interface for exploring hypermedia APIs."""

import asyncio
import json
import os
from pathlib import Path
from typing import Any

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .client import create_client
from .config import load_config
from .observability import LogContext
from .observability.metrics import get_global_collector
from .state import State
from .utils.exceptions import HateoasError, Problem

app = typer.Typer(
    name="hateoas-resource",
    help="Fetch and navigate hypermedia (HAL, Siren, JSON:API, Collection+JSON) APIs",
    add_completion=False,
)

console = Console()
logger = structlog.get_logger(__name__)


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected 'Name: value', got {value!r}", param_hint="--header")
        headers[name.strip()] = content.strip()
    return headers


async def _read_data(state: State) -> Any:
    """Return printable data, draining streams and decoding text bodies."""
    data = state.data
    if hasattr(data, "__aiter__"):
        data = b"".join([chunk async for chunk in data])
    if isinstance(data, bytes):
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return f"<{len(data)} bytes>"
    return data


def _render_state(state: State, data: Any) -> None:
    console.print(Panel.fit(f"[bold]{escape(state.uri)}[/bold]", title="Resource", border_style="blue"))

    if isinstance(data, (dict, list)):
        console.print_json(data=data)
    elif data:
        console.print(data, markup=False)

    if len(state.links):
        links_table = Table(title="Links")
        links_table.add_column("Rel", style="cyan")
        links_table.add_column("Href")
        links_table.add_column("Title", style="dim")
        for link in state.links:
            href = link.href if link.templated else link.resolve()
            links_table.add_row(escape(link.rel), escape(href), escape(link.title or ""))
        console.print(links_table)

    actions = state.actions()
    if actions:
        actions_table = Table(title="Actions")
        actions_table.add_column("Name", style="cyan")
        actions_table.add_column("Method", style="magenta")
        actions_table.add_column("Target")
        actions_table.add_column("Fields")
        for action in actions:
            actions_table.add_row(
                escape(action.name),
                action.method,
                escape(action.uri),
                escape(", ".join(f.name for f in action.fields)),
            )
        console.print(actions_table)

    if state.collection:
        console.print(f"[dim]Collection: {len(state.collection)} item(s)[/dim]")


def _render_stats() -> None:
    collector = get_global_collector()
    summary = collector.get_summary()
    table = Table(title="Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for name, value in sorted(summary.get("counters", {}).items()):
        table.add_row(escape(name), str(value))
    for name, timing in sorted(summary.get("timings", {}).items()):
        table.add_row(escape(f"{name} (avg)"), f"{timing['avg']:.1f}")
    ratio = collector.cache_hit_ratio()
    if ratio is not None:
        table.add_row("cache hit ratio", f"{ratio:.0%}")
    console.print(table)


@app.command()
def get(
    url: str = typer.Argument(..., help="URI of the resource to fetch"),
    follow: list[str] = typer.Option(
        [], "--follow", "-f", help="Relation to follow (repeatable, applied in order)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print only the data as JSON"),
    stats: bool = typer.Option(False, "--stats", help="Print request and cache statistics"),
    header: list[str] = typer.Option(
        [], "--header", "-H", help="Extra request header 'Name: value' (repeatable)"
    ),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Client config file"),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log verbosity: TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR",
    ),
) -> None:
    """
    Fetch a resource and optionally follow relations from it.

    Examples:
        hateoas-resource get https://api.example.com/
        hateoas-resource get https://api.example.com/ -f orders -f next
        hateoas-resource get https://api.example.com/users/1 --json
    """
    from .observability import configure_from_config

    headers = _parse_headers(header)
    try:
        config = load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]ERROR:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    configure_from_config(config.logging, level=log_level or os.environ.get("LOG_LEVEL", "WARNING"))

    async def run_get() -> tuple[State, Any]:
        async with create_client(config) as client:
            resource = client.go(url)
            if headers:
                resource = resource.with_get(headers)
            state = await resource.request()
            for rel in follow:
                logger.debug("Following relation", rel=rel, uri=state.uri)
                state = await state.follow(rel).request()
            return state, await _read_data(state)

    try:
        with LogContext(command="get", url=url):
            state, data = asyncio.run(run_get())
    except Problem as e:
        console.print(f"[bold red]ERROR:[/bold red] {escape(str(e))}")
        if e.detail:
            console.print(f"[dim]{escape(e.detail)}[/dim]")
        raise typer.Exit(code=1) from e
    except HateoasError as e:
        console.print(f"[bold red]ERROR:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    if as_json:
        typer.echo(json.dumps(data, indent=2, default=str))
    else:
        _render_state(state, data)
    if stats:
        _render_stats()


@app.command()
def version() -> None:
    """Show version information and supported formats."""
    from . import __version__

    console.print(
        Panel.fit(
            "[bold]hateoas-resource[/bold]\n\n"
            f"Version: [cyan]{__version__}[/cyan]\n"
            "Python: 3.11+\n\n"
            "[bold]Formats:[/bold]\n"
            "- HAL and HAL-FORMS\n"
            "- Siren\n"
            "- JSON:API\n"
            "- Collection+JSON\n"
            "- HTML links and forms\n"
            "- Binary and event streams",
            title="About",
            border_style="blue",
        )
    )


if __name__ == "__main__":
    app()
