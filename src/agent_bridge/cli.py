"""Command-line interface for agent-bridge."""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from agent_bridge import __version__
from agent_bridge.adapters import registry
from agent_bridge.errors import BridgeError, error_payload
from agent_bridge.models import Report, SessionEntry
from agent_bridge.report import (
    build_report,
    compare_request,
    load_handoff,
    parse_source_arg,
    report_to_markdown,
)
from agent_bridge.resolver import list_sessions, resolve_session, search_sessions

console = Console()
error_console = Console(stderr=True)

_KEEP_CONTROL = {"\n", "\t"}


def sanitize_for_terminal(text: str) -> str:
    """Strip control characters (other than newline and tab) before printing.

    Session content is untrusted; escape sequences in it must not reach the
    user's terminal.
    """
    return "".join(
        ch
        for ch in text
        if ch in _KEEP_CONTROL or not (ord(ch) < 0x20 or 0x7F <= ord(ch) <= 0x9F)
    )


def effective_cwd(cwd: str | None) -> str:
    """The ``--cwd`` value, or the process working directory."""
    return cwd or os.getcwd()


def fail(exc: Exception, as_json: bool) -> NoReturn:
    """Report an error and exit with status 1.

    In JSON mode only the ``{error_code, message}`` object is written to stdout.
    """
    if as_json:
        click.echo(json.dumps(error_payload(exc), indent=2))
    else:
        error_console.print(f"[red]Error:[/red] {escape(sanitize_for_terminal(str(exc)))}")
    sys.exit(1)


def print_warnings(warnings: list[str]) -> None:
    """Print warnings on stderr."""
    for warning in warnings:
        error_console.print(escape(sanitize_for_terminal(warning)), style="yellow")


def print_entries_table(entries: list[SessionEntry]) -> None:
    """Print catalog entries in a formatted table.

    Args:
        entries: Catalog rows to display.
    """
    if not entries:
        console.print("[dim]No sessions found.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Session", style="cyan", no_wrap=True)
    table.add_column("Agent", style="magenta")
    table.add_column("Modified", style="yellow")
    table.add_column("CWD", style="green")
    table.add_column("File", style="white")

    for entry in entries:
        table.add_row(
            escape(sanitize_for_terminal(entry.session_id)),
            entry.agent.value,
            entry.modified_at or "",
            escape(sanitize_for_terminal(entry.cwd or "")) or "[dim]-[/dim]",
            escape(sanitize_for_terminal(entry.file_path)),
        )

    console.print(table)


def emit_entries(entries: list[SessionEntry], as_json: bool) -> None:
    """Print catalog entries as JSON or as a table."""
    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
    else:
        print_entries_table(entries)


def emit_report(report: Report, as_json: bool) -> None:
    """Print a report as JSON or Markdown."""
    if as_json:
        click.echo(report.model_dump_json(indent=2))
    else:
        click.echo(sanitize_for_terminal(report_to_markdown(report)))


@click.group()
@click.version_option(__version__, prog_name="bridge")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr")
def cli(verbose: bool) -> None:
    """Agent Bridge - read, search and compare AI coding agent sessions."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )


@cli.command()
@click.option("--agent", "-a", required=True, help=f"Agent to read ({', '.join(registry.names())})")
@click.option("--id", "session_id", type=str, help="Session id (substring of the file path)")
@click.option("--cwd", type=str, help="Working directory used for scoping")
@click.option("--chats-dir", type=str, help="Directory to scan instead of the agent's default")
@click.option("--last", "last_n", type=int, default=1, show_default=True, help="Return the last N assistant messages")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def read(
    agent: str,
    session_id: str | None,
    cwd: str | None,
    chats_dir: str | None,
    last_n: int,
    as_json: bool,
) -> None:
    """Read the latest (or a specific) session of an agent."""
    try:
        adapter = registry.get_adapter(agent)
        session = resolve_session(
            adapter.name,
            session_id=session_id,
            cwd=effective_cwd(cwd),
            explicit_dir=chats_dir,
            last_n=last_n,
        )
    except (BridgeError, OSError) as e:
        fail(e, as_json)

    if as_json:
        click.echo(session.model_dump_json(indent=2))
        return

    print_warnings(session.warnings)
    click.echo(f"SOURCE: {adapter.display_name} Session ({sanitize_for_terminal(session.source)})")
    click.echo("---")
    click.echo(sanitize_for_terminal(session.content))


@cli.command()
@click.option(
    "--source",
    "-s",
    "sources",
    multiple=True,
    required=True,
    help="Source as agent or agent:session_id (repeatable)",
)
@click.option("--cwd", type=str, help="Working directory used for scoping")
@click.option("--normalize", is_flag=True, help="Collapse whitespace before comparing")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def compare(sources: tuple[str, ...], cwd: str | None, normalize: bool, as_json: bool) -> None:
    """Compare the latest outputs of several agents."""
    try:
        specs = [parse_source_arg(raw) for raw in sources]
        report = build_report(compare_request(specs, normalize), effective_cwd(cwd))
    except (BridgeError, OSError) as e:
        fail(e, as_json)

    emit_report(report, as_json)


@cli.command()
@click.option("--handoff", required=True, type=click.Path(dir_okay=False), help="Handoff JSON file")
@click.option("--cwd", type=str, help="Default working directory for sources")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def report(handoff: str, cwd: str | None, as_json: bool) -> None:
    """Build a coordinator report from a handoff packet."""
    try:
        request = load_handoff(handoff)
        result = build_report(request, effective_cwd(cwd))
    except (BridgeError, OSError) as e:
        fail(e, as_json)

    emit_report(result, as_json)


@cli.command("list")
@click.option("--agent", "-a", required=True, help="Agent whose sessions to list")
@click.option("--cwd", type=str, help="Only sessions recorded for this directory")
@click.option("--limit", "-l", type=int, default=10, show_default=True, help="Limit results")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_cmd(agent: str, cwd: str | None, limit: int, as_json: bool) -> None:
    """List recent sessions of an agent."""
    try:
        entries = list_sessions(agent, cwd=cwd, limit=limit)
    except (BridgeError, OSError) as e:
        fail(e, as_json)

    emit_entries(entries, as_json)


@cli.command()
@click.argument("query")
@click.option("--agent", "-a", required=True, help="Agent whose sessions to search")
@click.option("--cwd", type=str, help="Only sessions recorded for this directory")
@click.option("--limit", "-l", type=int, default=10, show_default=True, help="Limit results")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def search(query: str, agent: str, cwd: str | None, limit: int, as_json: bool) -> None:
    """Search session files of an agent for QUERY (case-insensitive)."""
    try:
        entries = search_sessions(agent, query, cwd=cwd, limit=limit)
    except (BridgeError, OSError) as e:
        fail(e, as_json)

    emit_entries(entries, as_json)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
