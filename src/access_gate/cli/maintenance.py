"""CLI: gate maintenance status|watch"""

import asyncio
import json

import click
from rich.console import Console
from rich.panel import Panel

from access_gate.models.maintenance import MaintenanceRecord, MaintenanceStatus
from access_gate.models.session import Session

console = Console()


def _get_client():
    from access_gate.cli.main import _get_client
    return _get_client()


def _run(coro):
    from access_gate.cli.main import _run
    return _run(coro)


def _print_record(record: MaintenanceRecord) -> None:
    lines = [record.display_message]
    if record.estimated_completion:
        lines.append(f"\n[bold]Estimated completion:[/bold] {record.estimated_completion:%Y-%m-%d %H:%M %Z}")
    if record.contact_info:
        lines.append(f"[bold]Need help?[/bold] {record.contact_info}")
    style = "red" if record.is_enabled else "green"
    state = "ENABLED" if record.is_enabled else "disabled"
    console.print(Panel("\n".join(lines), title=f"{record.display_title} [{state}]", border_style=style))


@click.group()
def maintenance():
    """Maintenance mode."""


@maintenance.command("status")
@click.option("--json-output", "--json", is_flag=True)
def maintenance_status(json_output: bool):
    """Show the current maintenance record."""

    async def _status():
        client = _get_client()
        try:
            record = await client.current_maintenance()
        finally:
            await client.close()
        if json_output:
            click.echo(json.dumps(record.model_dump(mode="json") if record else None))
        elif record is None:
            console.print("[green]No maintenance record, service available.[/green]")
        else:
            _print_record(record)

    _run(_status())


@maintenance.command("watch")
def maintenance_watch():
    """Follow maintenance changes until interrupted."""

    def on_status(status: MaintenanceStatus) -> None:
        if status.record is None:
            console.print("[green]Maintenance disabled (no record).[/green]")
        else:
            _print_record(status.record)

    async def _watch():
        client = _get_client()
        monitor = client.maintenance_monitor(Session.anonymous())
        monitor.add_listener(on_status)
        try:
            async with monitor:
                console.print("[cyan]Watching for maintenance changes (Ctrl+C to exit)[/cyan]")
                while True:
                    await asyncio.sleep(3600)
        finally:
            await client.close()

    try:
        _run(_watch())
    except KeyboardInterrupt:
        pass
