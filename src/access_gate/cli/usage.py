"""CLI: gate usage show|eval"""

import json

import click
from rich.console import Console
from rich.progress_bar import ProgressBar
from rich.table import Table

from access_gate.models.usage import Severity, UsageSnapshot
from access_gate.quota import UsageLine, describe_usage

console = Console()

SEVERITY_STYLE = {
    Severity.GOOD: "green",
    Severity.WARNING: "yellow",
    Severity.CRITICAL: "red",
}


def _get_client():
    from access_gate.cli.main import _get_client
    return _get_client()


def _require_user_id():
    from access_gate.cli.main import _require_user_id
    return _require_user_id()


def _run(coro):
    from access_gate.cli.main import _run
    return _run(coro)


def _print_line(line: UsageLine) -> None:
    style = SEVERITY_STYLE[line.severity]
    table = Table.grid(padding=(0, 1))
    badge = "dim" if line.plan_badge == "secondary" else "bold"
    row = [
        f"[{badge}]{line.plan_name}[/{badge}]",
        f"[{style}]{line.counter}[/{style}]",
        ProgressBar(total=100, completed=min(line.percentage, 100), width=20),
        line.remaining_label,
    ]
    if line.blocked_label:
        row.append(f"[red]{line.blocked_label}[/red]")
    table.add_row(*row)
    console.print(table)


@click.group()
def usage():
    """AI usage quota."""


@usage.command("show")
@click.option("--json-output", "--json", is_flag=True)
def usage_show(json_output: bool):
    """Quota status for the configured user."""
    user_id = _require_user_id()

    async def _show():
        client = _get_client()
        try:
            check = await client.check_quota(user_id)
        finally:
            await client.close()
        line = describe_usage(check.snapshot, check.can_use_ai)
        if json_output:
            click.echo(json.dumps(line.model_dump(mode="json")))
        else:
            _print_line(line)

    _run(_show())


@usage.command("eval")
@click.argument("current", type=int)
@click.argument("limit", type=int)
@click.option("--plan", "plan_name", default="Free")
@click.option("--blocked", is_flag=True, help="Treat AI use as disallowed upstream")
@click.option("--json-output", "--json", is_flag=True)
def usage_eval(current: int, limit: int, plan_name: str, blocked: bool, json_output: bool):
    """Evaluate a usage pair offline."""
    snapshot = UsageSnapshot(current_usage=max(0, current), quota_limit=max(0, limit), plan_name=plan_name)
    line = describe_usage(snapshot, can_use_ai=not blocked)
    if json_output:
        click.echo(json.dumps(line.model_dump(mode="json")))
    else:
        _print_line(line)
