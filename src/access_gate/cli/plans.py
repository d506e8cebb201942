"""CLI: gate plan classify|check"""

import click
from rich.console import Console

from access_gate.plans import classify_plan

console = Console()


def _get_client():
    from access_gate.cli.main import _get_client
    return _get_client()


def _require_user_id():
    from access_gate.cli.main import _require_user_id
    return _require_user_id()


def _run(coro):
    from access_gate.cli.main import _run
    return _run(coro)


@click.group()
def plan():
    """Plan tiers."""


@plan.command("classify")
@click.argument("name", required=False, default="")
def plan_classify(name: str):
    """Classify a raw plan name."""
    tier = classify_plan(name)
    label = "pro" if tier.is_pro else "non-pro"
    click.echo(f"{tier.value} ({label})")


@plan.command("check")
def plan_check():
    """Look up the configured user's plan tier."""
    user_id = _require_user_id()

    async def _check():
        client = _get_client()
        try:
            access = await client.plan_access(user_id)
        finally:
            await client.close()
        color = "green" if access.pro else "yellow"
        answer = "yes" if access.pro else "no"
        console.print(f"Tier: [bold]{access.tier.value}[/bold]  Pro access: [{color}]{answer}[/{color}]")

    _run(_check())
