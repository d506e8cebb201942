"""
access-gate CLI — `gate` command.

Commands:
  gate config set|show          Saved connection settings
  gate maintenance status|watch Current maintenance record
  gate usage show|eval          Quota status and the usage line
  gate plan classify|check      Plan tiers
  gate send <message>           One-shot chat dispatch
"""

import asyncio
import json
import logging
from pathlib import Path

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install access-gate[cli]")

from access_gate.client import AsyncAccessGate
from access_gate.transport.http import DEFAULT_BASE_URL

console = Console()
CONFIG_FILE = Path.home() / ".access-gate" / "config.json"


def _load_config() -> dict:
    try:
        return json.loads(CONFIG_FILE.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _save_config(cfg: dict) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


def _get_client() -> AsyncAccessGate:
    cfg = _load_config()
    return AsyncAccessGate(
        base_url=cfg.get("base_url", DEFAULT_BASE_URL),
        api_key=cfg.get("api_key"),
        access_token=cfg.get("access_token"),
    )


def _require_user_id() -> str:
    user_id = _load_config().get("user_id")
    if not user_id:
        console.print("[red]No user id configured. Run `gate config set --user-id ...` first.[/red]")
        raise SystemExit(1)
    return user_id


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
@click.option("--log-level", default="WARNING", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
def main(log_level: str):
    """access-gate CLI — maintenance, plans, quotas and chat dispatch."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@main.group("config")
def config():
    """Saved connection settings."""


@config.command("set")
@click.option("--base-url", default=None)
@click.option("--api-key", default=None)
@click.option("--token", "access_token", default=None)
@click.option("--user-id", default=None)
def config_set(base_url, api_key, access_token, user_id):
    """Update ~/.access-gate/config.json."""
    cfg = _load_config()
    updates = {"base_url": base_url, "api_key": api_key, "access_token": access_token, "user_id": user_id}
    cfg.update({k: v for k, v in updates.items() if v is not None})
    _save_config(cfg)
    console.print(f"[dim]Saved to {CONFIG_FILE}[/dim]")


@config.command("show")
def config_show():
    """Print saved settings with secrets masked."""
    cfg = _load_config()
    if not cfg:
        console.print("[yellow]No configuration saved.[/yellow]")
        return
    for key, value in cfg.items():
        if key in ("api_key", "access_token") and value:
            value = value[:6] + "..."
        console.print(f"{key}: {value}")


# Register subcommands from separate modules
from access_gate.cli.maintenance import maintenance
from access_gate.cli.usage import usage
from access_gate.cli.plans import plan
from access_gate.cli.chat import send_cmd

main.add_command(maintenance)
main.add_command(usage)
main.add_command(plan)
main.add_command(send_cmd)


if __name__ == "__main__":
    main()
