"""CLI: gate send"""

import json
import uuid
from typing import Optional

import click
from rich.console import Console

from access_gate.dispatch import FailureNotice
from access_gate.errors import AccessGateError

console = Console()


def _get_client():
    from access_gate.cli.main import _get_client
    return _get_client()


def _run(coro):
    from access_gate.cli.main import _run
    return _run(coro)


@click.command("send")
@click.argument("message")
@click.option("-s", "--session", "session_id", default=None)
@click.option("-m", "--model", "model_id", default="default")
@click.option("--json-output", "--json", is_flag=True)
def send_cmd(message: str, session_id: Optional[str], model_id: str, json_output: bool):
    """Send a one-shot chat request through the chat router."""

    def on_failure(notice: FailureNotice) -> None:
        if not json_output:
            console.print(f"[red]{notice.title}:[/red] {notice.description}")

    async def _send():
        client = _get_client()
        client.dispatcher.on_failure(on_failure)
        sid = session_id or str(uuid.uuid4())
        try:
            return await client.send_chat({
                "message": message,
                "sessionId": sid,
                "selectedModelId": model_id,
            })
        finally:
            await client.close()

    try:
        payload = _run(_send())
    except AccessGateError as e:
        if json_output:
            click.echo(json.dumps({"error": e.code, "message": e.message}))
        raise SystemExit(1)

    if json_output:
        click.echo(json.dumps(payload))
    elif isinstance(payload, dict):
        text = payload.get("response") or payload.get("message") or payload.get("content")
        console.print(f"[green]AI:[/green] {text if text else json.dumps(payload)}")
    else:
        console.print(f"[green]AI:[/green] {payload}")
