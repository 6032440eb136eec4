"""CLI: relay connect, relay send"""

import json
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from chatrelay.errors import RelayError
from chatrelay.models.message import ChatMessage, MediaPayload

console = Console()


def _get_client():
    from chatrelay.cli.main import _get_client
    return _get_client()


def _run(coro):
    from chatrelay.cli.main import _run
    return _run(coro)


def _format_message(msg: ChatMessage) -> str:
    style = "cyan" if msg.outgoing else "green"
    if msg.media is not None:
        caption = f" {msg.media.caption}" if msg.media.caption else ""
        body = f"[dim][{msg.media.mime_type} {msg.media.filename} {len(msg.media.data)} bytes][/dim]{caption}"
    else:
        body = msg.text or ""
    return f"[{style}]{msg.sender}:[/{style}] {body}"


@click.command("connect")
def connect_cmd():
    """Connect and print status, QR codes and messages (Ctrl+C to exit)."""
    client = _get_client()

    async def _connect():
        try:
            await client.connect()
            console.print(f"[dim]Session: {client.identity.session_key}[/dim]")
            async for update in client.subscribe():
                if update.kind == "state":
                    console.print(f"[bold]Status:[/bold] {update.state}")
                elif update.kind == "qr":
                    console.print(Panel(update.qr, title="Scan QR code", expand=False))
                elif update.kind == "message":
                    console.print(_format_message(update.message))
        except RelayError as e:
            console.print(f"[red]{e}[/red]")
            raise SystemExit(1)
        finally:
            await client.close()

    try:
        _run(_connect())
    except KeyboardInterrupt:
        pass


@click.command("send")
@click.argument("recipient")
@click.argument("message", required=False)
@click.option("--media", "media_path", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--timeout", default=60.0, type=float, help="Seconds to wait for the session to connect")
@click.option("--json-output", "--json", is_flag=True)
def send_cmd(recipient: str, message: Optional[str], media_path: Optional[str], timeout: float, json_output: bool):
    """Send a one-shot text (or media with caption)."""
    client = _get_client()
    media = MediaPayload.from_path(media_path) if media_path else None

    async def _send():
        try:
            await client.connect()
            with console.status("Waiting for session..."):
                await client.wait_until_connected(timeout=timeout)
            ack = await client.send(recipient, text=message, media=media)
        except (RelayError, TimeoutError) as e:
            console.print(f"[red]{e}[/red]")
            raise SystemExit(1)
        finally:
            await client.close()
        if json_output:
            click.echo(json.dumps({"status": ack.status, "idempotency_key": ack.idempotency_key}))
        else:
            console.print(f"[green]Sent ({ack.status}).[/green]")

    _run(_send())
