"""
chatrelay CLI - `relay` command.

Commands:
  relay config set|show|clear   Manage ~/.chatrelay/config.json
  relay connect                 Watch status, QR codes and inbound messages
  relay send <to> [message]     One-shot text or media send
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
    raise SystemExit("CLI requires extras: pip install chatrelay[cli]")

from chatrelay.client import AsyncRelayClient
from chatrelay.transport.channel import DEFAULT_WS_URL
from chatrelay.transport.http import DEFAULT_BASE_URL

console = Console()
CONFIG_FILE = Path.home() / ".chatrelay" / "config.json"


def _load_config() -> dict:
    try:
        return json.loads(CONFIG_FILE.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _save_config(cfg: dict) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


def _get_client() -> AsyncRelayClient:
    cfg = _load_config()
    if not cfg.get("user_id") or not cfg.get("agent_id"):
        console.print("[red]No identity configured. Run `relay config set --user-id ... --agent-id ...` first.[/red]")
        raise SystemExit(1)
    return AsyncRelayClient(
        user_id=cfg["user_id"],
        agent_id=cfg["agent_id"],
        base_url=cfg.get("base_url", DEFAULT_BASE_URL),
        ws_url=cfg.get("ws_url", DEFAULT_WS_URL),
    )


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Log connection activity")
def main(verbose: bool):
    """chatrelay CLI - pair and chat through a relay gateway."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


# Register subcommands from separate modules
from chatrelay.cli.config import config
from chatrelay.cli.session import connect_cmd, send_cmd

main.add_command(config)
main.add_command(connect_cmd)
main.add_command(send_cmd)


if __name__ == "__main__":
    main()
