"""CLI: relay config set|show|clear"""

from typing import Optional

import click
from rich.console import Console
from rich.table import Table

console = Console()


def _load_config() -> dict:
    from chatrelay.cli.main import _load_config
    return _load_config()


def _save_config(cfg: dict) -> None:
    from chatrelay.cli.main import _save_config
    _save_config(cfg)


@click.group()
def config():
    """Identity and endpoint configuration."""


@config.command("set")
@click.option("--user-id", default=None)
@click.option("--agent-id", default=None)
@click.option("--base-url", default=None, help="Gateway REST base URL")
@click.option("--ws-url", default=None, help="Gateway WebSocket URL")
def config_set(user_id: Optional[str], agent_id: Optional[str], base_url: Optional[str], ws_url: Optional[str]):
    """Update saved settings. Unspecified options keep their value."""
    cfg = _load_config()
    updates = {"user_id": user_id, "agent_id": agent_id, "base_url": base_url, "ws_url": ws_url}
    cfg.update({k: v for k, v in updates.items() if v is not None})
    _save_config(cfg)
    console.print("[green]Configuration saved.[/green]")


@config.command("show")
def config_show():
    """Show saved settings."""
    cfg = _load_config()
    if not cfg:
        console.print("[yellow]Nothing configured. Run `relay config set`.[/yellow]")
        return
    table = Table(show_header=False)
    for key in ("user_id", "agent_id", "base_url", "ws_url"):
        table.add_row(key, str(cfg.get(key, "")))
    console.print(table)


@config.command("clear")
def config_clear():
    """Forget saved settings."""
    _save_config({})
    console.print("[green]Configuration cleared.[/green]")
