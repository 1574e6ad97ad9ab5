"""
Command-line interface for easytrade.
"""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any

import click

from easytrade.client.infrastructure.secret_store import SecretStore
from easytrade.client.infrastructure.time_sync import TimeSync
from easytrade.common.config import Config
from easytrade.common.logging_config import setup_logging
from easytrade.common.models import ClientConfig


def _secret_store(mafiles_dir: str | None) -> SecretStore:
    config = Config()
    store = SecretStore(
        Path(mafiles_dir) if mafiles_dir else config.MAFILES_DIR, config.CODE_PERIOD
    )
    store.scan()
    return store


def load_factory(reference: str) -> Any:
    """Resolve a ``module:attribute`` reference."""
    module_name, _, attr = reference.partition(":")
    if not module_name or not attr:
        msg = f"Expected 'module:attribute', got {reference!r}"
        raise click.BadParameter(msg, param_hint="--client")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as e:
        msg = f"Cannot load {reference!r}: {e}"
        raise click.BadParameter(msg, param_hint="--client") from e


@click.group()
def cli() -> None:
    """easytrade - Steam trade offer automation"""


@cli.command()
@click.option(
    "--mafiles-dir",
    default=None,
    help="Directory with .maFile records (default: EASYTRADE_MAFILES_DIR or ./mafiles)",
)
def scan(mafiles_dir: str | None) -> None:
    """List the Steam Guard accounts found in maFiles"""
    store = _secret_store(mafiles_dir)
    if not store.records:
        click.echo(f"No maFiles found in {store.mafiles_dir}")
        return
    for record in store.records:
        click.echo(f"{record.account_name}\t{record.steam_id or '-'}\t{record.filename}")


@cli.command()
@click.argument("account")
@click.option("--mafiles-dir", default=None, help="Directory with .maFile records")
@click.option(
    "--sync-time",
    is_flag=True,
    help="Align with the Steam server clock before generating",
)
def code(account: str, mafiles_dir: str | None, sync_time: bool) -> None:  # noqa: FBT001
    """Print the current Steam Guard code for ACCOUNT"""
    store = _secret_store(mafiles_dir)
    if sync_time:
        store.align_time(TimeSync())
    auth_code = store.generate_code(account)
    if auth_code is None:
        msg = f"No usable maFile for account {account!r}"
        raise click.ClickException(msg)
    click.echo(auth_code)


@cli.command()
@click.option(
    "--client",
    "client_factory",
    required=True,
    help="Factory returning the remote Steam client, as 'module:callable'",
)
@click.option("--mafiles-dir", default=None, help="Directory with .maFile records")
@click.option(
    "--host",
    default=None,
    help="Host to bind to (default: from EASYTRADE_SERVER_HOST env or 127.0.0.1)",
)
@click.option(
    "--port",
    default=None,
    type=int,
    help="Port to bind to (default: from EASYTRADE_SERVER_PORT env or 8765)",
)
@click.option("--log-file", default=None, help="Write a rotating log to this file")
@click.option(
    "--no-auto-accept",
    is_flag=True,
    help="Start with gift auto-accept disabled",
)
def serve(  # noqa: PLR0913
    client_factory: str,
    mafiles_dir: str | None,
    host: str | None,
    port: int | None,
    log_file: str | None,
    no_auto_accept: bool,  # noqa: FBT001
) -> None:
    """Start the local bridge server"""
    # Imported here so the secret commands work without the server stack
    from easytrade.client.client import TradeClient  # noqa: PLC0415
    from easytrade.server import start_server  # noqa: PLC0415

    factory = load_factory(client_factory)
    client_config = ClientConfig(
        mafiles_dir=Path(mafiles_dir) if mafiles_dir else None,
        log_file=Path(log_file) if log_file else None,
        auto_accept_gifts=False if no_auto_accept else None,
    )
    setup_logging(client_config.log_level, client_config.log_file)

    client = TradeClient(factory(), client_config=client_config)
    start_server(client, host=host, port=port)


if __name__ == "__main__":
    cli()
