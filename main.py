"""Picklist CLI entry point."""

from __future__ import annotations

import asyncio
import configparser
import logging
from pathlib import Path
from typing import Optional

import typer
from sqlmodel import Session

from server.config import DEFAULT_CONFIG_PATH, FailurePolicy, PicklistConfig, load_config, parse_policy
from server.database import get_engine, init_db, reset_database
from server.importer import import_titles
from server.migrations import get_status, run_migrations, stamp_if_needed
from server.repository import Repository
from server.logging_config import setup_logging


__version__ = "0.1.0"

app = typer.Typer(add_completion=False, help="Picklist warehouse picking CLI")
logger = logging.getLogger("picklist")


def _ensure_config() -> PicklistConfig:
    try:
        return load_config()
    except FileNotFoundError:
        typer.echo("[ERROR] config.ini not found. Run: picklist init")
        raise typer.Exit(code=1)


def _write_config(config_path: Path, api_url: str, policy: FailurePolicy) -> None:
    parser = configparser.ConfigParser()

    parser["server"] = {
        "host": "0.0.0.0",
        "port": "8080",
    }
    parser["client"] = {
        "api_url": api_url,
        "timeout_seconds": "10",
    }
    parser["picking"] = {
        "failure_policy": policy.value,
    }

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w") as handle:
        parser.write(handle)


def _migrate_to_head() -> None:
    # Databases created by init_db() are stamped first so upgrade does not recreate tables
    stamp_if_needed()
    current, head = get_status()
    if current != head:
        logger.info(f"Migrating database {current} -> {head} ...")
        run_migrations(backup=True)
        logger.info("Migration complete.")
    else:
        logger.info(f"Database at {head} (up to date).")


@app.command()
def init(
    api_url: str = typer.Option("http://localhost:8080", "--api-url", help="Title service URL for pickers"),
    policy: str = typer.Option("log", "--policy", help="On failed save: 'log' or 'rollback'"),
) -> None:
    """Initialize config.ini with default settings."""
    config_path = DEFAULT_CONFIG_PATH
    _write_config(config_path, api_url, parse_policy(policy))
    typer.echo(f"[OK] Config created at {config_path}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Server host"),
    port: Optional[int] = typer.Option(None, "--port", help="Server port"),
) -> None:
    """Start the title service."""
    setup_logging()

    from server.api import run_server

    config = _ensure_config()
    init_db()
    _migrate_to_head()

    try:
        run_server(config, host=host, port=port)
    except KeyboardInterrupt:
        pass


@app.command("import")
def import_csv(
    csv_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV picking list"),
    reset_status: bool = typer.Option(False, "--reset-status", help="Mark all titles not picked first"),
) -> None:
    """Import or update titles from a CSV file."""
    setup_logging()

    _ensure_config()
    stats = import_titles(csv_path, reset_status=reset_status)

    message = (
        "✓ Import completed: "
        f"{stats['added']} titles added, "
        f"{stats['updated']} updated, "
        f"{stats['skipped']} skipped."
    )
    if reset_status:
        message += f" {stats['reset']} statuses reset."
    typer.echo(message)


@app.command()
def pick(
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Override the title service URL"),
    policy: Optional[str] = typer.Option(None, "--policy", help="On failed save: 'log' or 'rollback'"),
) -> None:
    """Run the interactive picking client."""
    setup_logging(console=False)

    from picker.client import HttpTitleStore
    from picker.console import PickingConsole
    from picker.store import PickingStore

    config = _ensure_config()
    effective_policy = parse_policy(policy) if policy else config.picking.failure_policy

    async def _run() -> None:
        async with HttpTitleStore(
            api_url or config.client.api_url,
            timeout=config.client.timeout_seconds,
        ) as titles:
            store = PickingStore(titles, policy=effective_policy)
            await PickingConsole(store).run()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        pass


@app.command()
def stats() -> None:
    """Show picking progress."""
    _ensure_config()
    init_db()

    with Session(get_engine()) as session:
        repo = Repository(session)
        total = repo.count_titles()
        picked = repo.count_picked()

    percent = (picked / total * 100) if total else 0

    typer.echo("Picking Statistics:")
    typer.echo(f"  Total titles: {total}")
    typer.echo(f"  Picked: {picked} ({percent:.0f}%)")
    typer.echo(f"  Remaining: {total - picked}")


@app.command()
def migrate(
    check: bool = typer.Option(False, "--check", help="Print status and exit (1 if not at head)"),
) -> None:
    """Run pending database migrations (or check status with --check)."""
    setup_logging()

    _ensure_config()
    init_db()

    current, head = get_status()

    if check:
        if current == head:
            typer.echo(f"[OK] Database at {head} (head).")
            raise typer.Exit(code=0)
        typer.echo(f"[WARN] Database behind — current: {current}, head: {head}")
        raise typer.Exit(code=1)

    _migrate_to_head()


@app.command()
def reset(
    confirm: bool = typer.Option(False, "--confirm", help="Confirm destructive reset"),
) -> None:
    """Delete the title database and recreate it empty."""
    if not confirm:
        typer.echo("[ERROR] This will delete every title and pick status. Use --confirm.")
        raise typer.Exit(code=1)

    _ensure_config()
    reset_database()
    typer.echo("[INFO] Database reset. Import a picking list with: picklist import FILE.csv")


if __name__ == "__main__":
    app()
