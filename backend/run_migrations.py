#!/usr/bin/env python3
"""
Apply the auth schema (users, refresh_tokens) to Postgres.

SQL files in migrations/ run in name order, each inside its own transaction
together with a row in schema_migrations recording its SHA-256. A file whose
content changed after it was applied is reported, never re-run.

Usage:
    uv run python run_migrations.py              # Apply pending files
    uv run python run_migrations.py --status     # Applied vs pending
    uv run python run_migrations.py --dry-run    # List pending files only

Configuration:
    SUPABASE_DB_URL: Postgres connection URI (Supabase Dashboard, Database settings)
"""

import argparse
import hashlib
import sys
from pathlib import Path

import psycopg2
from psycopg2 import sql
from rich.console import Console
from rich.table import Table

from shared.config import get_settings

console = Console()

MIGRATIONS_DIR = Path(__file__).parent / "migrations"
MIGRATIONS_TABLE = "schema_migrations"

Pending = tuple[str, Path, str]


def checksum_of(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


def get_db_connection():
    """Connect with SUPABASE_DB_URL or exit with a readable error."""
    db_url = get_settings().supabase_db_url
    if not db_url:
        console.print("[red]Error:[/red] SUPABASE_DB_URL is not set.")
        sys.exit(1)

    try:
        return psycopg2.connect(db_url)
    except psycopg2.Error as e:
        console.print(f"[red]Could not connect to the database:[/red] {e}")
        sys.exit(1)


def ensure_migrations_table(conn) -> None:
    create = sql.SQL(
        "CREATE TABLE IF NOT EXISTS {} ("
        " name TEXT PRIMARY KEY,"
        " checksum CHAR(64) NOT NULL,"
        " applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW())"
    ).format(sql.Identifier(MIGRATIONS_TABLE))
    with conn.cursor() as cur:
        cur.execute(create)
    conn.commit()


def get_applied_migrations(conn) -> dict[str, dict]:
    query = sql.SQL("SELECT name, checksum, applied_at FROM {} ORDER BY name").format(
        sql.Identifier(MIGRATIONS_TABLE)
    )
    with conn.cursor() as cur:
        cur.execute(query)
        rows = cur.fetchall()
    return {name: {"checksum": checksum, "applied_at": applied_at} for name, checksum, applied_at in rows}


def get_pending_migrations(conn) -> list[Pending]:
    """Files not yet recorded in schema_migrations, oldest first."""
    applied = get_applied_migrations(conn)

    pending: list[Pending] = []
    for sql_file in sorted(MIGRATIONS_DIR.glob("*.sql")):
        checksum = checksum_of(sql_file)
        record = applied.get(sql_file.name)
        if record is None:
            pending.append((sql_file.name, sql_file, checksum))
        elif record["checksum"] != checksum:
            console.print(
                f"[yellow]Warning:[/yellow] {sql_file.name} was edited after being applied"
            )
    return pending


def run_migration(conn, name: str, sql_file: Path, checksum: str, dry_run: bool = False) -> None:
    """Execute one file and record it; both commit or neither does."""
    if dry_run:
        console.print(f"[cyan]pending[/cyan] {name}")
        return

    record = sql.SQL("INSERT INTO {} (name, checksum) VALUES (%s, %s)").format(
        sql.Identifier(MIGRATIONS_TABLE)
    )
    try:
        with conn.cursor() as cur:
            cur.execute(sql_file.read_text())
            cur.execute(record, (name, checksum))
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        console.print(f"[red]failed[/red]  {name}: {e}")
        raise

    console.print(f"[green]applied[/green] {name}")


def show_status(conn) -> None:
    applied = get_applied_migrations(conn)
    pending = get_pending_migrations(conn)

    table = Table(title=f"{MIGRATIONS_TABLE} ({MIGRATIONS_DIR.name}/)")
    table.add_column("File", style="cyan")
    table.add_column("State")
    table.add_column("Applied")

    for name, record in applied.items():
        when = record["applied_at"].isoformat(timespec="seconds") if record["applied_at"] else "-"
        table.add_row(name, "[green]applied[/green]", when)
    for name, _, _ in pending:
        table.add_row(name, "[yellow]pending[/yellow]", "-")

    console.print(table)


def main():
    parser = argparse.ArgumentParser(description="Apply the auth schema migrations")
    parser.add_argument("--status", action="store_true", help="Show applied and pending files")
    parser.add_argument("--dry-run", action="store_true", help="List pending files without applying them")
    args = parser.parse_args()

    conn = get_db_connection()
    try:
        ensure_migrations_table(conn)

        if args.status:
            show_status(conn)
            return

        pending = get_pending_migrations(conn)
        if not pending:
            console.print("[green]Schema is up to date.[/green]")
            return

        for name, sql_file, checksum in pending:
            run_migration(conn, name, sql_file, checksum, dry_run=args.dry_run)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
