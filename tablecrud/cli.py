"""Interactive console for CRUD on the configured table.

    python -m tablecrud --url postgresql://user:pw@host:5432/postgres --table orders
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Callable, Optional, Sequence, TextIO

from .config import (
    DEFAULT_SCHEMA,
    ENV_DB_PASSWORD,
    ENV_DB_URL,
    ENV_DB_USER,
    ENV_SCHEMA,
    ENV_SSL_ROOT_CERT,
    ENV_TABLE,
    DbConfig,
)
from .db.models import ResultRow, Scalar
from .db.provider import make_engine
from .db.table import TableClient
from .errors import ConfigError, TableCrudError

logger = logging.getLogger(__name__)

COLUMN_WIDTH = 20

MENU = """
========================================
     DATABASE MANAGEMENT SYSTEM
========================================
1. View All Records
2. View Records with Filter
3. Insert New Record
4. Update Record
5. Delete Record
0. Exit"""


def format_cell(value: Scalar) -> str:
    text = "NULL" if value is None else str(value)
    return text[: COLUMN_WIDTH - 1].ljust(COLUMN_WIDTH)


def format_rows(rows: Sequence[ResultRow], title: str) -> str:
    """Render rows as a fixed-width text table with a record count."""
    lines = [f"\n=== {title} ==="]
    if not rows:
        lines.append("No records found.")
        return "\n".join(lines) + "\n"

    columns = list(rows[0].keys())
    rule = "-" * (len(columns) * (COLUMN_WIDTH + 1))
    lines.append(" ".join(col[: COLUMN_WIDTH - 1].ljust(COLUMN_WIDTH) for col in columns))
    lines.append(rule)
    for row in rows:
        lines.append(" ".join(format_cell(row.get(col)) for col in columns))
    lines.append(rule)
    lines.append(f"Total records: {len(rows)}")
    return "\n".join(lines) + "\n"


class Console:
    """
    Menu loop over a TableClient.

    Input and output are injectable so the loop can be driven from tests.
    Every action catches TableCrudError, prints it and returns to the menu.
    """

    def __init__(
        self,
        client: TableClient,
        input_fn: Callable[[str], str] = input,
        out: TextIO = sys.stdout,
    ) -> None:
        self.client = client
        self._input = input_fn
        self._out = out

    def _print(self, message: str = "") -> None:
        print(message, file=self._out)

    def ask(self, prompt: str) -> str:
        return self._input(prompt).strip()

    def ask_int(self, prompt: str) -> int:
        answer = self.ask(prompt)
        while True:
            try:
                return int(answer)
            except ValueError:
                answer = self.ask("Invalid input. Please enter a number: ")

    def ask_pairs(self, count_prompt: str, label: str, value_label: str = "Value") -> dict[str, Scalar]:
        """
        Collect column/value pairs. An empty value is stored as NULL.

        Pairs keep the order they were entered in.
        """
        pairs: dict[str, Scalar] = {}
        for i in range(1, self.ask_int(count_prompt) + 1):
            column = self.ask(f"{label} #{i} - Column name: ")
            value = self.ask(f"{label} #{i} - {value_label}: ")
            pairs[column] = value if value else None
        return pairs

    def confirm(self, prompt: str) -> bool:
        return self.ask(prompt).lower() in ("yes", "y")

    def view_all(self) -> None:
        rows = self.client.select_all()
        self._print(format_rows(rows, f"Table: {self.client.target}"))

    def view_filtered(self) -> None:
        filters = self.ask_pairs("How many filters? ", "Filter")
        rows = self.client.select(filters)
        title = f"Table: {self.client.target}" + (" (Filtered)" if filters else "")
        self._print(format_rows(rows, title))

    def insert(self) -> None:
        data = self.ask_pairs("How many columns to insert? ", "Column")
        row = self.client.insert(data)
        self._print("\nSuccessfully inserted record!")
        self._print("Returned data:")
        for column, value in row.items():
            self._print(f"  {column} = {'NULL' if value is None else value}")

    def update(self) -> None:
        self._print("\n--- WHERE clause (which records to update) ---")
        filters = self.ask_pairs("How many filter conditions? ", "Filter")
        self._print("\n--- SET clause (what to update) ---")
        data = self.ask_pairs("How many columns to update? ", "Column", "New Value")

        allow_unfiltered = False
        if not filters and data:
            self._print(f"\nWARNING: no filter given; this updates EVERY row in {self.client.target}.")
            answer = self.ask(f"Type the table name ({self.client.target.table}) to confirm: ")
            if answer != self.client.target.table:
                self._print("Update cancelled")
                return
            allow_unfiltered = True

        count = self.client.update(data, filters, allow_unfiltered=allow_unfiltered)
        self._print(f"\nSuccessfully updated {count} record(s)")

    def delete(self) -> None:
        filters = self.ask_pairs("How many filter conditions? ", "Filter")
        if not self.confirm("\nAre you sure you want to delete these records? (yes/no): "):
            self._print("Delete cancelled")
            return
        count = self.client.delete(filters)
        self._print(f"\nSuccessfully deleted {count} record(s)")

    def run(self) -> None:
        actions = {
            1: self.view_all,
            2: self.view_filtered,
            3: self.insert,
            4: self.update,
            5: self.delete,
        }
        while True:
            self._print(MENU)
            choice = self.ask_int("\nEnter your choice: ")
            if choice == 0:
                self._print("\nGoodbye!")
                return
            action = actions.get(choice)
            if action is None:
                self._print("Invalid choice. Please try again.")
                continue
            try:
                action()
            except TableCrudError as exc:
                logger.debug("%s failed", action.__name__, exc_info=True)
                self._print(f"Error: {exc}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tablecrud",
        description="Interactive CRUD console for a single PostgreSQL table.",
    )
    parser.add_argument("--url", help=f"postgresql:// connection string (env {ENV_DB_URL})")
    parser.add_argument("--table", help=f"target table (env {ENV_TABLE})")
    parser.add_argument("--schema", help=f"target schema (env {ENV_SCHEMA}, default {DEFAULT_SCHEMA})")
    parser.add_argument("--user", help=f"username override (env {ENV_DB_USER})")
    parser.add_argument("--password", help=f"password override (env {ENV_DB_PASSWORD})")
    parser.add_argument("--ssl-root-cert", help=f"CA certificate file (env {ENV_SSL_ROOT_CERT})")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def config_from_args(args: argparse.Namespace) -> DbConfig:
    """Command line values win; anything missing falls back to TABLECRUD_* variables."""
    settings = dict(os.environ)
    overrides = {
        ENV_DB_URL: args.url,
        ENV_TABLE: args.table,
        ENV_SCHEMA: args.schema,
        ENV_DB_USER: args.user,
        ENV_DB_PASSWORD: args.password,
        ENV_SSL_ROOT_CERT: args.ssl_root_cert,
    }
    settings.update({key: value for key, value in overrides.items() if value})
    return DbConfig.from_env(settings)


def connection_banner(config: DbConfig) -> str:
    settings = config.describe()
    banner = (
        f"Connected to {settings['host']}:{settings['port']}/{settings['database']}"
        f" as {settings['username']}, table {settings['table']}"
    )
    if settings["ssl_root_cert"]:
        banner += f" (verified with {settings['ssl_root_cert']})"
    return banner


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = config_from_args(args)
        engine = make_engine(config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    client = TableClient(engine, config.target())
    try:
        client.ping()
        logger.info("Database settings: %s", config.describe())
        print(connection_banner(config))
        Console(client).run()
    except TableCrudError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (KeyboardInterrupt, EOFError):
        print("\nGoodbye!")
    finally:
        engine.dispose()
    return 0
