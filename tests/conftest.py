from __future__ import annotations

import os
import re
import uuid
from collections.abc import Callable, Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from tablecrud.db.models import TableTarget


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """
    Database URL for DB tests.

    Set TABLECRUD_TEST_DB_URL to run against PostgreSQL. If not set, we fall
    back to a throwaway SQLite file, which supports double-quoted identifiers,
    schema-qualified names ("main") and RETURNING.
    """
    default = f"sqlite:///{tmp_path_factory.mktemp('db') / 'tablecrud.db'}"
    return os.environ.get("TABLECRUD_TEST_DB_URL", default)


@pytest.fixture(scope="session")
def engine(db_url: str) -> Iterator[Engine]:
    """
    Session-scoped SQLAlchemy engine for tests.

    We fail fast if the database is unreachable, so failures are actionable.
    """
    eng = create_engine(db_url, pool_pre_ping=True)
    try:
        with eng.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
    except Exception as exc:  # pragma: no cover
        pytest.fail(
            "Test database is not reachable.\n"
            f"- TABLECRUD_TEST_DB_URL={db_url!r}\n"
            f"- Underlying error: {exc}",
            pytrace=False,
        )

    yield eng
    eng.dispose()


@pytest.fixture(scope="session")
def schema(engine: Engine) -> str:
    return "main" if engine.dialect.name == "sqlite" else "public"


def _sanitize_table_name(name: str) -> str:
    name = re.sub(r"[^a-zA-Z0-9_]+", "_", name).strip("_").lower()
    if not name:
        name = "t"
    return name[:40]


@pytest.fixture
def table_factory(
    engine: Engine, schema: str, request: pytest.FixtureRequest
) -> Iterator[Callable[[str], TableTarget]]:
    """
    Factory fixture creating per-test tables.

    Usage:
        target = table_factory('id INTEGER PRIMARY KEY, "name" VARCHAR(255)')
    """
    created: list[TableTarget] = []

    def _create(schema_sql: str) -> TableTarget:
        base = _sanitize_table_name(f"t_{request.node.name}")
        target = TableTarget(schema, f"{base}_{uuid.uuid4().hex[:10]}")

        with engine.begin() as conn:
            conn.exec_driver_sql(f"DROP TABLE IF EXISTS {target.qualified()}")
            conn.exec_driver_sql(f"CREATE TABLE {target.qualified()} ({schema_sql})")

        created.append(target)
        return target

    yield _create

    with engine.begin() as conn:
        for target in created:
            conn.exec_driver_sql(f"DROP TABLE IF EXISTS {target.qualified()}")


@pytest.fixture
def orders(engine: Engine, table_factory: Callable[[str], TableTarget]) -> TableTarget:
    """
    A default table used across DB tests.

    Includes:
    - an auto-assigned integer PK `id` (RETURNING round-trips)
    - `status` with a default (database-applied defaults)
    - a column whose name needs quoting
    """
    id_sql = "INTEGER PRIMARY KEY" if engine.dialect.name == "sqlite" else "SERIAL PRIMARY KEY"
    schema_sql = f"""
        "id" {id_sql},
        "name" VARCHAR(255) NULL,
        "age" INTEGER NULL,
        "status" VARCHAR(32) NOT NULL DEFAULT 'active',
        "Order Note" VARCHAR(255) NULL
    """
    return table_factory(schema_sql)
