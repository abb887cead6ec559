from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta, timezone
from uuid import uuid4

from sqlalchemy import inspect, select
from sqlalchemy.dialects import sqlite

from casesync.adapters.sqlalchemy import build_engine, create_all_tables, start_mappers
from casesync.adapters.sqlalchemy.mappings import (
    SourcePayloadType,
    UTCDateTime,
    UUIDListType,
    case_table,
    mapper_registry,
)
from tests.helpers.cases import make_matter
from tests.support.database import started_store

DIALECT = sqlite.dialect()
EXPECTED_TABLES = {"cases", "users", "contacts", "case_participants", "sync_logs"}


def _table_names(engine_uri: str, *, migrate: bool) -> set[str]:
    async def scenario() -> set[str]:
        if migrate:
            async with started_store(engine_uri) as engine, engine.connect() as connection:
                return set(await connection.run_sync(lambda conn: inspect(conn).get_table_names()))
        engine = build_engine(engine_uri)
        try:
            async with engine.begin() as connection:
                await create_all_tables(connection)
                return set(await connection.run_sync(lambda conn: inspect(conn).get_table_names()))
        finally:
            await engine.dispose()

    return asyncio.run(scenario())


def test_start_mappers_is_idempotent() -> None:
    assert start_mappers() is start_mappers()


def test_create_all_tables_registers_core_tables() -> None:
    start_mappers()

    assert _table_names("sqlite+aiosqlite:///:memory:", migrate=False) == EXPECTED_TABLES


def test_migrations_build_the_mapped_schema(database_uri: str) -> None:
    names = _table_names(database_uri, migrate=True)

    assert set(mapper_registry.metadata.tables) == EXPECTED_TABLES
    assert EXPECTED_TABLES <= names
    assert "alembic_version" in names


def test_utc_datetime_normalises_offsets_and_naive_values() -> None:
    column_type = UTCDateTime()
    pacific = timezone(timedelta(hours=-8))
    bound = column_type.process_bind_param(datetime(2025, 3, 4, 4, 0, tzinfo=pacific), DIALECT)
    naive = column_type.process_result_value(datetime(2025, 3, 4, 12, 0), DIALECT)

    assert bound == datetime(2025, 3, 4, 12, 0, tzinfo=UTC)
    assert naive is not None
    assert naive.tzinfo is UTC


def test_uuid_list_ignores_malformed_documents() -> None:
    column_type = UUIDListType()
    first, second = uuid4(), uuid4()
    stored = column_type.process_bind_param([first, second], DIALECT)

    assert column_type.process_result_value(stored, DIALECT) == [first, second]
    assert column_type.process_result_value('{"not": "a list"}', DIALECT) == []
    assert column_type.process_result_value(None, DIALECT) == []


def test_source_payload_column_stores_the_raw_matter(database_uri: str) -> None:
    matter = make_matter("m-7")
    column_type = SourcePayloadType()
    payload = column_type.process_result_value(matter, DIALECT)

    assert payload is not None
    assert column_type.process_bind_param(payload, DIALECT) == matter
    assert column_type.process_result_value(None, DIALECT) is None

    async def scenario() -> object:
        async with started_store(database_uri) as engine, engine.begin() as connection:
            await connection.execute(
                case_table.insert().values(id=uuid4(), name="Raw", source=payload)
            )
            return (await connection.execute(select(case_table.c.source))).scalar_one()

    loaded = asyncio.run(scenario())

    assert getattr(loaded, "raw", None) == matter
