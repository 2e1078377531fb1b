"""Tests for app/infra/database.py - bootstrap helpers."""

from __future__ import annotations

from sqlalchemy import text

from app.core.exchange import ExchangeRecord, Item, StructuredPayload
from app.infra.database import check_connection, create_db_engine, reset_db


def test_reset_db_recreates_empty_tables(engine, store):
    store.insert(ExchangeRecord(code="123456", items=[Item(StructuredPayload("x"))]))

    tables = reset_db(engine)

    assert {"exchanges", "exchange_items"} <= set(tables)
    with engine.connect() as conn:
        assert conn.execute(text("SELECT COUNT(*) FROM exchanges")).scalar() == 0
        assert conn.execute(text("SELECT COUNT(*) FROM exchange_items")).scalar() == 0


def test_check_connection_ok(engine):
    assert check_connection(engine) is True


def test_check_connection_reports_failure(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'missing-dir' / 'x.db'}")
    try:
        assert check_connection(engine) is False
    finally:
        engine.dispose()


def test_init_db_script_prints_schema(database_url, capsys):
    import init_db

    init_db.init_db(database_url)

    out = capsys.readouterr().out
    assert "Database initialized successfully" in out
    assert "exchange_items:" in out
    assert "  - consumed: BOOLEAN" in out
