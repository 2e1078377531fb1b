# app/infra/database.py

import logging

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.models.base import Base
import app.models.exchange  # noqa: F401  registers tables on Base

logger = logging.getLogger(__name__)

# =========================
# ENGINE CONFIGURATION
# =========================


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Build the engine behind the exchange store.
    PostgreSQL gets a pooled engine; SQLite (local runs, tests) gets
    cross-thread connections and enforced foreign keys.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 30},
            echo=echo,
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        database_url,
        pool_pre_ping=True,  # Check connections before using them
        pool_size=5,         # Maintain 5 connections in the pool
        max_overflow=10,     # Allow 10 extra connections if needed
        pool_recycle=3600,   # Recycle connections every hour
        echo=echo,
    )


# =========================
# SESSION CONFIGURATION
# =========================


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


# =========================
# DATABASE FUNCTIONS
# =========================


def init_db(engine: Engine) -> None:
    """Create any missing exchange tables."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready: %s", sorted(Base.metadata.tables))


def reset_db(engine: Engine) -> list:
    """Drop and recreate all tables. Returns the table names afterwards."""
    logger.warning("Dropping all tables")
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    return inspect(engine).get_table_names()


def check_connection(engine: Engine) -> bool:
    """Probe the database with SELECT 1."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error("Database connection failed: %s", e)
        return False
