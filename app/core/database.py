"""Database connection and session management."""

from collections.abc import Generator
from typing import Annotated, Any

from fastapi import Depends
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.core.config import settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class."""

    pass


def configure_sqlite(target: Engine) -> None:
    """Make pysqlite honour foreign keys and SAVEPOINTs.

    pysqlite defers BEGIN on its own, which breaks nested transactions, so
    the driver's transaction handling is switched off and BEGIN is emitted
    explicitly.
    """

    @event.listens_for(target, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(target, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")


def _engine_options() -> dict[str, Any]:
    if settings.is_sqlite:
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


# Note: echo=False to disable SQL logging; use the service loggers for debug output
engine = create_engine(settings.DATABASE_URL, echo=False, **_engine_options())
if settings.is_sqlite:
    configure_sqlite(engine)

SessionLocal = sessionmaker(
    bind=engine,
    class_=Session,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


def get_db() -> Generator[Session, None, None]:
    """Get database session dependency."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# Type alias for dependency injection
DbSession = Annotated[Session, Depends(get_db)]
