# pharmapos/database.py

import logging
import uuid

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from pharmapos.core.config import settings

logger = logging.getLogger("pharmapos")

Base = declarative_base()


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def _is_memory_url(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in database_url


def _configure_sqlite(engine: Engine) -> None:
    # pysqlite issues its own BEGIN lazily; take that over so a transaction
    # can ask for the write lock up front with sqlite_begin="IMMEDIATE".
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.execute("PRAGMA journal_mode = WAL")
        cursor.execute("PRAGMA synchronous = NORMAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(connection):
        mode = connection.get_execution_options().get("sqlite_begin", "DEFERRED")
        connection.exec_driver_sql(f"BEGIN {mode}")


def begin_write(session: Session) -> None:
    """Open the session's transaction holding the database write lock.

    Only effective when the session has no transaction yet. Backends other
    than SQLite ignore the option and rely on row locks instead.
    """
    if not session.in_transaction():
        session.connection(execution_options={"sqlite_begin": "IMMEDIATE"})


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    kwargs = {"echo": echo}

    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.SQLITE_BUSY_TIMEOUT,
        }
        if _is_memory_url(database_url):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    engine = create_engine(database_url, **kwargs)

    if engine.dialect.name == "sqlite":
        _configure_sqlite(engine)

    return engine


engine = create_db_engine(settings.DATABASE_URL, echo=settings.DEBUG)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine | None = None) -> None:
    """Create any missing tables. Alembic owns schema changes after that."""
    # Register every model on Base.metadata
    from pharmapos.models import customers, products, sale_items, sales  # noqa: F401

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    logger.info(f"Database ready at {bind.url.render_as_string(hide_password=True)}")


def close_db(bind: Engine | None = None) -> None:
    (bind or engine).dispose()
    logger.info("Database connection closed")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
