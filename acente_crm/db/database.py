"""Database engine and session factories.

Request handlers and CLI commands use ``SessionLocal``. Import batches open
a short-lived session of their own per batch (see ``session_factory_for``),
so a batch left running after a timeout never shares the caller's session.
"""

from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Session, sessionmaker

from acente_crm.config import Settings, get_settings

# Each in-flight import batch holds one pooled connection next to the
# request session
POOL_SIZE = 5
MAX_OVERFLOW = 10


def engine_options(database_url: str, echo: bool = False) -> dict[str, Any]:
    """Keyword arguments for ``create_engine``.

    SQLite connections are used from worker threads, so the same-thread
    check is disabled; SQLite has no pool sizing. Other databases get a
    pre-pinged pool.

    Args:
        database_url: SQLAlchemy database URL.
        echo: Log emitted SQL.

    Returns:
        dict[str, Any]: Engine options.
    """
    options: dict[str, Any] = {"echo": echo}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(pool_pre_ping=True, pool_size=POOL_SIZE, max_overflow=MAX_OVERFLOW)
    return options


def create_db_engine(settings: Settings) -> Engine:
    """Build the engine for the configured database."""
    return create_engine(
        settings.database_url, **engine_options(settings.database_url, settings.debug)
    )


def session_factory_for(bind: Engine | Connection) -> sessionmaker[Session]:
    """Session factory bound to an engine or connection.

    Args:
        bind: Engine (or connection) the sessions should use, typically
            ``session.get_bind()`` of an existing session.

    Returns:
        sessionmaker[Session]: Factory producing non-autoflushing sessions.
    """
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = create_db_engine(get_settings())
SessionLocal = session_factory_for(engine)


def init_db(bind: Engine | None = None) -> None:
    """Create missing tables.

    Only done for SQLite or in debug mode; other databases are migrated
    with Alembic.

    Args:
        bind: Engine to create tables on (defaults to the module engine).
    """
    from acente_crm.db.models import Base

    settings = get_settings()
    if settings.debug or settings.database_url.startswith("sqlite"):
        Base.metadata.create_all(bind=bind or engine)
