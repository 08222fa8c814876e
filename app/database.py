import os
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)

Base = declarative_base()

DATABASE_URL = ""
engine = None
_configured_database_url = None


def _get_database_url() -> str:
    return os.getenv("DATABASE_URL", "postgresql://localhost/cleaning_ops")


def _on_sqlite_connect(dbapi_connection, _record) -> None:
    # driver-level autocommit; BEGIN is emitted from the "begin" event
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _on_sqlite_begin(conn) -> None:
    conn.exec_driver_sql("BEGIN")


def configure_database() -> None:
    global DATABASE_URL, engine, _configured_database_url

    database_url = _get_database_url()

    if engine is not None and _configured_database_url == database_url:
        return

    connect_args = {}
    if make_url(database_url).drivername.startswith("sqlite"):
        # TestClient runs handlers on a worker thread
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, connect_args=connect_args)
    if "check_same_thread" in connect_args:
        event.listen(engine, "connect", _on_sqlite_connect)
        event.listen(engine, "begin", _on_sqlite_begin)
    SessionLocal.configure(bind=engine)
    DATABASE_URL = database_url
    _configured_database_url = database_url


configure_database()


def get_db():
    configure_database()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def dialect_name(db: Session) -> str:
    return db.get_bind().dialect.name


def lock_week(db: Session, scope: str, week_key: str) -> None:
    """
    Serialize week-scoped writers (sync vs. generation) for the current transaction.

    Postgres only; the lock is released on commit/rollback.
    """
    if dialect_name(db) != "postgresql":
        return
    db.execute(
        text("select pg_advisory_xact_lock(hashtext(:key))"),
        {"key": f"{scope}:{week_key}"},
    )


@contextmanager
def session_scope(db: Optional[Session] = None) -> Iterator[Session]:
    """
    If db is provided, the caller owns the transaction: nothing is committed or closed here.
    If db is None, a session is opened, committed on success, rolled back on error, and closed.
    """
    owns_db = db is None
    if owns_db:
        configure_database()
        db = SessionLocal()

    try:
        yield db
        if owns_db:
            db.commit()
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()
