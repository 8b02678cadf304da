"""Storage handle: engines, session factories and schema initialization.

A `Database` is opened once at process start (FastAPI lifespan or the batch
CLI), hands out one session per unit of work, and is disposed at shutdown.
Read and write engines are kept separate so reads can be routed to a replica.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from core.config import Settings
from core.logger import get_logger
from .models import Base

logger = get_logger("database")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _make_engine(url: str, timeout: float, echo: bool) -> Engine:
    """Create an engine whose lock waits are bounded by `timeout` seconds."""
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": timeout},
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    if url.startswith("postgresql"):
        return create_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            connect_args={"options": f"-c statement_timeout={int(timeout * 1000)}"},
        )
    return create_engine(url, echo=echo, pool_pre_ping=True)


class Database:
    """Injected storage handle owning the engines and session factories."""

    def __init__(
        self,
        write_url: str,
        read_url: Optional[str] = None,
        timeout: float = 30.0,
        echo: bool = False,
    ):
        self.write_url = write_url
        self.read_url = read_url or write_url
        self.write_engine = _make_engine(self.write_url, timeout, echo)
        if self.read_url == self.write_url:
            self.read_engine = self.write_engine
        else:
            self.read_engine = _make_engine(self.read_url, timeout, echo)
        # expire_on_commit=False keeps returned rows readable after commit
        self.WriteSessionLocal = sessionmaker(bind=self.write_engine, expire_on_commit=False)
        self.ReadSessionLocal = sessionmaker(bind=self.read_engine, expire_on_commit=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Open a storage handle configured from `Settings`."""
        settings.validate()
        return cls(
            settings.DATABASE_URL,
            settings.READ_DATABASE_URL,
            timeout=settings.DB_TIMEOUT,
            echo=settings.DB_ECHO,
        )

    def init_db(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(bind=self.write_engine)
        logger.info("Schema ready on %s", self.write_engine.url.render_as_string(hide_password=True))

    def write_session(self) -> Session:
        return self.WriteSessionLocal()

    def read_session(self) -> Session:
        return self.ReadSessionLocal()

    @contextmanager
    def session_scope(self, read_only: bool = False) -> Iterator[Session]:
        """Yield a session for one unit of work and always close it."""
        db = self.read_session() if read_only else self.write_session()
        try:
            yield db
        finally:
            db.close()

    def close(self) -> None:
        """Dispose of pooled connections."""
        self.write_engine.dispose()
        if self.read_engine is not self.write_engine:
            self.read_engine.dispose()
        logger.info("Storage handle closed")
