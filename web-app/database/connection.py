from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

# Registers the tables on SQLModel.metadata
import database.models  # noqa: F401
from config.settings import DATABASE_URL


# ---------------------------------------------------------------------
# Database Handle
# ---------------------------------------------------------------------
class Database:
    """Owns the SQLAlchemy engine for one application instance.

    Built explicitly (in the app lifespan, a script, or a test) and handed
    to whoever needs a session. Call dispose() on shutdown.
    """

    def __init__(self, url: str = DATABASE_URL, engine: Optional[Engine] = None, echo: bool = False):
        self.url = url
        self.engine = engine or self._create_engine(url, echo)
        if self.engine.dialect.name == "sqlite":
            # Cascading deletes on user_roles / role_permissions need this
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

    @staticmethod
    def _create_engine(url: str, echo: bool) -> Engine:
        if url.startswith("sqlite"):
            return create_engine(url, echo=echo, connect_args={"check_same_thread": False})
        return create_engine(
            url,
            echo=echo,            # Set to True for SQL query debugging
            pool_size=10,         # Max number of DB connections in pool
            max_overflow=5,       # Allow 5 extra connections during peak load
            pool_recycle=300,     # Recycle connections every 5 min
            pool_pre_ping=True,   # Verify connection health before use
            pool_timeout=60,      # Wait up to 60 seconds for a connection
        )

    def create_db_and_tables(self) -> None:
        """Create all tables defined in SQLModel models. Safe to call repeatedly."""
        SQLModel.metadata.create_all(self.engine)

    def session(self) -> Session:
        """Raw Session for scripts and tests; the caller closes it."""
        return Session(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ---------------------------------------------------------------------
# Dependency for FastAPI Routes (context-managed)
# ---------------------------------------------------------------------
def get_database(request: Request) -> Database:
    return request.app.state.database


def get_session(request: Request) -> Iterator[Session]:
    """
    Dependency for FastAPI endpoints: a Session bound to the app's Database.
    Example:
        @router.get("/users")
        def get_users(session: Session = Depends(get_session)):
            ...
    """
    with get_database(request).session() as session:
        yield session
