"""Database handle and session management.

The handle is process-scoped: build it once at startup (``Database(...)`` or
``open_database(config)``), pass it to every component, and ``close()`` it at
shutdown.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional, Union

from sqlalchemy import create_engine, event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import Config, get_config
from ..errors import ConflictError, DaybankError, InternalError
from .models import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Database connection and session manager."""

    def __init__(self, db_path: Optional[Union[str, Path]] = None, timeout: Optional[float] = None):
        """Initialize database connection.

        Args:
            db_path: SQLite file path, ``:memory:``, or a full SQLAlchemy URL.
                     If None, uses the configured DAYBANK_DB_PATH.
            timeout: Seconds a SQLite writer waits on a locked database.
        """
        config = get_config()
        if db_path is None:
            db_path = config.db_path
        if timeout is None:
            timeout = config.db_timeout

        db_path = str(db_path)
        self._is_memory = db_path == ":memory:"
        self._is_url = "://" in db_path

        if self._is_url:
            self.db_path = None
            self.engine = create_engine(db_path, echo=False)
        elif self._is_memory:
            # All sessions must share the single in-memory connection
            self.db_path = None
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.db_path = Path(db_path)
            self._ensure_directory()
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False, "timeout": timeout},
            )

        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.SessionLocal = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def dialect(self) -> str:
        """Name of the SQL dialect in use (``sqlite``, ``postgresql``...)."""
        return self.engine.dialect.name

    def insert(self, model):
        """Dialect-specific INSERT supporting ``on_conflict_do_update``."""
        if self.dialect == "sqlite":
            return sqlite.insert(model)
        if self.dialect == "postgresql":
            return postgresql.insert(model)
        raise InternalError(f"Upserts are not supported on {self.dialect}")

    def create_tables(self) -> None:
        """Create all database tables."""
        # Import feature models to register them with Base
        from ..challenges.models import Challenge  # noqa: F401
        from ..deposits.models import Deposit  # noqa: F401
        from ..audit.models import AuditLog  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    def close(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager.

        Commits on success and rolls back on any error. Tracker errors pass
        through unchanged; integrity violations become ``ConflictError`` and
        any other storage failure is logged and re-raised as ``InternalError``.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except DaybankError:
            session.rollback()
            raise
        except IntegrityError as e:
            session.rollback()
            logger.info("Integrity violation: %s", e.orig)
            raise ConflictError("Conflicting write, please retry") from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception("Storage failure")
            raise InternalError("Storage failure") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def open_database(config: Optional[Config] = None) -> Database:
    """Build a database handle from configuration and create its tables."""
    config = config or get_config()
    database = Database(config.db_path, timeout=config.db_timeout)
    database.create_tables()
    return database


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Close and forget the global database instance. Used for testing."""
    global _db
    if _db is not None:
        _db.close()
    _db = None
