"""Database — async engine, per-request sessions, and the readiness probe.

Invariants:
    - A session that sees an exception is rolled back before the error leaves
    - EventDeskError passes through untouched; SQLAlchemy errors leave as
      DatabaseError (503) tagged with the failing operation
    - Sessions never expire attributes on commit (services serialize ORM rows
      after committing, outside any lazy-load context)

Design Decisions:
    - Module-level db_manager assigned by init_db() in the app lifespan; tests
      swap it for one bound to their in-memory engine
    - SQLite URLs get no pool sizing (aiosqlite runs on a static pool)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from eventdesk.core.errors import DatabaseError, EventDeskError

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError subclass DBAPIError
_ERROR_MAP: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "commit", "Integrity constraint violated"),
    (OperationalError, "execute", "Connection or operational error"),
    (DBAPIError, "query", "Database driver error"),
    (SQLAlchemyError, "unknown", "Database operation failed"),
)


def map_db_error(error: SQLAlchemyError) -> DatabaseError:
    for error_type, operation, message in _ERROR_MAP:
        if isinstance(error, error_type):
            return DatabaseError(message, operation)
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:

    def __init__(self, database_url: str, pool_size: int = 20, max_overflow: int = 10):
        options: dict = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            options |= {
                "pool_size": pool_size, "max_overflow": max_overflow, "pool_recycle": 3600,
            }
        self.engine = create_async_engine(database_url, **options)
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except EventDeskError:
            await session.rollback()
            raise
        except SQLAlchemyError as e:
            await session.rollback()
            mapped = map_db_error(e)
            logger.error(f"{mapped.message} ({type(e).__name__}): {e}")
            raise mapped from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """SELECT 1 through a pooled session; False on any failure."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Readiness check failed: {e}")
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> None:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    if db_manager is None:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
