"""LedgerStore: the single transactional handle shared by every service.

Constructed once by the composition root (src/wiring.py) and injected into
services. Repositories never open sessions themselves; they execute SQL on
the session handed to them by `run_serializable` or `session`.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.pw_common.errors import InternalError, TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected
_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


def is_serialization_failure(exc: DBAPIError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code in _RETRYABLE_SQLSTATES


class LedgerStore:
    def __init__(self, engine: AsyncEngine, max_retries: int = 3) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self._engine = engine
        self._max_retries = max_retries
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_url(cls, url: str, echo: bool = False, max_retries: int = 3) -> "LedgerStore":
        engine = create_async_engine(url, echo=echo, pool_size=20, max_overflow=10)
        return cls(engine, max_retries=max_retries)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Read-only session at the engine's default isolation level."""
        try:
            async with self._session_factory() as db:
                yield db
        except SQLAlchemyError as exc:
            logger.exception("store read failed")
            raise InternalError("Store read failed") from exc

    async def run_serializable(self, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run `work` in one SERIALIZABLE transaction, retrying on serialization failure.

        Business errors (AppError) raised by `work` roll back and propagate
        unchanged; they are never retried.
        """
        for attempt in range(1, self._max_retries + 1):
            try:
                async with self._session_factory() as db:
                    await db.connection(
                        execution_options={"isolation_level": "SERIALIZABLE"}
                    )
                    try:
                        result = await work(db)
                        await db.commit()
                    except Exception:
                        await db.rollback()
                        raise
                    return result
            except DBAPIError as exc:
                if not is_serialization_failure(exc):
                    logger.exception("store write failed")
                    raise InternalError("Store write failed") from exc
                if attempt == self._max_retries:
                    logger.warning("serialization retries exhausted attempts=%d", attempt)
                    raise TransientStoreError() from exc
                logger.info("serialization conflict, retrying attempt=%d", attempt)
            except SQLAlchemyError as exc:
                logger.exception("store write failed")
                raise InternalError("Store write failed") from exc
        raise InternalError("unreachable: retry loop exited")

    async def ping(self) -> None:
        async with self._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self._engine.dispose()
