"""SQLAlchemy adapter – SqlAlchemySessionFactory."""
from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


class SqlAlchemySessionFactory:
    """Creates async SQLAlchemy sessions from an engine URL.

    Calling the factory returns a new :class:`AsyncSession`; use it as an
    async context manager and open transactions with ``session.begin()``.
    """

    def __init__(self, database_url: str, **engine_kwargs: Any) -> None:
        self._engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> "SqlAlchemySessionFactory":
        factory = cls.__new__(cls)
        factory._engine = engine
        factory._session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )
        return factory

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def __call__(self) -> AsyncSession:
        return self._session_factory()

    async def dispose(self) -> None:
        await self._engine.dispose()


__all__ = ["SqlAlchemySessionFactory"]
