"""
Database Connection and Session Management.

This module sets up the asynchronous SQLAlchemy engine and session factory
used by the API layer.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from automation_engine.repos.models import Base
from automation_engine.repos.sql import create_engine, create_sessionmaker
from automation_engine.server.core.config import settings

"""
engine:
    The global SQLAlchemy AsyncEngine instance, configured from ``DATABASE_URL``.
"""
engine = create_engine(settings.database_url)

"""
async_session_maker:
    A global factory for creating new AsyncSession instances.
    Bound to the `engine` and configured to NOT expire on commit (typical for async).
"""
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: An asynchronous SQLAlchemy session.
    """
    async with async_session_maker() as session:
        yield session


async def init_db():
    """
    Initialize the database.

    Creates all tables defined in the ORM metadata.
    NOTE: In production, Alembic migrations should be used instead of this function.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
