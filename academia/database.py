"""
academia/database.py
Database engine and session management

The engine is owned by a Database instance created by the application
factory and stored on app.state. Request handlers get sessions through the
get_db dependency; nothing in the package holds a module-level engine.
"""
import logging
from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from academia.orm import Base

logger = logging.getLogger(__name__)


def _engine_kwargs(url: str, echo: bool, pool_timeout: float) -> dict:
    if "sqlite" in url.lower():
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            # Every connection to an in-memory database is a fresh database,
            # so share a single connection.
            return {
                "echo": echo,
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        return {
            "echo": echo,
            "pool_pre_ping": True,
            "connect_args": {"timeout": pool_timeout},  # SQLite busy timeout
        }
    kwargs = {
        "echo": echo,
        "pool_pre_ping": True,
        "pool_size": 20,
        "max_overflow": 30,
        "pool_timeout": pool_timeout,
        "pool_recycle": 3600,
    }
    if "asyncpg" in url.lower():
        # asyncpg per-statement timeout
        kwargs["connect_args"] = {"command_timeout": pool_timeout}
    return kwargs


class Database:
    """Owns the async engine and session factory for one application."""

    def __init__(self, url: str, echo: bool = False, pool_timeout: float = 30.0, engine: Optional[AsyncEngine] = None):
        self.url = url
        self.engine = engine or create_async_engine(url, future=True, **_engine_kwargs(url, echo, pool_timeout))
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_all(self) -> None:
        logger.info(f"Database dialect: {self.engine.url.get_backend_name()}")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✓ Database schema ready")

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            finally:
                await session.close()

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connection closed")


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency for getting an async database session"""
    database: Database = request.app.state.database
    async for session in database.session():
        yield session


async def seed_admin(database: Database, email: Optional[str], password: Optional[str], name: str) -> None:
    """
    Create the bootstrap ADMIN account if configured and absent.
    Called during startup after schema creation.
    """
    from academia.orm.user import User, UserRole
    from academia.rbac import hash_password

    if not email or not password:
        logger.info("No bootstrap admin configured - skipping seed")
        return

    async with database.session_factory() as db:
        try:
            result = await db.execute(select(User).where(User.email == email.lower()))
            if result.scalar_one_or_none() is not None:
                logger.info("✓ Bootstrap admin already exists - skipping seed")
                return

            db.add(User(
                email=email.lower(),
                name=name,
                password_hash=hash_password(password),
                role=UserRole.ADMIN,
            ))
            await db.commit()
            logger.info(f"✓ Seeded bootstrap admin {email}")
        except Exception as e:
            logger.error(f"Failed to seed bootstrap admin: {str(e)}")
            await db.rollback()
            raise
