"""
Database connection and initialization
"""
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from . import config
from .tables import Base

engine: AsyncEngine | None = None
SessionLocal: sessionmaker | None = None


def configure(url: str | None = None) -> None:
    """Create the async engine and session factory for *url*."""
    global engine, SessionLocal
    engine = create_async_engine(url or config.DATABASE_URL, echo=False, future=True)
    SessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db() -> None:
    """Initialize database tables"""
    if engine is None:
        configure()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose() -> None:
    if engine is not None:
        await engine.dispose()


async def get_db():
    """Get database session (dependency injection for FastAPI)"""
    async with SessionLocal() as session:
        yield session
