# image_server/db/session.py
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from image_server.core.config import settings
from image_server.db.base import Base

# async engine (asyncpg in production, aiosqlite for local runs)
engine = create_async_engine(settings.DATABASE_URL, future=True, echo=False)

# async session maker
AsyncSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


# Dependency for FastAPI: use get_async_session in endpoints with Depends(...)
async def get_async_session():
    async with AsyncSessionLocal() as session:
        yield session


async def init_models(bind=None):
    """Create missing tables. Alembic owns the schema in production."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
