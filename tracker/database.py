from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from tracker.config import settings
import logging

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url
IS_SQLITE = DATABASE_URL.startswith("sqlite")


def build_engine(url: str, **kwargs):
    """Create the async engine with pool settings suited to the backend."""
    if url.startswith("sqlite"):
        # SQLite serializes writers itself; wait for the write lock instead of failing fast
        return create_async_engine(url, connect_args={"timeout": 30}, **kwargs)
    if settings.environment == "production":
        return create_async_engine(
            url,
            pool_size=20,
            max_overflow=50,
            pool_timeout=60,
            pool_recycle=1800,
            pool_pre_ping=True,
            **kwargs,
        )
    return create_async_engine(
        url,
        echo=settings.debug,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        **kwargs,
    )


engine = build_engine(DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db():
    async with AsyncSessionLocal() as db:
        try:
            yield db
        except Exception as e:
            logger.error(f"Database session error: {e}")
            await db.rollback()
            raise
