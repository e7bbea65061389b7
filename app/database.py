from datetime import datetime, timezone
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings

Base = declarative_base()

engine = None
AsyncSessionLocal = None


def init_engine(database_url: str | None = None, *, echo: bool | None = None):
    """(Re)bind the module level engine and session factory."""
    global engine, AsyncSessionLocal
    url = database_url or settings.DATABASE_URL
    engine = create_async_engine(url, echo=settings.DB_ECHO if echo is None else echo)
    if url.startswith("sqlite"):
        # sqlite 需要逐连接开启外键，否则 ON DELETE CASCADE 不生效
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    AsyncSessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return engine


init_engine()


async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def _import_models():
    import models.company  # noqa: F401
    import models.user  # noqa: F401
    import models.workspace  # noqa: F401
    import models.tags  # noqa: F401
    import models.notes  # noqa: F401
    import models.votes  # noqa: F401


async def create_tables():
    _import_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables():
    _import_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def ping_database() -> bool:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return True


async def dispose_engine():
    if engine is not None:
        await engine.dispose()


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
