from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from learnpath.core.settings import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # Roadmap/profile deletes rely on ON DELETE CASCADE, which SQLite ignores by default.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = create_async_engine(settings.database_url, pool_pre_ping=True)
if engine.dialect.name == "sqlite":
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
SessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncSession:
    async with SessionLocal() as session:
        yield session
