# database/database.py
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from config import DB_PATH, DB_ECHO

# 1. Base first, models import it
Base = declarative_base()

# 2. Engine + session factory
engine = create_async_engine(DB_PATH, echo=DB_ECHO)
async_session = async_sessionmaker(engine, expire_on_commit=False)

# 3. Models AFTER Base exists so create_all sees them
from database import post   # noqa: E402,F401


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
