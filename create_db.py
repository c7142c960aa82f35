# create_db.py
import asyncio

from database.database import engine, init_db


async def create() -> None:
    """Create every table (SQLite or Postgres, per DB_PATH)."""
    await init_db()
    await engine.dispose()
    print("✅ Database initialised.")

if __name__ == "__main__":
    asyncio.run(create())
