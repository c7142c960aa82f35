import os
import tempfile

# must happen before config.py is imported anywhere
_tmp = tempfile.mkdtemp(prefix="forums-test-")
os.environ["DB_PATH"] = "sqlite+aiosqlite:///" + os.path.join(_tmp, "test.sqlite3")

import pytest  # noqa: E402

from database.database import engine, init_db, drop_db  # noqa: E402
from database.cache import post_cache  # noqa: E402
from handlers import create_app  # noqa: E402
from snowflake import Snowflake  # noqa: E402


@pytest.fixture
async def db():
    await init_db()
    post_cache.clear()
    yield
    await drop_db()
    await engine.dispose()
    post_cache.clear()


@pytest.fixture
async def client(aiohttp_client, db):
    return await aiohttp_client(create_app())


@pytest.fixture
def frozen_clock(monkeypatch):
    """Pin the snowflake clock to one millisecond and reset the increment."""
    import snowflake

    now = [snowflake.EPOCH + 1_000]
    monkeypatch.setattr(snowflake, "_now_ms", lambda: now[0])
    Snowflake.reset()
    yield now
    Snowflake.reset()
