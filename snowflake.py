# snowflake.py
from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone

# Snowflake layout:
#
#   timestamp (ms since epoch)                  increment
#   111111111111111111111111111111111111111111  111111
#   42+                                         6

EPOCH = 1590969600000           # 1 Jun 2020 00:00 UTC, in ms
INCREMENT_BITS = 6
MAX_INCREMENT = (1 << INCREMENT_BITS) - 1   # 0b111111


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class Snowflake:
    """Compact, time-ordered string identifiers.

    The increment is process memory only and wraps to 0 after 63, so more
    than 63 ids in the same millisecond may collide. Calls are serialized by
    the event loop; threads would race the counter.
    """

    epoch = EPOCH
    increment = 0

    @classmethod
    def generate(cls) -> str:
        if cls.increment == MAX_INCREMENT:
            cls.increment = 0

        date = (_now_ms() - cls.epoch) << INCREMENT_BITS
        cls.increment += 1
        return str(date | cls.increment)

    @classmethod
    def timestamp(cls, snowflake: str | int) -> datetime:
        """Creation instant encoded in a snowflake."""
        ms = (int(snowflake) >> INCREMENT_BITS) + cls.epoch
        seconds, millis = divmod(ms, 1000)
        return datetime.fromtimestamp(seconds, tz=timezone.utc) + timedelta(milliseconds=millis)

    @classmethod
    def reset(cls) -> None:
        cls.increment = 0


def generate() -> str:
    return Snowflake.generate()
