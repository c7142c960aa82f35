# handlers/guards.py
"""
Request guards.

Each guard looks at one aspect of a request. It returns None when the
request may go on, or the error response the handler must send back as is:

    if failed := guards.check(request, guards.board, guards.body):
        return failed
"""
from __future__ import annotations

from functools import partial
from typing import Callable
import logging
import re

from aiohttp import web

from config import BOARDS

log = logging.getLogger(__name__)

Guard = Callable[[web.Request], "web.Response | None"]

# Expected body shapes, key -> python type
ROOT_SHAPE = {"subject": str, "content": str}
REPLY_SHAPE = {"content": str}

_JSON_RE = re.compile(r"^application/json", re.IGNORECASE)
_ID_RE = re.compile(r"^\d+$")


def fail(status: int, message: str) -> web.Response:
    return web.json_response({"error": {"message": message}, "data": None}, status=status)


# ───── Guards
def board(request: web.Request) -> web.Response | None:
    if request.match_info.get("board") not in BOARDS:
        return fail(404, "unknown board")
    return None


def body(request: web.Request) -> web.Response | None:
    if request.get("body") is None:
        return fail(400, "missing body")
    return None


def content_type(request: web.Request) -> web.Response | None:
    if not _JSON_RE.match(request.headers.get("Content-Type", "")):
        return fail(415, 'request must contain "content-type" header')
    return None


def id_type(request: web.Request, key: str = "id") -> web.Response | None:
    if not _ID_RE.match(request.match_info.get(key, "")):
        return fail(400, "expected id to be bigint string")
    return None


def type_check(obj, shape: dict[str, type]) -> bool:
    """True if every key of `shape` is on `obj` with that type. Extra keys pass."""
    if not isinstance(obj, dict):
        return False
    for key, expected in shape.items():
        value = obj.get(key)
        # bool is an int subclass, never accept it for a number
        if isinstance(value, bool) and expected is not bool:
            return False
        if not isinstance(value, expected):
            log.debug("Expecting %s of body to be %s, got %r", key, expected.__name__, value)
            return False
    return True


def malformed_body(request: web.Request, shape: dict[str, type]) -> web.Response | None:
    if not type_check(request.get("body"), shape):
        return fail(400, "malformed body")
    return None


# ready-made variants for the two PUT endpoints and the reply path segment
root_body = partial(malformed_body, shape=ROOT_SHAPE)
reply_body = partial(malformed_body, shape=REPLY_SHAPE)
reply_id = partial(id_type, key="reply")


def check(request: web.Request, *guards: Guard) -> web.Response | None:
    """Run guards in order, first failure wins."""
    for guard in guards:
        failed = guard(request)
        if failed is not None:
            return failed
    return None
