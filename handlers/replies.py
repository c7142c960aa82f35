# handlers/replies.py
from __future__ import annotations

import logging

from aiohttp import web

from database.utils import find_by_id, fetch_children, create_reply
from handlers import guards
from handlers.guards import fail
from handlers.posts import ok

log = logging.getLogger(__name__)

REPLIES_ALLOW = "OPTIONS, GET, PUT"
REPLY_ALLOW = "OPTIONS, GET"


# ───── GET /boards/{board}/posts/{id}/replies
async def list_replies(request: web.Request) -> web.Response:
    if failed := guards.check(request, guards.board, guards.id_type):
        return failed

    parent = await find_by_id(request.match_info["id"])
    children = await fetch_children(parent) if parent else None
    if children is None:
        return fail(404, "parent not found")
    return ok([c.to_dict() for c in children])


# ───── PUT /boards/{board}/posts/{id}/replies
async def put_reply(request: web.Request) -> web.Response:
    """
    Creates a reply under a root post and returns the updated root.

    Checks: board, id, content-type, body present, {content} string,
    target exists and is a root.
    """
    if failed := guards.check(request, guards.board, guards.id_type, guards.content_type,
                              guards.body, guards.reply_body):
        return failed

    parent = await find_by_id(request.match_info["id"])
    if not parent:
        return fail(404, "post not found")
    if not parent.is_root:
        return fail(400, "post is not a parent post")

    parent = await create_reply(parent, request["body"]["content"])
    log.info("Reply %s added to %s", parent.children[-1], parent.id)

    board = request.match_info["board"]
    return ok(
        parent.to_dict(), status=201,
        headers={"Content-Location": f"/boards/{board}/posts/{parent.id}/replies/{parent.children[-1]}"},
    )


# ───── GET /boards/{board}/posts/{id}/replies/{reply}
async def get_reply(request: web.Request) -> web.Response:
    if failed := guards.check(request, guards.board, guards.id_type, guards.reply_id):
        return failed

    parent = await find_by_id(request.match_info["id"])
    if not parent or not parent.is_root:
        return fail(404, "parent not found")

    child = await find_by_id(request.match_info["reply"])
    if not child or child.parent != parent.id:
        return fail(404, "child not found")
    return ok(child.to_dict())
