# handlers/posts.py
from __future__ import annotations

from aiohttp import web

from database.utils import find_by_board, find_by_id, create_post, delete_post, increment_views
from handlers import guards
from handlers.guards import fail

POSTS_ALLOW = "OPTIONS, GET, PUT"
POST_ALLOW = "OPTIONS, GET, PATCH, DELETE"


# ═════════════  Helpers  ═════════════
def ok(data, status: int = 200, headers: dict | None = None) -> web.Response:
    return web.json_response({"error": None, "data": data}, status=status, headers=headers)


def options(allow: str):
    """OPTIONS handler advertising `allow`."""
    async def handler(request: web.Request) -> web.Response:
        if failed := guards.board(request):
            return failed
        return web.Response(status=204, headers={
            "Allow": allow,
            "Access-Control-Allow-Methods": allow,
        })
    return handler


def not_allowed(allow: str):
    """Catch-all for methods a route does not serve."""
    async def handler(request: web.Request) -> web.Response:
        if failed := guards.board(request):
            return failed
        return web.Response(status=405, headers={"Allow": allow})
    return handler


# ═════════════  /boards/{board}/posts  ═════════════
async def list_posts(request: web.Request) -> web.Response:
    if failed := guards.board(request):
        return failed

    posts = await find_by_board(request.match_info["board"])
    return ok([p.to_dict() for p in posts])


async def put_post(request: web.Request) -> web.Response:
    """
    PUT /boards/{board}/posts
    Creates a root post on the board.

    Checks: board, content-type, body present, {subject, content} strings.
    """
    if failed := guards.check(request, guards.board, guards.content_type,
                              guards.body, guards.root_body):
        return failed

    board = request.match_info["board"]
    data = request["body"]
    post = await create_post(board, data["subject"], data["content"])
    return ok(
        post.to_dict(), status=201,
        headers={"Content-Location": f"/boards/{board}/posts/{post.id}"},
    )


# ═════════════  /boards/{board}/posts/{id}  ═════════════
async def get_post(request: web.Request) -> web.Response:
    """Returns the post and counts the view (best effort)."""
    if failed := guards.check(request, guards.board, guards.id_type):
        return failed

    post = await find_by_id(request.match_info["id"])
    if not post:
        return fail(404, "post not found")

    await increment_views(post)
    return ok(post.to_dict())


async def patch_post(request: web.Request) -> web.Response:
    # not used
    if failed := guards.board(request):
        return failed
    return fail(400, "endpoint not used")


async def remove_post(request: web.Request) -> web.Response:
    if failed := guards.check(request, guards.board, guards.id_type):
        return failed

    post_id = request.match_info["id"]
    if not await delete_post(post_id):
        return fail(404, "post not found")
    return ok({"id": post_id, "deleted": True})
