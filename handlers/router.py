# handlers/router.py
from __future__ import annotations

from aiohttp import web

from database.database import engine, init_db
from handlers import posts, replies
from handlers.middlewares import middlewares

# path -> (allowed methods, {method: handler})
ROUTES = {
    "/boards/{board}/posts": (posts.POSTS_ALLOW, {
        "GET": posts.list_posts,
        "PUT": posts.put_post,
    }),
    "/boards/{board}/posts/{id}": (posts.POST_ALLOW, {
        "GET": posts.get_post,
        "PATCH": posts.patch_post,
        "DELETE": posts.remove_post,
    }),
    "/boards/{board}/posts/{id}/replies": (replies.REPLIES_ALLOW, {
        "GET": replies.list_replies,
        "PUT": replies.put_reply,
    }),
    "/boards/{board}/posts/{id}/replies/{reply}": (replies.REPLY_ALLOW, {
        "GET": replies.get_reply,
    }),
}


def setup_routes(app: web.Application) -> None:
    for path, (allow, handlers) in ROUTES.items():
        resource = app.router.add_resource(path)
        for method, handler in handlers.items():
            resource.add_route(method, handler)
        resource.add_route("OPTIONS", posts.options(allow))
        # registered last: only methods not matched above land here
        resource.add_route("*", posts.not_allowed(allow))


async def on_startup(app: web.Application) -> None:
    await init_db()


async def on_cleanup(app: web.Application) -> None:
    await engine.dispose()


def create_app() -> web.Application:
    app = web.Application(middlewares=middlewares)
    setup_routes(app)
    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    return app
