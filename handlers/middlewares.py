# handlers/middlewares.py
from __future__ import annotations

import logging

from aiohttp import web

from handlers.guards import fail

log = logging.getLogger(__name__)

GLOBAL_HEADERS = {
    "Cache-Control": "no-store",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
    "Content-Security-Policy": "default-src 'self'",
}


@web.middleware
async def error_middleware(request: web.Request, handler):
    """
    Router misses and other HTTP errors become JSON envelopes, anything
    unexpected a bare 500.
    """
    try:
        return await handler(request)
    except web.HTTPNotFound:
        return fail(404, "not found")
    except web.HTTPMethodNotAllowed as e:
        return web.Response(status=405, headers={"Allow": ", ".join(sorted(e.allowed_methods))})
    except web.HTTPException as e:
        if e.status < 400:
            raise
        return fail(e.status, e.reason.lower())
    except Exception:
        log.exception("Unhandled error on %s %s", request.method, request.path)
        return web.Response(status=500)


@web.middleware
async def headers_middleware(request: web.Request, handler):
    log.debug("Request from %s to %s via %s", request.remote, request.path, request.host)
    response = await handler(request)
    response.headers.update(GLOBAL_HEADERS)
    return response


@web.middleware
async def json_body_middleware(request: web.Request, handler):
    """request["body"]: decoded JSON body, or None when absent or not JSON."""
    request["body"] = None
    if request.can_read_body and request.content_type == "application/json":
        try:
            request["body"] = await request.json()
        except (ValueError, UnicodeDecodeError):
            log.debug("Unparseable JSON body on %s %s", request.method, request.path)
    return await handler(request)


middlewares = [headers_middleware, error_middleware, json_body_middleware]
