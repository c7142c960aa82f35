# server.py
from __future__ import annotations

import logging

from aiohttp import web

from config import HOST, PORT, LOG_LEVEL
from handlers import create_app

# ───────────────────────────  Logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
)
log = logging.getLogger("forums")


# ───────────────────────────  Main
def main() -> None:
    app = create_app()
    log.info("Listening on %s:%s", HOST, PORT)
    web.run_app(app, host=HOST, port=PORT, print=None)


if __name__ == "__main__":
    main()
