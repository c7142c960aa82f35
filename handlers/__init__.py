from .guards  import check
from .posts   import list_posts, put_post, get_post, patch_post, remove_post
from .replies import list_replies, put_reply, get_reply
from .router  import ROUTES, setup_routes, create_app

__all__ = [
    "check",
    "list_posts", "put_post", "get_post", "patch_post", "remove_post",
    "list_replies", "put_reply", "get_reply",
    "ROUTES", "setup_routes", "create_app",
]
