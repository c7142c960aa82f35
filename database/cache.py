# database/cache.py
from __future__ import annotations

from collections import OrderedDict

from config import CACHE_SIZE
from database.post import Post


class PostCache:
    """Bounded LRU of detached posts, keyed by post id.

    Filled on lookups, refreshed on writes, dropped on delete. Lives in
    process memory, so run with cache_size: 0 behind several workers.
    """

    def __init__(self, maxsize: int = CACHE_SIZE):
        self.maxsize = maxsize
        self._items: OrderedDict[str, Post] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, post_id: str) -> Post | None:
        post = self._items.get(post_id)
        if post is None:
            self.misses += 1
            return None
        self._items.move_to_end(post_id)
        self.hits += 1
        return post

    def put(self, post: Post) -> None:
        if self.maxsize <= 0:
            return
        self._items[post.id] = post
        self._items.move_to_end(post.id)
        while len(self._items) > self.maxsize:
            self._items.popitem(last=False)

    def invalidate(self, *post_ids: str) -> None:
        for pid in post_ids:
            self._items.pop(pid, None)

    def clear(self) -> None:
        self._items.clear()
        self.hits = self.misses = 0

    def __contains__(self, post_id: str) -> bool:
        return post_id in self._items

    def __len__(self) -> int:
        return len(self._items)


post_cache = PostCache()
