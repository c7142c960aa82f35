from __future__ import annotations
from contextlib import asynccontextmanager
from typing import Sequence
import asyncio
import weakref
import logging

from sqlalchemy import select, update, delete
from sqlalchemy.exc import SQLAlchemyError

from database.database import async_session
from database.post import Post
from database.cache import post_cache
from snowflake import Snowflake

log = logging.getLogger(__name__)


# ───────────────────────────────  SESSION  ────────────────────────────────
@asynccontextmanager
async def get_session():
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


# ───────────────────────────────  CHILDREN  ───────────────────────────────
# one lock per root while someone holds or waits on it
_children_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()


@asynccontextmanager
async def children_lock(root_id: str):
    """Serializes writes to one root's children list."""
    lock = _children_locks.get(root_id)
    if lock is None:
        lock = _children_locks[root_id] = asyncio.Lock()
    async with lock:
        yield


async def _child_ids(ses, root_id: str) -> list[str]:
    """Reply ids of a root in creation order, as storage sees them."""
    return list((await ses.scalars(
        select(Post.id).where(Post.parent == root_id).order_by(Post.uid)
    )).all())


# ───────────────────────────────  READS  ──────────────────────────────────
async def find_by_board(board: str) -> Sequence[Post]:
    """Thread roots of a board, newest first."""
    async with get_session() as ses:
        result = await ses.execute(
            select(Post)
            .where(Post.board == board, Post.parent.is_(None))
            .order_by(Post.uid.desc())
        )
        return result.scalars().all()


async def find_by_id(post_id: str) -> Post | None:
    cached = post_cache.get(post_id)
    if cached is not None:
        return cached

    log.debug("Find by ID: %s", post_id)
    async with get_session() as ses:
        post = await ses.scalar(select(Post).where(Post.id == post_id))
    if post is not None:
        post_cache.put(post)
    return post


async def fetch_children(post: Post) -> Sequence[Post] | None:
    """Replies to a root, newest first. None when `post` is itself a reply."""
    if not post.is_root:
        return None
    async with get_session() as ses:
        result = await ses.execute(
            select(Post).where(Post.parent == post.id).order_by(Post.uid.desc())
        )
        return result.scalars().all()


async def fetch_children_by_id(post_id: str) -> Sequence[Post] | None:
    post = await find_by_id(post_id)
    if post is None:
        return None
    return await fetch_children(post)


async def fetch_parent(post: Post) -> Post | None:
    """Root of a reply. None when `post` is already a root."""
    if post.is_root:
        return None
    return await find_by_id(post.parent)


async def fetch_parent_by_id(post_id: str) -> Post | None:
    post = await find_by_id(post_id)
    if post is None:
        return None
    return await fetch_parent(post)


# ───────────────────────────────  WRITES  ─────────────────────────────────
async def create_post(board: str, subject: str, content: str) -> Post:
    post = Post(
        id=Snowflake.generate(),
        author=Snowflake.generate(),
        board=board,
        subject=subject,
        content=content,
        views=0,
        parent=None,
        children=[],
    )
    async with get_session() as ses:
        ses.add(post)
        await ses.commit()
    post_cache.put(post)
    return post


async def create_reply(parent: Post, content: str) -> Post:
    """
    Insert a reply under `parent` and rebuild parent.children from storage.
    Both writes share one transaction, serialized per root. Returns the
    updated parent.
    """
    reply = Post(
        id=Snowflake.generate(),
        author=Snowflake.generate(),
        board=parent.board,
        subject="",
        content=content,
        views=0,
        parent=parent.id,
        children=None,
    )
    async with children_lock(parent.id):
        async with get_session() as ses:
            async with ses.begin():
                root = await ses.scalar(select(Post).where(Post.id == parent.id))
                if root is None:
                    raise LookupError(f"post {parent.id} vanished")
                ses.add(reply)
                await ses.flush()
                root.children = await _child_ids(ses, root.id)
    post_cache.put(root)
    post_cache.put(reply)
    return root


async def save_post(post: Post) -> Post:
    async with get_session() as ses:
        merged = await ses.merge(post)
        await ses.commit()
    post_cache.put(merged)
    return merged


async def delete_post(post_id: str) -> bool:
    """
    Delete a post. A root takes its replies with it, a reply is
    unlinked from its parent's children. True if a row went away.
    """
    async with get_session() as ses:
        target = await ses.scalar(select(Post).where(Post.id == post_id))
    if target is None:
        return False

    root_id = target.id if target.is_root else target.parent
    async with children_lock(root_id):
        async with get_session() as ses:
            async with ses.begin():
                post = await ses.scalar(select(Post).where(Post.id == post_id))
                if post is None:
                    return False

                gone = [post.id]
                if post.is_root:
                    replies = (await ses.scalars(select(Post.id).where(Post.parent == post.id))).all()
                    gone.extend(replies)
                    await ses.execute(delete(Post).where(Post.parent == post.id))

                result = await ses.execute(delete(Post).where(Post.id == post.id))
                removed = result.rowcount > 0

                if not post.is_root:
                    root = await ses.scalar(select(Post).where(Post.id == post.parent))
                    if root is not None:
                        root.children = await _child_ids(ses, root.id)
                        gone.append(root.id)    # cached copy is stale now

    post_cache.invalidate(*gone)
    return removed


async def increment_views(post: Post) -> bool:
    """
    views = views + 1 in storage, best effort: errors are logged, never raised.
    On success the given object is bumped too.
    """
    try:
        async with get_session() as ses:
            await ses.execute(
                update(Post).where(Post.id == post.id).values(views=Post.views + 1)
            )
            await ses.commit()
    except SQLAlchemyError:
        log.exception("View increment failed for post %s", post.id)
        return False

    post.views += 1
    post_cache.put(post)
    return True
