from contextlib import asynccontextmanager
import asyncio
import logging

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

import database.utils as ops
from database.cache import post_cache
from database.post import Post

pytestmark = pytest.mark.usefixtures("db")


async def test_create_post_shapes_a_root():
    post = await ops.create_post("b", "hello", "world")

    assert post.id.isdigit() and post.author.isdigit()
    assert post.id != post.author
    assert post.parent is None
    assert post.children == []
    assert post.views == 0
    assert post.uid is not None


async def test_find_by_board_lists_roots_newest_first():
    first = await ops.create_post("b", "one", "1")
    second = await ops.create_post("b", "two", "2")
    await ops.create_post("g", "elsewhere", "3")
    await ops.create_reply(first, "a reply")

    posts = await ops.find_by_board("b")
    assert [p.id for p in posts] == [second.id, first.id]
    assert await ops.find_by_board("t") == []


async def test_find_by_id_reads_through_the_cache():
    post = await ops.create_post("s", "subj", "body")
    post_cache.clear()

    found = await ops.find_by_id(post.id)
    assert found.subject == "subj"
    assert post.id in post_cache
    assert await ops.find_by_id(post.id) is found
    assert await ops.find_by_id("123") is None


async def test_create_reply_appends_in_creation_order():
    root = await ops.create_post("b", "root", "r")
    root = await ops.create_reply(root, "first")
    root = await ops.create_reply(root, "second")

    assert len(root.children) == 2
    children = await ops.fetch_children(root)
    # storage order is newest first, children keeps creation order
    assert [c.id for c in children] == list(reversed(root.children))
    assert all(c.children is None and c.parent == root.id for c in children)
    assert all(c.board == "b" for c in children)


async def test_fetch_children_is_not_applicable_on_replies():
    root = await ops.create_post("b", "root", "r")
    root = await ops.create_reply(root, "child")
    reply = await ops.find_by_id(root.children[0])

    assert await ops.fetch_children(reply) is None
    assert await ops.fetch_children_by_id(reply.id) is None
    assert await ops.fetch_children_by_id("999") is None


async def test_root_without_replies_has_empty_children():
    root = await ops.create_post("b", "root", "r")
    assert await ops.fetch_children(root) == []
    assert await ops.fetch_children_by_id(root.id) == []


async def test_fetch_parent():
    root = await ops.create_post("b", "root", "r")
    root = await ops.create_reply(root, "child")
    reply_id = root.children[0]

    parent = await ops.fetch_parent_by_id(reply_id)
    assert parent.id == root.id
    assert await ops.fetch_parent(root) is None
    assert await ops.fetch_parent_by_id("424242") is None


async def test_save_post_persists_changes():
    post = await ops.create_post("b", "before", "c")
    post.subject = "after"
    await ops.save_post(post)
    post_cache.clear()

    assert (await ops.find_by_id(post.id)).subject == "after"


async def test_delete_root_takes_its_replies():
    root = await ops.create_post("b", "root", "r")
    root = await ops.create_reply(root, "child")
    reply_id = root.children[0]

    assert await ops.delete_post(root.id) is True
    assert await ops.find_by_id(root.id) is None
    assert await ops.find_by_id(reply_id) is None
    assert await ops.delete_post(root.id) is False


async def test_delete_reply_unlinks_it_from_parent():
    root = await ops.create_post("b", "root", "r")
    root = await ops.create_reply(root, "keep")
    root = await ops.create_reply(root, "drop")
    keep, drop = root.children

    assert await ops.delete_post(drop) is True
    post_cache.clear()
    root = await ops.find_by_id(root.id)
    assert root.children == [keep]


async def test_increment_views():
    post = await ops.create_post("b", "s", "c")
    assert await ops.increment_views(post) is True
    assert post.views == 1

    post_cache.clear()
    assert (await ops.find_by_id(post.id)).views == 1


async def test_increment_views_failure_is_logged_not_raised(monkeypatch, caplog):
    post = await ops.create_post("b", "s", "c")

    @asynccontextmanager
    async def broken_session():
        raise SQLAlchemyError("database is down")
        yield

    monkeypatch.setattr(ops, "get_session", broken_session)
    with caplog.at_level(logging.ERROR, logger="database.utils"):
        assert await ops.increment_views(post) is False

    assert post.views == 0
    assert "View increment failed" in caplog.text


async def reply_ids_in_storage(root_id):
    async with ops.get_session() as ses:
        return list((await ses.scalars(
            select(Post.id).where(Post.parent == root_id).order_by(Post.uid)
        )).all())


async def test_concurrent_replies_all_land_in_children():
    root = await ops.create_post("b", "root", "r")

    await asyncio.gather(*(ops.create_reply(root, f"c{i}") for i in range(5)))

    post_cache.clear()
    stored = await reply_ids_in_storage(root.id)
    root = await ops.find_by_id(root.id)
    assert len(stored) == 5
    assert root.children == stored


async def test_concurrent_delete_and_reply_keep_children_in_sync():
    root = await ops.create_post("b", "root", "r")
    root = await ops.create_reply(root, "doomed")
    doomed = root.children[0]

    await asyncio.gather(
        ops.delete_post(doomed),
        ops.create_reply(root, "fresh"),
        ops.create_reply(root, "fresher"),
    )

    post_cache.clear()
    stored = await reply_ids_in_storage(root.id)
    root = await ops.find_by_id(root.id)
    assert doomed not in stored
    assert len(stored) == 2
    assert root.children == stored


async def test_failed_reply_leaves_no_half_write(monkeypatch):
    root = await ops.create_post("b", "root", "r")
    root = await ops.create_reply(root, "kept")
    before = list(root.children)

    # the reply id collides with the root's, the insert fails on flush
    monkeypatch.setattr(ops.Snowflake, "generate", classmethod(lambda cls: root.id))
    with pytest.raises(IntegrityError):
        await ops.create_reply(root, "never stored")

    post_cache.clear()
    assert await reply_ids_in_storage(root.id) == before
    assert (await ops.find_by_id(root.id)).children == before
