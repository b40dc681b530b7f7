"""
SQLite post/image repositories and the unit of work.
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from folio.adapters.sqlite_db import (
    SQLiteImageRepo,
    SQLitePostRepo,
    SQLiteUnitOfWork,
    uow_factory,
)
from folio.core.entities import Image, Post

T0 = datetime(2025, 1, 1, tzinfo=UTC)


def _post(owner: UUID, **kw) -> Post:
    fields = {
        "title": "Title",
        "category": "BOOKS",
        "tags": ["LIFE", "WORK"],
        "visibility": "PUBLIC",
        "is_draft": False,
        "owner_user_id": owner,
        "created_at": T0,
        "updated_at": T0,
    }
    fields.update(kw)
    return Post(**fields)


def _img(post: Post, key: str, description: str | None = None) -> Image:
    return Image(
        post_id=post.id,
        url=f"https://m.example.com/{key}",
        storage_key=key,
        description=description,
        created_at=T0,
        updated_at=T0,
    )


@pytest.fixture
def posts(db_path: str) -> SQLitePostRepo:
    return SQLitePostRepo(db_path)


@pytest.fixture
def images(db_path: str) -> SQLiteImageRepo:
    return SQLiteImageRepo(db_path)


class TestPostRepo:
    def test_save_and_get(self, posts: SQLitePostRepo, images: SQLiteImageRepo, owner_id) -> None:
        post = posts.save(_post(owner_id, cover_image="https://m.example.com/a.jpg"))
        images.insert_many([_img(post, "a.jpg", "first"), _img(post, "b.jpg")])

        loaded = posts.get_by_id(post.id)

        assert loaded is not None
        assert loaded.title == "Title"
        assert loaded.tags == ["LIFE", "WORK"]
        assert loaded.is_draft is False
        assert loaded.cover_image == "https://m.example.com/a.jpg"
        assert [i.storage_key for i in loaded.images] == ["a.jpg", "b.jpg"]
        assert loaded.images[0].description == "first"
        assert loaded.updated_at == T0

    def test_get_missing(self, posts: SQLitePostRepo) -> None:
        assert posts.get_by_id(uuid4()) is None

    def test_update(self, posts: SQLitePostRepo, owner_id) -> None:
        post = posts.save(_post(owner_id))

        posts.update(post.model_copy(update={"title": "Renamed", "visibility": "FOLLOWERS"}))

        loaded = posts.get_by_id(post.id)
        assert loaded.title == "Renamed"
        assert loaded.visibility == "FOLLOWERS"

    def test_update_missing_raises(self, posts: SQLitePostRepo, owner_id) -> None:
        with pytest.raises(LookupError):
            posts.update(_post(owner_id))

    def test_draft_must_be_private(self, posts: SQLitePostRepo, owner_id) -> None:
        with pytest.raises(sqlite3.IntegrityError):
            posts.save(_post(owner_id, is_draft=True, visibility="PUBLIC"))

    def test_draft_private_allowed(self, posts: SQLitePostRepo, owner_id) -> None:
        post = posts.save(_post(owner_id, is_draft=True, visibility="PRIVATE"))
        assert posts.get_by_id(post.id).is_draft is True


class TestImageRepo:
    def test_duplicate_key_per_post_rejected(
        self, posts: SQLitePostRepo, images: SQLiteImageRepo, owner_id
    ) -> None:
        post = posts.save(_post(owner_id))
        images.insert_many([_img(post, "a.jpg")])

        with pytest.raises(sqlite3.IntegrityError):
            images.insert_many([_img(post, "a.jpg")])

    def test_same_key_on_other_post_allowed(
        self, posts: SQLitePostRepo, images: SQLiteImageRepo, owner_id
    ) -> None:
        first = posts.save(_post(owner_id))
        second = posts.save(_post(owner_id))

        images.insert_many([_img(first, "a.jpg"), _img(second, "a.jpg")])

        assert len(images.list_by_post(second.id)) == 1

    def test_delete_many_scoped_to_post(
        self, posts: SQLitePostRepo, images: SQLiteImageRepo, owner_id
    ) -> None:
        post = posts.save(_post(owner_id))
        other = posts.save(_post(owner_id))
        a, b = _img(post, "a.jpg"), _img(post, "b.jpg")
        foreign = _img(other, "c.jpg")
        images.insert_many([a, b, foreign])

        deleted = images.delete_many(post.id, [a.id, foreign.id])

        assert deleted == 1
        assert [i.id for i in images.list_by_post(post.id)] == [b.id]
        assert [i.id for i in images.list_by_post(other.id)] == [foreign.id]

    def test_delete_many_empty(self, images: SQLiteImageRepo) -> None:
        assert images.delete_many(uuid4(), []) == 0

    def test_update_description(
        self, posts: SQLitePostRepo, images: SQLiteImageRepo, owner_id
    ) -> None:
        post = posts.save(_post(owner_id))
        img = _img(post, "a.jpg", "old")
        images.insert_many([img])
        later = datetime(2025, 2, 1, tzinfo=UTC)

        images.update_description(img.id, "new", later)

        loaded = images.list_by_post(post.id)[0]
        assert loaded.description == "new"
        assert loaded.updated_at == later

    def test_cascade_on_post_delete(
        self, db_path: str, posts: SQLitePostRepo, images: SQLiteImageRepo, owner_id
    ) -> None:
        post = posts.save(_post(owner_id))
        images.insert_many([_img(post, "a.jpg")])

        with SQLiteUnitOfWork(db_path) as uow:
            uow._conn.execute("DELETE FROM posts WHERE id = ?", (str(post.id),))
            uow.commit()

        assert images.list_by_post(post.id) == []


class TestUnitOfWork:
    def test_commit_applies_all(
        self, db_path: str, posts: SQLitePostRepo, images: SQLiteImageRepo, owner_id
    ) -> None:
        post = posts.save(_post(owner_id))
        old = _img(post, "old.jpg")
        images.insert_many([old])

        with uow_factory(db_path)() as uow:
            uow.images.delete_many(post.id, [old.id])
            uow.posts.update(post.model_copy(update={"title": "After"}))
            uow.images.insert_many([_img(post, "new.jpg")])
            uow.commit()

        loaded = posts.get_by_id(post.id)
        assert loaded.title == "After"
        assert [i.storage_key for i in loaded.images] == ["new.jpg"]

    def test_uncommitted_work_discarded(
        self, db_path: str, posts: SQLitePostRepo, images: SQLiteImageRepo, owner_id
    ) -> None:
        post = posts.save(_post(owner_id))
        old = _img(post, "old.jpg")
        images.insert_many([old])

        with SQLiteUnitOfWork(db_path) as uow:
            uow.images.delete_many(post.id, [old.id])
            uow.posts.update(post.model_copy(update={"title": "After"}))

        loaded = posts.get_by_id(post.id)
        assert loaded.title == "Title"
        assert [i.id for i in loaded.images] == [old.id]

    def test_failure_mid_transaction_rolls_back(
        self, db_path: str, posts: SQLitePostRepo, images: SQLiteImageRepo, owner_id
    ) -> None:
        post = posts.save(_post(owner_id))
        old = _img(post, "old.jpg")
        images.insert_many([old])

        with pytest.raises(sqlite3.IntegrityError):
            with SQLiteUnitOfWork(db_path) as uow:
                uow.images.delete_many(post.id, [old.id])
                uow.posts.update(post.model_copy(update={"title": "After"}))
                # Duplicate key inside one batch violates UNIQUE(post_id, storage_key)
                uow.images.insert_many([_img(post, "dup.jpg"), _img(post, "dup.jpg")])
                uow.commit()

        loaded = posts.get_by_id(post.id)
        assert loaded.title == "Title"
        assert [i.id for i in loaded.images] == [old.id]
