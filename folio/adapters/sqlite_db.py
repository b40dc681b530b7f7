"""
SQLite database adapter.

Implements PostRepoPort, ImageRepoPort and UnitOfWorkPort.
Repositories opened standalone use a short-lived connection per call and
commit immediately; repositories handed out by SQLiteUnitOfWork share one
connection and leave commit/rollback to the unit of work.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from folio.core.entities import Image, Post

DEFAULT_BUSY_TIMEOUT_SECONDS = 5.0

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def parse_dt(s: str | None) -> datetime | None:
    """Parse ISO datetime string."""
    return datetime.fromisoformat(s) if s else None


def connect(db_path: str, timeout: float = DEFAULT_BUSY_TIMEOUT_SECONDS) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path, timeout=timeout)
    conn.row_factory = dict_factory
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(
        self,
        db_path: str,
        connection: sqlite3.Connection | None = None,
        *,
        timeout: float = DEFAULT_BUSY_TIMEOUT_SECONDS,
    ):
        self.db_path = db_path
        self.timeout = timeout
        self._external_conn = connection

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn
        return connect(self.db_path, self.timeout)

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None


# -----------------------------------------------------------------------------
# Images
# -----------------------------------------------------------------------------


class SQLiteImageRepo(SQLiteRepoBase):
    """SQLite implementation of ImageRepoPort."""

    def list_by_post(self, post_id: UUID) -> list[Image]:
        conn = self._get_conn()
        try:
            return self._list_by_post(conn, post_id)
        finally:
            if self._should_close():
                conn.close()

    def _list_by_post(self, conn: sqlite3.Connection, post_id: UUID) -> list[Image]:
        rows = conn.execute(
            "SELECT * FROM images WHERE post_id = ? ORDER BY rowid ASC", (str(post_id),)
        ).fetchall()
        return [self._map_row(r) for r in rows]

    def delete_many(self, post_id: UUID, image_ids: Sequence[UUID]) -> int:
        if not image_ids:
            return 0
        conn = self._get_conn()
        try:
            placeholders = ", ".join("?" for _ in image_ids)
            cursor = conn.execute(
                f"DELETE FROM images WHERE post_id = ? AND id IN ({placeholders})",
                (str(post_id), *(str(i) for i in image_ids)),
            )
            if self._should_close():
                conn.commit()
            return cursor.rowcount
        finally:
            if self._should_close():
                conn.close()

    def insert_many(self, images: Sequence[Image]) -> None:
        if not images:
            return
        conn = self._get_conn()
        try:
            conn.executemany(
                """
                INSERT INTO images (
                    id, post_id, url, storage_key, description, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        str(img.id),
                        str(img.post_id),
                        img.url,
                        img.storage_key,
                        img.description,
                        img.created_at.isoformat(),
                        img.updated_at.isoformat(),
                    )
                    for img in images
                ],
            )
            if self._should_close():
                conn.commit()
        finally:
            if self._should_close():
                conn.close()

    def update_description(
        self, image_id: UUID, description: str | None, updated_at: datetime | None = None
    ) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE images SET description = ?, updated_at = ? WHERE id = ?",
                (
                    description,
                    (updated_at or datetime.now(UTC)).isoformat(),
                    str(image_id),
                ),
            )
            if self._should_close():
                conn.commit()
        finally:
            if self._should_close():
                conn.close()

    @staticmethod
    def _map_row(row: dict[str, Any]) -> Image:
        return Image(
            id=UUID(row["id"]),
            post_id=UUID(row["post_id"]),
            url=row["url"],
            storage_key=row["storage_key"],
            description=row["description"],
            created_at=parse_dt(row["created_at"]) or datetime.min,
            updated_at=parse_dt(row["updated_at"]) or datetime.min,
        )


# -----------------------------------------------------------------------------
# Posts
# -----------------------------------------------------------------------------


class SQLitePostRepo(SQLiteRepoBase):
    """SQLite implementation of PostRepoPort."""

    def get_by_id(self, post_id: UUID) -> Post | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM posts WHERE id = ?", (str(post_id),)).fetchone()
            return self._map_row_with_images(conn, row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def save(self, post: Post) -> Post:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO posts (
                    id, title, description, category, tags_json, visibility,
                    is_draft, cover_image, owner_user_id, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    description=excluded.description,
                    category=excluded.category,
                    tags_json=excluded.tags_json,
                    visibility=excluded.visibility,
                    is_draft=excluded.is_draft,
                    cover_image=excluded.cover_image,
                    owner_user_id=excluded.owner_user_id,
                    updated_at=excluded.updated_at
                """,
                (
                    str(post.id),
                    post.title,
                    post.description,
                    post.category,
                    json.dumps(post.tags),
                    post.visibility,
                    post.is_draft,
                    post.cover_image,
                    str(post.owner_user_id),
                    post.created_at.isoformat(),
                    post.updated_at.isoformat(),
                ),
            )
            if self._should_close():
                conn.commit()
            return post
        finally:
            if self._should_close():
                conn.close()

    def update(self, post: Post) -> Post:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                UPDATE posts SET
                    title = ?,
                    description = ?,
                    category = ?,
                    tags_json = ?,
                    visibility = ?,
                    is_draft = ?,
                    cover_image = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    post.title,
                    post.description,
                    post.category,
                    json.dumps(post.tags),
                    post.visibility,
                    post.is_draft,
                    post.cover_image,
                    post.updated_at.isoformat(),
                    str(post.id),
                ),
            )
            if cursor.rowcount == 0:
                raise LookupError(f"Post {post.id} does not exist")
            if self._should_close():
                conn.commit()
            return post
        finally:
            if self._should_close():
                conn.close()

    def _map_row_with_images(self, conn: sqlite3.Connection, row: dict[str, Any]) -> Post:
        images = SQLiteImageRepo(self.db_path, conn)._list_by_post(conn, UUID(row["id"]))

        return Post(
            id=UUID(row["id"]),
            title=row["title"],
            description=row["description"],
            category=row["category"],
            tags=json.loads(row["tags_json"]),
            visibility=row["visibility"],
            is_draft=bool(row["is_draft"]),
            cover_image=row["cover_image"],
            owner_user_id=UUID(row["owner_user_id"]),
            images=images,
            created_at=parse_dt(row["created_at"]) or datetime.min,
            updated_at=parse_dt(row["updated_at"]) or datetime.min,
        )


# -----------------------------------------------------------------------------
# Unit of Work
# -----------------------------------------------------------------------------


class SQLiteUnitOfWork:
    """
    SQLite Unit of Work implementation.

    Provides transaction management and access to the post and image
    repositories. All repositories share one connection; nothing is
    persisted until commit(). The busy timeout bounds how long the
    transaction may wait on a competing writer.
    """

    def __init__(self, db_path: str, *, timeout: float = DEFAULT_BUSY_TIMEOUT_SECONDS):
        self.db_path = db_path
        self.timeout = timeout
        self._conn: sqlite3.Connection | None = None

        self._posts: SQLitePostRepo | None = None
        self._images: SQLiteImageRepo | None = None

    def __enter__(self) -> SQLiteUnitOfWork:
        self._conn = connect(self.db_path, self.timeout)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self._conn:
            # Uncommitted work is discarded whether or not an exception is in flight
            self._conn.rollback()
            self._conn.close()
            self._conn = None
        self._posts = None
        self._images = None

    def commit(self) -> None:
        if self._conn:
            self._conn.commit()

    def rollback(self) -> None:
        if self._conn:
            self._conn.rollback()

    @property
    def posts(self) -> SQLitePostRepo:
        if self._posts is None:
            self._posts = SQLitePostRepo(self.db_path, self._conn)
        return self._posts

    @property
    def images(self) -> SQLiteImageRepo:
        if self._images is None:
            self._images = SQLiteImageRepo(self.db_path, self._conn)
        return self._images


def uow_factory(db_path: str, *, timeout: float = DEFAULT_BUSY_TIMEOUT_SECONDS) -> Any:
    """Return a zero-arg callable that opens a fresh SQLiteUnitOfWork."""

    def _factory() -> SQLiteUnitOfWork:
        return SQLiteUnitOfWork(db_path, timeout=timeout)

    return _factory
