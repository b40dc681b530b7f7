"""
HTTP surface for editing and reading a post.
"""

from __future__ import annotations

from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from folio.adapters.local_storage import LocalFileStorage
from folio.adapters.sqlite_db import SQLiteImageRepo, SQLitePostRepo
from folio.api import deps
from folio.core.entities import Image, Post
from folio.core.ports.storage import StorageError
from folio.rules.models import Rules


@pytest.fixture
def post(db_path: str, storage: LocalFileStorage, rules: Rules, owner_id: UUID) -> Post:
    base = rules.storage.public_base_url
    post = SQLitePostRepo(db_path).save(
        Post(
            title="Original",
            category="BOOKS",
            visibility="PUBLIC",
            is_draft=False,
            owner_user_id=owner_id,
        )
    )
    key = f"public/{owner_id}/{post.id}/a.jpg"
    storage.put(key, b"jpeg", "image/jpeg")
    SQLiteImageRepo(db_path).insert_many(
        [Image(post_id=post.id, url=f"{base}/{key}", storage_key=key, description="a")]
    )
    return SQLitePostRepo(db_path).get_by_id(post.id)


def _body(post: Post, **overrides) -> dict:
    body = {
        "title": "Edited",
        "description": "Text",
        "category": "BOOKS",
        "tags": ["LIFE"],
        "visibility": "PUBLIC",
        "isDraft": False,
        "images": [{"url": i.url, "description": i.description} for i in post.images],
        "coverImageUrl": None,
    }
    body.update(overrides)
    return body


class TestEditPost:
    def test_edit_with_new_upload(
        self, client: TestClient, headers, post: Post, storage: LocalFileStorage, owner_id: UUID
    ) -> None:
        issued = client.post(
            "/api/uploads/presigned-url",
            json={"fileName": "b.png", "contentType": "image/png"},
            headers=headers,
        ).json()
        storage.put(issued["key"], b"png", "image/png")

        body = _body(
            post,
            images=[
                {"url": post.images[0].url, "description": "a"},
                {"url": issued["uploadUrl"], "description": "b"},
            ],
            coverImageUrl=issued["fileUrl"],
        )
        response = client.put(f"/api/posts/{post.id}", json=body, headers=headers)

        assert response.status_code == 200, response.text
        data = response.json()
        assert data["title"] == "Edited"
        assert data["isDraft"] is False
        assert len(data["images"]) == 2
        assert data["coverImage"] == data["images"][1]["url"]
        assert f"/public/{owner_id}/{post.id}/" in data["coverImage"]
        assert "updatedAt" in data

    def test_draft_forced_private(self, client: TestClient, headers, post: Post) -> None:
        response = client.put(
            f"/api/posts/{post.id}",
            json=_body(post, isDraft=True, visibility="PUBLIC"),
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["visibility"] == "PRIVATE"

    def test_invalid_image_reference_is_silently_dropped(
        self, client: TestClient, headers, post: Post
    ) -> None:
        images = [{"url": post.images[0].url, "description": "a"}, {"url": "ftp://x/y.jpg"}]

        response = client.put(
            f"/api/posts/{post.id}", json=_body(post, images=images), headers=headers
        )

        assert response.status_code == 200
        assert [i["url"] for i in response.json()["images"]] == [post.images[0].url]

    def test_not_owner(self, client: TestClient, auth_header, post: Post) -> None:
        response = client.put(
            f"/api/posts/{post.id}", json=_body(post), headers=auth_header(uuid4())
        )

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "unauthorized"

    def test_not_found(self, client: TestClient, headers, post: Post) -> None:
        response = client.put(f"/api/posts/{uuid4()}", json=_body(post), headers=headers)

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "post_not_found"

    def test_requires_token(self, client: TestClient, post: Post) -> None:
        response = client.put(f"/api/posts/{post.id}", json=_body(post))
        assert response.status_code == 401

    def test_rejects_bad_token(self, client: TestClient, post: Post) -> None:
        response = client.put(
            f"/api/posts/{post.id}",
            json=_body(post),
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401

    def test_unknown_tag_rejected(self, client: TestClient, headers, post: Post) -> None:
        response = client.put(
            f"/api/posts/{post.id}", json=_body(post, tags=["NOT_A_TAG"]), headers=headers
        )

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "invalid_post"

    def test_blank_title_rejected(self, client: TestClient, headers, post: Post) -> None:
        response = client.put(f"/api/posts/{post.id}", json=_body(post, title="   "), headers=headers)
        assert response.status_code == 422

    def test_bad_visibility_rejected(self, client: TestClient, headers, post: Post) -> None:
        response = client.put(
            f"/api/posts/{post.id}", json=_body(post, visibility="EVERYONE"), headers=headers
        )
        assert response.status_code == 422


class TestGetPost:
    def test_signed_urls(self, client: TestClient, headers, post: Post) -> None:
        response = client.get(f"/api/posts/{post.id}", headers=headers)

        assert response.status_code == 200
        url = response.json()["images"][0]["url"]
        assert url.startswith(post.images[0].url + "?")
        assert "sig=" in url

    def test_not_owner(self, client: TestClient, auth_header, post: Post) -> None:
        response = client.get(f"/api/posts/{post.id}", headers=auth_header(uuid4()))
        assert response.status_code == 403

    def test_signing_failure_is_bad_gateway(
        self, app, client: TestClient, headers, post: Post
    ) -> None:
        class BrokenPresigner:
            def issue_view_url(self, key: str, expires_in: int) -> str:
                raise StorageError("endpoint unreachable")

        app.dependency_overrides[deps.get_presigner] = BrokenPresigner

        response = client.get(f"/api/posts/{post.id}", headers=headers)

        assert response.status_code == 502
        assert response.json()["detail"]["code"] == "storage_operation_failed"
