from __future__ import annotations

from pathlib import Path
from uuid import UUID

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from folio.adapters.local_presigner import LocalPresigner
from folio.adapters.local_storage import LocalFileStorage
from folio.adapters.sqlite_db import SQLitePostRepo, uow_factory
from folio.api import deps
from folio.api.auth_utils import create_access_token
from folio.api.routes import posts, uploads
from folio.rules.models import Rules

SECRET = "test-secret"


@pytest.fixture
def storage(tmp_path: Path) -> LocalFileStorage:
    return LocalFileStorage(tmp_path / "objects")


@pytest.fixture
def app(
    monkeypatch, tmp_path: Path, db_path: str, rules: Rules, storage: LocalFileStorage, clock
) -> FastAPI:
    """Test FastAPI app with the post and upload routes, wired to temp resources."""
    monkeypatch.setenv("FOLIO_SECRET_KEY", SECRET)
    monkeypatch.setenv("FOLIO_DATA_DIR", str(tmp_path))
    settings = deps.Settings()

    app = FastAPI()
    app.include_router(posts.router, prefix="/api/posts")
    app.include_router(uploads.router, prefix="/api/uploads")

    app.dependency_overrides[deps.get_settings] = lambda: settings
    app.dependency_overrides[deps.get_rules] = lambda: rules
    app.dependency_overrides[deps.get_clock] = lambda: clock
    app.dependency_overrides[deps.get_post_repo] = lambda: SQLitePostRepo(db_path)
    app.dependency_overrides[deps.get_uow_factory] = lambda: uow_factory(db_path)
    app.dependency_overrides[deps.get_object_storage] = lambda: storage
    app.dependency_overrides[deps.get_presigner] = lambda: LocalPresigner(
        rules.storage.public_base_url, "sign", clock
    )
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def _auth_header(user_id: UUID) -> dict[str, str]:
    token = create_access_token({"sub": str(user_id)}, secret_key=SECRET)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_header():
    """Factory for a bearer header of any user."""
    return _auth_header


@pytest.fixture
def headers(owner_id: UUID) -> dict[str, str]:
    """Bearer header for the post owner."""
    return _auth_header(owner_id)
