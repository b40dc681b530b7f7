import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from folio.adapters.clock import SystemClock
from folio.adapters.local_presigner import LocalPresigner
from folio.adapters.local_storage import LocalFileStorage
from folio.adapters.s3_storage import S3ObjectStorage, S3Presigner, create_s3_client
from folio.adapters.sqlite_db import SQLitePostRepo, uow_factory
from folio.api.auth_utils import decode_access_token
from folio.components.assets import AssetLifecycleManager
from folio.components.posts import UnitOfWorkFactory
from folio.core.ports import ObjectStoragePort, PresignerPort
from folio.rules.loader import load_rules
from folio.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        data_dir = Path(os.environ.get("FOLIO_DATA_DIR", "./data"))
        self.data_dir = data_dir
        self.db_path = str(data_dir / "folio.db")
        self.storage_dir = data_dir / "storage"
        self.migrations_dir = self.base_dir / "migrations"
        self.rules_path = Path(os.environ.get("FOLIO_RULES_PATH", str(self.base_dir / "rules.yaml")))
        self.secret_key = os.environ.get("FOLIO_SECRET_KEY", "dev-secret-unsafe")
        self.signing_key = os.environ.get("FOLIO_SIGNING_KEY", "dev-signing-unsafe")
        # Overrides storage.backend from rules.yaml when set
        self.storage_backend = os.environ.get("FOLIO_STORAGE_BACKEND") or None


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


# --- Time ---
def get_clock() -> SystemClock:
    return SystemClock()


# --- Repos ---
def get_post_repo(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> SQLitePostRepo:
    return SQLitePostRepo(settings.db_path, timeout=rules.database.transaction_timeout_seconds)


def get_uow_factory(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> UnitOfWorkFactory:
    return uow_factory(settings.db_path, timeout=rules.database.transaction_timeout_seconds)


# --- Storage ---
@lru_cache
def _s3_client(region: str, call_timeout_seconds: float) -> Any:
    return create_s3_client(region, call_timeout_seconds=call_timeout_seconds)


def _backend(settings: Settings, rules: Rules) -> str:
    return settings.storage_backend or rules.storage.backend


def get_object_storage(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> ObjectStoragePort:
    if _backend(settings, rules) == "s3":
        client = _s3_client(rules.storage.region, rules.storage.call_timeout_seconds)
        return S3ObjectStorage(client, rules.storage.bucket)
    return LocalFileStorage(settings.storage_dir)


def get_presigner(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> PresignerPort:
    if _backend(settings, rules) == "s3":
        client = _s3_client(rules.storage.region, rules.storage.call_timeout_seconds)
        return S3Presigner(client, rules.storage.bucket)
    return LocalPresigner(rules.storage.public_base_url, settings.signing_key, clock)


# --- Component Services ---
def get_asset_lifecycle(
    storage: ObjectStoragePort = Depends(get_object_storage),
    rules: Rules = Depends(get_rules),
) -> AssetLifecycleManager:
    return AssetLifecycleManager(
        storage,
        base_url=rules.storage.public_base_url,
        temp_prefix=rules.storage.temp_prefix,
        max_workers=rules.storage.max_workers,
        settle_timeout_seconds=rules.storage.settle_timeout_seconds,
    )


# --- Auth ---
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_owner_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: Settings = Depends(get_settings),
) -> UUID:
    """Owner id is the `sub` claim of a token from the identity provider."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(credentials.credentials, settings.secret_key)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    sub = payload.get("sub")
    if not isinstance(sub, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )
    try:
        return UUID(sub)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
        ) from e
