# folio - Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from folio.core.ports.db import ImageRepoPort, PostRepoPort, UnitOfWorkPort
from folio.core.ports.storage import (
    IntegrityError,
    KeyNotFoundError,
    ObjectStoragePort,
    PresignerPort,
    StorageError,
    StoredObject,
)
from folio.core.ports.time import TimePort

__all__ = [
    # Database
    "ImageRepoPort",
    "PostRepoPort",
    "UnitOfWorkPort",
    # Storage
    "IntegrityError",
    "KeyNotFoundError",
    "ObjectStoragePort",
    "PresignerPort",
    "StorageError",
    "StoredObject",
    # Time
    "TimePort",
]
