"""Artifact record persistence."""

from xet_composer.storage.models import StoredArtifact
from xet_composer.storage.store import (
    DEFAULT_STRATEGY,
    STORAGE_STRATEGIES,
    ArtifactIOError,
    ArtifactSerializationError,
    ArtifactStore,
    StorageError,
    StorageStrategy,
    dated_subdir,
)

__all__ = [
    "DEFAULT_STRATEGY",
    "STORAGE_STRATEGIES",
    "ArtifactIOError",
    "ArtifactSerializationError",
    "ArtifactStore",
    "StorageError",
    "StorageStrategy",
    "StoredArtifact",
    "dated_subdir",
]
