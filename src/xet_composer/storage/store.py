"""Artifact persistence to a filesystem root."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal, cast

from xet_composer.compiler.base import CompiledArtifact
from xet_composer.storage.models import StoredArtifact

logger = logging.getLogger(__name__)

StorageStrategy = Literal["dated", "address"]
STORAGE_STRATEGIES: tuple[str, ...] = ("dated", "address")

DEFAULT_STRATEGY: StorageStrategy = "dated"


class StorageError(Exception):
    """Base exception for artifact storage."""

    kind = "StorageError"


class ArtifactIOError(StorageError):
    """Raised when the artifact root or record file cannot be written or read."""

    kind = "IoError"


class ArtifactSerializationError(StorageError):
    """Raised when a record cannot be serialized or parsed."""

    kind = "SerializationError"


def dated_subdir(timestamp: int) -> str:
    """Return the UTC calendar date directory name (YYYY-MM-DD) for a timestamp.

    Raises ArtifactSerializationError if the timestamp has no calendar date.
    """
    try:
        moment = datetime.fromtimestamp(timestamp, UTC)
    except (OverflowError, OSError, ValueError) as e:
        raise ArtifactSerializationError(
            f"Timestamp {timestamp} is out of range for a dated path: {e}"
        ) from e
    return moment.strftime("%Y-%m-%d")


def _atomic_write(path: Path, payload: str) -> None:
    """Write payload to path via a sibling temp file and rename."""
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


class ArtifactStore:
    """Persists artifact records under a root using one fixed key strategy.

    - dated: <root>/<YYYY-MM-DD>/<contract>-<compiled_at>.json
    - address: <root>/<contract>-<address>.json

    Writing the same key twice replaces the earlier record.
    """

    def __init__(self, root: Path, strategy: str = DEFAULT_STRATEGY) -> None:
        if strategy not in STORAGE_STRATEGIES:
            raise ValueError(f"Unknown storage strategy: {strategy}")
        self.root = root
        self.strategy = cast(StorageStrategy, strategy)

    @property
    def requires_address(self) -> bool:
        return self.strategy == "address"

    def path_for(self, artifact: CompiledArtifact, address: str | None = None) -> Path:
        """Return the record path for an artifact under this store's strategy."""
        if self.strategy == "address":
            if not address:
                raise ValueError("Address-keyed storage requires a deployment address")
            return self.root / f"{artifact.contract_name}-{address}.json"

        return (
            self.root
            / dated_subdir(artifact.compiled_at)
            / f"{artifact.contract_name}-{artifact.compiled_at}.json"
        )

    def store(
        self,
        artifact: CompiledArtifact,
        address: str | None = None,
        deployed_at: int | None = None,
    ) -> Path:
        """Persist an artifact record and return its path.

        Args:
            artifact: The compiled artifact.
            address: Deployment address. Required by the address strategy,
                recorded (but not used as key) by the dated strategy.
            deployed_at: Deployment timestamp. Defaults to now when an
                address is given.

        Raises:
            ArtifactSerializationError: The record cannot be encoded as JSON,
                or its timestamp has no calendar date.
            ArtifactIOError: The directory or file cannot be written.
        """
        path = self.path_for(artifact, address)
        if address is not None and deployed_at is None:
            deployed_at = int(time.time())

        record = StoredArtifact.from_artifact(artifact, address, deployed_at)
        try:
            payload = json.dumps(record.to_dict(), indent=2, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise ArtifactSerializationError(
                f"Cannot serialize artifact '{artifact.contract_name}': {e}"
            ) from e

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write(path, payload + "\n")
        except OSError as e:
            raise ArtifactIOError(f"Cannot write artifact to {path}: {e}") from e

        logger.info("Stored artifact %s at %s", artifact.contract_name, path)
        return path

    def load(self, path: Path) -> StoredArtifact:
        """Read a stored record back.

        Raises:
            ArtifactIOError: The file cannot be read.
            ArtifactSerializationError: The file is not a valid record.
        """
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ArtifactIOError(f"Cannot read artifact {path}: {e}") from e

        try:
            data = json.loads(text)
            if not isinstance(data, dict):
                raise ValueError("record is not a JSON object")
            return StoredArtifact.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ArtifactSerializationError(f"Malformed artifact {path}: {e}") from e

    def list_artifacts(self) -> list[Path]:
        """Return record paths under the root, newest first."""
        if not self.root.is_dir():
            return []
        paths = [
            p
            for p in self.root.rglob("*.json")
            if p.is_file() and not p.name.startswith(".")
        ]
        return sorted(paths, key=lambda p: p.stat().st_mtime, reverse=True)
