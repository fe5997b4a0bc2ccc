"""Configuration schema for xet-composer."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Literal, cast

RunnerType = Literal["local", "docker"]
StorageType = Literal["dated", "address"]


@dataclass
class ComposerConfig:
    """xet-composer configuration schema.

    None values indicate "not set" and will use defaults or be inherited.
    """

    # Compiler settings
    solc: str | None = None  # Executable name or path for the local runner
    runner: RunnerType | None = None
    docker_image: str | None = None
    timeout: float | None = None  # Seconds to wait for the compiler

    # Paths
    template_root: str | None = None
    artifact_root: str | None = None
    base_path: str | None = None

    # Verbatim solc import remappings, e.g. "@openzeppelin/=lib/openzeppelin/"
    remappings: tuple[str, ...] | None = None

    # Artifact key strategy
    storage: StorageType | None = None

    def merge(self, other: ComposerConfig) -> ComposerConfig:
        """Merge another config into this one.

        Values from `other` take precedence when they are not None.
        Returns a new ComposerConfig instance.
        """
        values: dict[str, Any] = {}
        for f in fields(self):
            theirs = getattr(other, f.name)
            values[f.name] = theirs if theirs is not None else getattr(self, f.name)
        return ComposerConfig(**values)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary, excluding None values."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            result[f.name] = list(value) if f.name == "remappings" else value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ComposerConfig:
        """Create a ComposerConfig from a dictionary.

        Unknown keys are ignored. Type validation is performed.
        """
        runner_raw = data.get("runner")
        runner: RunnerType | None = None
        if runner_raw in ("local", "docker"):
            runner = cast(RunnerType, runner_raw)

        storage_raw = data.get("storage")
        storage: StorageType | None = None
        if storage_raw in ("dated", "address"):
            storage = cast(StorageType, storage_raw)

        timeout_raw = data.get("timeout")
        timeout = float(timeout_raw) if timeout_raw is not None else None

        remappings_raw = data.get("remappings")
        remappings: tuple[str, ...] | None = None
        if isinstance(remappings_raw, str):
            remappings = tuple(remappings_raw.split())
        elif isinstance(remappings_raw, (list, tuple)):
            remappings = tuple(str(r) for r in remappings_raw)

        def _str(key: str) -> str | None:
            value = data.get(key)
            return str(value) if value is not None else None

        return cls(
            solc=_str("solc"),
            runner=runner,
            docker_image=_str("docker_image"),
            timeout=timeout,
            template_root=_str("template_root"),
            artifact_root=_str("artifact_root"),
            base_path=_str("base_path"),
            remappings=remappings,
            storage=storage,
        )


# Default configuration values (used when not specified anywhere).
# template_root falls back to the bundled templates when unset.
DEFAULT_CONFIG = ComposerConfig(
    solc="solc",
    runner="local",
    docker_image="ethereum/solc:stable",
    timeout=120.0,
    artifact_root="deployments",
    base_path=".",
    remappings=(),
    storage="dated",
)
