"""Pipeline request, result and stage definitions."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Stage(str, Enum):
    """Pipeline stage, in execution order."""

    RENDER = "render"
    COMPILE = "compile"
    STORE = "store"
    DEPLOY = "deploy"


@dataclass(frozen=True)
class ComposeRequest:
    """Inbound request: which template to render and with what parameters."""

    template: str  # Bare name ("TokenVesting") or filename
    parameters: Mapping[str, Any] = field(default_factory=dict)
    deploy: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ComposeRequest:
        """Create from a transport payload ({"contract": ..., "params": ...})."""
        template = data.get("template", data.get("contract", ""))
        parameters = data.get("parameters", data.get("params", {}))
        return cls(
            template=str(template),
            parameters=parameters if parameters is not None else {},
            deploy=bool(data.get("deploy", True)),
        )


@dataclass
class ComposeResult:
    """Outcome of one pipeline run.

    Fields for stages that were not reached stay None.
    """

    success: bool
    message: str
    stage: Stage | None = None  # Stage that failed, if any
    error_kind: str | None = None
    diagnostics: dict[str, Any] | None = None  # Raw compiler output on failure
    contract_name: str | None = None
    abi: Any = None
    bytecode: str | None = None
    compiled_at: int | None = None
    artifact_path: str | None = None
    deployed_address: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the transport, omitting unset fields."""
        result: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.stage is not None:
            result["stage"] = self.stage.value
        optional = {
            "error_kind": self.error_kind,
            "diagnostics": self.diagnostics,
            "contract_name": self.contract_name,
            "abi": self.abi,
            "bytecode": self.bytecode,
            "compiled_at": self.compiled_at,
            "artifact_path": self.artifact_path,
            "deployed_address": self.deployed_address,
        }
        result.update({k: v for k, v in optional.items() if v is not None})
        if self.warnings:
            result["warnings"] = list(self.warnings)
        return result
