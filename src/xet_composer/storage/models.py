"""Stored artifact record model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Self

from xet_composer.compiler.base import CompiledArtifact


@dataclass(frozen=True)
class StoredArtifact:
    """Immutable on-disk record of a compiled (and possibly deployed) contract."""

    contract_name: str
    abi: Any
    bytecode: str
    compiled_at: int  # Seconds since epoch

    # Present only once a deployment address is known
    address: str | None = None
    deployed_at: int | None = None

    @classmethod
    def from_artifact(
        cls,
        artifact: CompiledArtifact,
        address: str | None = None,
        deployed_at: int | None = None,
    ) -> Self:
        return cls(
            contract_name=artifact.contract_name,
            abi=artifact.abi,
            bytecode=artifact.bytecode,
            compiled_at=artifact.compiled_at,
            address=address,
            deployed_at=deployed_at,
        )

    def to_artifact(self) -> CompiledArtifact:
        """Return the compiled artifact this record was created from."""
        return CompiledArtifact(
            contract_name=self.contract_name,
            abi=self.abi,
            bytecode=self.bytecode,
            compiled_at=self.compiled_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON record layout, omitting unset deployment fields."""
        result: dict[str, Any] = {
            "contractName": self.contract_name,
            "abi": self.abi,
            "bytecode": self.bytecode,
            "compilationTimestamp": self.compiled_at,
        }
        if self.address is not None:
            result["address"] = self.address
        if self.deployed_at is not None:
            result["deployedAt"] = self.deployed_at
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create from a parsed JSON record.

        Raises KeyError/ValueError/TypeError on a malformed record.
        """
        deployed_at_raw = data.get("deployedAt")
        address = data.get("address")
        return cls(
            contract_name=str(data["contractName"]),
            abi=data["abi"],
            bytecode=str(data["bytecode"]),
            compiled_at=int(data["compilationTimestamp"]),
            address=str(address) if address is not None else None,
            deployed_at=int(deployed_at_raw) if deployed_at_raw is not None else None,
        )
