"""Shared fixtures: a fake compiler runner and a small template root."""

from pathlib import Path

import pytest

from xet_composer.compiler.base import (
    CompileJob,
    CompilerRun,
    CompilerRunner,
    list_output_files,
)

VESTING_TEMPLATE = """\
pragma solidity ^0.8.20;

contract Vesting {
    address public beneficiary = {{ beneficiary }};
    uint64 public start = {{ start }};
}
"""

VESTING_ABI = '[{"inputs": [], "name": "start", "type": "function"}]'


class FakeRunner(CompilerRunner):
    """Compiler runner that writes canned output files instead of running solc."""

    name = "fake"

    def __init__(
        self,
        outputs: dict[str, str | bytes] | None = None,
        exit_status: int = 0,
        stdout: str = "",
        stderr: str = "",
        error: Exception | None = None,
    ) -> None:
        self.outputs = outputs if outputs is not None else {}
        self.exit_status = exit_status
        self.stdout = stdout
        self.stderr = stderr
        self.error = error
        self.jobs: list[CompileJob] = []
        self.sources: list[str] = []

    def describe(self) -> str:
        return "fake"

    def run(self, job: CompileJob) -> CompilerRun:
        self.jobs.append(job)
        self.sources.append(job.source_path.read_text(encoding="utf-8"))
        if self.error is not None:
            raise self.error
        for name, content in self.outputs.items():
            target = job.output_dir / name
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(content, encoding="utf-8")
        return CompilerRun(
            stdout=self.stdout,
            stderr=self.stderr,
            exit_status=self.exit_status,
            output_files=list_output_files(job.output_dir),
        )


@pytest.fixture
def vesting_outputs() -> dict[str, str]:
    """Compiler output files for a successful Vesting build."""
    return {"Vesting.abi": VESTING_ABI, "Vesting.bin": "6080604052\n"}


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """Create a template root containing Vesting.sol.j2."""
    root = tmp_path / "templates"
    root.mkdir()
    (root / "Vesting.sol.j2").write_text(VESTING_TEMPLATE, encoding="utf-8")
    return root
