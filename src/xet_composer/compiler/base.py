"""Compiler runner interface, artifact model and error taxonomy."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any


class CompileError(Exception):
    """Base exception for the compilation stage."""

    kind = "CompileError"


class CompilerError(CompileError):
    """Raised when the compiler ran and exited with a non-zero status."""

    kind = "CompilerError"

    def __init__(self, exit_status: int, stdout: str, stderr: str) -> None:
        self.exit_status = exit_status
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f"solc failed with status: {exit_status}\n"
            f"stdout: {stdout}\n"
            f"stderr: {stderr}"
        )


class CompilerTimeoutError(CompileError):
    """Raised when the compiler did not finish within the timeout."""

    kind = "TimedOut"

    def __init__(self, timeout: float, stdout: str = "", stderr: str = "") -> None:
        self.timeout = timeout
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"solc timed out after {timeout:g}s\nstderr: {stderr}")


class CompilerNotFoundError(CompileError):
    """Raised when the compiler executable (or container runtime) is unavailable."""

    kind = "CompilerNotFound"


class CompilerStagingError(CompileError):
    """Raised when temporary compiler input/output cannot be prepared or read."""

    kind = "StagingError"


class InterfaceNotFoundError(CompileError):
    """Raised when the compiler produced no ABI file for the logical name.

    Usually means the logical name does not match any contract in the source.
    """

    kind = "InterfaceNotFound"

    def __init__(self, contract_name: str, output_files: tuple[str, ...]) -> None:
        self.contract_name = contract_name
        self.output_files = output_files
        produced = ", ".join(output_files) or "nothing"
        super().__init__(
            f"No ABI produced for contract '{contract_name}' (compiler wrote: {produced})"
        )


class BytecodeNotFoundError(CompileError):
    """Raised when the compiler produced no bytecode file for the logical name."""

    kind = "BytecodeNotFound"

    def __init__(self, contract_name: str, output_files: tuple[str, ...]) -> None:
        self.contract_name = contract_name
        self.output_files = output_files
        produced = ", ".join(output_files) or "nothing"
        super().__init__(
            f"No bytecode produced for contract '{contract_name}' "
            f"(compiler wrote: {produced})"
        )


class InterfaceParseError(CompileError):
    """Raised when the ABI file is not valid JSON."""

    kind = "InterfaceParseError"

    def __init__(self, contract_name: str, detail: str, raw: str) -> None:
        self.contract_name = contract_name
        self.detail = detail
        self.raw = raw
        super().__init__(f"Malformed ABI for contract '{contract_name}': {detail}")


@dataclass(frozen=True)
class CompiledArtifact:
    """Result of one successful compilation."""

    contract_name: str
    abi: Any  # Parsed JSON, not re-validated
    bytecode: str  # Bare hex, no 0x prefix
    compiled_at: int  # Seconds since epoch


@dataclass(frozen=True)
class CompileJob:
    """Inputs for a single compiler invocation."""

    source_path: Path
    output_dir: Path
    base_path: Path
    remappings: tuple[str, ...] = ()
    timeout: float = 120.0


@dataclass(frozen=True)
class CompilerRun:
    """Raw outcome of a compiler invocation."""

    stdout: str
    stderr: str
    exit_status: int
    output_files: tuple[str, ...] = ()  # Filenames found in the output dir


def build_solc_args(
    source: str, output_dir: str, base_path: str, remappings: tuple[str, ...]
) -> list[str]:
    """Build solc arguments requesting optimized ABI and bytecode output."""
    args = [
        "--abi",
        "--bin",
        "--optimize",
        "--overwrite",
        "-o",
        output_dir,
        "--base-path",
        base_path,
        source,
    ]
    args.extend(remappings)
    return args


def list_output_files(output_dir: Path) -> tuple[str, ...]:
    """Return the sorted names of regular files in the output dir."""
    if not output_dir.is_dir():
        return ()
    return tuple(sorted(p.name for p in output_dir.iterdir() if p.is_file()))


class CompilerRunner(ABC):
    """Base class for compiler execution environments."""

    name: str

    @abstractmethod
    def run(self, job: CompileJob) -> CompilerRun:
        """Run the compiler for the given job.

        Raises:
            CompilerNotFoundError: The compiler cannot be started at all.
            CompilerTimeoutError: The compiler exceeded job.timeout.
        """
        ...

    @abstractmethod
    def describe(self) -> str:
        """Human-readable description of the compiler being used."""
        ...
