"""Compiler runner registry and invocation."""

from __future__ import annotations

from xet_composer.compiler.base import (
    BytecodeNotFoundError,
    CompiledArtifact,
    CompileError,
    CompileJob,
    CompilerError,
    CompilerNotFoundError,
    CompilerRun,
    CompilerRunner,
    CompilerStagingError,
    CompilerTimeoutError,
    InterfaceNotFoundError,
    InterfaceParseError,
)
from xet_composer.compiler.docker import DEFAULT_SOLC_IMAGE, DockerRunner
from xet_composer.compiler.invoker import SolidityCompiler, normalize_bytecode
from xet_composer.compiler.local import DEFAULT_SOLC, LocalRunner

RUNNERS: dict[str, type[CompilerRunner]] = {
    "docker": DockerRunner,
    "local": LocalRunner,
}

DEFAULT_RUNNER = "local"


def get_runner(
    name: str | None = None,
    executable: str | None = None,
    image: str | None = None,
) -> CompilerRunner:
    """Get a compiler runner instance by name. Defaults to local.

    Args:
        name: Runner name ("local" or "docker"). Defaults to local.
        executable: solc executable override (only for local runner).
        image: Docker image override (only for docker runner).
    """
    runner_name = name or DEFAULT_RUNNER
    if runner_name not in RUNNERS:
        raise ValueError(f"Unknown compiler runner: {runner_name}")

    if runner_name == "docker":
        return DockerRunner(image=image or DEFAULT_SOLC_IMAGE)

    return LocalRunner(executable=executable or DEFAULT_SOLC)


__all__ = [
    "DEFAULT_RUNNER",
    "RUNNERS",
    "BytecodeNotFoundError",
    "CompiledArtifact",
    "CompileError",
    "CompileJob",
    "CompilerError",
    "CompilerNotFoundError",
    "CompilerRun",
    "CompilerRunner",
    "CompilerStagingError",
    "CompilerTimeoutError",
    "DockerRunner",
    "InterfaceNotFoundError",
    "InterfaceParseError",
    "LocalRunner",
    "SolidityCompiler",
    "get_runner",
    "normalize_bytecode",
]
