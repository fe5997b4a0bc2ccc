"""Solidity compiler invocation and artifact extraction."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from collections.abc import Iterator, Sequence
from contextlib import ExitStack, contextmanager
from pathlib import Path

from xet_composer.compiler.base import (
    BytecodeNotFoundError,
    CompiledArtifact,
    CompileJob,
    CompilerError,
    CompilerRunner,
    CompilerStagingError,
    InterfaceNotFoundError,
    InterfaceParseError,
)
from xet_composer.templates.base import ContractIdentity

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


def normalize_bytecode(raw: str) -> str:
    """Return bytecode as bare hex: whitespace trimmed, no 0x prefix."""
    bytecode = raw.strip()
    if bytecode[:2] in ("0x", "0X"):
        bytecode = bytecode[2:]
    return bytecode


@contextmanager
def staged_source(source_text: str, prefix: str = "xet_") -> Iterator[Path]:
    """Write source text to a fresh temporary .sol file, removed on exit."""
    fd, name = tempfile.mkstemp(prefix=prefix, suffix=".sol")
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(source_text)
        yield path
    finally:
        path.unlink(missing_ok=True)


class SolidityCompiler:
    """Drives a compiler runner and turns its raw output into an artifact."""

    def __init__(self, runner: CompilerRunner, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.runner = runner
        self.timeout = timeout

    def compile(
        self,
        source_text: str,
        logical_name: ContractIdentity | str,
        base_path: Path,
        remappings: Sequence[str] = (),
        compiled_at: int | None = None,
    ) -> CompiledArtifact:
        """Compile source text and extract the artifact for logical_name.

        Every call stages into its own temporary input file and output
        directory; both are removed before returning, on success or failure.

        Args:
            source_text: Rendered Solidity source.
            logical_name: Contract whose ABI/bytecode to extract.
            base_path: Base import path passed to the compiler.
            remappings: Import remapping directives, appended verbatim.
            compiled_at: Timestamp to stamp on the artifact. Defaults to now.

        Raises:
            CompileError: One of its subclasses, classifying the failure.
        """
        identity = (
            logical_name
            if isinstance(logical_name, ContractIdentity)
            else ContractIdentity(template_name=logical_name)
        )
        if compiled_at is None:
            compiled_at = int(time.time())

        try:
            with ExitStack() as stack:
                source_path = stack.enter_context(
                    staged_source(source_text, prefix=f"{identity.contract_name}_")
                )
                output_dir = Path(
                    stack.enter_context(tempfile.TemporaryDirectory(prefix="solc_out_"))
                )
                job = CompileJob(
                    source_path=source_path,
                    output_dir=output_dir,
                    base_path=base_path,
                    remappings=tuple(remappings),
                    timeout=self.timeout,
                )
                logger.debug(
                    "Compiling %s with %s", identity.contract_name, self.runner.describe()
                )
                run = self.runner.run(job)

                if run.exit_status != 0:
                    raise CompilerError(run.exit_status, run.stdout, run.stderr)

                if identity.abi_filename not in run.output_files:
                    raise InterfaceNotFoundError(identity.contract_name, run.output_files)
                if identity.bin_filename not in run.output_files:
                    raise BytecodeNotFoundError(identity.contract_name, run.output_files)

                abi_raw = (output_dir / identity.abi_filename).read_bytes()
                bin_raw = (output_dir / identity.bin_filename).read_bytes()
        except OSError as e:
            raise CompilerStagingError(
                f"Compiler staging failed for '{identity.contract_name}': {e}"
            ) from e

        try:
            abi_text = abi_raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InterfaceParseError(
                identity.contract_name, str(e), abi_raw.decode("utf-8", errors="replace")
            ) from e
        try:
            bin_text = bin_raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CompilerStagingError(
                f"Bytecode output for '{identity.contract_name}' is not valid UTF-8: {e}"
            ) from e

        try:
            abi = json.loads(abi_text)
        except json.JSONDecodeError as e:
            raise InterfaceParseError(identity.contract_name, str(e), abi_text) from e

        return CompiledArtifact(
            contract_name=identity.contract_name,
            abi=abi,
            bytecode=normalize_bytecode(bin_text),
            compiled_at=compiled_at,
        )
