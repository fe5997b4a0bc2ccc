"""Local subprocess compiler runner."""

import shutil
import subprocess

from xet_composer.compiler.base import (
    CompileJob,
    CompilerNotFoundError,
    CompilerRun,
    CompilerRunner,
    CompilerTimeoutError,
    build_solc_args,
    list_output_files,
)

DEFAULT_SOLC = "solc"


def _decode(output: bytes | str | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


class LocalRunner(CompilerRunner):
    """Runner that executes solc directly on the host."""

    name = "local"

    def __init__(self, executable: str = DEFAULT_SOLC) -> None:
        self.executable = executable

    def is_installed(self) -> bool:
        """Check if the compiler executable is available in PATH."""
        return shutil.which(self.executable) is not None

    def describe(self) -> str:
        return f"{self.executable} (local)"

    def run(self, job: CompileJob) -> CompilerRun:
        """Run solc as a subprocess, bounded by job.timeout."""
        cmd = [self.executable] + build_solc_args(
            str(job.source_path),
            str(job.output_dir),
            str(job.base_path),
            job.remappings,
        )
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=job.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise CompilerTimeoutError(
                job.timeout, stdout=_decode(e.stdout), stderr=_decode(e.stderr)
            ) from e
        except OSError as e:
            raise CompilerNotFoundError(
                f"Cannot execute compiler '{self.executable}': {e}"
            ) from e

        return CompilerRun(
            stdout=result.stdout,
            stderr=result.stderr,
            exit_status=result.returncode,
            output_files=list_output_files(job.output_dir),
        )
