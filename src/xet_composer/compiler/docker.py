"""Docker compiler runner."""

from __future__ import annotations

import logging
import os

import docker
import requests
from docker.errors import DockerException, ImageNotFound, NotFound
from docker.models.containers import Container

from xet_composer.compiler.base import (
    CompileJob,
    CompilerNotFoundError,
    CompilerRun,
    CompilerRunner,
    CompilerTimeoutError,
    build_solc_args,
    list_output_files,
)

logger = logging.getLogger(__name__)

DEFAULT_SOLC_IMAGE = "ethereum/solc:stable"

# Mount points inside the container
SOURCES_MOUNT = "/sources"
OUTPUT_MOUNT = "/out"
BASE_MOUNT = "/base"


class DockerRunner(CompilerRunner):
    """Runner that executes solc inside a throwaway container.

    The image entrypoint is expected to be solc itself (as in ethereum/solc).
    Remappings are passed verbatim, so their targets must resolve inside the
    container (typically relative to the base path mount).
    """

    name = "docker"

    def __init__(self, image: str = DEFAULT_SOLC_IMAGE) -> None:
        self.image = image

    def describe(self) -> str:
        return f"{self.image} (docker)"

    def _get_client(self) -> docker.DockerClient:
        try:
            return docker.from_env()
        except DockerException as e:
            raise CompilerNotFoundError(f"Cannot connect to Docker: {e}") from e

    def _ensure_image(self, client: docker.DockerClient) -> None:
        """Pull the compiler image if not available locally."""
        try:
            client.images.get(self.image)
        except ImageNotFound:
            logger.info("Pulling compiler image: %s", self.image)
            try:
                client.images.pull(self.image)
            except DockerException as e:
                raise CompilerNotFoundError(
                    f"Cannot pull compiler image '{self.image}': {e}"
                ) from e

    def _get_volume_mounts(self, job: CompileJob) -> dict[str, dict[str, str]]:
        return {
            str(job.source_path): {
                "bind": f"{SOURCES_MOUNT}/{job.source_path.name}",
                "mode": "ro",
            },
            str(job.output_dir): {"bind": OUTPUT_MOUNT, "mode": "rw"},
            str(job.base_path.resolve()): {"bind": BASE_MOUNT, "mode": "ro"},
        }

    def run(self, job: CompileJob) -> CompilerRun:
        """Run solc in a container, bounded by job.timeout."""
        client = self._get_client()
        container: Container | None = None
        try:
            self._ensure_image(client)
            command = build_solc_args(
                f"{SOURCES_MOUNT}/{job.source_path.name}",
                OUTPUT_MOUNT,
                BASE_MOUNT,
                job.remappings,
            )
            # Run as the host user so the output dir stays removable
            user = f"{os.getuid()}:{os.getgid()}" if hasattr(os, "getuid") else None
            try:
                container = client.containers.create(
                    image=self.image,
                    command=command,
                    volumes=self._get_volume_mounts(job),
                    user=user,
                    detach=True,
                )
                container.start()
            except DockerException as e:
                raise CompilerNotFoundError(
                    f"Cannot start compiler container: {e}"
                ) from e

            try:
                result = container.wait(timeout=job.timeout)
            except (requests.exceptions.ReadTimeout, requests.exceptions.ConnectionError) as e:
                container.kill()
                raise CompilerTimeoutError(
                    job.timeout, stderr=self._read_logs(container, stderr=True)
                ) from e

            return CompilerRun(
                stdout=self._read_logs(container, stderr=False),
                stderr=self._read_logs(container, stderr=True),
                exit_status=int(result.get("StatusCode", 1)),
                output_files=list_output_files(job.output_dir),
            )
        finally:
            if container is not None:
                try:
                    container.remove(force=True)
                except NotFound:
                    pass  # Already removed
            client.close()

    @staticmethod
    def _read_logs(container: Container, stderr: bool) -> str:
        raw = container.logs(stdout=not stderr, stderr=stderr)
        return raw.decode("utf-8", errors="replace")
