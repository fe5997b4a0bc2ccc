"""Pipeline coordinator: render, compile, store and deploy in strict order."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from xet_composer.compiler import (
    CompiledArtifact,
    CompileError,
    CompilerError,
    CompilerTimeoutError,
    SolidityCompiler,
    get_runner,
)
from xet_composer.config.loader import resolve_template_root
from xet_composer.config.schema import ComposerConfig
from xet_composer.pipeline.base import ComposeRequest, ComposeResult, Stage
from xet_composer.pipeline.deploy import Deployer, DeploymentError, StubDeployer
from xet_composer.storage import ArtifactStore, StorageError
from xet_composer.templates import ContractIdentity, TemplateError, TemplateRenderer

logger = logging.getLogger(__name__)


def _compile_diagnostics(error: CompileError) -> dict[str, object] | None:
    """Extract raw compiler output from a compile error, if it carries any."""
    if isinstance(error, CompilerError):
        return {
            "exit_status": error.exit_status,
            "stdout": error.stdout,
            "stderr": error.stderr,
        }
    if isinstance(error, CompilerTimeoutError):
        return {"timeout": error.timeout, "stdout": error.stdout, "stderr": error.stderr}
    return None


class Pipeline:
    """Runs one compose request through every stage, once, in order.

    Render and compile failures end the request. A storage failure only
    adds a warning, since the compiled artifact is still returned. Deploy
    failures end the request.
    """

    def __init__(
        self,
        renderer: TemplateRenderer,
        compiler: SolidityCompiler,
        store: ArtifactStore,
        deployer: Deployer | None = None,
        base_path: Path = Path("."),
        remappings: Sequence[str] = (),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.renderer = renderer
        self.compiler = compiler
        self.store = store
        self.deployer = deployer
        self.base_path = base_path
        self.remappings = tuple(remappings)
        self._clock = clock

    @classmethod
    def from_config(
        cls, config: ComposerConfig, deployer: Deployer | None = None
    ) -> Pipeline:
        """Build a pipeline from configuration.

        Raises TemplateInitError if the template root cannot be loaded.
        """
        runner = get_runner(config.runner, executable=config.solc, image=config.docker_image)
        compiler = SolidityCompiler(runner, timeout=config.timeout or 120.0)
        return cls(
            renderer=TemplateRenderer(resolve_template_root(config)),
            compiler=compiler,
            store=ArtifactStore(
                Path(config.artifact_root or "deployments"), config.storage or "dated"
            ),
            deployer=deployer if deployer is not None else StubDeployer(),
            base_path=Path(config.base_path or "."),
            remappings=config.remappings or (),
        )

    def run(self, request: ComposeRequest) -> ComposeResult:
        """Execute the pipeline for a request. Never raises for stage failures."""
        # Received -> Rendered
        try:
            identity = ContractIdentity.from_template(request.template)
            source = self.renderer.render(identity.template_name, request.parameters)
        except TemplateError as e:
            logger.info("Render failed for %s: %s", request.template, e)
            return ComposeResult(
                success=False,
                message=f"Render failed: {e}",
                stage=Stage.RENDER,
                error_kind=e.kind,
            )

        # Rendered -> Compiled
        try:
            artifact = self.compiler.compile(
                source,
                identity,
                self.base_path,
                self.remappings,
                compiled_at=int(self._clock()),
            )
        except CompileError as e:
            logger.info("Compile failed for %s: %s", identity.contract_name, e.kind)
            return ComposeResult(
                success=False,
                message=f"Compilation failed: {e}",
                stage=Stage.COMPILE,
                error_kind=e.kind,
                diagnostics=_compile_diagnostics(e),
            )

        result = ComposeResult(
            success=True,
            message=f"Contract '{artifact.contract_name}' compiled.",
            contract_name=artifact.contract_name,
            abi=artifact.abi,
            bytecode=artifact.bytecode,
            compiled_at=artifact.compiled_at,
        )
        deployer = self.deployer if request.deploy else None

        if not self.store.requires_address:
            # Compiled -> Stored -> Deployed
            self._store(artifact, result)
            if deployer is not None:
                self._deploy(deployer, artifact, result)
            return result

        # Address-keyed storage needs the address first: Compiled -> Deployed -> Stored
        if deployer is not None:
            self._deploy(deployer, artifact, result)
            if result.success and result.deployed_address:
                self._store(artifact, result, address=result.deployed_address)
        else:
            result.warnings.append(
                "Artifact not stored: address-keyed storage requires a deployment."
            )
        return result

    def _store(
        self,
        artifact: CompiledArtifact,
        result: ComposeResult,
        address: str | None = None,
    ) -> None:
        try:
            path = self.store.store(artifact, address=address)
        except StorageError as e:
            logger.warning("Failed to store artifact %s: %s", artifact.contract_name, e)
            result.warnings.append(f"Artifact not stored ({e.kind}): {e}")
            return
        result.artifact_path = str(path)

    def _deploy(
        self, deployer: Deployer, artifact: CompiledArtifact, result: ComposeResult
    ) -> None:
        try:
            address = deployer.deploy(artifact)
        except DeploymentError as e:
            logger.info("Deploy failed for %s: %s", artifact.contract_name, e)
            result.success = False
            result.stage = Stage.DEPLOY
            result.error_kind = e.kind
            result.message = f"Deployment failed: {e}"
            return
        result.deployed_address = address
        result.message = f"Contract '{artifact.contract_name}' compiled and deployed at {address}."
