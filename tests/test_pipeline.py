"""Tests for the compose pipeline coordinator."""

from pathlib import Path

import pytest

from conftest import FakeRunner
from xet_composer.compiler import CompiledArtifact, LocalRunner, SolidityCompiler
from xet_composer.config import ComposerConfig
from xet_composer.pipeline import (
    PLACEHOLDER_ADDRESS,
    ComposeRequest,
    ComposeResult,
    Deployer,
    DeploymentError,
    Pipeline,
    Stage,
    StubDeployer,
)
from xet_composer.storage import ArtifactStore
from xet_composer.templates import TemplateRenderer

PARAMS = {"beneficiary": "0xabc", "start": 1700000000}


class FailingDeployer(Deployer):
    """Deployer that always fails."""

    name = "failing"

    def deploy(self, artifact: CompiledArtifact) -> str:
        raise DeploymentError("node unreachable")


def _make_pipeline(
    template_dir: Path,
    runner: FakeRunner,
    store_root: Path,
    strategy: str = "dated",
    deployer: Deployer | None = None,
    clock_values: list[float] | None = None,
) -> Pipeline:
    ticks = iter(clock_values or [1700000000.0] * 10)
    return Pipeline(
        renderer=TemplateRenderer(template_dir),
        compiler=SolidityCompiler(runner),
        store=ArtifactStore(store_root, strategy),
        deployer=deployer,
        clock=lambda: next(ticks),
    )


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    return tmp_path / "deployments"


class TestComposeRequest:
    """Tests for request parsing."""

    def test_from_transport_payload(self) -> None:
        """Test the {contract, params} payload shape is accepted."""
        request = ComposeRequest.from_dict({"contract": "Vesting", "params": PARAMS})
        assert request.template == "Vesting"
        assert request.parameters == PARAMS
        assert request.deploy is True

    def test_from_dict_defaults(self) -> None:
        request = ComposeRequest.from_dict({"template": "Vesting", "deploy": False})
        assert request.parameters == {}
        assert request.deploy is False


class TestComposeResult:
    """Tests for result serialization."""

    def test_to_dict_omits_unreached_fields(self) -> None:
        result = ComposeResult(
            success=False, message="boom", stage=Stage.RENDER, error_kind="RenderError"
        )
        data = result.to_dict()

        assert data == {
            "success": False,
            "message": "boom",
            "stage": "render",
            "error_kind": "RenderError",
        }


class TestPipelineSuccess:
    """Tests for the happy path."""

    def test_render_compile_store_deploy(
        self, template_dir: Path, store_root: Path, vesting_outputs: dict[str, str]
    ) -> None:
        """Test a full run produces, stores and deploys the artifact."""
        runner = FakeRunner(outputs=vesting_outputs)
        pipeline = _make_pipeline(
            template_dir, runner, store_root, deployer=StubDeployer()
        )

        result = pipeline.run(ComposeRequest("Vesting", PARAMS))

        assert result.success is True
        assert result.stage is None
        assert result.contract_name == "Vesting"
        assert result.bytecode == "6080604052"
        assert result.compiled_at == 1700000000
        assert result.deployed_address == PLACEHOLDER_ADDRESS
        assert result.artifact_path == str(
            store_root / "2023-11-14" / "Vesting-1700000000.json"
        )
        assert Path(result.artifact_path).is_file()
        assert result.warnings == []
        assert "0xabc" in runner.sources[0]
        assert "1700000000" in runner.sources[0]

    def test_template_filename_maps_to_contract_name(
        self, template_dir: Path, store_root: Path, vesting_outputs: dict[str, str]
    ) -> None:
        """Test the logical name is derived by stripping the template suffix."""
        runner = FakeRunner(outputs=vesting_outputs)
        pipeline = _make_pipeline(template_dir, runner, store_root)

        result = pipeline.run(ComposeRequest("Vesting.sol.j2", PARAMS))

        assert result.success is True
        assert result.contract_name == "Vesting"

    def test_no_deploy(
        self, template_dir: Path, store_root: Path, vesting_outputs: dict[str, str]
    ) -> None:
        """Test deploy=False skips the deployer."""
        runner = FakeRunner(outputs=vesting_outputs)
        pipeline = _make_pipeline(
            template_dir, runner, store_root, deployer=StubDeployer()
        )

        result = pipeline.run(ComposeRequest("Vesting", PARAMS, deploy=False))

        assert result.success is True
        assert result.deployed_address is None
        assert "deployed_address" not in result.to_dict()

    def test_without_deployer_skips_deploy(
        self, template_dir: Path, store_root: Path, vesting_outputs: dict[str, str]
    ) -> None:
        """Test a pipeline with no deployer stores the artifact and stops."""
        runner = FakeRunner(outputs=vesting_outputs)
        pipeline = _make_pipeline(template_dir, runner, store_root)

        result = pipeline.run(ComposeRequest("Vesting", PARAMS, deploy=True))

        assert result.success is True
        assert result.deployed_address is None
        assert result.artifact_path is not None

    def test_repeated_runs_produce_distinct_artifacts(
        self, template_dir: Path, store_root: Path, vesting_outputs: dict[str, str]
    ) -> None:
        """Test identical requests at different times store two records."""
        runner = FakeRunner(outputs=vesting_outputs)
        pipeline = _make_pipeline(
            template_dir,
            runner,
            store_root,
            clock_values=[1700000000.0, 1700000001.0],
        )

        first = pipeline.run(ComposeRequest("Vesting", PARAMS))
        second = pipeline.run(ComposeRequest("Vesting", PARAMS))

        assert first.compiled_at != second.compiled_at
        assert first.artifact_path != second.artifact_path
        assert len(pipeline.store.list_artifacts()) == 2


class TestPipelineFailures:
    """Tests for stage failure handling."""

    def test_unknown_template_fails_render(
        self, template_dir: Path, store_root: Path
    ) -> None:
        """Test render failures stop the pipeline before compilation."""
        runner = FakeRunner()
        pipeline = _make_pipeline(template_dir, runner, store_root)

        result = pipeline.run(ComposeRequest("Missing", PARAMS))

        assert result.success is False
        assert result.stage is Stage.RENDER
        assert result.error_kind == "TemplateNotFound"
        assert runner.jobs == []
        data = result.to_dict()
        assert "contract_name" not in data
        assert "bytecode" not in data

    def test_missing_parameter_fails_render(
        self, template_dir: Path, store_root: Path
    ) -> None:
        runner = FakeRunner()
        pipeline = _make_pipeline(template_dir, runner, store_root)

        result = pipeline.run(ComposeRequest("Vesting", {"start": 1}))

        assert result.stage is Stage.RENDER
        assert result.error_kind == "RenderError"
        assert "beneficiary" in result.message

    def test_unencodable_parameter_fails_render(
        self, template_dir: Path, store_root: Path
    ) -> None:
        """Test a parameter that cannot be written as UTF-8 fails the render stage."""
        runner = FakeRunner()
        pipeline = _make_pipeline(template_dir, runner, store_root)

        result = pipeline.run(
            ComposeRequest("Vesting", {"beneficiary": "\ud800", "start": 1}, deploy=False)
        )

        assert result.success is False
        assert result.stage is Stage.RENDER
        assert result.error_kind == "RenderError"
        assert runner.jobs == []

    def test_undecodable_compiler_output_fails_compile(
        self, template_dir: Path, store_root: Path
    ) -> None:
        """Test compiler output that is not UTF-8 fails the compile stage."""
        runner = FakeRunner(outputs={"Vesting.abi": b"\xff\xfe[]", "Vesting.bin": "6080"})
        pipeline = _make_pipeline(template_dir, runner, store_root)

        result = pipeline.run(ComposeRequest("Vesting", PARAMS, deploy=False))

        assert result.success is False
        assert result.stage is Stage.COMPILE
        assert result.error_kind == "InterfaceParseError"
        assert not store_root.exists()

    def test_out_of_range_timestamp_is_a_storage_warning(
        self, template_dir: Path, store_root: Path, vesting_outputs: dict[str, str]
    ) -> None:
        """Test a clock value with no calendar date is reported, not misfiled."""
        runner = FakeRunner(outputs=vesting_outputs)
        pipeline = _make_pipeline(
            template_dir, runner, store_root, clock_values=[1e20]
        )

        result = pipeline.run(ComposeRequest("Vesting", PARAMS, deploy=False))

        assert result.success is True
        assert result.artifact_path is None
        assert "SerializationError" in result.warnings[0]
        assert not store_root.exists()

    def test_compiler_error_fails_compile(
        self, template_dir: Path, store_root: Path
    ) -> None:
        """Test compiler diagnostics reach the result and nothing is stored."""
        stderr = "ParserError: Expected pragma, import directive or contract"
        runner = FakeRunner(exit_status=1, stderr=stderr)
        pipeline = _make_pipeline(
            template_dir, runner, store_root, deployer=StubDeployer()
        )

        result = pipeline.run(ComposeRequest("Vesting", PARAMS))

        assert result.success is False
        assert result.stage is Stage.COMPILE
        assert result.error_kind == "CompilerError"
        assert result.diagnostics is not None
        assert result.diagnostics["stderr"] == stderr
        assert stderr in result.message
        assert result.bytecode is None
        assert result.deployed_address is None
        assert not store_root.exists()

    def test_missing_interface_keeps_sub_kind(
        self, template_dir: Path, store_root: Path
    ) -> None:
        """Test the compile failure sub-kind is preserved."""
        runner = FakeRunner(outputs={"Other.abi": "[]", "Other.bin": "60"})
        pipeline = _make_pipeline(template_dir, runner, store_root)

        result = pipeline.run(ComposeRequest("Vesting", PARAMS))

        assert result.stage is Stage.COMPILE
        assert result.error_kind == "InterfaceNotFound"
        assert result.diagnostics is None

    def test_storage_failure_is_a_warning(
        self, template_dir: Path, tmp_path: Path, vesting_outputs: dict[str, str]
    ) -> None:
        """Test an unwritable store still yields a successful result."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        runner = FakeRunner(outputs=vesting_outputs)
        pipeline = _make_pipeline(
            template_dir, runner, blocker, deployer=StubDeployer()
        )

        result = pipeline.run(ComposeRequest("Vesting", PARAMS))

        assert result.success is True
        assert result.has_warnings
        assert "IoError" in result.warnings[0]
        assert result.artifact_path is None
        assert result.bytecode == "6080604052"
        assert result.deployed_address == PLACEHOLDER_ADDRESS
        assert result.to_dict()["warnings"] == result.warnings

    def test_deploy_failure_is_fatal(
        self, template_dir: Path, store_root: Path, vesting_outputs: dict[str, str]
    ) -> None:
        """Test a deployer error fails the request at the deploy stage."""
        runner = FakeRunner(outputs=vesting_outputs)
        pipeline = _make_pipeline(
            template_dir, runner, store_root, deployer=FailingDeployer()
        )

        result = pipeline.run(ComposeRequest("Vesting", PARAMS))

        assert result.success is False
        assert result.stage is Stage.DEPLOY
        assert result.error_kind == "DeploymentError"
        assert "node unreachable" in result.message
        assert result.artifact_path is not None
        assert result.deployed_address is None


class TestAddressKeyedPipeline:
    """Tests for the address-keyed storage strategy."""

    def test_stores_after_deploy(
        self, template_dir: Path, store_root: Path, vesting_outputs: dict[str, str]
    ) -> None:
        """Test the record is keyed by the deployed address."""
        runner = FakeRunner(outputs=vesting_outputs)
        pipeline = _make_pipeline(
            template_dir, runner, store_root, "address", deployer=StubDeployer()
        )

        result = pipeline.run(ComposeRequest("Vesting", PARAMS))

        assert result.success is True
        expected = store_root / f"Vesting-{PLACEHOLDER_ADDRESS}.json"
        assert result.artifact_path == str(expected)
        assert pipeline.store.load(expected).address == PLACEHOLDER_ADDRESS

    def test_deploy_failure_skips_store(
        self, template_dir: Path, store_root: Path, vesting_outputs: dict[str, str]
    ) -> None:
        runner = FakeRunner(outputs=vesting_outputs)
        pipeline = _make_pipeline(
            template_dir, runner, store_root, "address", deployer=FailingDeployer()
        )

        result = pipeline.run(ComposeRequest("Vesting", PARAMS))

        assert result.stage is Stage.DEPLOY
        assert result.artifact_path is None
        assert not store_root.exists()

    def test_without_deploy_warns(
        self, template_dir: Path, store_root: Path, vesting_outputs: dict[str, str]
    ) -> None:
        """Test skipping deployment leaves nothing to key the record by."""
        runner = FakeRunner(outputs=vesting_outputs)
        pipeline = _make_pipeline(
            template_dir, runner, store_root, "address", deployer=StubDeployer()
        )

        result = pipeline.run(ComposeRequest("Vesting", PARAMS, deploy=False))

        assert result.success is True
        assert result.has_warnings
        assert result.artifact_path is None


class TestFromConfig:
    """Tests for building a pipeline from configuration."""

    def test_builds_stages(self, template_dir: Path, store_root: Path) -> None:
        config = ComposerConfig(
            solc="/opt/solc",
            runner="local",
            timeout=15,
            template_root=str(template_dir),
            artifact_root=str(store_root),
            base_path="/contracts",
            remappings=("@oz/=lib/oz/",),
            storage="address",
        )

        pipeline = Pipeline.from_config(config)

        assert isinstance(pipeline.compiler.runner, LocalRunner)
        assert pipeline.compiler.runner.executable == "/opt/solc"
        assert pipeline.compiler.timeout == 15
        assert pipeline.renderer.template_names == ["Vesting"]
        assert pipeline.store.root == store_root
        assert pipeline.store.strategy == "address"
        assert pipeline.base_path == Path("/contracts")
        assert pipeline.remappings == ("@oz/=lib/oz/",)
        assert isinstance(pipeline.deployer, StubDeployer)
