"""Compose pipeline and its collaborators."""

from xet_composer.pipeline.base import ComposeRequest, ComposeResult, Stage
from xet_composer.pipeline.coordinator import Pipeline
from xet_composer.pipeline.deploy import (
    PLACEHOLDER_ADDRESS,
    Deployer,
    DeploymentError,
    StubDeployer,
)

__all__ = [
    "PLACEHOLDER_ADDRESS",
    "ComposeRequest",
    "ComposeResult",
    "Deployer",
    "DeploymentError",
    "Pipeline",
    "Stage",
    "StubDeployer",
]
