"""Deployment collaborator interface."""

import logging
from abc import ABC, abstractmethod

from xet_composer.compiler.base import CompiledArtifact

logger = logging.getLogger(__name__)

PLACEHOLDER_ADDRESS = "0x1234567890abcdef1234567890abcdef12345678"


class DeploymentError(Exception):
    """Raised when a deployer fails to deploy an artifact."""

    kind = "DeploymentError"


class Deployer(ABC):
    """Base class for deployment backends."""

    name: str

    @abstractmethod
    def deploy(self, artifact: CompiledArtifact) -> str:
        """Deploy the artifact and return its address.

        Raises DeploymentError on failure.
        """
        ...


class StubDeployer(Deployer):
    """Deployer that simulates a deployment and returns a fixed address."""

    name = "stub"

    def __init__(self, address: str = PLACEHOLDER_ADDRESS) -> None:
        self.address = address

    def deploy(self, artifact: CompiledArtifact) -> str:
        logger.info("Simulating deployment of %s", artifact.contract_name)
        return self.address
