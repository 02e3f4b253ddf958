"""
Deploy an OpenZeppelin ERC-20 token to a test network with Foundry and
send a batch of follow-up transfer transactions.
"""

from .config.settings import DeploymentConfig, validate_config
from .exceptions import (
    AddressExtractionError,
    BuildError,
    ChainClientError,
    DeploymentError,
    DryRunDetectedError,
    EnvironmentPreparationError,
    TokenDeployerError,
    TransactionError,
    ValidationError,
)
from .pipeline import DeploymentPipeline, PipelineResult

__version__ = "0.1.0"

__all__ = [
    "DeploymentConfig",
    "validate_config",
    "DeploymentPipeline",
    "PipelineResult",
    "AddressExtractionError",
    "BuildError",
    "ChainClientError",
    "DeploymentError",
    "DryRunDetectedError",
    "EnvironmentPreparationError",
    "TokenDeployerError",
    "TransactionError",
    "ValidationError",
]
