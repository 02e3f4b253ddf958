"""Exception hierarchy for the token deployer.

Every fatal category carries the raw output of the external tool that
failed (when there is one) so the operator sees the real diagnostic.
"""

from __future__ import annotations


class TokenDeployerError(Exception):
    """Base exception for all deployer errors."""

    exit_code = 1

    def __init__(self, message: str, *, output: str | None = None):
        super().__init__(message)
        self.message = message
        self.output = output

    def __str__(self) -> str:
        if self.output:
            return f"{self.message}\n{self.output.rstrip()}"
        return self.message


class ValidationError(TokenDeployerError, ValueError):
    """Raised when operator input fails validation."""

    exit_code = 2

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class EnvironmentPreparationError(TokenDeployerError):
    """Raised when tooling, dependencies or the RPC endpoint are unusable."""

    exit_code = 3


class BuildError(TokenDeployerError):
    """Raised when contract compilation fails."""

    exit_code = 4


class DeploymentError(TokenDeployerError):
    """Raised when the contract could not be deployed."""

    exit_code = 5


class DryRunDetectedError(DeploymentError):
    """Raised when the deploy tool simulated the deployment instead of broadcasting it."""

    pass


class AddressExtractionError(DeploymentError):
    """Raised when no contract address can be found in the deploy output."""

    pass


class TransactionError(TokenDeployerError):
    """Raised for a single failed transfer iteration (nonce fetch or submit)."""

    pass


class ChainClientError(TokenDeployerError):
    """Raised when an RPC query or submission through a chain client fails."""

    pass
