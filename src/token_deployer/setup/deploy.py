#!/usr/bin/env python3
from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from eth_utils import to_checksum_address

from ..config.network import NetworkProfile
from ..config.settings import DeploymentConfig
from ..exceptions import (
    AddressExtractionError,
    ChainClientError,
    DeploymentError,
    DryRunDetectedError,
)
from ..helpers.chain_client import ChainClient
from ..helpers.process_runner import ProcessRunner
from .contract_template import ContractArtifact

logger = logging.getLogger(__name__)

DRY_RUN_MARKER = "Dry run enabled"
DEPLOYED_TO_RE = re.compile(r"Deployed to: (0x[a-fA-F0-9]{40})\b")
ADDRESS_RE = re.compile(r"0x[a-fA-F0-9]{40}")
DEFAULT_DEPLOY_GAS_LIMIT = 3_000_000
RECORD_STAMP_FORMAT = "%Y%m%d_%H%M%S_%f"


@dataclass(frozen=True)
class DeployOptions:
    gas_limit: int | None = DEFAULT_DEPLOY_GAS_LIMIT
    broadcast: bool = True
    json_output: bool = True

    @classmethod
    def legacy(cls) -> "DeployOptions":
        """Older Foundry releases: no gas/broadcast flags, plain text output."""
        return cls(gas_limit=None, broadcast=False, json_output=False)


@dataclass(frozen=True)
class DeployedContract:
    address: str
    explorer_url: str
    transaction_hash: str | None = None
    deployer: str | None = None


@dataclass(frozen=True)
class SenderAccount:
    address: str
    balance_wei: int


def check_sender_funds(client: ChainClient, private_key: str) -> SenderAccount:
    """Resolve the deployer address and require a non-zero balance.

    Raises:
        DeploymentError: the key cannot be resolved, the balance query fails,
            or the account holds nothing to pay gas with.
    """
    logger.info("Checking account balance...")
    try:
        address = client.sender_address(private_key)
    except ChainClientError as e:
        raise DeploymentError("Invalid private key.", output=e.output) from e
    try:
        balance = client.balance(address)
    except ChainClientError as e:
        raise DeploymentError("Insufficient funds or invalid private key.", output=e.output or e.message) from e
    if balance <= 0:
        raise DeploymentError(f"Insufficient funds: {address} has a zero balance.")
    logger.info("Account balance: %d wei", balance)
    return SenderAccount(address=address, balance_wei=balance)


def _structured_result(output: str) -> dict[str, Any] | None:
    """Find the JSON object `forge create --json` prints, if any."""
    candidates = [output.strip()] + [ln.strip() for ln in output.splitlines()]
    for text in candidates:
        if not text.startswith("{"):
            continue
        try:
            data = json.loads(text)
        except ValueError:
            continue
        if isinstance(data, dict) and "deployedTo" in data:
            return data
    return None


def extract_deployment(output: str) -> tuple[str, str | None, str | None]:
    """Return (address, tx_hash, deployer) from forge create output.

    Structured JSON is preferred; otherwise the `Deployed to: 0x...` line is
    matched. Raises AddressExtractionError when neither yields an address.
    """
    data = _structured_result(output)
    if data is not None:
        address = str(data.get("deployedTo") or "")
        if ADDRESS_RE.fullmatch(address):
            return to_checksum_address(address), data.get("transactionHash"), data.get("deployer")

    match = DEPLOYED_TO_RE.search(output)
    if match:
        tx_match = re.search(r"Transaction hash: (0x[a-fA-F0-9]{64})\b", output)
        deployer_match = re.search(r"Deployer: (0x[a-fA-F0-9]{40})\b", output)
        return (
            to_checksum_address(match.group(1)),
            tx_match.group(1) if tx_match else None,
            deployer_match.group(1) if deployer_match else None,
        )

    raise AddressExtractionError("Failed to extract contract address. Deployment output:", output=output)


class ContractDeployer:
    """Runs `forge create` and turns its output into a DeployedContract."""

    def __init__(
        self,
        runner: ProcessRunner,
        network: NetworkProfile,
        options: DeployOptions | None = None,
        project_dir: Path | None = None,
    ):
        self.runner = runner
        self.network = network
        self.options = options or DeployOptions()
        self.project_dir = project_dir

    def build_command(self, artifact: ContractArtifact, private_key: str) -> list[str]:
        args = [
            "create", artifact.target,
            "--rpc-url", self.network.rpc_url,
            "--private-key", private_key,
        ]
        if self.options.gas_limit:
            args.extend(["--gas-limit", str(self.options.gas_limit)])
        if self.options.broadcast:
            args.append("--broadcast")
        if self.options.json_output:
            args.append("--json")
        return args

    def deploy(self, config: DeploymentConfig, artifact: ContractArtifact) -> DeployedContract:
        logger.info("Deploying the contract to %s...", self.network.name)
        result = self.runner.run("forge", self.build_command(artifact, config.private_key), cwd=self.project_dir)
        output = result.output
        if not result.ok:
            raise DeploymentError(f"Deployment failed (exit status {result.exit_status}).", output=output)
        # forge exits 0 on a simulation, so the marker has to be checked separately
        if DRY_RUN_MARKER in output:
            raise DryRunDetectedError("Deployment was not broadcast: dry run detected.", output=output)

        address, tx_hash, deployer = extract_deployment(output)
        deployed = DeployedContract(
            address=address,
            explorer_url=self.network.address_url(address),
            transaction_hash=tx_hash,
            deployer=deployer,
        )
        logger.info("Token deployed successfully at address: %s", deployed.explorer_url)
        return deployed


def save_deployment_record(
    deployed: DeployedContract,
    config: DeploymentConfig,
    network: NetworkProfile,
    artifact: ContractArtifact,
    deployments_dir: Path = Path("deployments"),
) -> Path:
    """Write a deployment discovery file; the private key is never included.

    Files are named deployment_<Contract>_<UTC stamp with microseconds>.json
    and are never overwritten; a clash gets a numeric suffix.
    """
    deployments_dir.mkdir(parents=True, exist_ok=True)
    now = datetime.now(timezone.utc)
    stem = f"deployment_{artifact.name}_{now.strftime(RECORD_STAMP_FORMAT)}"
    dep_payload = {
        **asdict(deployed),
        "contract": artifact.name,
        "token_name": config.token_name,
        "token_symbol": config.token_symbol,
        "network": network.key,
        "chain_id": network.chain_id,
        "timestamp": now.isoformat(),
    }
    dep_file = deployments_dir / f"{stem}.json"
    suffix = 1
    while True:
        try:
            with open(dep_file, "x") as f:
                json.dump(dep_payload, f, indent=2)
            break
        except FileExistsError:
            dep_file = deployments_dir / f"{stem}_{suffix}.json"
            suffix += 1
    logger.info("Saved deployment info to %s", dep_file)
    return dep_file
