"""End-to-end deployment workflow.

Stages run strictly in order and never loop back:

    persist config -> prepare environment -> materialize contract
    -> build -> sender preflight -> deploy -> dispatch transfers

Every stage before dispatch is fatal on error. Dispatch failures are
recorded per transaction in the returned report.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .config.network import NetworkProfile
from .config.settings import DeploymentConfig, load_env_file, write_env_file
from .exceptions import ValidationError
from .executor.transaction_dispatcher import DEFAULT_TX_DELAY, DispatchReport, TransactionDispatcher
from .helpers.chain_client import ChainClient
from .helpers.process_runner import ProcessRunner
from .setup.build import build_contracts
from .setup.contract_template import DEFAULT_CONTRACT_NAME, ContractArtifact, ImportStyle, materialize_contract
from .setup.deploy import (
    ContractDeployer,
    DeployedContract,
    DeployOptions,
    check_sender_funds,
    save_deployment_record,
)
from .setup.environment import EnvironmentPreparer, PreparationReport, ProjectLayout

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    config: DeploymentConfig
    preparation: PreparationReport
    artifact: ContractArtifact
    deployed: DeployedContract
    report: DispatchReport
    record_path: Path | None = None


class DeploymentPipeline:
    def __init__(
        self,
        *,
        runner: ProcessRunner,
        chain_client: ChainClient,
        network: NetworkProfile,
        layout: ProjectLayout,
        env_path: Path | None = None,
        deploy_options: DeployOptions | None = None,
        import_style: ImportStyle = ImportStyle.RELATIVE,
        contract_name: str = DEFAULT_CONTRACT_NAME,
        probe_rpc: bool = True,
        tx_delay: float = DEFAULT_TX_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        deployments_dir: Path | None = None,
        preparer: EnvironmentPreparer | None = None,
    ):
        self.runner = runner
        self.chain_client = chain_client
        self.network = network
        self.layout = layout
        self.env_path = env_path or layout.root / "token_deployment" / ".env"
        self.deploy_options = deploy_options or DeployOptions()
        self.import_style = import_style
        self.contract_name = contract_name
        self.tx_delay = tx_delay
        self.sleep = sleep
        self.deployments_dir = deployments_dir or layout.root / "deployments"
        self.preparer = preparer or EnvironmentPreparer(
            runner, layout, network, chain_client, probe_rpc=probe_rpc
        )

    def persist_config(self, config: DeploymentConfig) -> DeploymentConfig:
        """Write the env file and read it back once; the stored copy must match."""
        write_env_file(config, self.env_path)
        stored = load_env_file(self.env_path)
        if stored != config:
            raise ValidationError("env_file", f"{self.env_path} did not round-trip the configuration")
        logger.info("Configuration stored in %s", self.env_path)
        return stored

    def run(self, config: DeploymentConfig) -> PipelineResult:
        self.layout.root.mkdir(parents=True, exist_ok=True)
        config = self.persist_config(config)

        preparation = self.preparer.prepare()

        logger.info("Creating ERC-20 token contract using OpenZeppelin...")
        artifact = materialize_contract(
            self.layout, config.token_name, config.token_symbol, self.contract_name, self.import_style
        )
        build_contracts(self.runner, self.layout, artifact)

        sender = check_sender_funds(self.chain_client, config.private_key)
        deployer = ContractDeployer(self.runner, self.network, self.deploy_options, self.layout.root)
        deployed = deployer.deploy(config, artifact)
        record_path = save_deployment_record(deployed, config, self.network, artifact, self.deployments_dir)

        dispatcher = TransactionDispatcher(
            self.chain_client,
            sender=sender.address,
            private_key=config.private_key,
            token_address=deployed.address,
            receiver=config.receiver_address,
            delay=self.tx_delay,
            sleep=self.sleep,
        )
        report = dispatcher.dispatch(config.tx_count)
        return PipelineResult(config, preparation, artifact, deployed, report, record_path)
