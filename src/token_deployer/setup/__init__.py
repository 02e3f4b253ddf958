from .build import build_contracts
from .contract_template import ContractArtifact, ImportStyle, materialize_contract, render_contract_source
from .deploy import ContractDeployer, DeployedContract, DeployOptions, check_sender_funds, save_deployment_record
from .environment import EnvironmentPreparer, PreparationReport, ProjectLayout

__all__ = [
    "build_contracts",
    "ContractArtifact",
    "ImportStyle",
    "materialize_contract",
    "render_contract_source",
    "ContractDeployer",
    "DeployedContract",
    "DeployOptions",
    "check_sender_funds",
    "save_deployment_record",
    "EnvironmentPreparer",
    "PreparationReport",
    "ProjectLayout",
]
