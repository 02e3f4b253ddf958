"""
Configuration package for the token deployer.
"""

from .network import (
    CHAINS,
    DEFAULT_CHAIN,
    NetworkProfile,
    get_chain_config,
    get_chain_id,
    get_explorer_url,
    get_rpc_url,
    resolve_network,
)
from .settings import (
    DEFAULT_ENV_PATH,
    DeploymentConfig,
    load_env_file,
    validate_config,
    write_env_file,
)
from .abis import ERC20_ABI

__all__ = [
    # Network
    'CHAINS',
    'DEFAULT_CHAIN',
    'NetworkProfile',
    'get_chain_config',
    'get_chain_id',
    'get_explorer_url',
    'get_rpc_url',
    'resolve_network',

    # Settings
    'DEFAULT_ENV_PATH',
    'DeploymentConfig',
    'load_env_file',
    'validate_config',
    'write_env_file',

    # ABIs
    'ERC20_ABI',
]
