from .chain_client import CastChainClient, ChainClient, Web3ChainClient
from .process_runner import ProcessResult, ProcessRunner, SubprocessRunner

__all__ = [
    "CastChainClient",
    "ChainClient",
    "Web3ChainClient",
    "ProcessResult",
    "ProcessRunner",
    "SubprocessRunner",
]
