"""
Web3 setup helper - provides the web3 instance used by the native RPC backend.

Public API
----------
get_web3_instance(rpc_url=None, timeout=30)
    Return a Web3 instance for the RPC URL (RPC_URL env var when omitted).
    Instances are cached per (url, timeout).
"""
from __future__ import annotations

import os

from web3 import Web3

__all__ = ["get_web3_instance"]

_instances: dict[tuple[str, int], Web3] = {}


def get_web3_instance(rpc_url: str | None = None, timeout: int = 30) -> Web3:
    """
    Args:
        rpc_url: HTTP(S) RPC endpoint. Falls back to the RPC_URL env var.
        timeout: Per-request HTTP timeout in seconds.

    Raises:
        RuntimeError: If no RPC URL is available
    """
    url = rpc_url or os.getenv("RPC_URL")
    if not url:
        raise RuntimeError("No RPC URL available. Pass --rpc-url or set the RPC_URL environment variable.")

    key = (url, timeout)
    if key not in _instances:
        _instances[key] = Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": timeout}))
    return _instances[key]
