"""
Network configuration for the token deployer.

Each supported test network has one RPC endpoint, a foundry.toml alias and
a block explorer. The RPC_URL and CHAIN environment variables override the
defaults, and explicit CLI values override both.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any


CHAINS: dict[str, dict[str, Any]] = {
    "monad_testnet": {
        "chain_id": 10143,
        "name": "Monad Testnet",
        "currency": "MON",
        "rpc_alias": "monad",
        "rpc_urls": ["https://testnet-rpc.monad.xyz/"],
        "explorer": {"name": "MonadScan", "url": "https://testnet.monadscan.io"},
    },
    "unichain_sepolia": {
        "chain_id": 1301,
        "name": "Unichain Sepolia",
        "currency": "ETH",
        "rpc_alias": "unichain",
        "rpc_urls": ["https://sepolia.unichain.org"],
        "explorer": {"name": "Uniscan Sepolia", "url": "https://sepolia.uniscan.xyz"},
    },
}

DEFAULT_CHAIN = "monad_testnet"

CHAIN_ID_TO_NAME: dict[int, str] = {cfg["chain_id"]: key for key, cfg in CHAINS.items()}


@dataclass(frozen=True)
class NetworkProfile:
    """Resolved network settings used by every stage of a run."""

    key: str
    name: str
    chain_id: int
    rpc_url: str
    rpc_alias: str
    explorer_url: str
    currency: str

    def address_url(self, address: str) -> str:
        return f"{self.explorer_url.rstrip('/')}/address/{address}"


def _chain_key(chain: str | int | None) -> str:
    if chain is None:
        chain = os.getenv("CHAIN") or DEFAULT_CHAIN
    if isinstance(chain, int):
        if chain not in CHAIN_ID_TO_NAME:
            raise ValueError(f"Unsupported chain ID: {chain}")
        return CHAIN_ID_TO_NAME[chain]
    key = chain.lower()
    if key not in CHAINS:
        raise ValueError(f"Unsupported chain: {chain}. Supported: {sorted(CHAINS)}")
    return key


def get_chain_config(chain: str | int | None = None) -> dict[str, Any]:
    """Look up a network by key (case-insensitive) or chain ID.

    None falls back to the CHAIN environment variable, then monad_testnet.

    Raises:
        ValueError: If the network is not supported.
    """
    return CHAINS[_chain_key(chain)]


def get_rpc_url(chain: str | int | None = None) -> str:
    """RPC_URL from the environment if set, else the network's default endpoint."""
    return os.getenv("RPC_URL") or get_chain_config(chain)["rpc_urls"][0]


def get_chain_id(chain: str | None = None) -> int:
    return get_chain_config(chain)["chain_id"]


def get_explorer_url(chain: str | int | None = None) -> str:
    return get_chain_config(chain)["explorer"]["url"]


def resolve_network(
    chain: str | None = None,
    rpc_url: str | None = None,
    explorer_url: str | None = None,
) -> NetworkProfile:
    """Build a NetworkProfile, applying explicit overrides over env and defaults."""
    key = _chain_key(chain)
    config = CHAINS[key]
    return NetworkProfile(
        key=key,
        name=config["name"],
        chain_id=config["chain_id"],
        rpc_url=rpc_url or get_rpc_url(key),
        rpc_alias=config["rpc_alias"],
        explorer_url=explorer_url or config["explorer"]["url"],
        currency=config["currency"],
    )
