"""
Chain clients - RPC reads and the transfer write used by the pipeline.

Two interchangeable backends implement the same ChainClient protocol:

CastChainClient
    Shells out to Foundry's `cast` through a ProcessRunner.
Web3ChainClient
    Talks JSON-RPC directly with web3.py and signs with eth-account.

Every failure surfaces as ChainClientError carrying the raw output or the
underlying error text; callers decide whether it is fatal.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Protocol

from eth_account import Account
from eth_utils import to_checksum_address
from web3 import Web3

from ..config.abis import ERC20_ABI
from ..exceptions import ChainClientError
from .process_runner import ProcessResult, ProcessRunner

__all__ = ["ChainClient", "CastChainClient", "Web3ChainClient", "TRANSFER_SIGNATURE"]

logger = logging.getLogger(__name__)

TRANSFER_SIGNATURE = "transfer(address,uint256)"
TX_HASH_RE = re.compile(r"transactionHash\s+(0x[0-9a-fA-F]{64})")


class ChainClient(Protocol):
    def block_number(self) -> int: ...

    def sender_address(self, private_key: str) -> str: ...

    def balance(self, address: str) -> int: ...

    def nonce(self, address: str) -> int: ...

    def send_transfer(
        self,
        *,
        token_address: str,
        receiver: str,
        amount: int,
        private_key: str,
        nonce: int,
        gas_limit: int,
    ) -> str: ...


def _last_line(text: str) -> str:
    lines = [ln.strip() for ln in text.strip().splitlines() if ln.strip()]
    return lines[-1] if lines else ""


class CastChainClient:
    """ChainClient backed by the `cast` CLI."""

    def __init__(self, runner: ProcessRunner, rpc_url: str):
        self.runner = runner
        self.rpc_url = rpc_url

    def _cast(self, what: str, args: list[str]) -> ProcessResult:
        result = self.runner.run("cast", args)
        if not result.ok:
            raise ChainClientError(f"cast {what} failed (exit status {result.exit_status})", output=result.output)
        return result

    def _cast_int(self, what: str, args: list[str]) -> int:
        result = self._cast(what, args)
        value = _last_line(result.stdout)
        try:
            return int(value, 16) if value.lower().startswith("0x") else int(value)
        except ValueError:
            raise ChainClientError(f"cast {what} returned a non-integer value", output=result.output) from None

    def block_number(self) -> int:
        return self._cast_int("block-number", ["block-number", "--rpc-url", self.rpc_url])

    def sender_address(self, private_key: str) -> str:
        result = self._cast("wallet address", ["wallet", "address", "--private-key", private_key])
        address = _last_line(result.stdout)
        if not re.fullmatch(r"0x[0-9a-fA-F]{40}", address):
            raise ChainClientError("cast wallet address returned no address", output=result.output)
        return to_checksum_address(address)

    def balance(self, address: str) -> int:
        return self._cast_int("balance", ["balance", "--rpc-url", self.rpc_url, address])

    def nonce(self, address: str) -> int:
        return self._cast_int("nonce", ["nonce", "--rpc-url", self.rpc_url, address])

    def send_transfer(
        self,
        *,
        token_address: str,
        receiver: str,
        amount: int,
        private_key: str,
        nonce: int,
        gas_limit: int,
    ) -> str:
        result = self._cast(
            "send",
            [
                "send", token_address, TRANSFER_SIGNATURE, receiver, str(amount),
                "--rpc-url", self.rpc_url,
                "--private-key", private_key,
                "--gas-limit", str(gas_limit),
                "--nonce", str(nonce),
                "--json",
            ],
        )
        return self._parse_send_output(result)

    @staticmethod
    def _parse_send_output(result: ProcessResult) -> str:
        try:
            receipt = json.loads(result.stdout)
        except ValueError:
            match = TX_HASH_RE.search(result.output)
            return match.group(1) if match else ""
        if not isinstance(receipt, dict):
            return ""
        if str(receipt.get("status", "0x1")).lower() in ("0x0", "0"):
            raise ChainClientError("transaction reverted (receipt status 0)", output=result.output)
        return receipt.get("transactionHash") or ""


class Web3ChainClient:
    """ChainClient backed by web3.py and eth-account."""

    def __init__(self, w3: Web3, receipt_timeout: int = 120):
        self.w3 = w3
        self.receipt_timeout = receipt_timeout

    def block_number(self) -> int:
        try:
            return int(self.w3.eth.block_number)
        except Exception as e:
            raise ChainClientError(f"eth_blockNumber failed: {e}") from e

    def sender_address(self, private_key: str) -> str:
        try:
            return to_checksum_address(Account.from_key(private_key).address)
        except Exception as e:
            raise ChainClientError(f"invalid private key: {e}") from e

    def balance(self, address: str) -> int:
        try:
            return int(self.w3.eth.get_balance(to_checksum_address(address)))
        except Exception as e:
            raise ChainClientError(f"eth_getBalance failed: {e}") from e

    def nonce(self, address: str) -> int:
        try:
            return int(self.w3.eth.get_transaction_count(to_checksum_address(address), "pending"))
        except Exception as e:
            raise ChainClientError(f"eth_getTransactionCount failed: {e}") from e

    def send_transfer(
        self,
        *,
        token_address: str,
        receiver: str,
        amount: int,
        private_key: str,
        nonce: int,
        gas_limit: int,
    ) -> str:
        try:
            acct = Account.from_key(private_key)
            token = self.w3.eth.contract(address=to_checksum_address(token_address), abi=ERC20_ABI)
            tx = token.functions.transfer(to_checksum_address(receiver), int(amount)).build_transaction({
                "from": acct.address,
                "nonce": int(nonce),
                "gas": int(gas_limit),
                "chainId": self.w3.eth.chain_id,
            })
            signed = acct.sign_transaction(tx)
            raw = getattr(signed, "raw_transaction", None) or getattr(signed, "rawTransaction", None)
            tx_hash = self.w3.eth.send_raw_transaction(raw)
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except Exception as e:
            raise ChainClientError(f"transfer submission failed: {e}") from e

        tx_hash_hex = Web3.to_hex(tx_hash)
        if int(receipt.get("status", 0)) != 1:
            raise ChainClientError(f"transaction {tx_hash_hex} reverted (receipt status 0)")
        logger.debug("Transfer %s mined in block %s", tx_hash_hex, receipt.get("blockNumber"))
        return tx_hash_hex
