"""Shared pytest fixtures for token-deployer tests."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, Union

import pytest

from token_deployer.config.network import NetworkProfile, resolve_network
from token_deployer.config.settings import DeploymentConfig
from token_deployer.exceptions import ChainClientError
from token_deployer.helpers.process_runner import ProcessResult
from token_deployer.setup.environment import ProjectLayout

PRIVATE_KEY = "0x" + "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
SENDER = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"
RECEIVER = "0x" + "12" * 20
TOKEN_ADDRESS = "0x" + "ab" * 20

Handler = Union[ProcessResult, Callable[[str, Tuple[str, ...], Optional[Path]], ProcessResult]]


@dataclass
class Call:
    command: str
    args: Tuple[str, ...]
    cwd: Optional[Path] = None
    input: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.command} {self.args[0]}" if self.args else self.command


class FakeRunner:
    """ProcessRunner double: records calls and answers from registered handlers.

    Handlers are keyed by (command, first argument); a handler registered with
    subcommand None answers any invocation of the command. Unhandled calls
    succeed with empty output.
    """

    def __init__(self, tools=("forge", "cast", "git", "bash")):
        self.calls: list = []
        self.handlers: Dict[Tuple[str, Optional[str]], Handler] = {}
        self.tools = set(tools)

    def on(self, command: str, subcommand: Optional[str], handler: Handler) -> None:
        self.handlers[(command, subcommand)] = handler

    def run(self, command, args=(), *, cwd=None, input=None):
        args = tuple(args)
        self.calls.append(Call(command, args, cwd, input))
        first = args[0] if args else None
        for key in ((command, first), (command, None)):
            if key in self.handlers:
                handler = self.handlers[key]
                if callable(handler):
                    return handler(command, args, cwd)
                return handler
        return ProcessResult((command, *args), 0, "", "")

    def which(self, command):
        return f"/usr/local/bin/{command}" if command in self.tools else None

    @property
    def names(self) -> list:
        return [c.name for c in self.calls]


class FakeChainClient:
    """ChainClient double with scripted nonce and submission failures.

    fail_nonce_on / fail_send_on hold 1-based call numbers that should fail.
    """

    def __init__(
        self,
        *,
        block=1234,
        sender=SENDER,
        balance=5 * 10**18,
        nonces=None,
        start_nonce=7,
        fail_nonce_on=(),
        fail_send_on=(),
        block_error=False,
    ):
        self.block = block
        self.sender = sender
        self.balance_wei = balance
        self.nonces = list(nonces) if nonces is not None else None
        self.start_nonce = start_nonce
        self.fail_nonce_on = set(fail_nonce_on)
        self.fail_send_on = set(fail_send_on)
        self.block_error = block_error
        self.nonce_calls = 0
        self.sent: list = []
        self.send_attempts = 0
        self.calls: list = []

    def block_number(self):
        self.calls.append("block_number")
        if self.block_error:
            raise ChainClientError("cast block-number failed", output="error sending request: connection refused")
        return self.block

    def sender_address(self, private_key):
        self.calls.append("sender_address")
        return self.sender

    def balance(self, address):
        self.calls.append("balance")
        return self.balance_wei

    def nonce(self, address):
        self.calls.append("nonce")
        self.nonce_calls += 1
        if self.nonce_calls in self.fail_nonce_on:
            raise ChainClientError("cast nonce failed", output="rpc timeout")
        if self.nonces is not None:
            return self.nonces[self.nonce_calls - 1]
        return self.start_nonce + len(self.sent)

    def send_transfer(self, **kwargs):
        self.calls.append("send_transfer")
        self.send_attempts += 1
        if self.send_attempts in self.fail_send_on:
            raise ChainClientError("cast send failed", output="Error: nonce too low")
        self.sent.append(kwargs)
        return "0x" + f"{self.send_attempts:064x}"


@pytest.fixture
def private_key() -> str:
    return PRIVATE_KEY


@pytest.fixture
def receiver() -> str:
    return RECEIVER


@pytest.fixture
def config() -> DeploymentConfig:
    return DeploymentConfig(
        private_key=PRIVATE_KEY,
        token_name="Zun Token",
        token_symbol="ZUN",
        receiver_address=RECEIVER,
        tx_count=3,
    )


@pytest.fixture
def network(monkeypatch) -> NetworkProfile:
    monkeypatch.delenv("RPC_URL", raising=False)
    monkeypatch.delenv("CHAIN", raising=False)
    return resolve_network("monad_testnet")


@pytest.fixture
def layout(tmp_path: Path) -> ProjectLayout:
    root = tmp_path / "project"
    root.mkdir()
    return ProjectLayout(root)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def chain() -> FakeChainClient:
    return FakeChainClient()


def forge_create_json(address: str = TOKEN_ADDRESS, tx_hash: str = "0x" + "cd" * 32) -> str:
    return json.dumps({"deployer": SENDER, "deployedTo": address, "transactionHash": tx_hash})
