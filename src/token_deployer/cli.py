#!/usr/bin/env python3
from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path
from typing import Callable

from .config.logging_config import setup_logger
from .config.network import CHAINS, DEFAULT_CHAIN, NetworkProfile, resolve_network
from .config.settings import (
    DeploymentConfig,
    read_env_values,
    validate_address,
    validate_non_empty,
    validate_private_key,
    validate_tx_count,
)
from .exceptions import TokenDeployerError, ValidationError
from .executor.transaction_dispatcher import DEFAULT_TX_DELAY, TransactionDispatcher
from .helpers.chain_client import CastChainClient, ChainClient, Web3ChainClient
from .helpers.process_runner import ProcessRunner, SubprocessRunner
from .helpers.web3_setup import get_web3_instance
from .pipeline import DeploymentPipeline
from .setup.contract_template import ImportStyle
from .setup.deploy import DEFAULT_DEPLOY_GAS_LIMIT, DeployOptions
from .setup.environment import EnvironmentPreparer, ProjectLayout

logger = logging.getLogger("token_deployer")

PROMPTS = {
    "private_key": "Enter your Private Key: ",
    "token_name": "Enter the token name (e.g., Zun Token): ",
    "token_symbol": "Enter the token symbol (e.g., ZUN): ",
    "receiver_address": "Enter the receiver address (e.g., 0x123...): ",
    "tx_count": "Enter the number of transactions to send: ",
    "token_address": "Enter the deployed token address: ",
}

VALIDATORS: dict[str, Callable] = {
    "private_key": validate_private_key,
    "token_name": lambda v: validate_non_empty(v, "token_name"),
    "token_symbol": lambda v: validate_non_empty(v, "token_symbol"),
    "receiver_address": validate_address,
    "tx_count": validate_tx_count,
    "token_address": lambda v: validate_address(v, "token_address"),
}

ENV_NAMES = {
    "private_key": "PRIVATE_KEY",
    "token_name": "TOKEN_NAME",
    "token_symbol": "TOKEN_SYMBOL",
    "receiver_address": "RECEIVER_ADDRESS",
    "tx_count": "TX_COUNT",
}


class FieldResolver:
    """Resolves each field from flags, then the env file, then an interactive prompt.

    Values are validated as soon as they are obtained so a bad answer stops
    the run before the next question.
    """

    def __init__(
        self,
        args: argparse.Namespace,
        input_fn: Callable[[str], str] = input,
        secret_fn: Callable[[str], str] = getpass.getpass,
    ):
        self.args = args
        self.input_fn = input_fn
        self.secret_fn = secret_fn
        env_file = getattr(args, "env_file", None)
        if env_file:
            if not Path(env_file).is_file():
                raise ValidationError("env_file", f"{env_file} does not exist")
            self.env_values = read_env_values(Path(env_file))
        else:
            self.env_values = {}

    def get(self, name: str):
        value = getattr(self.args, name, None)
        if value is None and name in ENV_NAMES:
            value = self.env_values.get(ENV_NAMES[name])
        if value is None:
            ask = self.secret_fn if name == "private_key" else self.input_fn
            value = ask(PROMPTS[name])
        return VALIDATORS[name](value)


def resolve_config(resolver: FieldResolver) -> DeploymentConfig:
    return DeploymentConfig(
        private_key=resolver.get("private_key"),
        token_name=resolver.get("token_name"),
        token_symbol=resolver.get("token_symbol"),
        receiver_address=resolver.get("receiver_address"),
        tx_count=resolver.get("tx_count"),
    )


def make_chain_client(backend: str, runner: ProcessRunner, network: NetworkProfile) -> ChainClient:
    if backend == "web3":
        return Web3ChainClient(get_web3_instance(network.rpc_url))
    return CastChainClient(runner, network.rpc_url)


def _network(args: argparse.Namespace) -> NetworkProfile:
    try:
        return resolve_network(args.chain, args.rpc_url, args.explorer_url)
    except ValueError as e:
        raise ValidationError("chain", str(e)) from e


def _deploy_options(args: argparse.Namespace) -> DeployOptions:
    if args.legacy_forge:
        return DeployOptions.legacy()
    return DeployOptions(gas_limit=args.deploy_gas_limit or None)


def cmd_run(args: argparse.Namespace) -> int:
    config = resolve_config(FieldResolver(args))
    network = _network(args)
    project_dir = Path(args.project_dir).resolve()
    runner = SubprocessRunner(cwd=project_dir)
    pipeline = DeploymentPipeline(
        runner=runner,
        chain_client=make_chain_client(args.rpc_backend, runner, network),
        network=network,
        layout=ProjectLayout(project_dir),
        env_path=Path(args.config_out) if args.config_out else None,
        deploy_options=_deploy_options(args),
        import_style=ImportStyle(args.import_style),
        probe_rpc=not args.skip_rpc_check,
        tx_delay=args.tx_delay,
    )
    result = pipeline.run(config)
    logger.info("Contract: %s", result.deployed.explorer_url)
    logger.info("%s", result.report.summary())
    if result.report.failed:
        logger.warning("Failed transactions: %s", ", ".join(f"#{i}" for i in result.report.failed_indices))
    return 0


def cmd_prepare(args: argparse.Namespace) -> int:
    network = _network(args)
    project_dir = Path(args.project_dir).resolve()
    project_dir.mkdir(parents=True, exist_ok=True)
    runner = SubprocessRunner(cwd=project_dir)
    preparer = EnvironmentPreparer(
        runner,
        ProjectLayout(project_dir),
        network,
        make_chain_client(args.rpc_backend, runner, network),
        probe_rpc=not args.skip_rpc_check,
    )
    report = preparer.prepare()
    for step in report.steps:
        logger.info("%-14s %s %s", step.name, step.status.value, step.detail)
    return 0


def cmd_send(args: argparse.Namespace) -> int:
    resolver = FieldResolver(args)
    private_key = resolver.get("private_key")
    token_address = resolver.get("token_address")
    receiver = resolver.get("receiver_address")
    tx_count = resolver.get("tx_count")

    network = _network(args)
    runner = SubprocessRunner(cwd=Path(args.project_dir).resolve())
    client = make_chain_client(args.rpc_backend, runner, network)
    try:
        sender = client.sender_address(private_key)
    except TokenDeployerError as e:
        raise ValidationError("private_key", f"cannot derive sender address: {e.message}") from e

    dispatcher = TransactionDispatcher(
        client,
        sender=sender,
        private_key=private_key,
        token_address=token_address,
        receiver=receiver,
        delay=args.tx_delay,
    )
    report = dispatcher.dispatch(tx_count)
    logger.info("%s", report.summary())
    return 0


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--project-dir", default=".", help="Foundry project directory (default: current directory)")
    p.add_argument("--chain", default=None, choices=sorted(CHAINS), help=f"Target network (default: CHAIN env or {DEFAULT_CHAIN})")
    p.add_argument("--rpc-url", help="Override RPC URL (defaults to RPC_URL env or the network default)")
    p.add_argument("--explorer-url", help="Override the block explorer base URL")
    p.add_argument("--rpc-backend", choices=("cast", "web3"), default="cast", help="How RPC reads/writes are performed (default cast)")
    p.add_argument("--skip-rpc-check", action="store_true", help="Do not probe the RPC endpoint before setup")
    p.add_argument("--debug", action="store_true", help="Verbose logging")
    p.add_argument("--log-dir", help="Log directory (default TOKEN_DEPLOYER_LOG_DIR or ./logs)")


def _add_fields(p: argparse.ArgumentParser) -> None:
    p.add_argument("--env-file", help="Read PRIVATE_KEY/TOKEN_NAME/TOKEN_SYMBOL/RECEIVER_ADDRESS/TX_COUNT from this file")
    p.add_argument("--private-key", dest="private_key", help="0x-hex private key (prompted securely when omitted)")
    p.add_argument("--receiver-address", dest="receiver_address", help="Transfer recipient address")
    p.add_argument("--tx-count", dest="tx_count", help="Number of transfer transactions to send")
    p.add_argument("--tx-delay", type=float, default=DEFAULT_TX_DELAY, help=f"Seconds to wait after each transaction (default {DEFAULT_TX_DELAY})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deploy an ERC-20 token to a test network and send transfer transactions")
    sub = parser.add_subparsers(dest="cmd")

    p_run = sub.add_parser("run", help="Validate input, prepare tooling, build, deploy and send transfers")
    _add_common(p_run)
    _add_fields(p_run)
    p_run.add_argument("--token-name", dest="token_name", help="Token name (e.g., Zun Token)")
    p_run.add_argument("--token-symbol", dest="token_symbol", help="Token symbol (e.g., ZUN)")
    p_run.add_argument("--config-out", help="Where to store the run configuration (default <project>/token_deployment/.env)")
    p_run.add_argument("--deploy-gas-limit", type=int, default=DEFAULT_DEPLOY_GAS_LIMIT, help=f"Gas limit for deployment (default {DEFAULT_DEPLOY_GAS_LIMIT:,}; 0 = tool default)")
    p_run.add_argument("--legacy-forge", action="store_true", help="Omit --gas-limit/--broadcast/--json for older Foundry releases")
    p_run.add_argument("--import-style", choices=[s.value for s in ImportStyle], default=ImportStyle.RELATIVE.value, help="How the contract imports OpenZeppelin (default relative)")
    p_run.set_defaults(func=cmd_run)

    p_prep = sub.add_parser("prepare", help="Only check the RPC and install/configure tooling (idempotent)")
    _add_common(p_prep)
    p_prep.set_defaults(func=cmd_prepare)

    p_send = sub.add_parser("send", help="Send transfers from an already deployed token")
    _add_common(p_send)
    _add_fields(p_send)
    p_send.add_argument("--token-address", dest="token_address", help="Deployed token contract address")
    p_send.set_defaults(func=cmd_send)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 2

    setup_logger(
        "token_deployer",
        level=logging.DEBUG if args.debug else logging.INFO,
        detailed=args.debug,
        log_dir=Path(args.log_dir) if args.log_dir else None,
    )
    try:
        return int(args.func(args))
    except TokenDeployerError as e:
        logger.error("%s", e)
        return e.exit_code
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
