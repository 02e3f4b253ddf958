#!/usr/bin/env python3
"""
Environment preparation for a Foundry token project.

Each step is idempotent: existing state is reported as already present and
left untouched, missing state is created. Order matters:

0. RPC liveness probe (optional) before anything heavyweight
1. git repository in the project root
2. forge/cast on PATH (Foundry installer + foundryup otherwise)
3. toolchain version check
4. OpenZeppelin contracts under lib/
5. foundry.toml with the network's RPC endpoint
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import requests

from ..config.network import NetworkProfile
from ..exceptions import ChainClientError, EnvironmentPreparationError
from ..helpers.chain_client import ChainClient
from ..helpers.process_runner import ProcessRunner

logger = logging.getLogger(__name__)

FOUNDRY_INSTALLER_URL = "https://foundry.paradigm.xyz"
OPENZEPPELIN_REPO_URL = "https://github.com/OpenZeppelin/openzeppelin-contracts.git"
OPENZEPPELIN_REMAPPING = "@openzeppelin/contracts/=lib/openzeppelin-contracts/contracts/"


@dataclass(frozen=True)
class ProjectLayout:
    """Paths of the Foundry project the pipeline works in."""

    root: Path

    @property
    def git_dir(self) -> Path:
        return self.root / ".git"

    @property
    def src_dir(self) -> Path:
        return self.root / "src"

    @property
    def out_dir(self) -> Path:
        return self.root / "out"

    @property
    def lib_dir(self) -> Path:
        return self.root / "lib"

    @property
    def openzeppelin_dir(self) -> Path:
        return self.lib_dir / "openzeppelin-contracts"

    @property
    def foundry_toml(self) -> Path:
        return self.root / "foundry.toml"


class StepStatus(str, Enum):
    CREATED = "created"
    PRESENT = "already present"
    VERIFIED = "verified"


@dataclass
class PreparationStep:
    name: str
    status: StepStatus
    detail: str = ""


@dataclass
class PreparationReport:
    steps: list[PreparationStep] = field(default_factory=list)

    def add(self, name: str, status: StepStatus, detail: str = "") -> PreparationStep:
        step = PreparationStep(name, status, detail)
        self.steps.append(step)
        return step

    def status_of(self, name: str) -> StepStatus | None:
        for step in self.steps:
            if step.name == name:
                return step.status
        return None

    @property
    def created(self) -> list[str]:
        return [s.name for s in self.steps if s.status is StepStatus.CREATED]


def render_foundry_config(network: NetworkProfile) -> str:
    return (
        "[profile.default]\n"
        'src = "src"\n'
        'out = "out"\n'
        'libs = ["lib"]\n'
        f'remappings = ["{OPENZEPPELIN_REMAPPING}"]\n'
        "\n"
        "[rpc_endpoints]\n"
        f'{network.rpc_alias} = "{network.rpc_url}"\n'
    )


def fetch_foundry_installer(session: requests.Session | None = None, url: str = FOUNDRY_INSTALLER_URL) -> str:
    """Download the Foundry installer script (what `curl -L` would return)."""
    http = session or requests.Session()
    try:
        response = http.get(url, timeout=30, allow_redirects=True)
        response.raise_for_status()
    except requests.RequestException as e:
        raise EnvironmentPreparationError(f"Failed to download the Foundry installer from {url}: {e}") from e
    return response.text


class EnvironmentPreparer:
    """Ensures tooling, dependencies and configuration exist before a build."""

    def __init__(
        self,
        runner: ProcessRunner,
        layout: ProjectLayout,
        network: NetworkProfile,
        chain_client: ChainClient | None = None,
        *,
        probe_rpc: bool = True,
        session: requests.Session | None = None,
    ):
        self.runner = runner
        self.layout = layout
        self.network = network
        self.chain_client = chain_client
        self.probe_rpc = probe_rpc
        self.session = session

    def prepare(self) -> PreparationReport:
        report = PreparationReport()
        if self.probe_rpc:
            self.check_rpc(report)
        self.ensure_git_repository(report)
        self.ensure_foundry(report)
        self.verify_toolchain(report)
        self.ensure_openzeppelin(report)
        self.ensure_foundry_config(report)
        return report

    def check_rpc(self, report: PreparationReport) -> int:
        if self.chain_client is None:
            raise EnvironmentPreparationError("RPC liveness probe requested but no chain client configured")
        logger.info("Checking %s RPC connectivity...", self.network.name)
        try:
            height = self.chain_client.block_number()
        except ChainClientError as e:
            raise EnvironmentPreparationError(
                f"Failed to connect to {self.network.name} RPC at {self.network.rpc_url}. "
                "Please check the RPC URL or network status.",
                output=e.output or e.message,
            ) from e
        logger.info("RPC connectivity confirmed (block %d).", height)
        report.add("rpc", StepStatus.VERIFIED, f"block {height}")
        return height

    def ensure_git_repository(self, report: PreparationReport) -> None:
        if self.layout.git_dir.is_dir():
            logger.info("Git repository already initialized.")
            report.add("git", StepStatus.PRESENT)
            return
        logger.info("Initializing Git repository...")
        result = self.runner.run("git", ["init"], cwd=self.layout.root)
        if not result.ok:
            raise EnvironmentPreparationError("git init failed", output=result.output)
        report.add("git", StepStatus.CREATED)

    def _foundry_present(self) -> bool:
        return bool(self.runner.which("forge")) and bool(self.runner.which("cast"))

    def ensure_foundry(self, report: PreparationReport) -> None:
        if self._foundry_present():
            logger.info("Foundry already installed.")
            report.add("foundry", StepStatus.PRESENT)
            return

        logger.info("Foundry is not installed or outdated. Installing/Updating now...")
        script = fetch_foundry_installer(self.session)
        result = self.runner.run("bash", [], input=script)
        if not result.ok:
            raise EnvironmentPreparationError("Foundry installer failed", output=result.output)
        result = self.runner.run("foundryup")
        if not result.ok:
            raise EnvironmentPreparationError("foundryup failed", output=result.output)
        if not self._foundry_present():
            raise EnvironmentPreparationError("Failed to install Foundry with the forge and cast commands.")
        report.add("foundry", StepStatus.CREATED)

    def verify_toolchain(self, report: PreparationReport) -> str:
        result = self.runner.run("cast", ["--version"])
        if not result.ok:
            raise EnvironmentPreparationError("Failed to verify Foundry version.", output=result.output)
        version = result.stdout.strip().splitlines()[0] if result.stdout.strip() else "unknown"
        logger.info("Foundry version: %s", version)
        report.add("toolchain", StepStatus.VERIFIED, version)
        return version

    def ensure_openzeppelin(self, report: PreparationReport) -> None:
        target = self.layout.openzeppelin_dir
        if target.is_dir():
            logger.info("OpenZeppelin Contracts already installed.")
            report.add("openzeppelin", StepStatus.PRESENT)
            return
        logger.info("Installing OpenZeppelin Contracts...")
        self.layout.lib_dir.mkdir(parents=True, exist_ok=True)
        result = self.runner.run("git", ["clone", OPENZEPPELIN_REPO_URL, str(target)], cwd=self.layout.root)
        if not result.ok:
            raise EnvironmentPreparationError("Failed to clone OpenZeppelin Contracts", output=result.output)
        report.add("openzeppelin", StepStatus.CREATED)

    def ensure_foundry_config(self, report: PreparationReport) -> None:
        path = self.layout.foundry_toml
        if path.exists():
            logger.info("foundry.toml already exists.")
            report.add("foundry.toml", StepStatus.PRESENT)
            return
        logger.info("Creating foundry.toml and adding %s RPC...", self.network.name)
        path.write_text(render_foundry_config(self.network), encoding="utf-8")
        report.add("foundry.toml", StepStatus.CREATED)
