"""ERC-20 contract source rendering.

The rendered contract mints a fixed initial supply of 100,000 whole tokens
(scaled by `decimals()`) to the deploying account. Rendering is pure string
substitution, so identical inputs always produce byte-identical sources.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .environment import ProjectLayout

DEFAULT_CONTRACT_NAME = "TestnetToken"
INITIAL_SUPPLY = 100_000
SOLIDITY_PRAGMA = "^0.8.20"


class ImportStyle(str, Enum):
    """How the generated source reaches the OpenZeppelin ERC20 base."""

    RELATIVE = "relative"
    REMAPPED = "remapped"

    @property
    def import_path(self) -> str:
        if self is ImportStyle.REMAPPED:
            return "@openzeppelin/contracts/token/ERC20/ERC20.sol"
        return "../lib/openzeppelin-contracts/contracts/token/ERC20/ERC20.sol"


@dataclass(frozen=True)
class ContractArtifact:
    name: str
    source_path: Path
    compiled_output_path: Path

    @property
    def target(self) -> str:
        """`<source>:<Contract>` identifier understood by `forge create`."""
        return f"{self.source_path}:{self.name}"


def _solidity_string(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f'"{escaped}"'


def render_contract_source(
    token_name: str,
    token_symbol: str,
    contract_name: str = DEFAULT_CONTRACT_NAME,
    import_style: ImportStyle = ImportStyle.RELATIVE,
) -> str:
    return (
        "// SPDX-License-Identifier: MIT\n"
        f"pragma solidity {SOLIDITY_PRAGMA};\n"
        "\n"
        f'import "{import_style.import_path}";\n'
        "\n"
        f"contract {contract_name} is ERC20 {{\n"
        f"    constructor() ERC20({_solidity_string(token_name)}, {_solidity_string(token_symbol)}) {{\n"
        f"        _mint(msg.sender, {INITIAL_SUPPLY} * (10 ** decimals()));\n"
        "    }\n"
        "}\n"
    )


def artifact_for(layout: ProjectLayout, contract_name: str = DEFAULT_CONTRACT_NAME) -> ContractArtifact:
    filename = f"{contract_name}.sol"
    return ContractArtifact(
        name=contract_name,
        source_path=layout.src_dir / filename,
        compiled_output_path=layout.out_dir / filename / f"{contract_name}.json",
    )


def materialize_contract(
    layout: ProjectLayout,
    token_name: str,
    token_symbol: str,
    contract_name: str = DEFAULT_CONTRACT_NAME,
    import_style: ImportStyle = ImportStyle.RELATIVE,
) -> ContractArtifact:
    """Write src/<Contract>.sol for the token and return its artifact description."""
    artifact = artifact_for(layout, contract_name)
    artifact.source_path.parent.mkdir(parents=True, exist_ok=True)
    source = render_contract_source(token_name, token_symbol, contract_name, import_style)
    with open(artifact.source_path, "w", encoding="utf-8", newline="\n") as f:
        f.write(source)
    return artifact
