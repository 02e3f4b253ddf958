"""Contract compilation through `forge build`."""
from __future__ import annotations

import logging

from ..exceptions import BuildError
from ..helpers.process_runner import ProcessResult, ProcessRunner
from .contract_template import ContractArtifact
from .environment import ProjectLayout

logger = logging.getLogger(__name__)


def build_contracts(runner: ProcessRunner, layout: ProjectLayout, artifact: ContractArtifact) -> ProcessResult:
    """Compile the project; any failure is surfaced with forge's own diagnostics.

    Raises:
        BuildError: non-zero exit, or the compiled artifact was not produced.
    """
    logger.info("Compiling the contract...")
    result = runner.run("forge", ["build"], cwd=layout.root)
    if not result.ok:
        raise BuildError("Contract compilation failed.", output=result.output)
    if not artifact.compiled_output_path.is_file():
        raise BuildError(
            f"forge build succeeded but {artifact.compiled_output_path} was not produced.",
            output=result.output,
        )
    logger.info("Compiled %s -> %s", artifact.name, artifact.compiled_output_path)
    return result
