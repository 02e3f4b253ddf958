"""Unit tests for the end-to-end deployment pipeline."""

import json
from dataclasses import replace

import pytest

from conftest import TOKEN_ADDRESS, FakeChainClient, forge_create_json
from token_deployer.config.settings import load_env_file
from token_deployer.exceptions import BuildError, DeploymentError, EnvironmentPreparationError
from token_deployer.helpers.process_runner import ProcessResult
from token_deployer.pipeline import DeploymentPipeline
from token_deployer.setup.contract_template import artifact_for


def wire_forge(runner, layout, create_output=None):
    artifact = artifact_for(layout)

    def build(command, args, cwd):
        artifact.compiled_output_path.parent.mkdir(parents=True, exist_ok=True)
        artifact.compiled_output_path.write_text("{}")
        return ProcessResult((command, *args), 0, "Compiler run successful!", "")

    runner.on("forge", "build", build)
    runner.on("forge", "create", ProcessResult(("forge",), 0, create_output or forge_create_json(), ""))


def make_pipeline(runner, chain, network, layout, **kwargs):
    kwargs.setdefault("tx_delay", 0)
    return DeploymentPipeline(runner=runner, chain_client=chain, network=network, layout=layout, **kwargs)


class TestPipelineRun:
    """Test a full run against fake tools."""

    def test_happy_path(self, runner, chain, network, layout, config):
        wire_forge(runner, layout)

        result = make_pipeline(runner, chain, network, layout).run(config)

        assert result.deployed.address.lower() == TOKEN_ADDRESS
        assert result.report.succeeded == 3
        assert len(chain.sent) == 3
        assert all(s["token_address"] == result.deployed.address for s in chain.sent)

    def test_stage_order(self, runner, chain, network, layout, config):
        wire_forge(runner, layout)

        make_pipeline(runner, chain, network, layout).run(config)

        assert runner.names == ["git init", "cast --version", "git clone", "forge build", "forge create"]
        assert chain.calls[:3] == ["block_number", "sender_address", "balance"]

    def test_config_is_persisted(self, runner, chain, network, layout, config):
        wire_forge(runner, layout)

        make_pipeline(runner, chain, network, layout).run(config)

        env_path = layout.root / "token_deployment" / ".env"
        assert load_env_file(env_path) == config

    def test_contract_and_record_written(self, runner, chain, network, layout, config):
        wire_forge(runner, layout)

        result = make_pipeline(runner, chain, network, layout).run(config)

        assert 'ERC20("Zun Token", "ZUN")' in result.artifact.source_path.read_text()
        assert result.record_path.parent == layout.root / "deployments"
        assert json.loads(result.record_path.read_text())["address"] == result.deployed.address

    def test_partial_transfer_failure_is_not_fatal(self, runner, network, layout, config):
        chain = FakeChainClient(fail_nonce_on=(2,))
        wire_forge(runner, layout)

        result = make_pipeline(runner, chain, network, layout).run(config)

        assert result.report.failed_indices == [2]


def test_persist_config_keeps_dollar_text(runner, chain, network, layout, config):
    """Test that a token name containing ${...} survives the env file round-trip."""
    config = replace(config, token_name="Zun ${HOME} Token")

    stored = make_pipeline(runner, chain, network, layout).persist_config(config)

    assert stored == config


class TestPipelineFailures:
    """Test that every stage before dispatch is fatal."""

    def test_rpc_failure_stops_before_tools(self, runner, network, layout, config):
        chain = FakeChainClient(block_error=True)

        with pytest.raises(EnvironmentPreparationError):
            make_pipeline(runner, chain, network, layout).run(config)

        assert runner.calls == []
        assert (layout.root / "token_deployment" / ".env").is_file()

    def test_build_failure_stops_before_deploy(self, runner, chain, network, layout, config):
        runner.on("forge", "build", ProcessResult(("forge",), 1, "", "Error: Compiler run failed"))

        with pytest.raises(BuildError):
            make_pipeline(runner, chain, network, layout).run(config)

        assert "forge create" not in runner.names
        assert chain.sent == []

    def test_unfunded_sender_stops_before_deploy(self, runner, network, layout, config):
        chain = FakeChainClient(balance=0)
        wire_forge(runner, layout)

        with pytest.raises(DeploymentError):
            make_pipeline(runner, chain, network, layout).run(config)

        assert "forge create" not in runner.names

    def test_dry_run_sends_no_transfers(self, runner, chain, network, layout, config):
        wire_forge(runner, layout, create_output="Warning: Dry run enabled, not broadcasting transaction\n")

        with pytest.raises(DeploymentError):
            make_pipeline(runner, chain, network, layout).run(config)

        assert chain.sent == []
        assert not (layout.root / "deployments").exists()
