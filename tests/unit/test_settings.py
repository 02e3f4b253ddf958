"""Unit tests for config validation and the env file store."""

import os
import stat
from pathlib import Path

import pytest

from token_deployer.config.settings import (
    DeploymentConfig,
    load_env_file,
    read_env_values,
    validate_config,
    validate_tx_count,
    write_env_file,
)
from token_deployer.exceptions import ValidationError

VALID_KEY = "0x" + "a1" * 32
VALID_ADDRESS = "0x" + "Be" * 20


def _validate(**overrides):
    fields = {
        "private_key": VALID_KEY,
        "token_name": "Zun Token",
        "token_symbol": "ZUN",
        "receiver_address": VALID_ADDRESS,
        "tx_count": "3",
    }
    fields.update(overrides)
    return validate_config(**fields)


class TestValidateConfig:
    """Test validate_config and its field rules."""

    def test_valid_input_builds_config(self):
        """Test that valid raw strings produce a typed config."""
        config = _validate()

        assert config.private_key == VALID_KEY
        assert config.token_name == "Zun Token"
        assert config.token_symbol == "ZUN"
        assert config.receiver_address == VALID_ADDRESS
        assert config.tx_count == 3

    @pytest.mark.parametrize(
        "key",
        [
            "",
            "a1" * 32,  # missing 0x
            "0x" + "a1" * 31,  # 62 hex chars
            "0x" + "a1" * 33,  # 66 hex chars
            "0x" + "g1" * 32,  # non-hex
            "0X" + "a1" * 32,  # uppercase prefix
        ],
    )
    def test_rejects_malformed_private_key(self, key):
        """Test that anything but 0x + 64 hex digits is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            _validate(private_key=key)
        assert exc_info.value.field == "private_key"

    @pytest.mark.parametrize(
        "address",
        ["", "0x123", "0x" + "12" * 19, "0x" + "12" * 21, "12" * 20, "0xReceiverAddress"],
    )
    def test_rejects_malformed_receiver(self, address):
        """Test that the receiver must be 0x + 40 hex digits."""
        with pytest.raises(ValidationError) as exc_info:
            _validate(receiver_address=address)
        assert exc_info.value.field == "receiver_address"

    def test_receiver_is_required(self):
        """Test that a missing receiver is an error rather than a placeholder."""
        with pytest.raises(ValidationError) as exc_info:
            _validate(receiver_address=None)
        assert exc_info.value.field == "receiver_address"

    @pytest.mark.parametrize("field", ["token_name", "token_symbol"])
    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_rejects_blank_name_and_symbol(self, field, value):
        """Test that name and symbol must be non-empty after trimming."""
        with pytest.raises(ValidationError) as exc_info:
            _validate(**{field: value})
        assert exc_info.value.field == field

    def test_trims_name_and_symbol(self):
        """Test that surrounding whitespace is dropped."""
        config = _validate(token_name="  Zun Token ", token_symbol=" ZUN\t")
        assert config.token_name == "Zun Token"
        assert config.token_symbol == "ZUN"

    def test_first_invalid_field_is_reported(self):
        """Test that fields are checked in prompt order."""
        with pytest.raises(ValidationError) as exc_info:
            _validate(private_key="bad", tx_count="0")
        assert exc_info.value.field == "private_key"

    def test_repr_hides_private_key(self):
        """Test that the secret does not leak through repr()."""
        assert VALID_KEY not in repr(_validate())


class TestValidateTxCount:
    """Test the transaction count rule."""

    @pytest.mark.parametrize("value", ["0", "00", "-1", "abc", "1.5", "", " ", "0x10", None, True])
    def test_rejects_non_positive_or_non_numeric(self, value):
        with pytest.raises(ValidationError):
            validate_tx_count(value)

    @pytest.mark.parametrize("value,expected", [("1", 1), (" 42 ", 42), ("010", 10), (7, 7)])
    def test_accepts_positive_base10(self, value, expected):
        assert validate_tx_count(value) == expected


class TestEnvFileStore:
    """Test writing and reading the persisted configuration."""

    def test_round_trip(self, tmp_path: Path):
        """Test that a written config reads back equal."""
        config = _validate()
        path = write_env_file(config, tmp_path / "token_deployment" / ".env")

        assert path.exists()
        assert load_env_file(path) == config

    def test_writes_all_keys_quoted(self, tmp_path: Path):
        """Test the KEY="value" file format."""
        path = write_env_file(_validate(), tmp_path / ".env")
        lines = path.read_text().splitlines()

        assert lines == [
            f'PRIVATE_KEY="{VALID_KEY}"',
            'TOKEN_NAME="Zun Token"',
            'TOKEN_SYMBOL="ZUN"',
            f'RECEIVER_ADDRESS="{VALID_ADDRESS}"',
            'TX_COUNT="3"',
        ]

    def test_quotes_in_name_survive(self, tmp_path: Path):
        """Test that embedded quotes and backslashes are escaped."""
        config = _validate(token_name='My "Quoted" \\ Token')
        path = write_env_file(config, tmp_path / ".env")

        assert load_env_file(path).token_name == 'My "Quoted" \\ Token'

    def test_variable_syntax_in_name_is_not_expanded(self, tmp_path: Path, monkeypatch):
        """Test that ${VAR} text in a token name reads back literally."""
        monkeypatch.setenv("HOME", "/home/operator")
        config = _validate(token_name="Zun ${HOME} Token", token_symbol="$ZUN")
        path = write_env_file(config, tmp_path / ".env")

        assert load_env_file(path) == config
        assert read_env_values(path)["TOKEN_NAME"] == "Zun ${HOME} Token"

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
    def test_file_is_private(self, tmp_path: Path):
        """Test that the file holding the key is owner-only."""
        path = write_env_file(_validate(), tmp_path / ".env")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_overwrites_previous_file(self, tmp_path: Path):
        """Test that a new run replaces the previous configuration."""
        path = tmp_path / ".env"
        write_env_file(_validate(token_symbol="OLD"), path)
        write_env_file(_validate(token_symbol="NEW"), path)

        assert load_env_file(path).token_symbol == "NEW"
        assert [p.name for p in tmp_path.iterdir()] == [".env"]

    def test_missing_file_is_validation_error(self, tmp_path: Path):
        with pytest.raises(ValidationError):
            load_env_file(tmp_path / "nope.env")

    def test_invalid_stored_value_fails_validation(self, tmp_path: Path):
        """Test that hand-edited files are re-validated."""
        path = tmp_path / ".env"
        path.write_text('PRIVATE_KEY="0x12"\nTOKEN_NAME="A"\nTOKEN_SYMBOL="B"\n')

        with pytest.raises(ValidationError) as exc_info:
            load_env_file(path)
        assert exc_info.value.field == "private_key"

    def test_read_env_values_reports_missing_keys(self, tmp_path: Path):
        path = tmp_path / ".env"
        path.write_text('TOKEN_NAME="A"\n')

        values = read_env_values(path)
        assert values["TOKEN_NAME"] == "A"
        assert values["PRIVATE_KEY"] is None

    def test_as_env_matches_persisted_keys(self):
        config = DeploymentConfig(VALID_KEY, "N", "S", VALID_ADDRESS, 2)
        assert config.as_env()["TX_COUNT"] == "2"
