"""Deployment configuration: validation and the env file store.

A DeploymentConfig is built once per run from operator input, written to
an env file (PRIVATE_KEY, TOKEN_NAME, TOKEN_SYMBOL, RECEIVER_ADDRESS,
TX_COUNT), read back once, and then passed by reference to every stage.
"""
from __future__ import annotations

import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import dotenv_values

from ..exceptions import ValidationError

PRIVATE_KEY_RE = re.compile(r"0x[0-9a-fA-F]{64}")
ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")
TX_COUNT_RE = re.compile(r"[0-9]+")

DEFAULT_ENV_PATH = Path("token_deployment") / ".env"

ENV_KEYS = ("PRIVATE_KEY", "TOKEN_NAME", "TOKEN_SYMBOL", "RECEIVER_ADDRESS", "TX_COUNT")


@dataclass(frozen=True)
class DeploymentConfig:
    private_key: str = field(repr=False)
    token_name: str
    token_symbol: str
    receiver_address: str
    tx_count: int

    def as_env(self) -> dict[str, str]:
        return {
            "PRIVATE_KEY": self.private_key,
            "TOKEN_NAME": self.token_name,
            "TOKEN_SYMBOL": self.token_symbol,
            "RECEIVER_ADDRESS": self.receiver_address,
            "TX_COUNT": str(self.tx_count),
        }


def validate_private_key(value: str | None) -> str:
    pk = (value or "").strip()
    if not PRIVATE_KEY_RE.fullmatch(pk):
        raise ValidationError(
            "private_key", "invalid private key format, must be 64 hex characters starting with 0x"
        )
    return pk


def validate_address(value: str | None, field_name: str = "receiver_address") -> str:
    addr = (value or "").strip()
    if not ADDRESS_RE.fullmatch(addr):
        raise ValidationError(field_name, "must be a 0x-prefixed address of 40 hex characters")
    return addr


def validate_non_empty(value: str | None, field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(field_name, "cannot be empty")
    return text


def validate_tx_count(value: str | int | None) -> int:
    """Parse a base-10 transaction count and require it to be at least 1."""
    if isinstance(value, bool):
        raise ValidationError("tx_count", "must be a positive integer")
    text = str(value).strip() if value is not None else ""
    if not TX_COUNT_RE.fullmatch(text):
        raise ValidationError("tx_count", "must be a positive integer")
    count = int(text, 10)
    if count < 1:
        raise ValidationError("tx_count", "must be a positive integer")
    return count


def validate_config(
    private_key: str | None,
    token_name: str | None,
    token_symbol: str | None,
    receiver_address: str | None,
    tx_count: str | int | None,
) -> DeploymentConfig:
    """Validate raw operator input and return an immutable DeploymentConfig.

    Fields are checked in prompt order; the first invalid one raises
    ValidationError naming it.
    """
    return DeploymentConfig(
        private_key=validate_private_key(private_key),
        token_name=validate_non_empty(token_name, "token_name"),
        token_symbol=validate_non_empty(token_symbol, "token_symbol"),
        receiver_address=validate_address(receiver_address),
        tx_count=validate_tx_count(tx_count),
    )


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def write_env_file(config: DeploymentConfig, path: Path = DEFAULT_ENV_PATH) -> Path:
    """Atomically write the config as KEY="value" lines readable by python-dotenv."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    body = "".join(f"{key}={_quote(value)}\n" for key, value in config.as_env().items())
    tmp_fd, tmp_path = tempfile.mkstemp(prefix="env_", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            f.write(body)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
    return path


def read_env_values(path: Path) -> dict[str, str | None]:
    """Return the deployment keys present in an env file (missing keys map to None).

    Values are taken literally: `${VAR}` in a token name is not expanded.
    """
    values = dotenv_values(path, interpolate=False)
    return {key: values.get(key) for key in ENV_KEYS}


def load_env_file(path: Path = DEFAULT_ENV_PATH) -> DeploymentConfig:
    path = Path(path)
    if not path.is_file():
        raise ValidationError("env_file", f"{path} does not exist")
    values = read_env_values(path)
    return validate_config(
        values["PRIVATE_KEY"],
        values["TOKEN_NAME"],
        values["TOKEN_SYMBOL"],
        values["RECEIVER_ADDRESS"],
        values["TX_COUNT"],
    )
