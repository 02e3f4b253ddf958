"""
Logging configuration for the token deployer

One call to setup_logger("token_deployer") wires up the package logger:
- console output (stdout)
- a daily-rotated run log under the log directory
- a size-capped error log with file/line detail

Module loggers (`token_deployer.*`) propagate to it, so nothing else needs
configuring.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import List, Optional


DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_DIR_ENV = "TOKEN_DEPLOYER_LOG_DIR"
RUN_LOG_BACKUPS = 14  # days
ERROR_LOG_MAX_BYTES = 5 * 1024 * 1024
ERROR_LOG_BACKUPS = 3


def get_log_dir(log_dir: Optional[Path] = None) -> Path:
    """Resolve the log directory: explicit argument, TOKEN_DEPLOYER_LOG_DIR, then ./logs."""
    directory = Path(log_dir) if log_dir is not None else Path(os.getenv(LOG_DIR_ENV, "logs"))
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def _file_handlers(directory: Path, name: str, log_file: str, level: int, formatter: logging.Formatter) -> List[logging.Handler]:
    run_log = TimedRotatingFileHandler(
        directory / log_file, when="midnight", backupCount=RUN_LOG_BACKUPS, encoding="utf-8"
    )
    run_log.setLevel(level)
    run_log.setFormatter(formatter)

    error_log = RotatingFileHandler(
        directory / f"{name}_errors.log",
        maxBytes=ERROR_LOG_MAX_BYTES,
        backupCount=ERROR_LOG_BACKUPS,
        encoding="utf-8",
    )
    error_log.setLevel(logging.ERROR)
    error_log.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
    return [run_log, error_log]


def setup_logger(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: bool = True,
    detailed: bool = False,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure a logger once; later calls only adjust its level.

    Args:
        name: Logger name (the package logger catches every module logger)
        level: Logging level for the logger and its console/run-log handlers
        log_file: Run log file name (defaults to <name>.log)
        console: Whether to echo records to stdout
        detailed: Use the file/line format on the console as well
        log_dir: Directory for log files (see get_log_dir)

    Example:
        >>> logger = setup_logger("token_deployer", level=logging.DEBUG)
        >>> logger.info("Deploying the contract...")
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(DETAILED_FORMAT if detailed else SIMPLE_FORMAT, datefmt=DATE_FORMAT)
    handlers = _file_handlers(get_log_dir(log_dir), name, log_file or f"{name}.log", level, formatter)
    if console:
        stream = logging.StreamHandler(sys.stdout)
        stream.setLevel(level)
        stream.setFormatter(formatter)
        handlers.insert(0, stream)

    for handler in handlers:
        logger.addHandler(handler)
    return logger


def log_transaction(
    logger: logging.Logger,
    index: int,
    success: bool,
    nonce: Optional[int] = None,
    tx_hash: Optional[str] = None,
    detail: Optional[str] = None,
):
    """
    Log one dispatched transfer as a single `STATUS | TX #n | ...` line.

    Args:
        logger: Logger instance
        index: 1-based iteration number
        success: Whether the transfer was accepted
        nonce: Nonce pinned on the transaction, if one was fetched
        tx_hash: Transaction hash
        detail: Raw tool output or error message for failures
    """
    parts = ["SUCCESS" if success else "FAILED", f"TX #{index}"]
    if nonce is not None:
        parts.append(f"Nonce: {nonce}")
    if tx_hash:
        parts.append(f"Hash: {tx_hash}")
    if detail:
        parts.append(detail.strip())

    msg = " | ".join(parts)
    if success:
        logger.info(msg)
    else:
        logger.error(msg)
