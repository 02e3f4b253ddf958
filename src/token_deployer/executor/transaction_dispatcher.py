"""
Transfer batch dispatcher.

Sends a fixed number of `transfer(receiver, 1 token)` transactions from the
deployer account. Individual failures are recorded and logged, never fatal:
the loop always performs exactly `tx_count` iterations.

Nonce handling: the network nonce is fetched every iteration, and the value
used is the larger of that and the locally tracked next nonce, so a node
that has not yet seen the previous submission cannot hand out a duplicate.
The delay between iterations is a courtesy to the RPC endpoint only.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from ..config.logging_config import log_transaction
from ..exceptions import ChainClientError, TransactionError
from ..helpers.chain_client import ChainClient

logger = logging.getLogger(__name__)

TRANSFER_AMOUNT_WEI = 10**18  # 1 token at 18 decimals
TRANSFER_GAS_LIMIT = 200_000
DEFAULT_TX_DELAY = 1.0  # seconds


class TxStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class TransactionResult:
    index: int
    status: TxStatus
    nonce: int | None = None
    tx_hash: str | None = None
    error_detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is TxStatus.SUCCESS


@dataclass
class DispatchReport:
    results: list[TransactionResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded

    @property
    def failed_indices(self) -> list[int]:
        return [r.index for r in self.results if not r.ok]

    def summary(self) -> str:
        return f"{len(self.results)} transactions attempted: {self.succeeded} succeeded, {self.failed} failed"


class TransactionDispatcher:
    def __init__(
        self,
        client: ChainClient,
        *,
        sender: str,
        private_key: str,
        token_address: str,
        receiver: str,
        amount: int = TRANSFER_AMOUNT_WEI,
        gas_limit: int = TRANSFER_GAS_LIMIT,
        delay: float = DEFAULT_TX_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.sender = sender
        self.private_key = private_key
        self.token_address = token_address
        self.receiver = receiver
        self.amount = amount
        self.gas_limit = gas_limit
        self.delay = delay
        self._sleep = sleep
        self._next_nonce: int | None = None

    def dispatch(self, tx_count: int) -> DispatchReport:
        """Run the batch; returns one TransactionResult per iteration, in order."""
        report = DispatchReport()
        for index in range(1, tx_count + 1):
            logger.info("Sending transaction #%d...", index)
            report.results.append(self._send_one(index))
            if self.delay > 0:
                self._sleep(self.delay)
        logger.info("All transactions completed: %s", report.summary())
        return report

    def _resolve_nonce(self, index: int) -> int:
        try:
            fetched = self.client.nonce(self.sender)
        except ChainClientError as e:
            raise TransactionError(f"Failed to fetch nonce for transaction #{index}.", output=e.output or e.message) from e
        if self._next_nonce is not None and self._next_nonce > fetched:
            logger.debug("Network nonce %d lags local nonce %d; using local", fetched, self._next_nonce)
            return self._next_nonce
        return fetched

    def _submit(self, index: int, nonce: int) -> str:
        try:
            return self.client.send_transfer(
                token_address=self.token_address,
                receiver=self.receiver,
                amount=self.amount,
                private_key=self.private_key,
                nonce=nonce,
                gas_limit=self.gas_limit,
            )
        except ChainClientError as e:
            raise TransactionError(f"Transaction #{index} failed.", output=e.output or e.message) from e

    def _send_one(self, index: int) -> TransactionResult:
        try:
            nonce = self._resolve_nonce(index)
        except TransactionError as e:
            log_transaction(logger, index, success=False, detail=str(e))
            return TransactionResult(index, TxStatus.FAILURE, error_detail=str(e))

        try:
            tx_hash = self._submit(index, nonce)
        except TransactionError as e:
            # whether the nonce was consumed is unknown; trust the network next time
            self._next_nonce = None
            log_transaction(logger, index, success=False, nonce=nonce, detail=str(e))
            return TransactionResult(index, TxStatus.FAILURE, nonce=nonce, error_detail=str(e))

        self._next_nonce = nonce + 1
        log_transaction(logger, index, success=True, nonce=nonce, tx_hash=tx_hash)
        return TransactionResult(index, TxStatus.SUCCESS, nonce=nonce, tx_hash=tx_hash or None)
