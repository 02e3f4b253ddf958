from .transaction_dispatcher import (
    DispatchReport,
    TransactionDispatcher,
    TransactionResult,
    TxStatus,
)

__all__ = ["DispatchReport", "TransactionDispatcher", "TransactionResult", "TxStatus"]
