from .interfaces import (
    CompensationError,
    IsolationLevel,
    TransactionBeginError,
    TransactionCommitError,
    TransactionError,
    TransactionFailure,
    TransactionRollbackError,
    TransactionState,
    TransactionStatementError,
)
from .rollback import RollbackEngine
from .runner import TransactionRunner

__all__ = [
    "TransactionRunner",
    "RollbackEngine",
    "TransactionError",
    "TransactionBeginError",
    "TransactionCommitError",
    "TransactionRollbackError",
    "TransactionStatementError",
    "CompensationError",
    "TransactionFailure",
    "TransactionState",
    "IsolationLevel",
]
