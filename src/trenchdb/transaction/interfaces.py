from __future__ import annotations

from enum import Enum, auto
from typing import TYPE_CHECKING, Optional

from trenchdb.exception import TrenchError

if TYPE_CHECKING:
    from trenchdb.sql.statement import Statement


class IsolationLevel(Enum):
    """SQL transaction isolation levels"""

    READ_UNCOMMITTED = "READ UNCOMMITTED"
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"


class TransactionState(Enum):
    IDLE = auto()
    BEGUN = auto()
    COMMITTING = auto()
    ROLLING_BACK = auto()


class TransactionFailure(Enum):
    BEGIN_FAILED = auto()
    COMMIT_FAILED = auto()
    ROLLBACK_FAILED = auto()
    STATEMENT_FAILED = auto()
    COMPENSATION_FAILED = auto()


class TransactionError(TrenchError):
    """Base exception for transaction errors"""

    kind: Optional[TransactionFailure] = None


class TransactionBeginError(TransactionError):
    """Raised when a transaction could not be opened"""

    kind = TransactionFailure.BEGIN_FAILED


class TransactionCommitError(TransactionError):
    """Raised when a commit failed. The transaction is not applied."""

    kind = TransactionFailure.COMMIT_FAILED


class TransactionStatementError(TransactionError):
    """Raised when a statement inside a transaction failed

    The transaction has been rolled back. ``error`` is the driver exception
    raised by the failing statement.
    """

    kind = TransactionFailure.STATEMENT_FAILED

    def __init__(
        self,
        message: str,
        statement: Statement,
        index: int,
        error: BaseException,
    ) -> None:
        super().__init__(message)
        self.statement = statement
        self.index = index
        self.error = error


class TransactionRollbackError(TransactionError):
    """Raised when rolling back after a failure also failed

    Carries both the failure that triggered the rollback and the rollback
    failure itself. The connection is left in an unknown state.
    """

    kind = TransactionFailure.ROLLBACK_FAILED

    def __init__(
        self,
        message: str,
        original: BaseException,
        rollback_error: BaseException,
    ) -> None:
        super().__init__(message)
        self.original = original
        self.rollback_error = rollback_error


class CompensationError(TransactionError):
    """Raised when compensating statements cannot be derived or staged"""

    kind = TransactionFailure.COMPENSATION_FAILED
