from typing import Any, Optional, Sequence


class TrenchError(Exception):
    ...


class ConnectionError(TrenchError):
    ...


class ExecutionError(TrenchError):
    """Raised when a single statement could not be executed

    The driver exception is kept on ``error`` and chained as the cause.
    """

    def __init__(
        self,
        message: str,
        statement: str = "",
        values: Optional[Sequence[Any]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.statement = statement
        self.values = tuple(values or ())
        self.error = error
