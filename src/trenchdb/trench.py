from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple, Union

from trenchdb.base.interface import BaseInterface
from trenchdb.builder import (
    SQLFunction,
    build_insert,
    build_select,
    build_update,
    encrypt_values,
)
from trenchdb.exception import ConnectionError, TrenchError
from trenchdb.history import DEFAULT_HISTORY_SIZE, HistoryBuffer, QueryRecord
from trenchdb.sql.executor import QueryExecutor
from trenchdb.sql.mysql.interface import MysqlInterface
from trenchdb.sql.result import Result
from trenchdb.sql.statement import Statement
from trenchdb.transaction import (
    IsolationLevel,
    RollbackEngine,
    TransactionRunner,
)

logger = logging.getLogger(__name__)

DEFAULT_DSN = "mysql://root@localhost:3306/trenches"

StatementLike = Union[Statement, Mapping[str, Any], Sequence[Any]]


class TrenchDB:
    """Main entryway for accessing the database.

    One instance owns one connection and the history of the statements
    sent through it. Every operation that touches the connection is
    serialized by a per-connection lock, so only one statement or
    transaction is ever in flight.

    Example:

    ```python
    async def run():
        async with TrenchDB(dsn="mysql://root@localhost:3306/trenches") as db:
            await db.insert("users", {"name": "x"})
            await db.execute_query(
                "UPDATE users SET name = ? WHERE name = ?", ("y", "x")
            )
            print(db.get_query_history()[0].statement_text)
    ```
    """

    def __init__(
        self,
        *,
        dsn: str = "",
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        db: Optional[str] = None,
        interface: Optional[BaseInterface] = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
        capture_preimages: bool = False,
        isolation_level: Optional[IsolationLevel] = None,
    ):
        """Initializer for TrenchDB instance

        The `dsn`, the discrete connection arguments and the `interface`
        are mutually exclusive. With none of them the instance connects to
        `mysql://root@localhost:3306/trenches`.

        Args:
            dsn (str, optional): DSN to the data source. Defaults to `""`.
            host (str, optional): DB address. Defaults to `None`.
            port (int, optional): DB port. Defaults to `None`.
            user (str, optional): DB user. Defaults to `None`.
            password (str, optional): DB password. Defaults to `None`.
            db (str, optional): DB name. Defaults to `None`.
            interface (BaseInterface, optional): A prebuilt connection
                interface. Defaults to `None`.
            history_size (int, optional): How many executed statements are
                remembered. Defaults to `10`.
            capture_preimages (bool, optional): Whether to read the rows an
                UPDATE touches before running it, so that `rollback` can
                restore them. Defaults to `False`.
            isolation_level (IsolationLevel, optional): Isolation level set
                before each transaction. Defaults to `None`.

        Raises:
            TrenchError: If there is conflicting data access source
        """
        discrete = any(
            value is not None for value in (host, port, user, password, db)
        )
        if interface and (dsn or discrete):
            raise TrenchError("Conflict with interface and connection args")

        if not interface:
            if dsn or discrete:
                interface = MysqlInterface(
                    dsn=dsn or None,
                    host=host,
                    port=port,
                    user=user or (None if dsn else "root"),
                    password=password,
                    db=db,
                )
            else:
                interface = MysqlInterface(dsn=DEFAULT_DSN)

        self.interface = interface
        self.history = HistoryBuffer(history_size)
        self.executor = QueryExecutor(
            interface, self.history, capture_preimages=capture_preimages
        )
        self.runner = TransactionRunner(
            interface, isolation_level=isolation_level
        )
        self.rollback_engine = RollbackEngine(
            interface, self.history, self.runner
        )
        self._lock = asyncio.Lock()

    def __str__(self) -> str:
        return f"<{self.__class__.__name__} {self.interface.dsn}>"

    async def connect(self) -> None:
        """Connect to the database"""
        await self.interface.open()

    async def disconnect(self) -> None:
        """Disconnect from the database"""
        await self.interface.close()

    async def __aenter__(self) -> TrenchDB:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()
        return False

    def _ensure_usable(self) -> None:
        if self.interface.suspect:
            raise ConnectionError(
                f"{self.interface} failed to roll back and is in an unknown "
                "state. Recreate it before issuing more statements."
            )

    async def execute_query(
        self, statement_text: str, values: Sequence[Any] = ()
    ) -> Union[Result, bool]:
        """Execute a statement and record it in the history

        A result of exactly one row with exactly one column holding 0 or 1
        is returned as a boolean.

        Args:
            statement_text (str): The SQL to run, using `?` placeholders
            values (Sequence[Any], optional): Bound values, by position.
                Defaults to `()`.

        Raises:
            ExecutionError: If the driver rejected the statement

        Returns:
            Union[Result, bool]: The rows, the statement outcome or a boolean
        """
        async with self._lock:
            self._ensure_usable()
            return await self.executor.execute_query(statement_text, values)

    async def scalar(
        self, statement_text: str, values: Sequence[Any] = ()
    ) -> Optional[Any]:
        """First column of the only row, `None` unless exactly one row.

        Never recorded in the history.
        """
        async with self._lock:
            self._ensure_usable()
            return await self.executor.scalar(statement_text, values)

    async def transaction(self, statements: Iterable[StatementLike]) -> None:
        """Run statements as one atomic unit

        Statements are dispatched concurrently, so their relative order is
        not guaranteed. Once committed the call is recorded as one history
        entry, holding each statement in the order it was given. With
        `capture_preimages=True` the rows each UPDATE touches are read
        before the transaction begins.

        Args:
            statements (Iterable[StatementLike]): `Statement` tuples or
                `{"sql": ..., "values": ...}` mappings

        Raises:
            TransactionError: If the transaction could not be begun or
                committed, or a statement failed and it was rolled back
        """
        batch = [Statement.coerce(statement) for statement in statements]
        async with self._lock:
            self._ensure_usable()
            before_images = [
                await self.executor.before_image(
                    statement.sql, statement.values
                )
                for statement in batch
            ]
            results = await self.runner.run(batch)
            self.history.push(
                QueryRecord.from_batch(batch, results, before_images)
            )

    async def rollback(self) -> None:
        """Attempt to undo the UPDATE statements in the history

        Only UPDATEs recorded with a before image, which requires
        `capture_preimages=True`, are really restored. Without one the
        snapshot is taken from the already updated rows and the rollback
        is best effort: it will usually leave the data as it is.

        Raises:
            TransactionError: If a compensating transaction failed
        """
        async with self._lock:
            self._ensure_usable()
            await self.rollback_engine.rollback_recent()

    def get_query_history(self) -> Tuple[QueryRecord, ...]:
        """Recently executed statements, newest first"""
        return self.history.snapshot()

    def escape(self, value: Any) -> str:
        """Quote a value as a SQL literal using the driver's rules"""
        return self.interface.escape(value)

    async def select(
        self,
        table: str,
        columns: Sequence[str] = ("*",),
        where: Optional[Mapping[str, Any]] = None,
    ) -> Union[Result, bool]:
        return await self.execute_query(*build_select(table, columns, where))

    async def insert(
        self, table: str, data: Mapping[str, Any]
    ) -> Union[Result, bool]:
        return await self.execute_query(*build_insert(table, data))

    async def update(
        self,
        table: str,
        data: Mapping[str, Any],
        where: Optional[Mapping[str, Any]] = None,
    ) -> Union[Result, bool]:
        return await self.execute_query(*build_update(table, data, where))

    @staticmethod
    def encrypt_values(
        data: Mapping[str, Any], function: str = "PASSWORD"
    ) -> Mapping[str, SQLFunction]:
        return encrypt_values(data, function)
