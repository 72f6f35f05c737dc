from functools import partial
from typing import Any, Dict, List, Sequence, Tuple
from unittest.mock import AsyncMock

import pytest

from trenchdb import TrenchDB
from trenchdb.base.interface import BaseInterface
from trenchdb.history import HistoryBuffer
from trenchdb.sql.executor import QueryExecutor
from trenchdb.sql.result import StatementResult
from trenchdb.transaction import RollbackEngine, TransactionRunner


class FakeInterface(BaseInterface):
    scheme = "mysql"
    default_port = 3306

    def __init__(self) -> None:
        super().__init__(dsn="mysql://root@localhost:3306/trenches")
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.responses: Dict[str, Any] = {}
        self.default = StatementResult(affected_rows=1)
        self.escaped: List[Any] = []

    async def open(self): ...

    async def close(self): ...

    async def begin(self): ...

    async def commit(self): ...

    async def rollback(self): ...

    async def execute(self, statement: str, values: Sequence[Any] = ()):
        self.calls.append((statement, tuple(values)))
        response = self.responses.get(statement, self.default)
        if isinstance(response, BaseException):
            raise response
        return response

    def escape(self, value: Any) -> str:
        self.escaped.append(value)
        return "'{}'".format(str(value).replace("'", "\\'"))

    @property
    def statements(self) -> List[str]:
        return [statement for statement, _ in self.calls]


@pytest.fixture
def interface():
    fake = FakeInterface()
    fake.open = AsyncMock()
    fake.close = AsyncMock()
    for name in ("begin", "commit", "rollback"):
        mock = AsyncMock(side_effect=partial(_log, fake, name.upper()))
        setattr(fake, name, mock)
    return fake


def _log(fake: FakeInterface, name: str) -> None:
    fake.calls.append((name, ()))


@pytest.fixture
def history():
    return HistoryBuffer()


@pytest.fixture
def executor(interface, history):
    return QueryExecutor(interface, history)


@pytest.fixture
def runner(interface):
    return TransactionRunner(interface)


@pytest.fixture
def rollback_engine(interface, history, runner):
    return RollbackEngine(interface, history, runner)


@pytest.fixture
def trench(interface):
    return TrenchDB(interface=interface)
