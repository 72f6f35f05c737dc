from importlib.metadata import version

from .base.interface import BaseInterface
from .builder import build_insert, build_select, build_update, encrypt_values
from .history import HistoryBuffer, QueryRecord
from .sql.executor import QueryExecutor
from .sql.mysql.interface import MysqlInterface
from .sql.result import StatementResult
from .sql.statement import Statement
from .transaction import IsolationLevel, RollbackEngine, TransactionRunner
from .trench import TrenchDB

__version__ = version("trenchdb")

__all__ = (
    "TrenchDB",
    "BaseInterface",
    "MysqlInterface",
    "QueryExecutor",
    "TransactionRunner",
    "RollbackEngine",
    "HistoryBuffer",
    "QueryRecord",
    "Statement",
    "StatementResult",
    "IsolationLevel",
    "build_select",
    "build_insert",
    "build_update",
    "encrypt_values",
)
