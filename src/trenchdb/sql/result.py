from __future__ import annotations

from dataclasses import dataclass
from numbers import Number
from typing import Any, Dict, List, Optional, Union

RowSet = List[Dict[str, Any]]


@dataclass(frozen=True)
class StatementResult:
    """Outcome of a statement that does not produce a result set

    Mirrors what the driver reports after an INSERT, UPDATE, DELETE or DDL
    statement.
    """

    affected_rows: int = 0
    insert_id: Optional[int] = None


Result = Union[RowSet, StatementResult]


def is_boolean_like(value: Any) -> bool:
    if not isinstance(value, Number):
        return False
    return value == 0 or value == 1


def coerce_boolean(result: Result) -> Union[Result, bool]:
    """Collapse a single 0/1 cell into a boolean

    A row set holding exactly one row with exactly one column whose value is
    numerically 0 or 1 becomes ``False`` or ``True``. A genuine boolean
    column and an integer column that happens to hold 0 or 1 cannot be told
    apart once coerced.
    """
    if not isinstance(result, list) or len(result) != 1:
        return result
    row = result[0]
    if len(row) != 1:
        return result
    (value,) = row.values()
    if is_boolean_like(value):
        return value == 1
    return result
