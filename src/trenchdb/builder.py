from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from trenchdb.exception import TrenchError

Built = Tuple[str, Tuple[Any, ...]]

FUNCTION_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class SQLFunction:
    """A value that is passed through a SQL function, eg. ``PASSWORD(?)``"""

    name: str
    value: Any

    def render(self) -> str:
        return f"{self.name}(?)"


def quote_identifier(name: str) -> str:
    if not name:
        raise TrenchError("Identifiers must not be empty")
    return ".".join(
        "`{}`".format(part.replace("`", "``")) for part in name.split(".")
    )


def _bind(value: Any) -> Tuple[str, Any]:
    if isinstance(value, SQLFunction):
        return value.render(), value.value
    return "?", value


def _pairs(data: Mapping[str, Any], joiner: str) -> Tuple[str, List[Any]]:
    parts = []
    values = []
    for key, value in data.items():
        placeholder, bound = _bind(value)
        parts.append(f"{quote_identifier(key)} = {placeholder}")
        values.append(bound)
    return joiner.join(parts), values


def build_select(
    table: str,
    columns: Sequence[str] = ("*",),
    where: Optional[Mapping[str, Any]] = None,
) -> Built:
    selected = ", ".join(
        column if column == "*" else quote_identifier(column)
        for column in columns
    )
    query = f"SELECT {selected} FROM {quote_identifier(table)}"
    values: List[Any] = []
    if where:
        clause, values = _pairs(where, " AND ")
        query += f" WHERE {clause}"
    return query, tuple(values)


def build_insert(table: str, data: Mapping[str, Any]) -> Built:
    if not data:
        raise TrenchError(f"Nothing to insert into {table}")
    columns = ", ".join(quote_identifier(column) for column in data)
    placeholders = []
    values = []
    for value in data.values():
        placeholder, bound = _bind(value)
        placeholders.append(placeholder)
        values.append(bound)
    query = (
        f"INSERT INTO {quote_identifier(table)} ({columns}) "
        f"VALUES ({', '.join(placeholders)})"
    )
    return query, tuple(values)


def build_update(
    table: str,
    data: Mapping[str, Any],
    where: Optional[Mapping[str, Any]] = None,
) -> Built:
    if not data:
        raise TrenchError(f"Nothing to update in {table}")
    assignments, values = _pairs(data, ", ")
    query = f"UPDATE {quote_identifier(table)} SET {assignments}"
    if where:
        clause, where_values = _pairs(where, " AND ")
        query += f" WHERE {clause}"
        values += where_values
    return query, tuple(values)


def encrypt_values(
    data: Mapping[str, Any], function: str = "PASSWORD"
) -> Dict[str, SQLFunction]:
    """Wrap every value so it is hashed by the database on write

    Example:

    ```python
    query, values = build_insert(
        "accounts", {"login": "x", **encrypt_values({"secret": "hunter2"})}
    )
    # INSERT INTO `accounts` (`login`, `secret`) VALUES (?, PASSWORD(?))
    ```
    """
    if not FUNCTION_NAME.match(function):
        raise TrenchError(f"Invalid SQL function name: {function}")
    return {key: SQLFunction(function, value) for key, value in data.items()}
