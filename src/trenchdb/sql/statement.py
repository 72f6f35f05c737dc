from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

from trenchdb.convert import count_placeholders
from trenchdb.exception import TrenchError

UPDATE_PREFIX = "UPDATE"

UPDATE_PATTERN = re.compile(
    r"^UPDATE\s+(?P<table>(?:`[^`]+`|[\w$]+)(?:\.(?:`[^`]+`|[\w$]+))?)"
    r"\s+SET\s+(?P<assignments>.+?)"
    r"(?:\s+WHERE\s+(?P<predicate>.+?))?\s*;?\s*$",
    re.IGNORECASE | re.DOTALL,
)


class Statement(NamedTuple):
    sql: str
    values: Tuple[Any, ...] = ()

    @classmethod
    def coerce(
        cls, obj: Union[Statement, Mapping[str, Any], Sequence[Any]]
    ) -> Statement:
        if isinstance(obj, Statement):
            return obj
        if isinstance(obj, Mapping):
            if "sql" not in obj:
                raise TrenchError(f"Statement is missing its sql: {obj!r}")
            return cls(obj["sql"], tuple(obj.get("values") or ()))
        if isinstance(obj, str):
            return cls(obj)
        sql, *rest = obj
        values = rest[0] if rest else ()
        return cls(sql, tuple(values or ()))


def is_update(statement_text: str) -> bool:
    return statement_text.startswith(UPDATE_PREFIX)


@dataclass(frozen=True)
class UpdateStatement:
    """An UPDATE taken apart into its target table, SET list and predicate.

    Only single table updates can be decomposed. Anything after WHERE
    (including ORDER BY and LIMIT) is treated as the predicate and is
    reused verbatim in the derived statements.
    """

    table: str
    assignments: str
    predicate: Optional[str]
    set_values_count: int

    @classmethod
    def parse(cls, statement_text: str) -> UpdateStatement:
        match = UPDATE_PATTERN.match(statement_text.strip())
        if not match:
            raise TrenchError(
                f"Cannot decompose UPDATE statement: {statement_text}"
            )
        assignments = match.group("assignments")
        return cls(
            table=match.group("table"),
            assignments=assignments,
            predicate=match.group("predicate"),
            set_values_count=count_placeholders(assignments),
        )

    @property
    def where(self) -> str:
        return f" WHERE {self.predicate}" if self.predicate else ""

    @property
    def snapshot_table(self) -> str:
        name = re.sub(r"\W", "_", self.table.replace("`", ""))
        return f"`_trench_snapshot_{name}`"

    def predicate_values(self, values: Sequence[Any]) -> Tuple[Any, ...]:
        return tuple(values[self.set_values_count :])

    def select_rows(self) -> str:
        return f"SELECT * FROM {self.table}{self.where}"
