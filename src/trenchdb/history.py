from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import (
    Any,
    Deque,
    Dict,
    Iterable,
    Iterator,
    Optional,
    Sequence,
    Tuple,
)

from trenchdb.sql.result import Result, coerce_boolean
from trenchdb.sql.statement import Statement, is_update

DEFAULT_HISTORY_SIZE = 10


@dataclass(frozen=True)
class QueryRecord:
    """One successful ``execute_query`` or ``transaction`` call.

    A transaction of several statements is recorded as a single record
    whose ``parts`` hold one record per statement, in submission order.
    """

    statement_text: str
    bound_values: Tuple[Any, ...]
    result: Any
    before_image: Optional[Tuple[Dict[str, Any], ...]] = None
    parts: Tuple[QueryRecord, ...] = ()

    @classmethod
    def from_batch(
        cls,
        statements: Sequence[Statement],
        results: Sequence[Result],
        before_images: Sequence[Optional[Tuple[Dict[str, Any], ...]]],
    ) -> QueryRecord:
        parts = tuple(
            cls(
                statement.sql,
                tuple(statement.values),
                coerce_boolean(result),
                before_image,
            )
            for statement, result, before_image in zip(
                statements, results, before_images
            )
        )
        if len(parts) == 1:
            return parts[0]
        return cls(
            "; ".join(part.statement_text for part in parts),
            tuple(value for part in parts for value in part.bound_values),
            tuple(part.result for part in parts),
            parts=parts,
        )

    @property
    def results(self) -> Any:
        return self.result

    @property
    def updates(self) -> Tuple[QueryRecord, ...]:
        """The UPDATE statements of this record, in submission order"""
        if self.parts:
            return tuple(part for part in self.parts if part.is_update)
        return (self,) if is_update(self.statement_text) else ()

    @property
    def is_update(self) -> bool:
        if self.parts:
            return any(part.is_update for part in self.parts)
        return is_update(self.statement_text)


class HistoryBuffer:
    """Most recent first log of executed statements.

    Pushing onto a full buffer evicts the oldest record in the same step.
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_SIZE) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self._records: Deque[QueryRecord] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._records.maxlen or 0

    def push(self, record: QueryRecord) -> None:
        self._records.appendleft(record)

    def snapshot(self) -> Tuple[QueryRecord, ...]:
        return tuple(self._records)

    def recent_updates(self, limit: int = DEFAULT_HISTORY_SIZE):
        """Newest first UPDATE records, at most ``limit`` of them"""
        return [record for record in self._records if record.is_update][
            :limit
        ]

    def discard(self, records: Iterable[QueryRecord]) -> None:
        doomed = {id(record) for record in records}
        kept = [record for record in self._records if id(record) not in doomed]
        self._records.clear()
        self._records.extend(kept)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[QueryRecord]:
        return iter(self.snapshot())

    def __str__(self) -> str:
        return f"<HistoryBuffer {len(self)}/{self.capacity}>"
