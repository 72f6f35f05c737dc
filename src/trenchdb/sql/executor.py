from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from trenchdb.base.interface import BaseInterface
from trenchdb.exception import ExecutionError, TrenchError
from trenchdb.history import HistoryBuffer, QueryRecord
from trenchdb.sql.result import Result, coerce_boolean
from trenchdb.sql.statement import UpdateStatement, is_update

logger = logging.getLogger(__name__)


class QueryExecutor:
    """Runs single statements against an interface and records them.

    Args:
        interface (BaseInterface): The connection statements are sent to
        history (HistoryBuffer): Where successful statements are recorded
        capture_preimages (bool, optional): Whether to read the rows an
            UPDATE is about to touch before sending it. Defaults to `False`.
    """

    def __init__(
        self,
        interface: BaseInterface,
        history: HistoryBuffer,
        capture_preimages: bool = False,
    ) -> None:
        self.interface = interface
        self.history = history
        self.capture_preimages = capture_preimages

    async def execute_query(
        self, statement_text: str, bound_values: Sequence[Any] = ()
    ) -> Union[Result, bool]:
        values = tuple(bound_values)
        before_image = await self.before_image(statement_text, values)
        raw = await self.run(statement_text, values)
        result = coerce_boolean(raw)
        self.history.push(
            QueryRecord(statement_text, values, result, before_image)
        )
        return result

    async def scalar(
        self, statement_text: str, bound_values: Sequence[Any] = ()
    ) -> Optional[Any]:
        raw = await self.run(statement_text, tuple(bound_values))
        if not isinstance(raw, list) or len(raw) != 1:
            return None
        return next(iter(raw[0].values()), None)

    async def before_image(
        self, statement_text: str, bound_values: Sequence[Any] = ()
    ) -> Optional[Tuple[Dict[str, Any], ...]]:
        """Rows an UPDATE is about to touch, when capturing is enabled"""
        if not (self.capture_preimages and is_update(statement_text)):
            return None
        return await self._capture_before_image(
            statement_text, tuple(bound_values)
        )

    async def run(
        self, statement_text: str, values: Sequence[Any] = ()
    ) -> Result:
        """Send a statement without coercing or recording anything"""
        try:
            return await self.interface.execute(statement_text, values)
        except TrenchError:
            raise
        except Exception as e:
            logger.error("Statement failed: %s (%s)", statement_text, e)
            raise ExecutionError(
                f"Could not execute statement: {e}",
                statement=statement_text,
                values=values,
                error=e,
            ) from e

    async def _capture_before_image(
        self, statement_text: str, values: Tuple[Any, ...]
    ) -> Tuple[Dict[str, Any], ...]:
        try:
            update = UpdateStatement.parse(statement_text)
        except TrenchError as e:
            raise ExecutionError(
                str(e), statement=statement_text, values=values, error=e
            ) from e
        rows = await self.run(
            update.select_rows(), update.predicate_values(values)
        )
        if not isinstance(rows, list):
            return ()
        logger.debug(
            "Captured %d row(s) from %s before update",
            len(rows),
            update.table,
        )
        return tuple(dict(row) for row in rows)
