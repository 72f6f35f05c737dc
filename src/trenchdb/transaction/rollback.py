from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from trenchdb.base.interface import BaseInterface
from trenchdb.exception import TrenchError
from trenchdb.history import DEFAULT_HISTORY_SIZE, HistoryBuffer, QueryRecord
from trenchdb.sql.statement import Statement, UpdateStatement

from .interfaces import CompensationError
from .runner import TransactionRunner

logger = logging.getLogger(__name__)

Compensation = Tuple[QueryRecord, UpdateStatement]


def quote_column(name: str) -> str:
    return "`{}`".format(name.replace("`", "``"))


class RollbackEngine:
    """Undo recent UPDATEs by replaying compensating statements.

    The selected records are processed oldest first in two atomic phases,
    a recorded transaction contributing each of its UPDATE statements.
    Phase A fills a per table snapshot area, keeping the first row written
    for each key. Phase B replaces the matching rows of the target table
    with the snapshot rows.

    Records carrying a before image (see ``capture_preimages``) snapshot the
    rows as they were before the UPDATE, which restores them. Records
    without one can only snapshot the table as it is now, which already
    reflects the UPDATE. Rolling those back is best effort and will usually
    change nothing.
    """

    def __init__(
        self,
        interface: BaseInterface,
        history: HistoryBuffer,
        runner: TransactionRunner,
        limit: int = DEFAULT_HISTORY_SIZE,
    ) -> None:
        self.interface = interface
        self.history = history
        self.runner = runner
        self.limit = limit

    def select(self) -> List[QueryRecord]:
        """UPDATE records to compensate, oldest first"""
        records = self.history.recent_updates(self.limit)
        records.reverse()
        return records

    async def rollback_recent(self) -> None:
        records = self.select()
        if not records:
            logger.info("No recorded UPDATE statements to roll back")
            return

        compensations = self._decompose(records)
        best_effort = sum(
            1 for record, _ in compensations if record.before_image is None
        )
        if best_effort:
            logger.warning(
                "%d of %d UPDATE statement(s) have no before image, rolling "
                "them back is best effort only",
                best_effort,
                len(compensations),
            )

        tables = self._snapshot_tables(compensations)
        try:
            await self._prepare(tables)
            await self.runner.run(
                self.snapshot_statements(compensations), ordered=True
            )
            await self.runner.run(
                self.restore_statements(compensations), ordered=True
            )
        finally:
            await self._release(tables)

        self.history.discard(records)
        logger.info(
            "Rolled back %d UPDATE statement(s) from %d record(s)",
            len(compensations),
            len(records),
        )

    @staticmethod
    def snapshot_statements(
        compensations: List[Compensation],
    ) -> List[Statement]:
        """Phase A, before images first and live copies after

        Both groups keep oldest first order. A copy of the live row only
        fills keys no before image covers.
        """
        images = []
        copies = []
        for record, update in compensations:
            if record.before_image is None:
                copies.append(
                    Statement(
                        f"INSERT IGNORE INTO {update.snapshot_table} "
                        f"SELECT * FROM {update.table}{update.where}",
                        update.predicate_values(record.bound_values),
                    )
                )
                continue
            for row in record.before_image:
                columns = ", ".join(quote_column(column) for column in row)
                placeholders = ", ".join("?" for _ in row)
                images.append(
                    Statement(
                        f"INSERT IGNORE INTO {update.snapshot_table} "
                        f"({columns}) VALUES ({placeholders})",
                        tuple(row.values()),
                    )
                )
        return images + copies

    @staticmethod
    def restore_statements(
        compensations: List[Compensation],
    ) -> List[Statement]:
        return [
            Statement(
                f"REPLACE INTO {update.table} "
                f"SELECT * FROM {update.snapshot_table}{update.where}",
                update.predicate_values(record.bound_values),
            )
            for record, update in compensations
        ]

    @staticmethod
    def _decompose(records: List[QueryRecord]) -> List[Compensation]:
        compensations = []
        for record in records:
            for part in record.updates:
                try:
                    update = UpdateStatement.parse(part.statement_text)
                except TrenchError as e:
                    raise CompensationError(str(e)) from e
                compensations.append((part, update))
        return compensations

    @staticmethod
    def _snapshot_tables(compensations: List[Compensation]) -> Dict[str, str]:
        return {
            update.snapshot_table: update.table
            for _, update in compensations
        }

    async def _prepare(self, tables: Dict[str, str]) -> None:
        try:
            for snapshot, table in tables.items():
                await self.interface.execute(
                    f"CREATE TEMPORARY TABLE IF NOT EXISTS {snapshot} "
                    f"LIKE {table}"
                )
                await self.interface.execute(f"DELETE FROM {snapshot}")
        except Exception as e:
            raise CompensationError(
                f"Could not prepare snapshot area: {e}"
            ) from e

    async def _release(self, tables: Dict[str, str]) -> None:
        for snapshot in tables:
            try:
                await self.interface.execute(
                    f"DROP TEMPORARY TABLE IF EXISTS {snapshot}"
                )
            except Exception as e:
                logger.warning(
                    "Error dropping snapshot table %s: %s", snapshot, e
                )
