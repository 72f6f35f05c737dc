from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional, Sequence
from uuid import uuid4

from trenchdb.base.interface import BaseInterface
from trenchdb.sql.result import Result
from trenchdb.sql.statement import Statement

from .interfaces import (
    IsolationLevel,
    TransactionBeginError,
    TransactionCommitError,
    TransactionError,
    TransactionRollbackError,
    TransactionState,
    TransactionStatementError,
)

logger = logging.getLogger(__name__)


class TransactionRunner:
    """Runs a batch of statements as one atomic unit.

    Statements are dispatched concurrently and all of them are awaited
    before deciding between commit and rollback, so statements depending on
    each other's side effects have no defined relative order unless
    ``ordered=True`` is passed to ``run``.
    """

    def __init__(
        self,
        interface: BaseInterface,
        isolation_level: Optional[IsolationLevel] = None,
    ) -> None:
        self.interface = interface
        self.isolation_level = isolation_level
        self._state = TransactionState.IDLE

    @property
    def state(self) -> TransactionState:
        return self._state

    async def run(
        self, statements: Sequence[Statement], ordered: bool = False
    ) -> List[Result]:
        if self._state is not TransactionState.IDLE:
            raise TransactionError(
                f"Cannot start a transaction while {self._state.name}"
            )

        transaction_id = f"txn_{uuid4().hex[:8]}"
        logger.debug(
            "Beginning transaction %s with %d statement(s)",
            transaction_id,
            len(statements),
        )

        try:
            if self.isolation_level:
                await self.interface.set_isolation_level(
                    self.isolation_level.value
                )
            await self.interface.begin()
        except Exception as e:
            raise TransactionBeginError(
                f"Failed to begin transaction {transaction_id}: {e}"
            ) from e

        self._state = TransactionState.BEGUN
        try:
            outcomes = await self._dispatch(statements, ordered)
            for index, (statement, outcome) in enumerate(
                zip(statements, outcomes)
            ):
                if isinstance(outcome, BaseException):
                    await self._rollback(transaction_id, outcome)
                    raise TransactionStatementError(
                        f"Statement {index} of transaction {transaction_id} "
                        f"failed: {outcome}",
                        statement=statement,
                        index=index,
                        error=outcome,
                    ) from outcome
            await self._commit(transaction_id)
        finally:
            self._state = TransactionState.IDLE

        logger.info("Transaction %s committed", transaction_id)
        return list(outcomes)

    async def _dispatch(
        self, statements: Sequence[Statement], ordered: bool
    ) -> List[Any]:
        if not ordered:
            return await asyncio.gather(
                *(
                    self.interface.execute(statement.sql, statement.values)
                    for statement in statements
                ),
                return_exceptions=True,
            )

        outcomes: List[Any] = []
        for statement in statements:
            try:
                outcome = await self.interface.execute(
                    statement.sql, statement.values
                )
            except Exception as e:
                outcomes.append(e)
                break
            outcomes.append(outcome)
        return outcomes

    async def _commit(self, transaction_id: str) -> None:
        self._state = TransactionState.COMMITTING
        try:
            await self.interface.commit()
        except Exception as e:
            logger.error(
                "Commit failed for %s, attempting rollback: %s",
                transaction_id,
                e,
            )
            try:
                await self.interface.rollback()
            except Exception as rollback_error:
                self.interface.mark_suspect()
                logger.critical(
                    "Rollback after failed commit also failed: %s",
                    rollback_error,
                )
            raise TransactionCommitError(
                f"Failed to commit transaction {transaction_id}: {e}"
            ) from e

    async def _rollback(
        self, transaction_id: str, original: BaseException
    ) -> None:
        self._state = TransactionState.ROLLING_BACK
        logger.debug("Rolling back transaction %s", transaction_id)
        try:
            await self.interface.rollback()
        except Exception as e:
            self.interface.mark_suspect()
            logger.critical(
                "CRITICAL: Rollback failed for %s: %s", transaction_id, e
            )
            raise TransactionRollbackError(
                f"Transaction {transaction_id} failed ({original}) and "
                f"could not be rolled back: {e}",
                original=original,
                rollback_error=e,
            ) from original
        logger.info("Transaction %s rolled back", transaction_id)
