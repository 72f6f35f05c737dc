from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Sequence

from asyncmy import Connection, connect
from asyncmy.cursors import DictCursor

from trenchdb.base.interface import BaseInterface
from trenchdb.convert import convert_placeholders
from trenchdb.exception import ConnectionError
from trenchdb.sql.result import Result, StatementResult

logger = logging.getLogger(__name__)


class MysqlInterface(BaseInterface):
    """Interface for a single connection to a MySQL database"""

    scheme = "mysql"
    default_port = 3306

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._conn: Optional[Connection] = None
        self._io_lock = asyncio.Lock()

    async def open(self):
        """Open the connection"""
        if self._conn is not None:
            return
        try:
            self._conn = await connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password or "",
                db=self.db,
                autocommit=True,
            )
        except Exception as e:
            raise ConnectionError(f"Could not connect to {self}: {e}") from e
        logger.debug("Opened connection %s", self)

    async def close(self):
        """Close the connection"""
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            await conn.ensure_closed()
        except Exception as e:
            raise ConnectionError(f"Could not close {self}: {e}") from e
        logger.debug("Closed connection %s", self)

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> Connection:
        if self._conn is None:
            raise ConnectionError(f"{self} is not open")
        return self._conn

    async def execute(
        self, statement: str, values: Sequence[Any] = ()
    ) -> Result:
        conn = self.connection
        args = list(values) if values else None
        query = convert_placeholders(statement, escape_percent=bool(args))
        # asyncmy cannot multiplex a session
        async with self._io_lock:
            async with conn.cursor(cursor=DictCursor) as cursor:
                await cursor.execute(query, args)
                if cursor.description is None:
                    return StatementResult(
                        affected_rows=cursor.rowcount,
                        insert_id=cursor.lastrowid or None,
                    )
                return list(await cursor.fetchall())

    async def begin(self):
        async with self._io_lock:
            await self.connection.begin()

    async def commit(self):
        async with self._io_lock:
            await self.connection.commit()

    async def rollback(self):
        async with self._io_lock:
            await self.connection.rollback()

    def escape(self, value: Any) -> str:
        return self.connection.escape(value)
