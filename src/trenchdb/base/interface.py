from __future__ import annotations

from abc import ABC, abstractmethod
from collections import namedtuple
from typing import Any, Optional, Sequence
from urllib.parse import urlparse

from trenchdb.exception import TrenchError
from trenchdb.sql.result import Result

UrlMapping = namedtuple("UrlMapping", ("key", "cast"))


URLPARSE_MAPPING = {
    "hostname": UrlMapping("_host", str),
    "username": UrlMapping("_user", str),
    "password": UrlMapping("_password", str),
    "port": UrlMapping("_port", int),
    "path": UrlMapping("_db", lambda value: value.replace("/", "")),
}


class BaseInterface(ABC):
    """A single live session to the database.

    There is no pooling: one interface owns exactly one driver connection
    for its whole life. Once a failed rollback has left the session in an
    unknown state the interface is marked ``suspect`` and stays that way
    until it is recreated.
    """

    scheme = "dummy"
    default_port: Optional[int] = None

    @abstractmethod
    async def open(self): ...

    @abstractmethod
    async def close(self): ...

    @abstractmethod
    async def execute(
        self, statement: str, values: Sequence[Any] = ()
    ) -> Result: ...

    @abstractmethod
    async def begin(self): ...

    @abstractmethod
    async def commit(self): ...

    @abstractmethod
    async def rollback(self): ...

    @abstractmethod
    def escape(self, value: Any) -> str: ...

    async def set_isolation_level(self, level: str) -> None:
        await self.execute(f"SET TRANSACTION ISOLATION LEVEL {level}")

    def __init__(
        self,
        dsn: Optional[str] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        db: Optional[str] = None,
    ) -> None:
        """Connection initialization.

        Args:
            dsn (str, optional): DB data source name
            host (str, optional): DB address URL or IP
            port (int, optional): DB port
            user (str, optional): DB user
            password (str, optional): DB password
            db (str, optional): DB name
        """

        if dsn and host:
            raise TrenchError("Cannot connect to DB using host and dsn")

        if not dsn:
            if port and (
                not isinstance(port, int) or port not in range(0, 65536)
            ):
                raise TrenchError(
                    "port: must be an integer between 0 and 65535"
                )

            if host and (not isinstance(host, str) or not len(host) > 0):
                raise TrenchError(
                    "host: must be a string at least 1 character long"
                )

        if password is not None and (
            not isinstance(password, str) or not len(password) > 0
        ):
            raise TrenchError(
                "password: must be a string at least 1 character long"
            )

        self._dsn = dsn
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._db = db
        self._full_dsn: Optional[str] = None
        self._suspect = False

        self._populate_connection_args()
        self._populate_dsn()

    def __str__(self) -> str:
        return f"<{self.__class__.__name__} {self.dsn}>"

    def _populate_connection_args(self):
        dsn = self.dsn or ""
        if dsn:
            parts = urlparse(dsn)
            if parts.scheme and parts.scheme != self.scheme:
                raise TrenchError(
                    f"{self.__class__.__name__} cannot connect to "
                    f"{parts.scheme}:// data sources"
                )
            for key, mapping in URLPARSE_MAPPING.items():
                if not getattr(self, mapping.key):
                    value = getattr(parts, key, None)
                    if value:
                        setattr(self, mapping.key, mapping.cast(value))
        self._host = self._host or "localhost"
        self._port = self._port or self.default_port

    def _populate_dsn(self):
        self._dsn = (
            (
                f"{self.scheme}://{self.user}:...@"
                f"{self.host}:{self.port}/{self.db}"
            )
            if self.password
            else (
                f"{self.scheme}://{self.user}@"
                f"{self.host}:{self.port}/{self.db}"
            )
        )
        self._full_dsn = (
            (
                f"{self.scheme}://{self.user}:{self.password}@"
                f"{self.host}:{self.port}/{self.db}"
            )
            if self.password
            else self.dsn
        )

    @property
    def dsn(self):
        return self._dsn

    @property
    def host(self):
        return self._host

    @property
    def port(self):
        return self._port

    @property
    def user(self):
        return self._user

    @property
    def password(self):
        return self._password

    @property
    def db(self):
        return self._db

    @property
    def full_dsn(self):
        return self._full_dsn

    @property
    def suspect(self) -> bool:
        return self._suspect

    def mark_suspect(self) -> None:
        self._suspect = True
