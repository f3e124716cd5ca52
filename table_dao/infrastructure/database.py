"""
Database connection provider.
Owns the SQLAlchemy engine and the single live connection that queries run on.
"""

import re
from typing import Any, Mapping, Optional, Union

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import Executable

from table_dao.config import Settings, get_settings
from table_dao.core.exceptions import PersistenceError
from table_dao.core.logging import set_sql_echo

logger = structlog.get_logger(__name__)

_RAW_INSERT = re.compile(r"^\s*INSERT\b", re.IGNORECASE)


class DatabaseConnection:
    """
    Live database handle shared by the query builder and repositories.

    Not safe to share between concurrent callers; use one instance per
    thread or task. With autocommit on, every statement is committed as it
    runs; with it off, the caller drives commit() / rollback().
    """

    def __init__(self, engine: Engine, autocommit: bool = True):
        self.engine = engine
        self.autocommit = autocommit
        self._connection: Optional[Connection] = None
        self._last_insert_id: Optional[int] = None

    @classmethod
    def from_url(cls, url: str, echo: bool = False, autocommit: bool = True) -> "DatabaseConnection":
        if echo:
            set_sql_echo(True)
        return cls(create_engine(url), autocommit=autocommit)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "DatabaseConnection":
        settings = settings or get_settings()
        return cls.from_url(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            autocommit=settings.DB_AUTOCOMMIT,
        )

    @property
    def connection(self) -> Connection:
        """The live connection, opened on first use."""
        if self._connection is None or self._connection.closed:
            engine = self.engine
            if self.autocommit:
                engine = engine.execution_options(isolation_level="AUTOCOMMIT")
            try:
                self._connection = engine.connect()
            except SQLAlchemyError as exc:
                logger.error("Database connection failed", url=str(self.engine.url), error=str(exc))
                raise PersistenceError("Could not connect to database", {"url": str(self.engine.url)}) from exc
            logger.debug("Database connection opened", dialect=self.dialect_name)
        return self._connection

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @property
    def supports_insert_returning(self) -> bool:
        return bool(getattr(self.engine.dialect, "insert_returning", False))

    def execute(
        self,
        statement: Union[str, Executable],
        params: Optional[Mapping[str, Any]] = None,
    ) -> CursorResult:
        """Run a statement with bound parameters, wrapping driver errors."""
        if isinstance(statement, str):
            statement = text(statement)

        try:
            if params:
                result = self.connection.execute(statement, dict(params))
            else:
                result = self.connection.execute(statement)
        except SQLAlchemyError as exc:
            sql = str(statement)
            logger.error("Statement failed", sql=sql, error=str(exc))
            raise PersistenceError(str(getattr(exc, "orig", None) or exc), {"sql": sql}) from exc

        if statement.is_insert:
            self._last_insert_id = self._generated_id(result)
        elif statement.is_text and _RAW_INSERT.match(statement.text):
            # raw SQL rows stay with the caller, so only the cursor id is read
            self._last_insert_id = result.lastrowid or None
        return result

    def last_insert_id(self) -> Optional[int]:
        """Identifier generated by the most recent INSERT, if the driver reported one."""
        return self._last_insert_id

    def commit(self) -> None:
        if self._connection is not None and not self.autocommit:
            self._connection.commit()

    def rollback(self) -> None:
        if self._connection is not None and not self.autocommit:
            self._connection.rollback()

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.debug("Database connection closed")

    def __enter__(self) -> "DatabaseConnection":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @staticmethod
    def _generated_id(result: CursorResult) -> Optional[int]:
        if result.returns_rows:
            row = result.first()
            return int(row[0]) if row and row[0] is not None else None
        # cursor.lastrowid is 0 or None when nothing was generated
        return result.lastrowid or None
