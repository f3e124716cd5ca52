"""
Fluent SQL query builder on top of SQLAlchemy Core.

Conditions are written the way they read in SQL ("name", "NOT tag",
"score > ?") and the bound value decides the operator:

    None                    -> IS NULL
    any other iterable      -> IN (...), never matching when empty
    RequirementRangeValue   -> BETWEEN / >= / <=
    anything else           -> =

Values are always bound parameters. A condition given without a value is
used verbatim.
"""

import itertools
import re
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional

from pydantic import BaseModel
from sqlalchemy import bindparam, column, delete, func, insert, literal_column, select, table, text, update
from sqlalchemy.sql.elements import TextClause
from sqlalchemy.sql.expression import TableClause

from table_dao.domain.schemas.search import RequirementRangeValue
from table_dao.infrastructure.database import DatabaseConnection

Row = Dict[str, Any]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")
_UNSET: Any = object()


def _table(name: str, *columns: str) -> TableClause:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid table name: {name!r}")
    schema, _, table_name = name.rpartition(".")
    return table(table_name, *(column(c) for c in columns), schema=schema or None)


def is_collection(value: Any) -> bool:
    """True for values bound as an IN list: any iterable except strings, mappings and models."""
    return isinstance(value, Iterable) and not isinstance(value, (str, bytes, bytearray, Mapping, BaseModel))


def compile_condition(condition: str, value: Any, next_name: Callable[[], str]) -> TextClause:
    """Turn a condition and its value into a bound SQL fragment."""
    if value is _UNSET:
        return text(condition)

    if "?" in condition:
        values = list(value) if isinstance(value, (list, tuple)) else [value]
        parts = condition.split("?")
        if len(parts) - 1 != len(values):
            raise ValueError(f"Condition {condition!r} expects {len(parts) - 1} values, got {len(values)}")
        sql = parts[0]
        params = {}
        for part, part_value in zip(parts[1:], values):
            name = next_name()
            params[name] = part_value
            sql += f":{name}{part}"
        return text(sql).bindparams(**params)

    if value is None:
        return text(f"{condition} IS NULL")

    if isinstance(value, RequirementRangeValue):
        low, high = value.min_value, value.max_value
        if low is not None and high is not None:
            low_name, high_name = next_name(), next_name()
            return text(f"{condition} BETWEEN :{low_name} AND :{high_name}").bindparams(
                **{low_name: low, high_name: high}
            )
        if low is not None:
            name = next_name()
            return text(f"{condition} >= :{name}").bindparams(**{name: low})
        if high is not None:
            name = next_name()
            return text(f"{condition} <= :{name}").bindparams(**{name: high})
        raise ValueError(f"Range for {condition!r} has neither bound")

    if is_collection(value):
        value = list(value)
        if not value:
            # empty subquery: IN is false and NOT ... IN is true, even for NULLs
            return text(f"{condition} IN (SELECT NULL WHERE 1 = 0)")
        name = next_name()
        return text(f"{condition} IN :{name}").bindparams(
            bindparam(name, value=value, expanding=True)
        )

    name = next_name()
    return text(f"{condition} = :{name}").bindparams(**{name: value})


class _WhereMixin:
    """Accumulates AND-ed conditions with unique parameter names."""

    def _init_where(self) -> None:
        self._conditions: List[TextClause] = []
        self._param_counter = itertools.count()

    def _next_name(self) -> str:
        return f"w{next(self._param_counter)}"

    def where(self, condition: str, value: Any = _UNSET):
        self._conditions.append(compile_condition(condition, value, self._next_name))
        return self


class SelectQuery(_WhereMixin):
    def __init__(self, connection: DatabaseConnection, table_name: str):
        self._connection = connection
        self._table = _table(table_name)
        self._order_by: Optional[str] = None
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None
        self._init_where()

    def order_by(self, clause: str) -> "SelectQuery":
        self._order_by = clause or None
        return self

    def limit(self, limit: int) -> "SelectQuery":
        self._limit = limit
        return self

    def offset(self, offset: int) -> "SelectQuery":
        self._offset = offset
        return self

    def statement(self):
        stmt = select(literal_column("*")).select_from(self._table).where(*self._conditions)
        if self._order_by:
            stmt = stmt.order_by(text(self._order_by))
        if self._limit is not None:
            stmt = stmt.limit(self._limit)
        if self._offset is not None:
            stmt = stmt.offset(self._offset)
        return stmt

    def sql(self) -> str:
        return str(self.statement())

    def all(self) -> List[Row]:
        result = self._connection.execute(self.statement())
        return [dict(row) for row in result.mappings()]

    def __iter__(self) -> Iterator[Row]:
        return iter(self.all())

    def count(self) -> int:
        """COUNT(*) over the WHERE clause; ordering and paging are ignored."""
        stmt = select(func.count()).select_from(self._table).where(*self._conditions)
        return int(self._connection.execute(stmt).scalar_one())


class InsertQuery:
    def __init__(self, connection: DatabaseConnection, table_name: str):
        self._connection = connection
        self._table_name = table_name
        self._values: Row = {}
        self._returning: Optional[str] = None

    def values(self, row: Row) -> "InsertQuery":
        self._values = dict(row)
        return self

    def returning(self, column_name: str) -> "InsertQuery":
        """Ask for the generated value of this column back from the insert."""
        self._returning = column_name
        return self

    def execute(self) -> Optional[int]:
        """Insert the row and return the generated identifier, if any."""
        columns = list(self._values)
        if self._returning and self._returning not in columns:
            columns.append(self._returning)
        tbl = _table(self._table_name, *columns)

        stmt = insert(tbl).values(**self._values)
        if self._returning and self._connection.supports_insert_returning:
            stmt = stmt.returning(tbl.c[self._returning])

        self._connection.execute(stmt)
        return self._connection.last_insert_id()


class UpdateQuery(_WhereMixin):
    def __init__(self, connection: DatabaseConnection, table_name: str):
        self._connection = connection
        self._table_name = table_name
        self._values: Row = {}
        self._init_where()

    def set(self, row: Row) -> "UpdateQuery":
        self._values = dict(row)
        return self

    def execute(self) -> int:
        """Apply the update and return the number of affected rows."""
        if not self._values:
            return 0
        tbl = _table(self._table_name, *self._values)
        stmt = update(tbl).values(**self._values).where(*self._conditions)
        return self._connection.execute(stmt).rowcount


class DeleteQuery(_WhereMixin):
    def __init__(self, connection: DatabaseConnection, table_name: str):
        self._connection = connection
        self._table = _table(table_name)
        self._init_where()

    def execute(self) -> int:
        """Delete the matching rows and return how many were removed."""
        stmt = delete(self._table).where(*self._conditions)
        return self._connection.execute(stmt).rowcount


class QueryBuilder:
    """Entry point for building queries against one connection."""

    def __init__(self, connection: DatabaseConnection):
        self.connection = connection

    def from_(self, table_name: str) -> SelectQuery:
        return SelectQuery(self.connection, table_name)

    def insert_into(self, table_name: str) -> InsertQuery:
        return InsertQuery(self.connection, table_name)

    def update(self, table_name: str) -> UpdateQuery:
        return UpdateQuery(self.connection, table_name)

    def delete_from(self, table_name: str) -> DeleteQuery:
        return DeleteQuery(self.connection, table_name)
