from __future__ import annotations

from typing import Any, Callable, Hashable, List, Optional, Union

from sqlalchemy import JSON, Column, MetaData, String, Table, create_engine, delete, func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import SourceFailure
from ..models import PaginatedCollection


def _identity(payload: Any) -> Any:
    return payload


class SqlDataSource:
    """Persists values as JSON payloads in a two-column ``(key, payload)`` table.

    Keys are stored as strings. Pages and full listings are ordered by key.
    Upserts run as delete-then-insert inside one transaction.
    """

    def __init__(
        self,
        engine: Union[Engine, str],
        key_of: Callable[[Any], Hashable],
        table: str = "items",
        to_value: Callable[[Any], Any] = _identity,
        to_payload: Callable[[Any], Any] = _identity,
        create_schema: bool = True,
        name: Optional[str] = None,
    ) -> None:
        self.engine = create_engine(engine, pool_pre_ping=True) if isinstance(engine, str) else engine
        self.key_of = key_of
        self.to_value = to_value
        self.to_payload = to_payload
        self.name = name or f"sql:{table}"
        self.metadata = MetaData()
        self.table = Table(
            table,
            self.metadata,
            Column("key", String(255), primary_key=True),
            Column("payload", JSON, nullable=False),
        )
        if create_schema:
            self.metadata.create_all(self.engine)

    def _failure(self, operation: str, exc: Exception) -> SourceFailure:
        return SourceFailure(self, operation, cause=exc)

    # ---- Readable ----
    def get(self, key: Hashable) -> Optional[Any]:
        stmt = select(self.table.c.payload).where(self.table.c.key == str(key))
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).first()
        except SQLAlchemyError as exc:
            raise self._failure("get", exc) from exc
        return None if row is None else self.to_value(row.payload)

    def get_all(self) -> List[Any]:
        stmt = select(self.table.c.payload).order_by(self.table.c.key)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise self._failure("get_all", exc) from exc
        return [self.to_value(row.payload) for row in rows]

    def get_page(self, offset: int, limit: int) -> PaginatedCollection[Any]:
        # one extra row tells whether another page exists
        stmt = select(self.table.c.payload).order_by(self.table.c.key).offset(offset).limit(limit + 1)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise self._failure("get_page", exc) from exc
        return PaginatedCollection(
            items=[self.to_value(row.payload) for row in rows[:limit]],
            offset=offset,
            limit=limit,
            has_more=len(rows) > limit,
        )

    def count(self) -> int:
        try:
            with self.engine.connect() as conn:
                return int(conn.execute(select(func.count()).select_from(self.table)).scalar_one())
        except SQLAlchemyError as exc:
            raise self._failure("count", exc) from exc

    # ---- Writeable ----
    def put(self, value: Any) -> Any:
        key = str(self.key_of(value))
        try:
            with self.engine.begin() as conn:
                conn.execute(delete(self.table).where(self.table.c.key == key))
                conn.execute(insert(self.table).values(key=key, payload=self.to_payload(value)))
        except SQLAlchemyError as exc:
            raise self._failure("put", exc) from exc
        return value

    def delete(self, key: Hashable) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(delete(self.table).where(self.table.c.key == str(key)))
        except SQLAlchemyError as exc:
            raise self._failure("delete", exc) from exc

    def delete_all(self) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(delete(self.table))
        except SQLAlchemyError as exc:
            raise self._failure("delete_all", exc) from exc
