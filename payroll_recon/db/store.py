# payroll_recon/db/store.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence, TypeVar

from sqlalchemy import delete as sa_delete
from sqlalchemy import func
from sqlalchemy import select as sa_select
from sqlalchemy import update as sa_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_recon.core.errors import ConflictError, StoreError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

# keeps multi-row VALUES under SQLite's bound-parameter limit
UPSERT_CHUNK_SIZE = 200

# never overwritten by an upsert
_IMMUTABLE_COLUMNS = {"id", "created_at"}


def _dialect_insert(dialect_name: str):
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise StoreError(f"Upsert is not supported on dialect {dialect_name!r}")
    return insert


def _chunks(rows: Sequence[dict[str, Any]], size: int) -> Iterable[Sequence[dict[str, Any]]]:
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


class RecordStore:
    """
    Entity-level CRUD over one AsyncSession.

    Every write commits on its own. A sequence of calls is therefore NOT atomic:
    if step 2 fails, step 1 stays committed and the caller sees a StoreError.
    Failures roll the session back so the handle stays usable.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ---------------------------------------------------------
    # Reads
    # ---------------------------------------------------------
    async def select(self, model: type[ModelT], *criteria, order_by: Sequence[Any] = ()) -> list[ModelT]:
        stmt = sa_select(model)
        if criteria:
            stmt = stmt.where(*criteria)
        if order_by:
            stmt = stmt.order_by(*order_by)
        # re-read attributes of instances already in the identity map
        stmt = stmt.execution_options(populate_existing=True)
        try:
            return list((await self.db.execute(stmt)).scalars().all())
        except SQLAlchemyError as e:
            raise await self._failure(f"select {model.__tablename__}", e) from e

    async def get(self, model: type[ModelT], ident: Any) -> Optional[ModelT]:
        try:
            return await self.db.get(model, ident, populate_existing=True)
        except SQLAlchemyError as e:
            raise await self._failure(f"get {model.__tablename__}", e) from e

    async def count(self, model: type[ModelT], *criteria) -> int:
        stmt = sa_select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        try:
            return int((await self.db.execute(stmt)).scalar_one() or 0)
        except SQLAlchemyError as e:
            raise await self._failure(f"count {model.__tablename__}", e) from e

    # ---------------------------------------------------------
    # Writes (each commits)
    # ---------------------------------------------------------
    async def insert(self, model: type[ModelT], rows: Sequence[dict[str, Any]]) -> list[ModelT]:
        if not rows:
            return []
        objs = [model(**row) for row in rows]
        self.db.add_all(objs)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._failure(f"insert {model.__tablename__}", e) from e
        return objs

    async def upsert(
        self,
        model: type[ModelT],
        rows: Sequence[dict[str, Any]],
        *,
        conflict_key: str,
        update_fields: Optional[Sequence[str]] = None,
    ) -> list[ModelT]:
        """
        INSERT ... ON CONFLICT (conflict_key).

        update_fields:
          - None  -> overwrite every provided column (except id/created_at)
          - (...) -> overwrite only these columns
          - ()    -> insert-if-absent, existing rows untouched

        Rows sharing a conflict value are collapsed first (last one wins), since
        one statement cannot touch the same row twice.
        Returns the stored rows for every conflict value given.
        """
        if not rows:
            return []

        deduped: dict[Any, dict[str, Any]] = {}
        for row in rows:
            deduped[row[conflict_key]] = row
        values = list(deduped.values())

        insert = _dialect_insert(self.db.bind.dialect.name)
        table = model.__table__

        try:
            for chunk in _chunks(values, UPSERT_CHUNK_SIZE):
                stmt = insert(table).values(list(chunk))
                if update_fields is None:
                    columns = [c for c in chunk[0] if c != conflict_key and c not in _IMMUTABLE_COLUMNS]
                else:
                    columns = list(update_fields)

                if columns:
                    set_ = {c: stmt.excluded[c] for c in columns}
                    if "updated_at" in table.c and "updated_at" not in set_:
                        set_["updated_at"] = datetime.now(timezone.utc)
                    stmt = stmt.on_conflict_do_update(index_elements=[conflict_key], set_=set_)
                else:
                    stmt = stmt.on_conflict_do_nothing(index_elements=[conflict_key])

                await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._failure(f"upsert {model.__tablename__}", e) from e

        key_col = getattr(model, conflict_key)
        return await self.select(model, key_col.in_(list(deduped.keys())))

    async def update(self, model: type[ModelT], *criteria, values: dict[str, Any]) -> list[ModelT]:
        if not criteria:
            raise StoreError(f"Refusing unfiltered update of {model.__tablename__}")
        stmt = sa_update(model).where(*criteria).values(**values).returning(model)
        try:
            updated = list((await self.db.execute(stmt)).scalars().all())
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._failure(f"update {model.__tablename__}", e) from e
        return updated

    async def delete(self, model: type[ModelT], *criteria) -> int:
        if not criteria:
            raise StoreError(f"Refusing unfiltered delete of {model.__tablename__}")
        stmt = sa_delete(model).where(*criteria)
        try:
            res = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._failure(f"delete {model.__tablename__}", e) from e
        return int(res.rowcount or 0)

    # ---------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------
    async def _failure(self, action: str, exc: SQLAlchemyError) -> StoreError:
        await self.db.rollback()
        if isinstance(exc, IntegrityError):
            logger.warning("Store %s hit a constraint: %s", action, exc.orig)
            return ConflictError(f"Conflict during {action}: {exc.orig}")
        logger.error("Store %s failed: %s", action, exc)
        return StoreError(f"Store {action} failed")
