"""Generic repository providing the CRUD contract shared by every entity.

Lookups report "not found" through ``None``/``False`` and never raise for it.
Mutations commit their own transaction and report a rejected write (constraint
violation, lost connection, zero rows affected) as ``False``. Reads let
unexpected failures propagate to the caller.
"""

from sqlalchemy import delete, exists, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import Base
from core.logger import get_logger
from repositories.utils import log_slow_query

logger = get_logger(__name__)

# Integer primary keys are 32-bit in PostgreSQL
MAX_ENTITY_ID = 2**31 - 1


def _storable_id(entity_id: int | None) -> bool:
    """Ids outside the key column's range cannot match a row."""
    return entity_id is not None and 0 < entity_id <= MAX_ENTITY_ID


class EntityRepository[T: Base]:
    """Async CRUD for one entity type keyed by an integer ``id``.

    Subclasses declare:
        model: the SQLAlchemy model class
        updatable_fields: columns replaced wholesale by ``update``
    """

    model: type[T]
    updatable_fields: tuple[str, ...] = ()

    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    @log_slow_query("find_all")
    async def find_all(self) -> list[T]:
        """Return every row ordered by id. Empty table yields []."""
        result = await self.db.execute(select(self.model).order_by(self.model.id))
        return list(result.scalars().all())

    @log_slow_query("find_by_id")
    async def find_by_id(self, entity_id: int) -> T | None:
        if not _storable_id(entity_id):
            return None
        result = await self.db.execute(
            select(self.model)
            .where(self.model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @log_slow_query("exists")
    async def exists(self, entity_id: int) -> bool:
        if not _storable_id(entity_id):
            return False
        result = await self.db.execute(
            select(exists().where(self.model.id == entity_id))
        )
        return bool(result.scalar())

    @log_slow_query("count")
    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(self.model))
        return int(result.scalar_one())

    @log_slow_query("create")
    async def create(self, entity: T) -> bool:
        """Insert ``entity``; its id is assigned by the store.

        Returns True only once the row is committed.
        """
        try:
            self.db.add(entity)
            await self.db.flush()
            await self.db.commit()
        except SQLAlchemyError:
            await self._rollback_rejected_write("create")
            return False
        return True

    @log_slow_query("update")
    async def update(self, entity: T) -> bool:
        """Replace the updatable columns of the row whose id matches ``entity``.

        ``entity`` may be transient; it is never added to the session.
        Returns False if no row matched or the write was rejected.
        """
        if not _storable_id(entity.id):
            return False
        values = {field: getattr(entity, field) for field in self.updatable_fields}
        stmt = update(self.model).where(self.model.id == entity.id).values(**values)
        try:
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                await self.db.rollback()
                logger.warning(
                    "db.write.no_rows",
                    table=self.table_name,
                    operation="update",
                    entity_id=entity.id,
                )
                return False
            await self.db.commit()
        except SQLAlchemyError:
            await self._rollback_rejected_write("update", entity.id)
            return False
        return True

    @log_slow_query("delete")
    async def delete(self, entity: T) -> bool:
        """Remove the row whose id matches ``entity``.

        Returns False if no row matched or the write was rejected
        (e.g. the row is still referenced by another table).
        """
        if not _storable_id(entity.id):
            return False
        stmt = delete(self.model).where(self.model.id == entity.id)
        try:
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                await self.db.rollback()
                logger.warning(
                    "db.write.no_rows",
                    table=self.table_name,
                    operation="delete",
                    entity_id=entity.id,
                )
                return False
            await self.db.commit()
        except SQLAlchemyError:
            await self._rollback_rejected_write("delete", entity.id)
            return False
        return True

    async def _rollback_rejected_write(
        self, operation: str, entity_id: int | None = None
    ) -> None:
        logger.error(
            "db.write.rejected",
            table=self.table_name,
            operation=operation,
            entity_id=entity_id,
            exc_info=True,
        )
        try:
            await self.db.rollback()
        except SQLAlchemyError as rollback_err:
            logger.warning("db.rollback.failed", error=str(rollback_err))
