from __future__ import annotations

from typing import Any, Iterable, List, Optional, Tuple

from sqlalchemy import Executable, Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

PAGE_SIZE = 10


def page_count(total: int, page_size: int = PAGE_SIZE) -> int:
    """Number of pages needed for `total` rows (0 when there are none)."""
    return (total + page_size - 1) // page_size


def paginate_list(items: List[Any], page: int, page_size: int = PAGE_SIZE) -> List[Any]:
    """Slice an in-memory result for a 1-based page number."""
    start = (max(page, 1) - 1) * page_size
    return items[start:start + page_size]


class BaseRepository:
    """
    Base class for repositories providing common helpers.

    Embedded documents (components, items, api logs) live in JSON columns; use
    `replace_document` to write them so the change is always flushed.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute a SQLAlchemy statement."""
        return await self.session.execute(statement, params or {})

    async def scalars(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return scalars."""
        result = await self.execute(statement, params)
        return result.scalars()

    async def scalar_one_or_none(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return a single scalar or None."""
        result = await self.execute(statement, params)
        return result.scalar_one_or_none()

    async def count(self, statement: Select) -> int:
        """Count the rows a select would return."""
        stmt = select(func.count()).select_from(statement.order_by(None).subquery())
        result = await self.execute(stmt)
        return int(result.scalar_one())

    async def page(self, statement: Select, page: int, page_size: int = PAGE_SIZE) -> Tuple[List[Any], int]:
        """Return one page of ORM rows plus the total row count."""
        total = await self.count(statement)
        stmt = statement.offset((max(page, 1) - 1) * page_size).limit(page_size)
        rows = list(await self.scalars(stmt))
        return rows, total

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def add_all(self, entities: Iterable[Any]) -> None:
        """Add multiple entities to session."""
        self.session.add_all(list(entities))

    async def add(self, entity: Any) -> None:
        """Add a single entity to session."""
        self.session.add(entity)

    async def save(self, entity: Any) -> Any:
        """Add, commit and reload server-generated columns of an entity."""
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def delete(self, entity: Any) -> None:
        """Delete an entity and commit."""
        await self.session.delete(entity)
        await self.session.commit()

    @staticmethod
    def replace_document(entity: Any, field: str, value: List[Any]) -> None:
        """Assign a JSON document column and mark it dirty."""
        setattr(entity, field, list(value))
        flag_modified(entity, field)
