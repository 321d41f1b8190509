"""Generic repository with the CRUD operations every model shares."""

from typing import Any, Generic, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from edutrack.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository for a single model."""

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def get(self, id: str) -> Optional[ModelType]:
        """Get a record by primary key."""
        return await self.session.get(self.model, id)

    async def create(self, data: dict[str, Any]) -> ModelType:
        """Create a record and flush it so defaults are populated."""
        instance = self.model(**data)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, instance: ModelType, data: dict[str, Any]) -> ModelType:
        """Update a record with the given values."""
        for key, value in data.items():
            setattr(instance, key, value)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def paginate(
        self, query: Select, skip: int = 0, limit: int = 100
    ) -> tuple[Sequence[ModelType], int]:
        """Run a select with offset/limit and return (items, total)."""
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
        count_result = await self.session.execute(count_query)
        total = count_result.scalar() or 0

        result = await self.session.execute(query.offset(skip).limit(limit))
        return result.scalars().all(), total
