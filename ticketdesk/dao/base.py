"""
Base Data Access Object (DAO) class.

WHY: Comment DAOs share the session handling and the few generic queries
below; everything ticket or tenant specific lives in the subclasses.
"""

from typing import Generic, TypeVar, Type, Optional, Any
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseDAO(Generic[ModelType]):
    """
    Generic DAO bound to one model and one request session.

    Writes flush but never commit; the request boundary commits
    (see ticketdesk.db.session.get_db).
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def create(self, **kwargs: Any) -> ModelType:
        """
        Insert a row and return it with database-generated fields loaded.

        Raises:
            IntegrityError: If a foreign key or constraint is violated
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def get_by_id(self, id: int) -> Optional[ModelType]:
        """Row by primary key, or None."""
        result = await self.session.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()
