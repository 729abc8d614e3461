"""
Base repository.

Primary-key lookup and append shared by the rebate repositories.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from rebate_core.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository bound to one model and one session.

    Money and counter changes never go through here: they are relative
    UPDATE statements in the specific repositories.

    Example:
        class UserRepository(BaseRepository[User]):
            def __init__(self, session: AsyncSession):
                super().__init__(User, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session owned by the caller
        """
        self.model = model
        self.session = session

    async def get_by_id(self, id: Any) -> ModelType | None:
        """Get entity by primary key, None if missing."""
        return await self.session.get(self.model, id)

    async def create(self, **data: Any) -> ModelType:
        """
        Add a new row and flush it.

        Constraint violations surface here as IntegrityError, inside the
        caller's transaction.

        Args:
            **data: Column values

        Returns:
            Flushed entity with its primary key set
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        return entity
