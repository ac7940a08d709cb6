"""
Base Repository.

Base class for all repositories with common CRUD operations.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.core.exceptions import NotFoundError, ValidationError
from notekeeper.core.logging import get_logger
from notekeeper.core.pagination import Page, PageParams
from notekeeper.models.base import Base

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common CRUD operations.

    Subclasses set the model class and, for paginated queries, the columns
    callers may sort by:

        class UserRepository(BaseRepository[User]):
            model = User
            sortable_fields = frozenset({"created_at", "username"})
    """

    model: type[ModelType]
    sortable_fields: frozenset[str] = frozenset({"created_at"})

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, id: str) -> ModelType:
        """
        Get a single record by ID.

        Raises:
            NotFoundError: If record not found
        """
        instance = await self.get_by_id_or_none(id)

        if instance is None:
            raise NotFoundError(f"{self.model.__name__} not found with ID: {id}")

        return instance

    async def get_by_id_or_none(self, id: str) -> ModelType | None:
        """Get a single record by ID, returning None if not found."""
        result = await self.session.execute(
            select(self.model).where(self.model.id == str(id))
        )
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> ModelType:
        """Create a new record."""
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, instance: ModelType, **kwargs: Any) -> ModelType:
        """Apply attribute changes to a loaded record and flush them."""
        for key, value in kwargs.items():
            if hasattr(instance, key):
                setattr(instance, key, value)

        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, instance: ModelType) -> None:
        """Delete a loaded record."""
        await self.session.delete(instance)
        await self.session.flush()

    def _order_by(self, stmt: Select, params: PageParams) -> Select:
        """
        Apply the requested sort, with ID as a stable tie-breaker.

        Raises:
            ValidationError: If the sort field is not sortable
        """
        if params.sort_by not in self.sortable_fields:
            raise ValidationError(
                "Invalid sort field",
                details={"sort_by": f"Must be one of: {', '.join(sorted(self.sortable_fields))}"},
            )
        column = getattr(self.model, params.sort_by)
        ordering = column.desc() if params.descending else column.asc()
        return stmt.order_by(ordering, self.model.id.asc())

    async def _paginate(self, stmt: Select, params: PageParams) -> Page[ModelType]:
        """Run a filtered select as one page plus a total count."""
        ordered = self._order_by(stmt, params)

        total_result = await self.session.execute(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        )
        total = total_result.scalar_one()

        result = await self.session.execute(
            ordered.limit(params.size).offset(params.offset)
        )
        return Page(
            items=list(result.scalars().all()),
            total=total,
            page=params.page,
            size=params.size,
            sort_by=params.sort_by,
            sort_direction=params.sort_direction,
        )
