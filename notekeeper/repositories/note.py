"""
Note Repository.

Data access layer for notes. Owner-scoped code paths resolve single notes
only through ``get_by_id_and_owner``; the inherited ``get_by_id`` is for
admin paths.
"""

from datetime import datetime

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.core.pagination import Page, PageParams
from notekeeper.models.note import Note, Priority, Status
from notekeeper.repositories.base import BaseRepository


def _escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note model.

    Inherits standard CRUD operations from BaseRepository
    and adds owner-scoped queries.
    """

    model = Note
    sortable_fields = frozenset({
        "created_at",
        "updated_at",
        "completed_at",
        "title",
        "priority",
        "status",
        "category",
    })

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    @staticmethod
    def _owned_by(owner_id: str) -> Select:
        return select(Note).where(Note.owner_id == owner_id)

    async def _all(self, stmt: Select) -> list[Note]:
        result = await self.session.execute(
            stmt.order_by(Note.created_at.desc(), Note.id.asc())
        )
        return list(result.scalars().all())

    async def get_by_id_and_owner(self, id: str, owner_id: str) -> Note | None:
        """
        Get a note only if it belongs to the given owner.

        A note owned by someone else is indistinguishable from a missing one.
        """
        result = await self.session.execute(
            select(Note).where(Note.id == str(id), Note.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def list_by_owner(self, owner_id: str) -> list[Note]:
        """Every note of an owner, newest first."""
        return await self._all(self._owned_by(owner_id))

    async def page_by_owner(self, owner_id: str, params: PageParams) -> Page[Note]:
        return await self._paginate(self._owned_by(owner_id), params)

    def _by_status(self, owner_id: str, status: Status) -> Select:
        return self._owned_by(owner_id).where(Note.status == status)

    def _by_priority(self, owner_id: str, priority: Priority) -> Select:
        return self._owned_by(owner_id).where(Note.priority == priority)

    def _by_category(self, owner_id: str, category: str) -> Select:
        return self._owned_by(owner_id).where(Note.category == category)

    async def page_by_owner_and_status(
        self, owner_id: str, status: Status, params: PageParams,
    ) -> Page[Note]:
        return await self._paginate(self._by_status(owner_id, status), params)

    async def page_by_owner_and_priority(
        self, owner_id: str, priority: Priority, params: PageParams,
    ) -> Page[Note]:
        return await self._paginate(self._by_priority(owner_id, priority), params)

    async def page_by_owner_and_category(
        self, owner_id: str, category: str, params: PageParams,
    ) -> Page[Note]:
        return await self._paginate(self._by_category(owner_id, category), params)

    def _search(self, owner_id: str, term: str) -> Select:
        pattern = f"%{_escape_like(term)}%"
        return self._owned_by(owner_id).where(
            or_(
                Note.title.ilike(pattern, escape="\\"),
                Note.content.ilike(pattern, escape="\\"),
            )
        )

    async def search(self, owner_id: str, term: str) -> list[Note]:
        """
        Case-insensitive substring search over title or content.

        Args:
            owner_id: Owner whose notes are searched
            term: Literal substring; LIKE wildcards are escaped

        Returns:
            Matching notes, newest first
        """
        return await self._all(self._search(owner_id, term))

    async def page_search(self, owner_id: str, term: str, params: PageParams) -> Page[Note]:
        return await self._paginate(self._search(owner_id, term), params)

    async def list_created_between(
        self,
        owner_id: str,
        start: datetime,
        end: datetime,
    ) -> list[Note]:
        """Notes whose creation time falls in [start, end]."""
        return await self._all(
            self._owned_by(owner_id).where(Note.created_at.between(start, end))
        )

    async def distinct_categories(self, owner_id: str) -> list[str]:
        """Distinct non-null categories of an owner, alphabetical."""
        result = await self.session.execute(
            select(Note.category)
            .distinct()
            .where(Note.owner_id == owner_id, Note.category.is_not(None))
            .order_by(Note.category)
        )
        return list(result.scalars().all())

    async def count_by_owner(self, owner_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Note).where(Note.owner_id == owner_id)
        )
        return result.scalar_one()

    async def count_by_owner_and_status(self, owner_id: str, status: Status) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(Note)
            .where(Note.owner_id == owner_id, Note.status == status)
        )
        return result.scalar_one()

    async def count_by_priority(self, priority: Priority) -> int:
        """Count across every owner."""
        result = await self.session.execute(
            select(func.count()).select_from(Note).where(Note.priority == priority)
        )
        return result.scalar_one()

    async def page_all(self, params: PageParams) -> Page[Note]:
        """Every owner's notes, paginated."""
        return await self._paginate(select(Note), params)
