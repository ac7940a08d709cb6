"""
Note Service.

Business logic layer for notes. Every owner-scoped operation resolves rows
through an owner filter, so a note that belongs to someone else looks the
same as one that does not exist.

Cache-aside:
    Reads check the cache first and populate it on a miss. Mutations
    persist first, then write the per-note entry through and drop the
    owner's collection and aggregate entries. The database stays the
    source of truth: a cache failure never fails a request here.
"""

from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.core.cache import CacheClient
from notekeeper.core.config_schema import CacheTtlSchema
from notekeeper.core.exceptions import CacheUnavailableError, NotFoundError, ValidationError
from notekeeper.core.pagination import Page, PageParams
from notekeeper.core.utils import to_naive_utc, utc_now
from notekeeper.models.note import (
    CATEGORY_MAX_LENGTH,
    CONTENT_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    Note,
    Priority,
    Status,
)
from notekeeper.repositories.note import NoteRepository
from notekeeper.schemas.note import (
    AdminNoteStatistics,
    NoteCreate,
    NoteResponse,
    NoteStatistics,
    NoteUpdate,
)
from notekeeper.services.base import BaseService


def _not_found(note_id: str) -> NotFoundError:
    return NotFoundError(f"Note not found with ID: {note_id}")


def _apply_status(note: Note, status: Status, changes: dict[str, Any]) -> None:
    """
    Add the status change and its ``completed_at`` consequence to ``changes``.

    COMPLETED stamps ``completed_at`` unless already set; any other status
    clears it.
    """
    changes["status"] = status
    if status == Status.COMPLETED:
        if note.completed_at is None:
            changes["completed_at"] = utc_now()
    else:
        changes["completed_at"] = None


class NoteService(BaseService):
    """
    Service for note business logic.

    Args:
        session: Request-scoped database session
        cache: Shared cache client
        ttl: Per-namespace TTLs; read from cache.yaml when omitted
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: CacheClient,
        ttl: CacheTtlSchema | None = None,
    ) -> None:
        super().__init__(session)
        self.repo = NoteRepository(session)
        self.cache = cache
        if ttl is None:
            from notekeeper.core.config import get_app_config

            ttl = get_app_config().cache.ttl_seconds
        self.ttl = ttl

    # -------------------------------------------------------------------------
    # Cache helpers
    # -------------------------------------------------------------------------

    async def _cache_put(self, key: str, value: Any, ttl: int) -> None:
        try:
            await self.cache.set(key, value, ttl=ttl)
        except CacheUnavailableError as e:
            self._logger.warning("Cache populate skipped", extra={"key": key, "error": e.message})

    async def _cache_drop(self, *keys: str) -> None:
        try:
            await self.cache.delete_many(*keys)
        except CacheUnavailableError as e:
            self._logger.warning("Cache invalidation skipped", extra={"keys": list(keys), "error": e.message})

    async def _after_write(self, note: NoteResponse) -> None:
        """Write the note through and drop its owner's collections."""
        await self._cache_put(self.cache.keys.note(note.id), note, self.ttl.note)
        await self._cache_drop(*self.cache.keys.owner_collections(note.owner_id))

    async def _after_delete(self, note_id: str, owner_id: str) -> None:
        await self._cache_drop(self.cache.keys.note(note_id), *self.cache.keys.owner_collections(owner_id))

    async def _owned(self, note_id: str, owner_id: str) -> Note:
        note = await self.repo.get_by_id_and_owner(note_id, owner_id)
        if note is None:
            raise _not_found(note_id)
        return note

    def _validate_fields(self, title: str | None, content: str | None, category: str | None) -> None:
        self._validate_string_lengths({
            "title": (title, TITLE_MAX_LENGTH),
            "content": (content, CONTENT_MAX_LENGTH),
            "category": (category, CATEGORY_MAX_LENGTH),
        })

    # -------------------------------------------------------------------------
    # Single-note operations
    # -------------------------------------------------------------------------

    async def create_note(self, data: NoteCreate, owner_id: str) -> NoteResponse:
        """
        Create a note owned by ``owner_id``.

        Priority defaults to MEDIUM and status to ACTIVE.

        Raises:
            ValidationError: If title or content is blank or a field is too long
        """
        self._validate_required(data.model_dump(), ["title", "content"])
        self._validate_fields(data.title, data.content, data.category)

        self._log_operation("Creating note", owner_id=owner_id, title=data.title)

        note = await self._execute_db_operation(
            "create_note",
            self.repo.create(
                title=data.title,
                content=data.content,
                priority=data.priority or Priority.MEDIUM,
                status=Status.ACTIVE,
                category=data.category,
                owner_id=owner_id,
            ),
        )

        response = NoteResponse.model_validate(note)
        await self._after_write(response)

        self._log_debug("Note created", note_id=response.id)
        return response

    async def get_note(self, note_id: str, owner_id: str) -> NoteResponse:
        """
        Get a note by ID for its owner.

        A cached entry owned by another user is ignored; the database lookup
        then reports the note as missing.

        Raises:
            NotFoundError: If the note does not exist or is not owned by the caller
        """
        key = self.cache.keys.note(note_id)
        cached = await self.cache.get(key, NoteResponse)
        if cached is not None and cached.owner_id == owner_id:
            self._log_debug("Note served from cache", note_id=note_id)
            return cached

        note = await self._owned(note_id, owner_id)
        response = NoteResponse.model_validate(note)
        await self._cache_put(key, response, self.ttl.note)
        return response

    async def update_note(self, note_id: str, data: NoteUpdate, owner_id: str) -> NoteResponse:
        """
        Apply the non-null fields of ``data`` to an owned note.

        A status change follows the ``completed_at`` rule: COMPLETED stamps
        it when unset, anything else clears it.

        Raises:
            NotFoundError: If the note does not exist or is not owned by the caller
            ValidationError: If a field is blank or too long
        """
        note = await self._owned(note_id, owner_id)

        changes = data.model_dump(exclude_none=True)
        for name in ("title", "content"):
            if name in changes:
                self._validate_required(changes, [name])
        self._validate_fields(changes.get("title"), changes.get("content"), changes.get("category"))

        if not changes:
            return NoteResponse.model_validate(note)

        if "status" in changes:
            _apply_status(note, changes.pop("status"), changes)

        self._log_operation("Updating note", note_id=note_id, fields=sorted(changes))

        note = await self._execute_db_operation(
            "update_note",
            self.repo.update(note, **changes),
        )

        response = NoteResponse.model_validate(note)
        await self._after_write(response)
        return response

    async def delete_note(self, note_id: str, owner_id: str) -> None:
        """
        Delete an owned note.

        Raises:
            NotFoundError: If the note does not exist or is not owned by the caller
        """
        note = await self._owned(note_id, owner_id)

        self._log_operation("Deleting note", note_id=note_id)

        await self._execute_db_operation("delete_note", self.repo.delete(note))
        await self._after_delete(note_id, owner_id)

    async def _transition(self, note_id: str, owner_id: str, status: Status) -> NoteResponse:
        note = await self._owned(note_id, owner_id)

        if note.status == status:
            return NoteResponse.model_validate(note)

        changes: dict[str, Any] = {}
        if status == Status.ARCHIVED:
            changes["status"] = status
        else:
            _apply_status(note, status, changes)

        self._log_operation("Changing note status", note_id=note_id, status=status.value)

        note = await self._execute_db_operation(
            f"set_status_{status.value.lower()}",
            self.repo.update(note, **changes),
        )

        response = NoteResponse.model_validate(note)
        await self._after_write(response)
        return response

    async def complete_note(self, note_id: str, owner_id: str) -> NoteResponse:
        """Mark an owned note COMPLETED, stamping ``completed_at`` if unset."""
        return await self._transition(note_id, owner_id, Status.COMPLETED)

    async def archive_note(self, note_id: str, owner_id: str) -> NoteResponse:
        """Mark an owned note ARCHIVED. ``completed_at`` is left as it is."""
        return await self._transition(note_id, owner_id, Status.ARCHIVED)

    async def activate_note(self, note_id: str, owner_id: str) -> NoteResponse:
        """Mark an owned note ACTIVE and clear ``completed_at``."""
        return await self._transition(note_id, owner_id, Status.ACTIVE)

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    async def get_all_notes(self, owner_id: str) -> list[NoteResponse]:
        """Every note of the owner, newest first. Cached per owner."""
        key = self.cache.keys.user_notes(owner_id)
        cached = await self.cache.get(key, list[NoteResponse])
        if cached is not None:
            return cached

        notes = [NoteResponse.model_validate(n) for n in await self.repo.list_by_owner(owner_id)]
        await self._cache_put(key, notes, self.ttl.user_notes)
        return notes

    async def list_notes(self, owner_id: str, params: PageParams) -> Page[NoteResponse]:
        page = await self.repo.page_by_owner(owner_id, params)
        return page.map(NoteResponse.model_validate)

    async def page_by_status(
        self, status: Status, owner_id: str, params: PageParams,
    ) -> Page[NoteResponse]:
        page = await self.repo.page_by_owner_and_status(owner_id, status, params)
        return page.map(NoteResponse.model_validate)

    async def page_by_priority(
        self, priority: Priority, owner_id: str, params: PageParams,
    ) -> Page[NoteResponse]:
        page = await self.repo.page_by_owner_and_priority(owner_id, priority, params)
        return page.map(NoteResponse.model_validate)

    async def page_by_category(
        self, category: str, owner_id: str, params: PageParams,
    ) -> Page[NoteResponse]:
        page = await self.repo.page_by_owner_and_category(owner_id, category, params)
        return page.map(NoteResponse.model_validate)

    async def search_notes(self, term: str, owner_id: str) -> list[NoteResponse]:
        """
        Case-insensitive substring search on title or content.

        Raises:
            ValidationError: If the term is blank
        """
        self._validate_required({"q": term}, ["q"])
        self._log_debug("Searching notes", owner_id=owner_id, term=term)
        notes = await self.repo.search(owner_id, term)
        return [NoteResponse.model_validate(n) for n in notes]

    async def page_search(
        self, term: str, owner_id: str, params: PageParams,
    ) -> Page[NoteResponse]:
        self._validate_required({"q": term}, ["q"])
        self._log_debug("Searching notes", owner_id=owner_id, term=term)
        page = await self.repo.page_search(owner_id, term, params)
        return page.map(NoteResponse.model_validate)

    async def list_created_between(
        self,
        start: datetime,
        end: datetime,
        owner_id: str,
    ) -> list[NoteResponse]:
        """
        Notes created in the inclusive range ``[start, end]``.

        Raises:
            ValidationError: If ``start`` is after ``end``
        """
        start, end = to_naive_utc(start), to_naive_utc(end)
        if start > end:
            raise ValidationError(
                "Invalid date range",
                details={"start": "Must not be after end"},
            )
        notes = await self.repo.list_created_between(owner_id, start, end)
        return [NoteResponse.model_validate(n) for n in notes]

    async def get_categories(self, owner_id: str) -> list[str]:
        """Distinct categories in use by the owner. Cached per owner."""
        key = self.cache.keys.user_categories(owner_id)
        cached = await self.cache.get(key, list[str])
        if cached is not None:
            return cached

        categories = await self.repo.distinct_categories(owner_id)
        await self._cache_put(key, categories, self.ttl.user_categories)
        return categories

    # -------------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------------

    async def count_total(self, owner_id: str) -> int:
        """Number of notes the owner has. Cached per owner."""
        key = self.cache.keys.user_count_total(owner_id)
        cached = await self.cache.get(key, int)
        if cached is not None:
            return cached

        total = await self.repo.count_by_owner(owner_id)
        await self._cache_put(key, total, self.ttl.user_count_total)
        return total

    async def count_by_status(self, status: Status, owner_id: str) -> int:
        return await self.repo.count_by_owner_and_status(owner_id, status)

    async def get_statistics(self, owner_id: str) -> NoteStatistics:
        """Cached total plus live per-status counts."""
        return NoteStatistics(
            total_notes=await self.count_total(owner_id),
            active_notes=await self.count_by_status(Status.ACTIVE, owner_id),
            completed_notes=await self.count_by_status(Status.COMPLETED, owner_id),
            archived_notes=await self.count_by_status(Status.ARCHIVED, owner_id),
        )

    # -------------------------------------------------------------------------
    # Admin operations (no owner filter; callers enforce the admin role)
    # -------------------------------------------------------------------------

    async def list_all_admin(self, params: PageParams) -> Page[NoteResponse]:
        page = await self.repo.page_all(params)
        return page.map(NoteResponse.model_validate)

    async def get_note_admin(self, note_id: str) -> NoteResponse:
        """
        Raises:
            NotFoundError: If the note does not exist
        """
        return NoteResponse.model_validate(await self.repo.get_by_id(note_id))

    async def delete_note_admin(self, note_id: str) -> None:
        """
        Delete any user's note and evict its cache entries.

        Raises:
            NotFoundError: If the note does not exist
        """
        note = await self.repo.get_by_id(note_id)
        owner_id = note.owner_id

        self._log_operation("Admin deleting note", note_id=note_id, owner_id=owner_id)

        await self._execute_db_operation("delete_note_admin", self.repo.delete(note))
        await self._after_delete(note_id, owner_id)

    async def count_by_priority_admin(self, priority: Priority) -> int:
        return await self.repo.count_by_priority(priority)

    async def get_admin_statistics(self) -> AdminNoteStatistics:
        return AdminNoteStatistics(
            high_priority_notes=await self.count_by_priority_admin(Priority.HIGH),
            urgent_notes=await self.count_by_priority_admin(Priority.URGENT),
        )
