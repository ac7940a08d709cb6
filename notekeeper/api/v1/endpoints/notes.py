"""
Notes API Endpoints.

REST API endpoints for note management. Every route requires a bearer
token; ``/admin`` routes additionally require the ADMIN role.

Fixed paths (``/all``, ``/admin``, ``/search`` ...) are declared before
``/{note_id}`` so they are not captured by it.
"""

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from notekeeper.core.dependencies import AdminUser, Cache, CurrentUser, DbSession, RequestId
from notekeeper.core.pagination import PageParams, create_paginated_response, get_page_params
from notekeeper.models.note import Priority, Status
from notekeeper.schemas.base import ApiResponse, ResponseMetadata
from notekeeper.schemas.note import (
    AdminNoteStatistics,
    NoteCreate,
    NoteResponse,
    NoteStatistics,
    NoteUpdate,
)
from notekeeper.services.note import NoteService

router = APIRouter()


def get_note_service(db: DbSession, cache: Cache) -> NoteService:
    return NoteService(db, cache)


Notes = Annotated[NoteService, Depends(get_note_service)]
Paging = Annotated[PageParams, Depends(get_page_params)]


def _ok(data: Any, request_id: str, message: str | None = None) -> ApiResponse:
    return ApiResponse(data=data, message=message, metadata=ResponseMetadata(request_id=request_id))


# =============================================================================
# Admin
# =============================================================================


@router.get(
    "/admin",
    summary="List every user's notes (admin)",
)
async def list_all_notes_admin(
    admin: AdminUser,
    service: Notes,
    paging: Paging,
    request_id: RequestId,
) -> dict[str, Any]:
    page = await service.list_all_admin(paging)
    return create_paginated_response(page, NoteResponse, request_id)


@router.get(
    "/admin/statistics",
    response_model=ApiResponse[AdminNoteStatistics],
    summary="Global priority counters (admin)",
)
async def admin_statistics(
    admin: AdminUser,
    service: Notes,
    request_id: RequestId,
) -> ApiResponse[AdminNoteStatistics]:
    return _ok(await service.get_admin_statistics(), request_id)


@router.get(
    "/admin/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Get any note (admin)",
)
async def get_note_admin(
    note_id: str,
    admin: AdminUser,
    service: Notes,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    return _ok(await service.get_note_admin(note_id), request_id)


@router.delete(
    "/admin/{note_id}",
    status_code=204,
    summary="Delete any note (admin)",
)
async def delete_note_admin(
    note_id: str,
    admin: AdminUser,
    service: Notes,
) -> None:
    await service.delete_note_admin(note_id)


# =============================================================================
# Owner collections
# =============================================================================


@router.post(
    "",
    response_model=ApiResponse[NoteResponse],
    status_code=201,
    summary="Create a note",
    description="Create a note owned by the caller. Priority defaults to MEDIUM.",
)
async def create_note(
    data: NoteCreate,
    user: CurrentUser,
    service: Notes,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    """Create a new note."""
    note = await service.create_note(data, user.id)
    return _ok(note, request_id, "Note created successfully")


@router.get(
    "",
    summary="List notes (paginated)",
    description="Page through the caller's notes. Pages are 0-based.",
)
async def list_notes(
    user: CurrentUser,
    service: Notes,
    paging: Paging,
    request_id: RequestId,
) -> dict[str, Any]:
    page = await service.list_notes(user.id, paging)
    return create_paginated_response(page, NoteResponse, request_id)


@router.get(
    "/all",
    response_model=ApiResponse[list[NoteResponse]],
    summary="List all notes",
    description="Every note of the caller, newest first. Served from cache when warm.",
)
async def get_all_notes(
    user: CurrentUser,
    service: Notes,
    request_id: RequestId,
) -> ApiResponse[list[NoteResponse]]:
    return _ok(await service.get_all_notes(user.id), request_id)


@router.get("/status/{status}", summary="List notes by status (paginated)")
async def list_by_status(
    status: Status,
    user: CurrentUser,
    service: Notes,
    paging: Paging,
    request_id: RequestId,
) -> dict[str, Any]:
    page = await service.page_by_status(status, user.id, paging)
    return create_paginated_response(page, NoteResponse, request_id)


@router.get("/priority/{priority}", summary="List notes by priority (paginated)")
async def list_by_priority(
    priority: Priority,
    user: CurrentUser,
    service: Notes,
    paging: Paging,
    request_id: RequestId,
) -> dict[str, Any]:
    page = await service.page_by_priority(priority, user.id, paging)
    return create_paginated_response(page, NoteResponse, request_id)


@router.get("/category/{category}", summary="List notes by category (paginated)")
async def list_by_category(
    category: str,
    user: CurrentUser,
    service: Notes,
    paging: Paging,
    request_id: RequestId,
) -> dict[str, Any]:
    page = await service.page_by_category(category, user.id, paging)
    return create_paginated_response(page, NoteResponse, request_id)


@router.get(
    "/search",
    summary="Search notes (paginated)",
    description="Case-insensitive substring match on title or content.",
)
async def search_notes(
    user: CurrentUser,
    service: Notes,
    paging: Paging,
    request_id: RequestId,
    q: str = Query(
        ...,
        min_length=1,
        max_length=100,
        description="Search term",
    ),
) -> dict[str, Any]:
    page = await service.page_search(q, user.id, paging)
    return create_paginated_response(page, NoteResponse, request_id)


@router.get(
    "/date-range",
    response_model=ApiResponse[list[NoteResponse]],
    summary="List notes created in a date range",
    description="Both bounds are inclusive. Naive timestamps are read as UTC.",
)
async def list_by_date_range(
    user: CurrentUser,
    service: Notes,
    request_id: RequestId,
    start: datetime = Query(..., description="Range start"),
    end: datetime = Query(..., description="Range end"),
) -> ApiResponse[list[NoteResponse]]:
    return _ok(await service.list_created_between(start, end, user.id), request_id)


@router.get(
    "/categories",
    response_model=ApiResponse[list[str]],
    summary="List categories in use",
)
async def get_categories(
    user: CurrentUser,
    service: Notes,
    request_id: RequestId,
) -> ApiResponse[list[str]]:
    return _ok(await service.get_categories(user.id), request_id)


@router.get(
    "/statistics",
    response_model=ApiResponse[NoteStatistics],
    summary="Note counters for the caller",
)
async def get_statistics(
    user: CurrentUser,
    service: Notes,
    request_id: RequestId,
) -> ApiResponse[NoteStatistics]:
    return _ok(await service.get_statistics(user.id), request_id)


# =============================================================================
# Single note
# =============================================================================


@router.get(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Get a note",
)
async def get_note(
    note_id: str,
    user: CurrentUser,
    service: Notes,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    return _ok(await service.get_note(note_id, user.id), request_id)


@router.put(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Update a note",
    description="Only provided, non-null fields are updated.",
)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    user: CurrentUser,
    service: Notes,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    note = await service.update_note(note_id, data, user.id)
    return _ok(note, request_id, "Note updated successfully")


@router.delete(
    "/{note_id}",
    status_code=204,
    summary="Delete a note",
)
async def delete_note(
    note_id: str,
    user: CurrentUser,
    service: Notes,
) -> None:
    await service.delete_note(note_id, user.id)


@router.patch(
    "/{note_id}/complete",
    response_model=ApiResponse[NoteResponse],
    summary="Mark a note completed",
)
async def complete_note(
    note_id: str,
    user: CurrentUser,
    service: Notes,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    return _ok(await service.complete_note(note_id, user.id), request_id, "Note marked as completed")


@router.patch(
    "/{note_id}/archive",
    response_model=ApiResponse[NoteResponse],
    summary="Archive a note",
)
async def archive_note(
    note_id: str,
    user: CurrentUser,
    service: Notes,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    return _ok(await service.archive_note(note_id, user.id), request_id, "Note archived")


@router.patch(
    "/{note_id}/activate",
    response_model=ApiResponse[NoteResponse],
    summary="Reactivate a note",
)
async def activate_note(
    note_id: str,
    user: CurrentUser,
    service: Notes,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    return _ok(await service.activate_note(note_id, user.id), request_id, "Note activated")
