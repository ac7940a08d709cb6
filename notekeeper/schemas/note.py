"""
Note Schemas.

Pydantic schemas for note API request/response validation.
``NoteResponse`` is also the value stored in the per-note cache entry.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from notekeeper.models.note import (
    CATEGORY_MAX_LENGTH,
    CONTENT_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    Priority,
    Status,
)


class NoteCreate(BaseModel):
    """Schema for creating a new note."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=TITLE_MAX_LENGTH,
        description="Note title",
        examples=["Prepare quarterly report"],
    )
    content: str = Field(
        ...,
        min_length=1,
        max_length=CONTENT_MAX_LENGTH,
        description="Note content",
        examples=["Collect figures from finance and draft the summary."],
    )
    priority: Priority | None = Field(
        default=None,
        description="Priority, MEDIUM when omitted",
    )
    category: str | None = Field(
        default=None,
        max_length=CATEGORY_MAX_LENGTH,
        description="Free-form category",
        examples=["work"],
    )


class NoteUpdate(BaseModel):
    """Schema for updating an existing note. Omitted fields are left untouched."""

    title: str | None = Field(
        default=None,
        min_length=1,
        max_length=TITLE_MAX_LENGTH,
        description="Note title",
    )
    content: str | None = Field(
        default=None,
        min_length=1,
        max_length=CONTENT_MAX_LENGTH,
        description="Note content",
    )
    priority: Priority | None = Field(default=None, description="Priority")
    status: Status | None = Field(default=None, description="Status")
    category: str | None = Field(
        default=None,
        max_length=CATEGORY_MAX_LENGTH,
        description="Category",
    )


class NoteResponse(BaseModel):
    """Schema for note in API responses."""

    id: str = Field(description="Note unique identifier")
    title: str = Field(description="Note title")
    content: str = Field(description="Note content")
    priority: Priority = Field(description="Priority")
    status: Status = Field(description="Status")
    category: str | None = Field(default=None, description="Category")
    owner_id: str = Field(description="Owning user identifier")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")
    completed_at: datetime | None = Field(default=None, description="Completion timestamp")

    model_config = ConfigDict(from_attributes=True)


class NoteStatistics(BaseModel):
    """Per-user note counters."""

    total_notes: int
    active_notes: int
    completed_notes: int
    archived_notes: int


class AdminNoteStatistics(BaseModel):
    """Counters across every user's notes."""

    high_priority_notes: int
    urgent_notes: int
