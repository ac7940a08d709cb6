"""
Note Model.

A task-like note owned by exactly one user. Ownership is fixed at creation.
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notekeeper.models.base import Base, TimestampMixin, UUIDMixin

TITLE_MAX_LENGTH = 100
CONTENT_MAX_LENGTH = 5000
CATEGORY_MAX_LENGTH = 50


class Priority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class Status(str, enum.Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class Note(UUIDMixin, TimestampMixin, Base):
    """
    Note database model.

    ``completed_at`` is set when the note moves to COMPLETED and cleared
    when it is reactivated.
    """

    __tablename__ = "notes"

    title: Mapped[str] = mapped_column(
        String(TITLE_MAX_LENGTH),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    priority: Mapped[Priority] = mapped_column(
        Enum(Priority, name="note_priority"),
        default=Priority.MEDIUM,
        nullable=False,
    )
    status: Mapped[Status] = mapped_column(
        Enum(Status, name="note_status"),
        default=Status.ACTIVE,
        nullable=False,
    )
    category: Mapped[str | None] = mapped_column(
        String(CATEGORY_MAX_LENGTH),
        nullable=True,
        index=True,
    )
    owner_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime,
        nullable=True,
    )

    owner = relationship("User", back_populates="notes")

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title={self.title!r}, status={self.status.value})>"
