# SQLAlchemy models package. Importing it registers every table on Base.metadata.
from notekeeper.models.base import Base
from notekeeper.models.note import Note, Priority, Status
from notekeeper.models.user import Role, User

__all__ = [
    "Base",
    "Note",
    "Priority",
    "Role",
    "Status",
    "User",
]
