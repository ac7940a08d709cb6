"""
Notekeeper.

Multi-tenant notes and task management API.

- core/: configuration, logging, security, cache, database, errors
- models/: SQLAlchemy models (User, Note)
- repositories/: data access, owner-scoped queries
- services/: business rules (auth, cache-aside note access)
- api/: FastAPI routers
"""

__version__ = "1.0.0"
