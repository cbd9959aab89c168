"""
Rollbook Backend — Application Package Initializer
===================================================

What: Marks the `rollbook` directory as a Python package.
Why:  Enables module imports like `from rollbook.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend is split into layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │    Services (Lifecycle + Storage)   │  ← Ordering of file and record writes
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never touch the upload directory or the session directly;
    the StudentService owns the order in which both are written.
"""

__version__ = "1.0.0"
