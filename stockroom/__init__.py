"""
Stockroom — Application Package Initializer
=============================================

What: Marks the `stockroom` directory as a Python package.
Why:  Enables module imports like `from stockroom.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    One code base hosts four small services, selected by the SERVICE setting:

    ┌─────────────────────────────────────┐
    │   inventory │ orders │ users │ web  │  ← FastAPI apps (routes/)
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← inventory, order events, user directory
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │  Database + Readiness (Persistence) │  ← Async sessions, Alembic, startup guard
    └─────────────────────────────────────┘

    The database-backed services (inventory, web) do not accept traffic until
    the startup readiness guard has migrated the store (see readiness.py).
"""

__version__ = "1.0.0"
