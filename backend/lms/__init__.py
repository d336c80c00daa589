"""
LMS Backend — Application Package Initializer
==============================================

What: Marks the `lms` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    ┌─────────────────────────────────────┐
    │   Middleware (request ID, logging,  │  ← cross-cutting, per request
    │   rate limiting)                    │
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← raise ApiError subclasses
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Errors from every layer end up in lms.error_handling, which renders the
    single JSON error envelope the API returns.
"""

__version__ = "1.0.0"
