"""
ParcelFlow Backend — Application Package Initializer
=====================================================

What: Marks the `parcelflow` directory as a Python package.
Who:  Imported by uvicorn (`parcelflow.main:app`), Alembic and pytest.

Architecture Note:
    The backend is layered:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, response envelope
    ├─────────────────────────────────────┤
    │   Authorization (Principal, gates)  │  ← Allow / Deny decisions
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Lifecycle, ledgers, approvals
    ├─────────────────────────────────────┤
    │   Repositories (Conditional writes) │  ← One UPDATE per transition
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
