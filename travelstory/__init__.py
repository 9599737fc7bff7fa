"""
TravelStory Backend — Application Package
==========================================

A personal travel journal API: accounts, user-owned travel stories,
image uploads, search and date filtering.

Layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← ownership, validation
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

The layers are wired together by `travelstory.context.ServiceContext`,
built once per app by `travelstory.main.create_app()`.
"""

__version__ = "1.0.0"
