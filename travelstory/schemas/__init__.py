# Schemas package init
"""
TravelStory Backend — Pydantic Request/Response Schemas
========================================================

What:  The API contract between clients and the backend.
How:   FastAPI validates request bodies against these models and serializes
       responses through them. Field names are snake_case in Python and
       camelCase on the wire (`imageUrl`, `visitedDate`, ...).

Schemas are separate from the SQLAlchemy models so the API never exposes
internal columns such as `password_hash`.
"""
