"""
Wayfinder API — Application Package Initializer
================================================

What: Marks the `wayfinder` directory as a Python package.
Why:  Enables module imports like `from wayfinder.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The service follows a layered layout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Filtering, validation, proxying
    ├─────────────────────────────────────┤
    │          Schemas (API Contract)     │  ← Pydantic request/response models
    ├─────────────────────────────────────┤
    │        Storage (Persistence)        │  ← Whole-collection JSON stores
    └─────────────────────────────────────┘

    Routes translate HTTP to service calls, services own the rules, and the
    storage layer only knows how to read and write complete collections.
"""

__version__ = "1.0.0"
