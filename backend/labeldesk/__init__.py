"""
LabelDesk Backend: Application Package
========================================

What: Image-labeling annotation backend. Clients list the label attached to
      each indexed image and submit label/notes text signed with a free-text
      annotator name.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   LabelService (validation, owner)  │  ← business rules
    ├─────────────────────────────────────┤
    │     LabelStore (upsert, lookups)    │  ← one statement per operation
    ├─────────────────────────────────────┤
    │   LabelDatabase (engine, sessions)  │  ← async SQLAlchemy
    └─────────────────────────────────────┘

    Each layer is constructed explicitly by create_app() and handed to the
    layer above it; nothing below the routes is a module-level singleton.
"""

__version__ = "1.0.0"
