"""Business operations for the dashboard service.

Each module provides async functions over a ``ConfigDocumentStore`` (and,
for statuses, a CI provider).  Managers raise domain exceptions from
``errors`` -- never HTTP exceptions; the app's exception handlers turn them
into ``{"error": kind, "message": ...}`` responses.
"""
