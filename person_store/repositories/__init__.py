"""
Repository layer - Data access abstractions.

This layer provides interfaces for person persistence and retrieval,
hiding document store details from the business logic.
"""
