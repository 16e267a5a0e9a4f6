"""
Domain layer - Core business logic.

Contains the Person entity, schema validation and domain exceptions.
"""
