"""Service layer - person scenarios built on the repository."""
