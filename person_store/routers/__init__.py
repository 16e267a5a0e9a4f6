"""API routers for the person store."""
