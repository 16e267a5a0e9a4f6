"""
Metrics middleware for the person store API.

Tracks HTTP request metrics for every endpoint except the scrape endpoint.
"""

import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

UNTRACKED_PATHS = frozenset({"/metrics"})


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware recording request count and duration per route.

    Route templates (``/api/v1/people/{person_id}``) are used as the endpoint
    label so that person ids do not become label values.
    """

    def __init__(self, app, track_func: Callable):
        """
        Initialize the middleware.

        Args:
            app: FastAPI application
            track_func: Called with (method, endpoint, status_code, duration)
        """
        super().__init__(app)
        self.track_func = track_func

    async def dispatch(self, request: Request, call_next):
        if request.url.path in UNTRACKED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)

        self.track_func(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
            duration=duration,
        )
        return response
