import logging
import time

from fastapi import Request

logger = logging.getLogger("app.access")


def add_request_logging(app):
    @app.middleware("http")
    async def request_logging_mw(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        # method, path, status and timing only; bodies are never logged
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response
