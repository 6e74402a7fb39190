"""
Request logging middleware.
"""

import logging
import time
from typing import Callable, List, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request with its status code and processing time.

    Paths listed in ``exclude_paths`` pass through unlogged; production
    deployments exclude ``/health`` so probe traffic does not flood the logs.
    """

    def __init__(self, app: ASGIApp, exclude_paths: Optional[List[str]] = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or []

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed with exception",
                extra={
                    "exception": str(e),
                    "exception_type": type(e).__name__,
                    "method": request.method,
                    "path": str(request.url.path),
                    "process_time": round(time.time() - start_time, 4),
                },
            )
            raise

        process_time = time.time() - start_time
        response_info = {
            "status_code": response.status_code,
            "process_time": round(process_time, 4),
            "method": request.method,
            "path": str(request.url.path),
            "client_ip": request.client.host if request.client else None,
        }
        response.headers["x-process-time"] = str(process_time)

        message = f"{request.method} {request.url.path} {response.status_code}"
        if response.status_code >= 500:
            logger.error(message, extra=response_info)
        elif response.status_code >= 400:
            logger.warning(message, extra=response_info)
        else:
            logger.info(message, extra=response_info)

        return response
