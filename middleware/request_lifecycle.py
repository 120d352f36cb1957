"""
Request lifecycle middleware for the Cleaning Management API.
Generates request IDs, populates context variables, and logs request/response details.
"""

import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse
from logging_config import get_logger, request_id_var, request_path_var

logger = get_logger("middleware")


class RequestLifecycleMiddleware(BaseHTTPMiddleware):
    """Middleware that adds request tracing and lifecycle logging."""

    async def dispatch(self, request: Request, call_next) -> Response:
        # Honour an upstream id (load balancer, SPA) before generating one
        req_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
        request_id_var.set(req_id)

        method = request.method
        path = request.url.path
        request_path_var.set(path)

        start_time = time.perf_counter()

        logger.info(
            f"→ {method} {path}",
            extra={"data": {"query": str(request.query_params) if request.query_params else None}}
        )

        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start_time) * 1000, 1)

            log_fn = logger.info if response.status_code < 400 else logger.warning
            log_fn(
                f"← {method} {path} {response.status_code} ({duration_ms}ms)",
                extra={"data": {"status": response.status_code, "duration_ms": duration_ms}}
            )

            response.headers["X-Request-ID"] = req_id
            return response

        except Exception as exc:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 1)
            logger.error(
                f"✖ {method} {path} UNHANDLED ERROR ({duration_ms}ms): {exc}",
                exc_info=True,
                extra={"data": {"duration_ms": duration_ms, "error": str(exc)}}
            )
            return JSONResponse(
                status_code=500,
                content={"detail": "Something went wrong!", "request_id": req_id},
                headers={"X-Request-ID": req_id}
            )
