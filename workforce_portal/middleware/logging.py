"""Logging middleware and configuration."""

import logging
import sys
import time
from collections.abc import Callable
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from workforce_portal.config import settings

TRANSACTION_ID_HEADER = "X-Transaction-Id"


def configure_logging() -> None:
    """Configure structured logging."""
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == "json":
        processors = shared_processors + [
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper()),
    )


def get_transaction_id(request: Request) -> str:
    """Transaction id of the current request, as set by LoggingMiddleware."""
    transaction_id = getattr(request.state, "transaction_id", None)
    if transaction_id:
        return transaction_id
    return request.headers.get(TRANSACTION_ID_HEADER) or uuid4().hex


class LoggingMiddleware(BaseHTTPMiddleware):
    """Bind a transaction id to the request and log its lifecycle."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """
        Log request and response details under the request's transaction id.

        The id is taken from the X-Transaction-Id header when the caller
        sends one and echoed back on the response.
        """
        transaction_id = request.headers.get(TRANSACTION_ID_HEADER) or uuid4().hex
        request.state.transaction_id = transaction_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(transaction_id=transaction_id)
        logger = structlog.get_logger()

        start_time = time.time()

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                duration=time.time() - start_time,
            )
            raise

        duration = time.time() - start_time

        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration=duration,
        )

        response.headers["X-Process-Time"] = str(duration)
        response.headers[TRANSACTION_ID_HEADER] = transaction_id

        return response
