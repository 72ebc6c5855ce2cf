# Nombre de archivo: middlewares.py
# Ubicación de archivo: core/middlewares.py
# Descripción: Middlewares compartidos para la API de SISTEMA SIC

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.types import ASGIApp

from core.logging import request_id_var

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Genera (o reutiliza) un identificador de solicitud y registra la latencia."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        inicio = time.perf_counter()
        try:
            response = await call_next(request)
            logger.debug(
                "action=request_end path=%s status=%s elapsed_ms=%.1f",
                request.url.path,
                response.status_code,
                (time.perf_counter() - inicio) * 1000,
            )
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response
