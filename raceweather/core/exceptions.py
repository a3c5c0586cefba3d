"""
Errores del dominio y handlers globales para respuestas de error consistentes.

Toda respuesta de error lleva un campo `error` corto y legible; nunca se
serializa un stack trace al cliente.
"""
import logging
from typing import Any, Dict, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class ApiError(Exception):
    """Error con status HTTP asociado; lo traduce `register_exception_handlers`."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, headers: Optional[Mapping[str, str]] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.headers: Dict[str, str] = dict(headers or {})


class InvalidInput(ApiError):
    status_code = 400


class NotFound(ApiError):
    status_code = 404


class QuotaExceeded(ApiError):
    status_code = 429


class Misconfigured(ApiError):
    status_code = 500


class UpstreamFailure(ApiError):
    """El proveedor respondió con un status no exitoso."""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        # Se reenvía el status del proveedor cuando es un código de error
        status = upstream_status if upstream_status and upstream_status >= 400 else 502
        super().__init__(message, status_code=status)
        self.upstream_status = upstream_status


class UpstreamTimeout(ApiError):
    status_code = 504


class UpstreamUnavailable(ApiError):
    """Fallo de red antes de obtener cualquier status del proveedor."""

    status_code = 500


def _req_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", object()), "request_id", None)


def error_body(message: str, request: Request | None = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": message}
    body.update(extra)
    rid = _req_id(request) if request is not None else None
    if rid:
        body["request_id"] = rid
    return body


def register_exception_handlers(app: FastAPI) -> None:
    log = logging.getLogger("raceweather.errors")

    @app.exception_handler(ApiError)
    async def _api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, request),
            headers=exc.headers or None,
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail or "HTTP error"), request),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=error_body("Validation error", request, errors=jsonable_encoder(exc.errors())),
        )

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        rid = _req_id(request)
        log.exception("Unhandled error request_id=%s", rid)
        return JSONResponse(status_code=500, content=error_body("Internal server error", request))
