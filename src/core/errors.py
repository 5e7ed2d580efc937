from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class AppError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(code="not_found", message=message, status_code=404)


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request") -> None:
        super().__init__(code="bad_request", message=message, status_code=400)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(code="unauthorized", message=message, status_code=401)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden: Insufficient permissions") -> None:
        super().__init__(code="forbidden", message=message, status_code=403)


class ExchangeRateError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(code="exchange_rate_unavailable", message=message, status_code=400)


class ErrorEnvelope(BaseModel):
    error: ErrorDetail


def _envelope_response(status_code: int, detail: ErrorDetail) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorEnvelope(error=detail).model_dump())


def backend_error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"Backend request failed with status {response.status_code}"
    if isinstance(payload, dict):
        for key in ("message", "msg", "error_description", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return f"Backend request failed with status {response.status_code}"


def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return _envelope_response(exc.status_code, ErrorDetail(code=exc.code, message=exc.message))


def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return _envelope_response(
        400,
        ErrorDetail(
            code="validation_error",
            message="Validation error",
            details={"errors": exc.errors()},
        ),
    )


def backend_error_handler(_: Request, exc: httpx.HTTPStatusError) -> JSONResponse:
    message = backend_error_message(exc.response)
    logger.error("Backend request %s failed: %s", exc.request.url.path, message)
    return _envelope_response(400, ErrorDetail(code="backend_error", message=message))


def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", exc_info=exc)
    message = str(exc) or "Unknown error occurred"
    return _envelope_response(500, ErrorDetail(code="internal_error", message=message))
