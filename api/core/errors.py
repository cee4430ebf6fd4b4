"""
Application error taxonomy and its HTTP mapping.

Services raise these; `register_exception_handlers` turns them into
`{"error": "..."}` JSON bodies. Auth failures stay as `HTTPException`
raised by the auth dependencies.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppError(RuntimeError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class StorageError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Database query failed") -> None:
        super().__init__(message)


class UploadError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY


async def _app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def request_error_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "request body is not valid JSON"
    where = " ".join(str(part) for part in first.get("loc") or ())
    message = str(first.get("msg") or "is invalid")
    return f"{where}: {message}" if where else message


async def _request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    # Framework-level parsing failures share the 400 {"error": ...} shape.
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": request_error_message(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
