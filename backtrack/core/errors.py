import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None, detail=None):
        """
        Base class for errors raised by the registry.

        Args:
            message (str): Human readable error message.
            status_code (int): HTTP status code; defaults to the subclass value.
            detail: Optional structured payload returned instead of the message.
        """
        super().__init__(message)

        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.detail = detail if detail is not None else message


class ValidationError(AppError):
    status_code = 400


class Unauthorized(AppError):
    status_code = 401


class InvalidCredentials(AppError):
    status_code = 401


class Forbidden(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class InvalidTransition(AppError):
    status_code = 409


class UploadError(AppError):
    status_code = 500


class StoreError(AppError):
    status_code = 500


def register_error_handlers(app: FastAPI):
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
            # dependency failures never leak their internals
            return JSONResponse(status_code=exc.status_code, content={"detail": "Internal Server Error"})

        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        detail = [
            {"loc": [str(part) for part in err["loc"]], "msg": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"detail": detail})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
