"""
Error types and their HTTP mapping.

Handlers raise these; the exception handlers registered by ``main.create_app``
turn them into ``{"message": ...}`` JSON responses.
"""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
import structlog

logger = structlog.get_logger(__name__)

class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class Unauthenticated(AppError):
    status_code = 401

class InvalidToken(AppError):
    status_code = 400

class Conflict(AppError):
    status_code = 400

class InvalidCredential(AppError):
    status_code = 400

class NotFound(AppError):
    # Also raised when the record exists but belongs to another user.
    status_code = 404

class UnknownUser(NotFound):
    # Login with an email nobody registered: a client error, not a 404.
    status_code = 400

def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

def store_error_handler(request: Request, exc: PyMongoError):
    logger.error("store_failure", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Server error", "error": str(exc)})

def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in e.get("loc", ()) if p != "body"), "message": e.get("msg")}
        for e in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Invalid request", "errors": errors})
