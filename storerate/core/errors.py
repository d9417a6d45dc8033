"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``register_exception_handlers`` turns them into JSON
responses. Authentication and authorization failures carry fixed messages so
a caller cannot tell why a credential was refused.
"""
import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[Dict[str, str]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(AppError):
    status_code = 400
    default_message = "Validation failed"


class ConflictError(AppError):
    status_code = 409
    default_message = "Resource already exists"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class InvalidCredentials(AppError):
    status_code = 401
    default_message = "Invalid email or password"

    def __init__(self):
        super().__init__()


class Unauthorized(AppError):
    status_code = 401
    default_message = "Invalid or expired credentials"


class Forbidden(AppError):
    status_code = 403
    default_message = "Insufficient role"

    def __init__(self):
        super().__init__()


class InternalError(AppError):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self):
        super().__init__()


def _render(exc: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        return _render(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = {}
        for err in exc.errors():
            # ("body", "email") -> "email"
            loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
            errors[".".join(loc) or "body"] = err.get("msg", "Invalid value")
        return _render(ValidationError(errors=errors))

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return _render(InternalError())

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _render(InternalError())
