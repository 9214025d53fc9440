"""Domain error taxonomy and the HTTP response mapper.

Every failure a service can report is one of the classes below. Each class
carries the HTTP status it maps to and the JSON key the message is returned
under; ``register_exception_handlers`` installs the translation on the app.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class DocspaceError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    body_key: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> Dict[str, Any]:
        return {self.body_key: self.message}


class UserNotFoundError(DocspaceError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, email: str):
        super().__init__(f'User with email "{email}" not found')


class NoUsersError(DocspaceError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self):
        super().__init__("No users available")


class InvalidPasswordError(DocspaceError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self):
        super().__init__("The provided password is incorrect")


class UserAlreadyExistsError(DocspaceError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Email already exists"):
        super().__init__(message)


class DatabaseConnectionError(DocspaceError):
    def __init__(self, detail: str):
        super().__init__(f"There was an issue connecting to the database: {detail}")


class UserCreationError(DocspaceError):
    def __init__(self, email: str):
        super().__init__(f"Error creating {email}")


class UserDeletionError(DocspaceError):
    def __init__(self, email: str):
        super().__init__(f'Unable to delete user with email "{email}"')


class NotFoundError(DocspaceError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")


class OTPExpiredError(DocspaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    body_key = "message"

    def __init__(self):
        super().__init__("OTP has expired")


class OTPInvalidError(DocspaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    body_key = "message"

    def __init__(self):
        super().__init__("Invalid OTP")


class AuthenticationError(DocspaceError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Authentication invalid"):
        super().__init__(message)


class PermissionDeniedError(DocspaceError):
    status_code = status.HTTP_403_FORBIDDEN


class BadRequestError(DocspaceError):
    status_code = status.HTTP_400_BAD_REQUEST


class PayloadTooLargeError(DocspaceError):
    status_code = 413

    def __init__(self, limit: int):
        super().__init__(f"File exceeds the {limit} byte upload limit")


class PartialCascadeFailureError(DocspaceError):
    """Some file objects could not be removed while purging a workspace."""

    def __init__(self, workspace_id: str, failed_keys: List[str]):
        super().__init__(
            f"Workspace {workspace_id} was not purged: "
            f"{len(failed_keys)} file object(s) could not be deleted"
        )
        self.workspace_id = workspace_id
        self.failed_keys = failed_keys

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["failed_keys"] = self.failed_keys
        return body


def _json_error(status_code: int, body: Dict[str, Any], headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


async def docspace_error_handler(request: Request, exc: DocspaceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return _json_error(exc.status_code, exc.to_body(), headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return _json_error(
        status.HTTP_400_BAD_REQUEST,
        {"error": "Validation failed", "details": details},
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _json_error(exc.status_code, {"error": exc.detail}, getattr(exc, "headers", None))


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Store failure on %s %s", request.method, request.url.path)
    return await docspace_error_handler(request, DatabaseConnectionError(str(exc.__class__.__name__)))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _json_error(status.HTTP_500_INTERNAL_SERVER_ERROR, {"error": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DocspaceError, docspace_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
