"""
Exception handlers - map domain errors to HTTP responses.

Every error response has the shape ``{"detail": "<short message>"}``.
Unexpected exceptions are logged with their traceback and answered with a
generic 500; internal details never reach the client.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.domain import exceptions as exc

logger = logging.getLogger(__name__)

# Most specific first; looked up along the exception's MRO
ERROR_MAP: dict[type[exc.AccountError], tuple[int, str]] = {
    exc.ValidationFailed: (status.HTTP_400_BAD_REQUEST, "Invalid request"),
    exc.EmailAlreadyRegistered: (status.HTTP_400_BAD_REQUEST, "User already exists"),
    exc.AlreadyProcessed: (status.HTTP_400_BAD_REQUEST, "User has already been processed"),
    exc.RoleAlreadyExists: (status.HTTP_400_BAD_REQUEST, "Role already exists"),
    exc.AccountNotFound: (status.HTTP_404_NOT_FOUND, "User not found"),
    exc.RoleNotFound: (status.HTTP_404_NOT_FOUND, "Role not found"),
    exc.InvalidCredentials: (status.HTTP_400_BAD_REQUEST, "Invalid credentials"),
    exc.InvalidCode: (status.HTTP_400_BAD_REQUEST, "Invalid or expired verification code"),
    exc.CodeExpired: (status.HTTP_400_BAD_REQUEST, "Verification code has expired"),
    exc.InvalidRole: (status.HTTP_400_BAD_REQUEST, "Invalid role"),
    exc.NotApproved: (status.HTTP_403_FORBIDDEN, "Your account is not approved yet"),
    exc.VerificationRequired: (
        status.HTTP_403_FORBIDDEN,
        "Email verification required. Check your email for the code.",
    ),
    exc.Unauthorized: (status.HTTP_401_UNAUTHORIZED, "Access denied"),
    exc.InvalidToken: (status.HTTP_400_BAD_REQUEST, "Invalid token"),
    exc.Forbidden: (status.HTTP_403_FORBIDDEN, "Access denied: insufficient privileges"),
}


def resolve_error(error: exc.AccountError) -> tuple[int, str]:
    """Status code and client message for a domain error."""
    for cls in type(error).__mro__:
        if cls in ERROR_MAP:
            status_code, message = ERROR_MAP[cls]
            if cls is exc.ValidationFailed and error.args:
                message = str(error.args[0])
            return status_code, message
    return status.HTTP_400_BAD_REQUEST, "Request could not be processed"


async def account_error_handler(request: Request, error: exc.AccountError) -> JSONResponse:
    status_code, message = resolve_error(error)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content={"detail": message}, headers=headers)


async def validation_error_handler(
    request: Request, error: RequestValidationError
) -> JSONResponse:
    """Report the first invalid field; the full pydantic error is not echoed."""
    errors = error.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {field} - {first.get('msg', 'invalid value')}"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": message})


async def unhandled_error_handler(request: Request, error: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(exc.AccountError, account_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
