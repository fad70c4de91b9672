from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from redis.exceptions import RedisError
import logging

# Setup logging
logger = logging.getLogger(__name__)

class TicketAuthException(Exception):
    """Base exception class for the ticket auth service"""

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ValidationError(TicketAuthException):
    """Malformed or missing input"""

    def __init__(self, message: str = "Validation failed", details: dict = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)

class DuplicateAccountError(TicketAuthException):
    """Email or username already taken"""

    def __init__(self, message: str = "Email or username already exists"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)

class InvalidCredentialsError(TicketAuthException):
    """Unknown email or wrong password; the cause is never disclosed"""

    def __init__(self):
        super().__init__("Invalid credentials", status.HTTP_401_UNAUTHORIZED)

class NotAuthenticatedError(TicketAuthException):
    """Missing, expired or unverified session"""

    def __init__(self, message: str = "Not logged in"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)

class InvalidOtpError(TicketAuthException):
    """Wrong or expired OTP; the two cases are indistinguishable"""

    def __init__(self):
        super().__init__("Invalid or expired OTP code", status.HTTP_401_UNAUTHORIZED)

class StoreUnavailableError(TicketAuthException):
    """Relational or ephemeral store failure"""

    def __init__(self, message: str = "Service temporarily unavailable"):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_body(message: str, errors: list = None) -> dict:
    return {
        "success": False,
        "message": message,
        "errors": errors or [message],
    }

# Exception handlers
async def ticketauth_exception_handler(request: Request, exc: TicketAuthException):
    """Handle service exceptions"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{type(exc).__name__}: {exc.message}", extra={
        "status_code": exc.status_code,
        "path": request.url.path,
        "method": request.method
    })

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message)
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request body validation errors as 400s"""
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"] if loc != "body")
        errors.append(f"{field}: {error['msg']}" if field else error["msg"])

    logger.warning(f"Validation Error: {errors}", extra={
        "path": request.url.path,
        "method": request.method
    })

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Missing or invalid fields", errors)
    )

async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle FastAPI HTTP exceptions"""
    logger.warning(f"HTTP Exception: {exc.detail}", extra={
        "status_code": exc.status_code,
        "path": request.url.path,
        "method": request.method
    })

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None)
    )

async def store_exception_handler(request: Request, exc: Exception):
    """Handle database and Redis failures that escaped the service layer"""
    logger.error(f"Store Error: {type(exc).__name__}", extra={
        "path": request.url.path,
        "method": request.method
    }, exc_info=exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Service temporarily unavailable")
    )

async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions"""
    logger.error(f"Unhandled Exception: {type(exc).__name__}", extra={
        "path": request.url.path,
        "method": request.method
    }, exc_info=exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error")
    )

# Exception mapping for FastAPI app
EXCEPTION_HANDLERS = {
    TicketAuthException: ticketauth_exception_handler,
    RequestValidationError: validation_exception_handler,
    HTTPException: http_exception_handler,
    SQLAlchemyError: store_exception_handler,
    RedisError: store_exception_handler,
    Exception: general_exception_handler,
}
