"""
Custom exceptions and error handlers for consistent error responses.

Every error body carries the HTTP status as ``code`` next to a stable
``error_code`` so clients can branch on either.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationFailedError(AppException):
    """Raised when input passes schema validation but breaks a business rule."""

    def __init__(self, errors: Dict[str, List[str]], message: str = "The given data was invalid."):
        self.errors = errors
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )


class InsufficientBalanceError(ValidationFailedError):
    """Raised when a debit would take an owner's balance below zero."""

    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(
            errors={"amount": ["The amount may not be greater than the available balance."]}
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class InvalidStateTransitionError(AppException):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_STATE_001",
            status_code=status.HTTP_409_CONFLICT,
            details=details
        )


class LedgerConflictError(AppException):
    """Raised when concurrent appends keep winning the race for an owner's ledger."""

    def __init__(self, owner_id: int):
        super().__init__(
            message="The ledger is busy, please retry the request",
            error_code="ERR_LEDGER_CONFLICT",
            status_code=status.HTTP_409_CONFLICT,
            details={"owner_id": owner_id}
        )


def required_body_fields(request: Request) -> List[str]:
    """
    Wire names of the required fields of the matched route's request body.

    Empty when the request did not match a route with a body.
    """
    dependant = getattr(request.scope.get("route"), "dependant", None)
    fields: List[str] = []
    for param in getattr(dependant, "body_params", None) or []:
        model = getattr(param, "type_", None) or param.field_info.annotation
        if isinstance(model, type) and issubclass(model, BaseModel):
            fields.extend(
                info.alias or name
                for name, info in model.model_fields.items()
                if info.is_required()
            )
        else:
            fields.append(param.alias)
    return fields


def format_validation_errors(
    errors: List[Dict[str, Any]],
    body_fields: Optional[List[str]] = None,
) -> Dict[str, List[str]]:
    """
    Group Pydantic error dicts by field name.

    The leading location part (``body``/``query``/``path``) is dropped so the
    keys match the request field names. An error on the body as a whole
    (missing, or not a JSON object) is reported as every required field of
    ``body_fields`` being missing.
    """
    grouped: Dict[str, List[str]] = {}
    for error in errors:
        if tuple(error.get("loc", ())) == ("body",) and body_fields:
            for field in body_fields:
                grouped.setdefault(field, []).append(f"The {field} field is required.")
            continue
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) if loc else "__root__"
        if error.get("type") == "missing":
            message = f"The {field} field is required."
        else:
            message = error.get("msg", "Invalid value.")
        grouped.setdefault(field, []).append(message)
    return grouped


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    content: Dict[str, Optional[Any]] = {
        "code": exc.status_code,
        "error_code": exc.error_code,
        "message": exc.message,
    }
    if isinstance(exc, ValidationFailedError):
        content["errors"] = exc.errors
    else:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "code": exc.status_code,
            "error_code": error_code_map.get(exc.status_code, "ERR_UNKNOWN"),
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": status.HTTP_422_UNPROCESSABLE_ENTITY,
            "error_code": "ERR_VALIDATION",
            "message": "The given data was invalid.",
            "errors": format_validation_errors(exc.errors(), required_body_fields(request))
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
