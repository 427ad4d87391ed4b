"""RFC 7807 Problem Details error response formatting"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from marine_workorders.exceptions import (
    GuardFailed,
    InvalidPhoto,
    InvalidTransition,
    NoOp,
    NotFound,
    PartialFailure,
    StoreUnavailable,
    ValidationFailed,
    WorkOrderError,
)

logger = logging.getLogger(__name__)

ERROR_TYPE_BASE = "https://api.marine-workorders.dev/errors"


class ValidationErrorDetail(BaseModel):
    """Validation error detail for a specific field"""
    field: str
    message: str


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs"""
    type: str = Field(..., description="URI reference identifying the problem type")
    title: str = Field(..., description="Short, human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference identifying the specific occurrence")
    errors: Optional[List[ValidationErrorDetail]] = Field(None, description="Validation errors")


# Documented error responses for routers raising domain errors
PROBLEM_RESPONSES: Dict[int, Dict[str, Any]] = {
    code: {"model": ProblemDetail} for code in (400, 404, 409, 422, 502, 503)
}


def create_error_response(
    status_code: int,
    title: str,
    detail: str,
    error_type: Optional[str] = None,
    instance: Optional[str] = None,
    errors: Optional[List[Dict[str, str]]] = None,
    extensions: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """
    Create an RFC 7807 compliant error response

    Args:
        status_code: HTTP status code
        title: Short error title
        detail: Detailed error message
        error_type: Error type URI suffix (defaults to generic type based on status code)
        instance: Request path or identifier
        errors: List of validation errors with field and message
        extensions: Extra problem members (guard reason, completed steps, ...)

    Returns:
        JSONResponse with problem details
    """
    # Default error types based on status code
    error_type_map = {
        400: "validation_error",
        404: "not_found",
        409: "conflict",
        422: "unprocessable_entity",
        500: "internal_server_error",
        502: "bad_gateway",
        503: "service_unavailable"
    }

    if not error_type:
        error_type = error_type_map.get(status_code, "error")

    problem = {
        "type": f"{ERROR_TYPE_BASE}/{error_type}",
        "title": title,
        "status": status_code,
        "detail": detail
    }

    if instance:
        problem["instance"] = instance

    if errors:
        problem["errors"] = errors

    if extensions:
        problem.update(extensions)

    return JSONResponse(
        status_code=status_code,
        content=problem
    )


def problem_for(exc: WorkOrderError, instance: Optional[str] = None) -> JSONResponse:
    """Map a domain exception onto its problem response"""
    if isinstance(exc, NotFound):
        return create_error_response(status.HTTP_404_NOT_FOUND, exc.title, exc.detail, instance=instance)

    if isinstance(exc, (ValidationFailed, InvalidPhoto)):
        return create_error_response(status.HTTP_400_BAD_REQUEST, exc.title, exc.detail, instance=instance)

    if isinstance(exc, NoOp):
        return create_error_response(
            status.HTTP_409_CONFLICT,
            exc.title,
            exc.detail,
            error_type="no_op",
            instance=instance,
            extensions={"status_value": exc.status},
        )

    if isinstance(exc, InvalidTransition):
        return create_error_response(
            status.HTTP_409_CONFLICT, exc.title, exc.detail, error_type="invalid_transition", instance=instance
        )

    if isinstance(exc, GuardFailed):
        return create_error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            exc.title,
            exc.detail,
            error_type="guard_failed",
            instance=instance,
            extensions={"reason": exc.reason, "prompt": exc.prompt, "action": exc.action},
        )

    if isinstance(exc, StoreUnavailable):
        return create_error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE, exc.title, exc.detail, instance=instance
        )

    if isinstance(exc, PartialFailure):
        return create_error_response(
            status.HTTP_502_BAD_GATEWAY,
            exc.title,
            exc.detail,
            error_type="partial_failure",
            instance=instance,
            extensions={"operation": exc.operation, "completed_steps": exc.completed_steps},
        )

    return create_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.title, exc.detail, instance=instance)


async def work_order_error_handler(request: Request, exc: WorkOrderError) -> JSONResponse:
    return problem_for(exc, instance=request.url.path)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(loc) for loc in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return create_error_response(
        status.HTTP_400_BAD_REQUEST,
        "Validation Error",
        "Request validation failed",
        instance=request.url.path,
        errors=errors,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WorkOrderError, work_order_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
