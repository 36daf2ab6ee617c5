"""RFC 7807 Problem Details responses for service exceptions"""

import logging
from typing import Dict, List, NamedTuple, Optional, Type

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from modelvault.services.blob_store import BlobStoreError
from modelvault.services.current_user import NotAuthenticatedError, NotAuthorizedError
from modelvault.services.upload_session import UploadValidationError
from modelvault.store.record_store import (
    DuplicateRecordError,
    RecordNotFoundError,
    StoreError,
    UnknownCollectionError,
)

logger = logging.getLogger(__name__)

ERROR_TYPE_BASE = "/errors"


class FieldError(BaseModel):
    """One failing field of a rejected edit"""
    field: str
    message: str


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs"""
    type: str = Field(..., description="URI reference identifying the problem type")
    title: str = Field(..., description="Short, human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="Request path that produced the problem")
    errors: Optional[List[FieldError]] = Field(None, description="Per-field validation failures")


class ProblemType(NamedTuple):
    status_code: int
    title: str
    slug: str
    log_failure: bool = False


# Subclasses precede their bases; problem_type_for takes the first match.
PROBLEM_TYPES: Dict[Type[Exception], ProblemType] = {
    UploadValidationError: ProblemType(status.HTTP_400_BAD_REQUEST, "Validation Error", "validation_error"),
    UnknownCollectionError: ProblemType(status.HTTP_400_BAD_REQUEST, "Bad Request", "unknown_field", True),
    NotAuthenticatedError: ProblemType(status.HTTP_401_UNAUTHORIZED, "Unauthorized", "unauthorized"),
    NotAuthorizedError: ProblemType(status.HTTP_403_FORBIDDEN, "Forbidden", "forbidden"),
    RecordNotFoundError: ProblemType(status.HTTP_404_NOT_FOUND, "Not Found", "not_found"),
    DuplicateRecordError: ProblemType(status.HTTP_409_CONFLICT, "Conflict", "conflict"),
    StoreError: ProblemType(status.HTTP_502_BAD_GATEWAY, "Bad Gateway", "store_unavailable", True),
    BlobStoreError: ProblemType(status.HTTP_502_BAD_GATEWAY, "Bad Gateway", "blob_store_unavailable", True),
}


def create_error_response(
    problem_type: ProblemType,
    detail: str,
    instance: Optional[str] = None,
    errors: Optional[List[Dict[str, str]]] = None,
) -> JSONResponse:
    """
    Build an RFC 7807 response body for a problem type

    Args:
        problem_type: Status, title and type slug of the problem
        detail: Human-readable explanation
        instance: Request path
        errors: Field-level failures, each with field and message

    Returns:
        JSONResponse with problem details, None fields omitted
    """
    problem = ProblemDetail(
        type=f"{ERROR_TYPE_BASE}/{problem_type.slug}",
        title=problem_type.title,
        status=problem_type.status_code,
        detail=detail,
        instance=instance,
        errors=errors,
    )
    return JSONResponse(
        status_code=problem_type.status_code,
        content=problem.model_dump(exclude_none=True),
    )


def problem_type_for(exc: Exception) -> ProblemType:
    for exc_class, problem_type in PROBLEM_TYPES.items():
        if isinstance(exc, exc_class):
            return problem_type
    raise TypeError(f"No problem type registered for {type(exc).__name__}")


async def handle_service_error(request: Request, exc: Exception) -> JSONResponse:
    """Translate a mapped service exception into problem details"""
    problem_type = problem_type_for(exc)

    if problem_type.log_failure:
        logger.error(f"{type(exc).__name__} at {request.url.path}: {exc}")

    errors = None
    detail = str(exc)
    if isinstance(exc, UploadValidationError):
        errors = [{"field": field, "message": message} for field, message in exc.errors.items()]
        detail = "Validation failed"

    return create_error_response(problem_type, detail, instance=request.url.path, errors=errors)


def register_exception_handlers(app: FastAPI) -> None:
    """Map service exceptions to problem-details responses"""
    for exc_class in PROBLEM_TYPES:
        app.add_exception_handler(exc_class, handle_service_error)
