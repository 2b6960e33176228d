"""RFC 7807 problem responses and the application error type."""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

PROBLEM_CONTENT_TYPE = "application/problem+json"
PROBLEM_BASE = "https://example.com/problems"

DEFAULT_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    422: "Unprocessable Entity",
    429: "Too Many Requests",
    500: "Internal Server Error",
}


class AppError(Exception):
    """Operational error carrying an HTTP status and problem metadata."""

    def __init__(
        self,
        detail: str,
        status_code: int,
        type: Optional[str] = None,
        title: Optional[str] = None,
    ):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
        self.type = type
        self.title = title


def not_found(resource: str, resource_id: Any) -> AppError:
    return AppError(
        f"{resource} with ID {resource_id} was not found",
        404,
        f"{PROBLEM_BASE}/resource-not-found",
        "Resource Not Found",
    )


def conflict(detail: str, slug: str = "conflict", title: str = "Conflict") -> AppError:
    return AppError(detail, 409, f"{PROBLEM_BASE}/{slug}", title)


def bad_request(detail: str, slug: str = "bad-request", title: str = "Bad Request") -> AppError:
    return AppError(detail, 400, f"{PROBLEM_BASE}/{slug}", title)


def problem_details(
    status: int,
    title: str,
    detail: Optional[str] = None,
    type: Optional[str] = None,
    instance: Optional[str] = None,
    extensions: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    problem: Dict[str, Any] = {
        "type": type or f"https://httpstatuses.com/{status}",
        "title": title,
        "status": status,
    }
    if detail:
        problem["detail"] = detail
    if instance:
        problem["instance"] = instance
    if extensions:
        problem.update(extensions)
    return problem


def problem_response(status: int, problem: Dict[str, Any], headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content=problem,
        media_type=PROBLEM_CONTENT_TYPE,
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError):
    problem = problem_details(
        exc.status_code,
        exc.title or DEFAULT_TITLES.get(exc.status_code, "Error"),
        exc.detail,
        exc.type,
        request.url.path,
    )
    return problem_response(exc.status_code, problem)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
            "code": err.get("type", ""),
        }
        for err in exc.errors()
    ]
    problem = problem_details(
        400,
        "Validation Failed",
        "The request contains invalid data",
        f"{PROBLEM_BASE}/validation-error",
        request.url.path,
        {"errors": errors},
    )
    return problem_response(400, problem)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    problem = problem_details(
        exc.status_code,
        DEFAULT_TITLES.get(exc.status_code, "Error"),
        str(exc.detail) if exc.detail else None,
        None,
        request.url.path,
    )
    return problem_response(exc.status_code, problem, getattr(exc, "headers", None))


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
    problem = problem_details(
        409,
        "Conflict",
        "The request conflicts with existing data",
        f"{PROBLEM_BASE}/integrity-error",
        request.url.path,
    )
    return problem_response(409, problem)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error on {request.method} {request.url.path}")
    problem = problem_details(
        500,
        "Internal Server Error",
        "An unexpected error occurred while processing your request",
        f"{PROBLEM_BASE}/internal-server-error",
        request.url.path,
    )
    return problem_response(500, problem)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
