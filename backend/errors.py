"""Error taxonomy and the handlers that render it as the response envelope.

Every failure leaves the API as one of two shapes::

    {"success": false, "error": "Task not found."}
    {"success": false, "errors": [{"field": "title", "message": "Title is required"}]}
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def body(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


class ValidationError(ApiError):
    status_code = 400
    message = "Validation failed"

    def __init__(self, errors: List[Dict[str, str]]):
        super().__init__()
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])

    def body(self) -> Dict[str, Any]:
        return {"success": False, "errors": self.errors}


class Unauthorized(ApiError):
    status_code = 401
    message = "Not authorized."


class InvalidCredential(ApiError):
    status_code = 401
    message = "Invalid email or password."


class NotFound(ApiError):
    status_code = 404
    message = "Not found."


class Conflict(ApiError):
    status_code = 409
    message = "Resource already exists."


class Internal(ApiError):
    status_code = 500
    message = "Internal Server Error"


def field_errors(errors: Iterable[Dict[str, Any]], skip_source: bool = False) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into ``[{field, message}]``.

    FastAPI prefixes locations with the request part ("body", "query");
    pass ``skip_source=True`` to drop it. List items (``tags[0]``) are
    reported against their list field.
    """
    out = []
    for err in errors:
        loc = list(err.get("loc") or ())
        if skip_source and len(loc) > 1:
            loc = loc[1:]
        field = next((str(p) for p in loc if isinstance(p, str)), "body")
        message = str(err.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        out.append({"field": field, "message": message})
    return out


def from_pydantic(exc: PydanticValidationError) -> ValidationError:
    return ValidationError(field_errors(exc.errors()))


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.body())


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    err = ValidationError(field_errors(exc.errors(), skip_source=True))
    return JSONResponse(status_code=err.status_code, content=err.body())


async def _pymongo_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    logger.exception("Database failure on %s %s", request.method, request.url.path, exc_info=exc)
    err = Internal()
    return JSONResponse(status_code=err.status_code, content=err.body())


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    err = Internal()
    return JSONResponse(status_code=err.status_code, content=err.body())


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        message = "Route not found"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": message},
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(PyMongoError, _pymongo_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
