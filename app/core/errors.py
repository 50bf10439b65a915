"""API error taxonomy and the handlers that render it.

Every error leaves the service as ``{"error": str, "code"?: str, "details"?: any}``.
Resource endpoints never answer 403: a row the caller may not see is reported
exactly like a row that does not exist.
"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger("uvicorn.error")


class APIError(Exception):
    status_code = 500
    code: Optional[str] = None

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Any = None,
        extra: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.details = details
        self.extra = extra or {}

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"error": self.message}
        if self.code:
            body["code"] = self.code
        if self.details is not None:
            body["details"] = self.details
        body.update(self.extra)
        return body


class Unauthenticated(APIError):
    status_code = 401
    code = "unauthenticated"

    def __init__(self, message: str = "Unauthorized", **kwargs):
        super().__init__(message, **kwargs)


class NotFoundOrForbidden(APIError):
    status_code = 404
    code = "not_found"

    def __init__(self, message: str = "Not found", **kwargs):
        super().__init__(message, **kwargs)


class ValidationFailed(APIError):
    status_code = 400
    code = "validation_failed"

    def __init__(self, message: str = "Validation failed", fields: Optional[list[dict]] = None, **kwargs):
        if fields is not None:
            kwargs.setdefault("details", {"fields": fields})
        super().__init__(message, **kwargs)


class UpstreamFailure(APIError):
    status_code = 500
    code = "upstream_failure"

    def __init__(self, message: str = "Internal server error", **kwargs):
        super().__init__(message, **kwargs)


def _field_errors(errors: list[dict]) -> list[dict]:
    fields = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        fields.append({"field": ".".join(loc) or "body", "message": err.get("msg", "invalid")})
    return fields


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        err = ValidationFailed(fields=_field_errors(exc.errors()))
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("store failure on %s %s", request.method, request.url.path, exc_info=exc)
        err = UpstreamFailure()
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        err = UpstreamFailure()
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )
