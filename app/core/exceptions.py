"""
Global exception handlers for consistent API errors.

Every failure is rendered with the same envelope used by successful
responses, with `success: false` and `data: null`.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import ApiError


def _req_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", object()), "request_id", None)


def error_body(status_code: int, message: str, errors: Optional[List[Any]] = None, request_id: str | None = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "statusCode": status_code,
        "data": None,
        "message": message,
        "success": False,
        "errors": errors or [],
    }
    if request_id:
        body["request_id"] = request_id
    return body


def register_exception_handlers(app: FastAPI) -> None:
    log = logging.getLogger("vidtube.errors")

    @app.exception_handler(ApiError)
    async def _api_error_handler(request: Request, exc: ApiError):
        rid = _req_id(request)
        if exc.status_code >= 500:
            log.error("ApiError %s request_id=%s: %s", exc.status_code, rid, exc.message)
        body = error_body(exc.status_code, exc.message, jsonable_encoder(exc.errors), rid)
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        body = error_body(exc.status_code, str(exc.detail or "HTTP error"), request_id=_req_id(request))
        return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):
        body = error_body(400, "Validation error", jsonable_encoder(exc.errors()), _req_id(request))
        return JSONResponse(status_code=400, content=body)

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        rid = _req_id(request)
        log.exception("Unhandled error request_id=%s", rid)
        return JSONResponse(status_code=500, content=error_body(500, "Internal server error", request_id=rid))
