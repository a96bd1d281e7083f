"""JSON error envelope and request-id propagation.

Every failure leaves the API as
``{"success": false, "error": {"code", "message", "request_id", "details"}}``
with the request id echoed in the ``x-request-id`` header.
"""
import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnpath.core.llm_errors import GenerationFailed

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or "unknown"


def error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details=None,
    headers: dict | None = None,
) -> JSONResponse:
    request_id = get_request_id(request)
    body = {
        "success": False,
        "error": {"code": code, "message": message, "request_id": request_id, "details": details},
    }
    # Set here too: the unhandled-error path bypasses the request-id middleware.
    return JSONResponse(body, status_code=status_code, headers={**(headers or {}), REQUEST_ID_HEADER: request_id})


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(
        request,
        status_code=exc.status_code,
        code="http_error",
        message=str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(err.get("loc", ())), "msg": str(err.get("msg", "")), "type": err.get("type")}
        for err in exc.errors()
    ]
    return error_response(
        request,
        status_code=422,
        code="validation_error",
        message="Request validation failed",
        details=details,
    )


async def generation_failed_handler(request: Request, exc: GenerationFailed):
    # The generation facade already logged the underlying cause.
    return error_response(request, status_code=502, code=exc.code, message=exc.reason)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception | request_id=%s", get_request_id(request), exc_info=exc)
    return error_response(request, status_code=500, code="internal_error", message="Internal server error")


async def request_id_middleware(request: Request, call_next):
    request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request.state.request_id
    return response


def install_error_handling(app: FastAPI) -> None:
    app.middleware("http")(request_id_middleware)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(GenerationFailed, generation_failed_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
