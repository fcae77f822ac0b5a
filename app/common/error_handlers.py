from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.common.exceptions import AppError
from app.logger_config import logger


def _error_body(message, status_code, details=None):
    body = {
        "success": False,
        "message": message,
        "status_code": status_code,
    }
    if details is not None:
        body["details"] = details
    return body


def register_error_handlers(app: FastAPI):
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, e: AppError):
        if e.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {e.message} ({e.details})")
        return JSONResponse(
            status_code=e.status_code,
            content=_error_body(e.message, e.status_code, e.details),
        )

    @app.exception_handler(HTTPException)
    async def handle_http_exception(request: Request, e: HTTPException):
        # Routes may pass {"message": ..., "details": ...} as the detail
        if isinstance(e.detail, dict):
            message = e.detail.get("message", "Request failed")
            details = e.detail.get("details")
        else:
            message, details = e.detail, None
        return JSONResponse(
            status_code=e.status_code,
            content=_error_body(message, e.status_code, details),
            headers=getattr(e, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, e: RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in err.get("loc", [])), "message": err.get("msg")}
            for err in e.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=_error_body("Missing or invalid fields", 400, errors),
        )

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, e: Exception):
        logger.exception("Unhandled exception occurred")
        return JSONResponse(
            status_code=500,
            content=_error_body("Internal Server Error", 500, str(e)),
        )
