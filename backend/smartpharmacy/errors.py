# backend/smartpharmacy/errors.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

log = logging.getLogger("uvicorn.error")


class ApiError(Exception):
    status = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, status: int = None, code: str = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status
        if code is not None:
            self.code = code


class BadRequestError(ApiError):
    status = 400
    code = "BAD_REQUEST"


class NotFoundError(ApiError):
    status = 404
    code = "NOT_FOUND"


def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


def _envelope(request: Request, status: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": {"code": code, "message": message, "requestId": _request_id(request)}},
    )


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        log.warning(
            "request_failed path=%s method=%s status=%s code=%s message=%s request_id=%s",
            request.url.path, request.method, exc.status, exc.code, exc.message, _request_id(request),
        )
        return _envelope(request, exc.status, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        log.info("bad request on %s: %s", request.url.path, exc.errors())
        return _envelope(request, 400, "BAD_REQUEST", "Invalid request")

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        log.exception("Unexpected error in %s", request.url.path)
        return _envelope(request, 500, "INTERNAL_ERROR", "Unexpected error")
