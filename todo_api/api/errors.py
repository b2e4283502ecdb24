import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..exceptions import DomainError

log = logging.getLogger("todo_api.errors")


def _envelope(request: Request, status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "status": status_code, "path": request.url.path, **extra},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach simple, consistent JSON error handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        response = _envelope(
            request,
            exc.status_code,
            exc.detail if isinstance(exc.detail, str) else "HTTPError",
        )
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _envelope(request, 422, "ValidationError", details=jsonable_errors(exc))

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError):
        return _envelope(request, exc.status_code, exc.message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        log.exception(
            "unhandled error path=%s request_id=%s",
            request.url.path,
            getattr(request.state, "request_id", "-"),
        )
        return _envelope(request, 500, "Internal Server Error")


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may carry the raw exception object (e.g. from a field validator)
    errors = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        errors.append(err)
    return errors
