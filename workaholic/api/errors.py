import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach simple, consistent JSON error handlers: {error, details?, status, path}."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if isinstance(exc.detail, dict):
            # Routes raise {"error": ..., "details": ...} for adapter failures
            content = {**exc.detail}
        elif isinstance(exc.detail, list):
            content = {"error": "ValidationError", "details": exc.detail}
        else:
            content = {"error": exc.detail if isinstance(exc.detail, str) else "HTTPError"}
        content.update({"status": exc.status_code, "path": request.url.path})
        return JSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "status": 422,
                "path": request.url.path,
                "details": exc.errors(),
            },
        )

    @app.exception_handler(SQLAlchemyError)
    async def store_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("store query failed path=%s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Server error", "status": 500, "path": request.url.path},
        )
