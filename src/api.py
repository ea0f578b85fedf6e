"""
HTTP surface for the user cache service.

A thin FastAPI adapter: each route parses the request, calls one
`UserService` method, and renders the result. Service exceptions are mapped
to status codes by exception handlers, with plain-text `Error: <message>`
bodies. Routes are sync functions, so FastAPI runs each request in its
worker threadpool.

Usage:
    app = create_app(UserService(store, cache))
    uvicorn.run(app, host="0.0.0.0", port=8080)
"""

from __future__ import annotations

from typing import Dict, Type

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.domain.errors import (
    CacheError,
    InternalError,
    NotFoundError,
    StoreError,
    UserServiceError,
    ValidationError,
)
from src.domain.models import UserPayload
from src.service import UserService
from src.utils.logging import get_logger

log = get_logger(__name__)

STATUS_BY_ERROR: Dict[Type[UserServiceError], int] = {
    ValidationError: 400,
    NotFoundError: 404,
    StoreError: 500,
    CacheError: 500,
    InternalError: 500,
}


def status_for(exc: UserServiceError) -> int:
    """HTTP status for a service error, walking the class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 500


def _error_response(message: str, status_code: int) -> PlainTextResponse:
    return PlainTextResponse(f"Error: {message}", status_code=status_code)


def create_app(service: UserService) -> FastAPI:
    """
    Build the FastAPI application around an already constructed service.
    """
    app = FastAPI(
        title="User Cache Service",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )
    app.state.service = service

    @app.exception_handler(UserServiceError)
    async def _service_error(request: Request, exc: UserServiceError) -> PlainTextResponse:
        status_code = status_for(exc)
        extra = {
            "path": request.url.path,
            "code": exc.code,
            "status": status_code,
            "error": exc.message,
        }
        if status_code >= 500:
            log.error("[REQUEST FAILED]", extra=extra, exc_info=exc.__cause__ or exc)
        else:
            log.info("[REQUEST REJECTED]", extra=extra)
        return _error_response(exc.message, status_code)

    @app.exception_handler(RequestValidationError)
    async def _bad_body(request: Request, exc: RequestValidationError) -> PlainTextResponse:
        log.info("[REQUEST REJECTED]", extra={"path": request.url.path, "error": "Invalid request body"})
        return _error_response("Invalid request body", 400)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
        if exc.status_code == 404:
            return PlainTextResponse("route not found", status_code=404)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    @app.post("/users")
    def create_user(payload: UserPayload) -> JSONResponse:
        user = service.create_user(payload)
        return JSONResponse(user.to_wire(), status_code=201)

    @app.get("/users")
    def list_users() -> Response:
        users = service.list_users()
        if not users:
            return Response(status_code=204)
        return JSONResponse([user.to_wire() for user in users])

    @app.get("/users/{user_id}")
    def get_user(user_id: str) -> JSONResponse:
        return JSONResponse(service.get_user(user_id).to_wire())

    @app.put("/users/{user_id}")
    def update_user(user_id: str, payload: UserPayload) -> JSONResponse:
        return JSONResponse(service.update_user(user_id, payload).to_wire())

    @app.delete("/users/{user_id}")
    def delete_user(user_id: str) -> Response:
        service.delete_user(user_id)
        return Response(status_code=204)

    return app


__all__ = ["create_app", "status_for", "STATUS_BY_ERROR"]
